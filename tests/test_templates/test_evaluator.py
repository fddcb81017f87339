"""Unit tests for directive expression evaluation (dotclaude.templates.evaluator).

Tests cover:
- get_context_value (nested paths, list indexes, length, absent paths)
- parse_expression (comparisons, quotes, negation)
- evaluate_condition (truthiness, comparisons, NaN semantics, &&/||, includes/has)
- get_iterable / create_loop_context
- stringify and apply_template_transform
"""

from __future__ import annotations

import pytest

from dotclaude.templates.evaluator import (
    MISSING,
    apply_template_transform,
    create_loop_context,
    evaluate_condition,
    get_context_value,
    get_iterable,
    is_truthy,
    parse_expression,
    stringify,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# get_context_value
# ---------------------------------------------------------------------------


class TestGetContextValue:
    def test_nested_path(self, template_context):
        assert get_context_value(template_context, "project.name") == "Acme Shop"

    def test_list_index(self, template_context):
        assert get_context_value(template_context, "modules.agents.1") == "test-engineer"

    def test_list_length(self, template_context):
        assert get_context_value(template_context, "modules.agents.length") == 2
        assert get_context_value(template_context, "modules.commands.length") == 0

    def test_absent_path_returns_default(self, template_context):
        assert get_context_value(template_context, "project.missing") is None
        assert get_context_value(template_context, "project.name.first", "x") == "x"

    def test_out_of_range_index(self, template_context):
        assert get_context_value(template_context, "items.9", MISSING) is MISSING

    def test_none_intermediate(self):
        assert get_context_value({"a": None}, "a.b", "fallback") == "fallback"

    def test_none_leaf_is_not_missing(self):
        assert get_context_value({"a": None}, "a", MISSING) is None


# ---------------------------------------------------------------------------
# parse_expression
# ---------------------------------------------------------------------------


class TestParseExpression:
    def test_comparison_strips_quotes(self):
        parsed = parse_expression('codeStyle.formatter == "biome"')
        assert parsed.variable == "codeStyle.formatter"
        assert parsed.path == ["codeStyle", "formatter"]
        assert parsed.operator == "=="
        assert parsed.compare_value == "biome"

    def test_numeric_comparison(self):
        parsed = parse_expression("count >= 5")
        assert parsed.operator == ">="
        assert parsed.compare_value == "5"

    def test_negation(self):
        parsed = parse_expression("!flags.enabled")
        assert parsed.operator == "!"
        assert parsed.variable == "flags.enabled"

    def test_plain_path(self):
        parsed = parse_expression("  modules.agents ")
        assert parsed.operator is None
        assert parsed.variable == "modules.agents"


# ---------------------------------------------------------------------------
# evaluate_condition
# ---------------------------------------------------------------------------


class TestEvaluateCondition:
    @pytest.mark.parametrize("value", [True, "x", 1, -2.5, ["a"], {"k": "v"}])
    def test_truthy_values(self, value):
        assert evaluate_condition("flag", {"flag": value}) is True

    @pytest.mark.parametrize("value", [False, 0, "", None, [], {}])
    def test_falsy_values(self, value):
        assert evaluate_condition("flag", {"flag": value}) is False

    def test_missing_is_false(self):
        assert evaluate_condition("nothing.here", {}) is False

    def test_equality_compares_strings(self, template_context):
        assert evaluate_condition('techStack.framework == "nextjs"', template_context)
        assert evaluate_condition("count == 7", template_context)
        assert evaluate_condition("flags.enabled == true", template_context)
        assert not evaluate_condition("techStack.framework != nextjs", template_context)

    def test_numeric_ordering(self, template_context):
        assert evaluate_condition("count > 5", template_context)
        assert evaluate_condition("count <= 7", template_context)
        assert not evaluate_condition("count < 7", template_context)

    def test_nan_comparisons_are_false(self):
        ctx = {"count": "abc"}
        assert evaluate_condition("count > 5", ctx) is False
        assert evaluate_condition("count <= 5", ctx) is False

    def test_missing_operand_is_nan(self):
        assert evaluate_condition("absent < 5", {}) is False
        assert evaluate_condition("absent >= 0", {}) is False

    def test_numeric_strings_compare_numerically(self):
        assert evaluate_condition("size > 9", {"size": "10"})

    def test_missing_path_is_not_empty_string(self):
        ctx = {"project": {}}
        assert evaluate_condition('project.description != ""', ctx) is True
        assert evaluate_condition('project.description == ""', ctx) is False
        assert evaluate_condition("project.description == undefined", ctx) is True

    def test_none_compares_as_null(self):
        assert evaluate_condition("a == null", {"a": None})
        assert not evaluate_condition('a == ""', {"a": None})

    def test_equality_casts(self):
        assert evaluate_condition("tags == a,,b", {"tags": ["a", None, "b"]})
        assert evaluate_condition('meta == "[object Object]"', {"meta": {"k": 1}})
        assert evaluate_condition("ratio == NaN", {"ratio": float("nan")})

    @pytest.mark.parametrize(
        ("value", "condition"),
        [
            ("0x10", "n > 15"),
            ("0b11", "n >= 3"),
            ("0o17", "n < 16"),
            ("Infinity", "n > 1e308"),
            ("-Infinity", "n < -1e308"),
            (" 42 ", "n >= 42"),
            ([5], "n > 4"),
            ([], "n <= 0"),
        ],
    )
    def test_number_parsing(self, value, condition):
        assert evaluate_condition(condition, {"n": value}) is True

    @pytest.mark.parametrize("value", ["inf", "nan", "1_000", "-0x10", "12px", [1, 2], {"a": 1}])
    def test_unparsable_numbers_are_nan(self, value):
        assert evaluate_condition("n > 0", {"n": value}) is False
        assert evaluate_condition("n <= 0", {"n": value}) is False

    def test_negation(self, template_context):
        assert evaluate_condition("!flags.disabled", template_context)
        assert not evaluate_condition("!flags.enabled", template_context)
        assert evaluate_condition("!missing", template_context)

    def test_and_or(self, template_context):
        assert evaluate_condition("flags.enabled && count > 5", template_context)
        assert not evaluate_condition("flags.enabled && flags.disabled", template_context)
        assert evaluate_condition("flags.disabled || count > 5", template_context)
        assert not evaluate_condition("flags.disabled || missing", template_context)

    def test_includes(self, template_context):
        assert evaluate_condition('modules.agents.includes("code-reviewer")', template_context)
        assert not evaluate_condition("modules.agents.includes('nope')", template_context)
        assert not evaluate_condition('project.name.includes("Acme")', template_context)

    def test_has(self, template_context):
        assert evaluate_condition('has modules.skills "tdd-methodology"', template_context)
        assert not evaluate_condition("has modules.docs anything", template_context)


class TestIsTruthy:
    def test_missing_sentinel(self):
        assert is_truthy(MISSING) is False

    def test_nan_is_truthy(self):
        assert is_truthy(float("nan")) is True

    def test_zero_float_is_false(self):
        assert is_truthy(0.0) is False


# ---------------------------------------------------------------------------
# Loops
# ---------------------------------------------------------------------------


class TestLoops:
    def test_list_iterable(self, template_context):
        entries = get_iterable("items", template_context)
        assert [(e.item, e.index, e.key) for e in entries] == [
            ("a", 0, None), ("b", 1, None), ("c", 2, None),
        ]

    def test_mapping_iterable_carries_keys(self, template_context):
        entries = get_iterable("techStack", template_context)
        assert [(e.key, e.item) for e in entries] == [("framework", "nextjs"), ("orm", "prisma")]

    def test_scalar_yields_nothing(self, template_context):
        assert get_iterable("count", template_context) == []
        assert get_iterable("missing", template_context) == []

    def test_loop_context_does_not_touch_parent(self):
        parent = {"item": "outer", "x": 1}
        child = create_loop_context(parent, "inner", 3)
        assert child["item"] == "inner"
        assert child["index"] == 3
        assert child["x"] == 1
        assert parent == {"item": "outer", "x": 1}

    def test_list_iteration_drops_inherited_key(self):
        parent = {"key": "framework"}
        child = create_loop_context(parent, "a", 0)
        assert "key" not in child
        assert parent["key"] == "framework"


# ---------------------------------------------------------------------------
# stringify / transforms
# ---------------------------------------------------------------------------


class TestStringify:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (MISSING, ""),
            (True, "true"),
            (False, "false"),
            (3.0, "3"),
            (0.1, "0.1"),
            (["a", "b"], "a,b"),
            ({"a": 1}, '{"a":1}'),
            (42, "42"),
        ],
    )
    def test_values(self, value, expected):
        assert stringify(value) == expected


class TestApplyTemplateTransform:
    @pytest.mark.parametrize(
        ("value", "transform", "expected"),
        [
            ("hello world", "pascal", "HelloWorld"),
            ("hello world", "PascalCase", "HelloWorld"),
            ("hello-big_world", "camel", "helloBigWorld"),
            ("Hello World", "kebab", "hello-world"),
            ("Hello World", "snake", "hello_world"),
            ("hello world", "upper", "HELLO WORLD"),
            ("HELLO", "lowercase", "hello"),
            ("hello wORLD", "capitalize", "Hello World"),
            (["a", "b"], "bullet", "- a\n- b"),
            (["a", "b"], "numbered", "1. a\n2. b"),
            (["a", "b"], "joinlines", "a\nb"),
            (["a", "b"], "join", "a, b"),
            (["a", "b", "c"], "count", "3"),
            (["a", "b"], "first", "a"),
            (["a", "b"], "last", "b"),
            ([], "first", ""),
            (["a"], "json", '["a"]'),
            ("single", "bullet", "- single"),
            ("X", "unknown-transform", "X"),
        ],
    )
    def test_table(self, value, transform, expected):
        assert apply_template_transform(value, transform) == expected

    def test_none_renders_empty(self):
        assert apply_template_transform(None, "upper") == ""
