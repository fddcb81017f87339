"""Unit tests for placeholder definitions (dotclaude.templates.placeholders).

Tests cover:
- ConfigContext.detect (package.json, lockfiles, git remote)
- computed defaults (commands, dependencies, dependent defaults)
- lookups by key, pattern and category
- pluralize / apply_transform
"""

from __future__ import annotations

from pathlib import Path

import pytest

from dotclaude.templates.placeholders import (
    PROJECT_PLACEHOLDERS,
    TEMPLATE_PLACEHOLDERS,
    ConfigContext,
    PlaceholderCategory,
    PlaceholderTransform,
    apply_transform,
    compute_default_value,
    compute_defaults,
    get_placeholder_by_key,
    get_placeholder_by_pattern,
    get_placeholders_by_category,
    get_required_placeholders,
    is_configurable_placeholder,
    package_manager_prefix,
    pluralize,
)

pytestmark = pytest.mark.unit


class TestConfigContextDetect:
    def test_node_project(self, node_project_dir: Path):
        ctx = ConfigContext.detect(node_project_dir)
        assert ctx.package_manager == "yarn"
        assert ctx.scripts["test"] == "vitest run"
        assert "vitest" in ctx.dependencies
        assert ctx.has_github_remote is True
        assert ctx.project_path == str(node_project_dir)

    def test_empty_directory(self, tmp_project_dir: Path):
        ctx = ConfigContext.detect(tmp_project_dir)
        assert ctx.package_manager == "pnpm"
        assert ctx.scripts == {}
        assert ctx.has_github_remote is False

    def test_invalid_package_json_is_ignored(self, tmp_project_dir: Path):
        (tmp_project_dir / "package.json").write_text("{not json", encoding="utf-8")
        assert ConfigContext.detect(tmp_project_dir).scripts == {}


class TestDefaults:
    def test_package_manager_prefix(self):
        assert package_manager_prefix(ConfigContext(package_manager="npm")) == "npm run"
        assert package_manager_prefix(ConfigContext(package_manager="bun")) == "bun run"
        assert package_manager_prefix(ConfigContext()) == "pnpm"

    def test_command_prefers_existing_script(self):
        ctx = ConfigContext(package_manager="yarn", scripts={"type-check": "tsc"})
        definition = get_placeholder_by_key("TYPECHECK_COMMAND")
        assert compute_default_value(definition, ctx) == "yarn type-check"

    def test_command_fallback(self):
        definition = get_placeholder_by_key("LINT_FIX_COMMAND")
        assert compute_default_value(definition, ConfigContext()) == "pnpm lint --fix"

    def test_dependency_detection(self, node_project_dir: Path):
        ctx = ConfigContext.detect(node_project_dir)
        assert compute_default_value(get_placeholder_by_key("FRONTEND_FRAMEWORK"), ctx) == "Next.js"
        assert compute_default_value(get_placeholder_by_key("VALIDATION_LIBRARY"), ctx) == "Zod"
        assert compute_default_value(get_placeholder_by_key("DATABASE_ORM"), ctx) == "None"

    def test_static_and_empty_defaults(self):
        assert compute_default_value(get_placeholder_by_key("COVERAGE_TARGET"), ConfigContext()) == "90"
        assert compute_default_value(get_placeholder_by_key("BRAND_NAME"), ConfigContext()) == ""

    def test_issue_tracker_from_git_remote(self):
        definition = get_placeholder_by_key("ISSUE_TRACKER")
        assert compute_default_value(definition, ConfigContext(has_github_remote=True)) == "github"
        assert compute_default_value(definition, ConfigContext()) == "none"

    def test_dependent_defaults(self):
        ctx = ConfigContext(values={"ISSUE_TRACKER": "linear"})
        defaults = compute_defaults(ctx, keys={"ISSUE_TRACKER": "", "ISSUE_TRACKER_TOKEN_ENV": ""})
        assert defaults == {"ISSUE_TRACKER": "linear", "ISSUE_TRACKER_TOKEN_ENV": "LINEAR_API_KEY"}

    def test_compute_all_defaults(self):
        defaults = compute_defaults(ConfigContext())
        assert set(defaults) == {p.key for p in TEMPLATE_PLACEHOLDERS}


class TestLookups:
    def test_by_key_accepts_braces(self):
        assert get_placeholder_by_key("{{TEST_COMMAND}}").key == "TEST_COMMAND"
        assert get_placeholder_by_key("NOT_A_KEY") is None

    def test_by_pattern(self):
        assert get_placeholder_by_pattern("{{LINT_COMMAND}}").key == "LINT_COMMAND"
        assert get_placeholder_by_pattern("[Project Name]").config_key == "name"
        assert get_placeholder_by_pattern("[unknown]") is None

    def test_by_category(self):
        keys = [p.key for p in get_placeholders_by_category(PlaceholderCategory.BRAND)]
        assert "PRIMARY_COLOR" in keys
        assert all(p.category is PlaceholderCategory.COMMANDS
                   for p in get_placeholders_by_category("commands"))

    def test_required(self):
        keys = {p.key for p in get_required_placeholders()}
        assert {"TEST_COMMAND", "COVERAGE_TARGET", "ISSUE_TRACKER"} <= keys
        assert "BRAND_NAME" not in keys

    def test_configurable(self):
        assert is_configurable_placeholder("TEST_COMMAND")
        assert not is_configurable_placeholder("INDENT_STYLE")

    def test_validators(self):
        coverage = get_placeholder_by_key("COVERAGE_TARGET").validate
        assert coverage("80") is True
        assert coverage("180") == "Coverage must be between 0 and 100"
        color = get_placeholder_by_key("PRIMARY_COLOR").validate
        assert color("#00ff00") is True
        assert isinstance(color("green"), str)

    def test_project_patterns_match_literally(self):
        definition = get_placeholder_by_pattern("your-org")
        assert definition.transform is PlaceholderTransform.LOWERCASE
        assert definition.pattern.search("github.com/your-org/x")
        bracket = get_placeholder_by_pattern("[Entities]")
        assert not bracket.pattern.search("E")
        assert all(p.category is PlaceholderCategory.PROJECT for p in PROJECT_PLACEHOLDERS)


class TestTransforms:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [("product", "products"), ("category", "categories"), ("day", "days"),
         ("box", "boxes"), ("match", "matches"), ("bus", "buses")],
    )
    def test_pluralize(self, word, expected):
        assert pluralize(word) == expected

    @pytest.mark.parametrize(
        ("transform", "expected"),
        [
            (PlaceholderTransform.NONE, "My App"),
            (PlaceholderTransform.LOWERCASE, "my-app"),
            (PlaceholderTransform.UPPERCASE, "MY_APP"),
            ("capitalize", "My App"),
            ("pluralize", "My Apps"),
        ],
    )
    def test_apply_transform(self, transform, expected):
        assert apply_transform("My App", transform) == expected
