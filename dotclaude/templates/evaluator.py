"""Expression evaluation for template directives.

Conditions, truthiness, loop iterables and value transforms are all resolved
against a plain nested mapping (the *template context*).  Nothing in this
module raises for a missing or malformed path: lookups fail soft and return a
default, comparisons against non-numeric values evaluate to ``False``.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from dotclaude.templates.models import LoopItem, ParsedExpression

# Returned by ``get_context_value`` when callers need to tell a missing path
# apart from a path that resolves to ``None``.
MISSING: Any = object()

_COMPARISON_RE = re.compile(r"^(\S+)\s*(==|!=|>=|<=|>|<)\s*(.+)$")
_INCLUDES_RE = re.compile(r"""^(.+?)\.includes\(["'](.+?)["']\)$""")
_HAS_RE = re.compile(r"""^has\s+(\S+)\s+["']?(.+?)["']?$""")
_WORD_SPLIT_RE = re.compile(r"[\s\-_]+")
_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_RADIX_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")


# ---------------------------------------------------------------------------
# Context lookup
# ---------------------------------------------------------------------------


def get_context_value(context: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Walk a dotted *path* through nested mappings.

    Integer segments index into lists (``modules.agents.0``) and ``length``
    gives the size of a list or string.  The walk stops at the first absent
    segment, or at an intermediate ``None``, and returns *default*.

    Examples::

        get_context_value({"project": {"name": "acme"}}, "project.name") -> "acme"
        get_context_value({"modules": {"agents": ["a"]}}, "modules.agents.length") -> 1
        get_context_value({"project": {}}, "project.name.first") -> None
    """
    current: Any = context
    for segment in path.strip().split("."):
        if current is None:
            return default
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
        elif segment == "length" and isinstance(current, Sequence):
            current = len(current)
        elif isinstance(current, Sequence) and not isinstance(current, str):
            if not segment.isdigit() or int(segment) >= len(current):
                return default
            current = current[int(segment)]
        else:
            return default
    return current


def parse_expression(expression: str) -> ParsedExpression:
    """Split a condition into its variable path and optional comparison.

    Quotes around the comparison value are stripped (one leading, one
    trailing).  A leading ``!`` is reported as the ``"!"`` operator.
    """
    match = _COMPARISON_RE.match(expression.strip())
    if match:
        variable, operator, compare_value = match.groups()
        variable = variable.strip()
        compare_value = re.sub(r"""^["']|["']$""", "", compare_value.strip())
        return ParsedExpression(
            variable=variable,
            path=variable.split("."),
            operator=operator,
            compare_value=compare_value,
        )

    if expression.startswith("!"):
        variable = expression[1:].strip()
        return ParsedExpression(variable=variable, path=variable.split("."), operator="!")

    variable = expression.strip()
    return ParsedExpression(variable=variable, path=variable.split("."))


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


def evaluate_condition(expression: str, context: Mapping[str, Any]) -> bool:
    """Evaluate a directive condition against *context*.

    Supported forms, checked in this order:

    * ``a && b`` (every clause true), then ``a || b`` (any clause true)
    * ``!expr`` negation
    * ``path == value`` / ``!=`` (string comparison) and ``> >= < <=``
      (numeric, where a non-numeric operand makes the comparison false)
    * ``path.includes("x")`` and ``has path "x"`` list membership
    * plain truthiness of the resolved path
    """
    expression = expression.strip()

    if "&&" in expression:
        clauses = [part.strip() for part in expression.split("&&")]
        results = [evaluate_condition(part, context) for part in clauses]
        return all(results)

    if "||" in expression:
        clauses = [part.strip() for part in expression.split("||")]
        results = [evaluate_condition(part, context) for part in clauses]
        return any(results)

    if expression.startswith("!") and not expression.startswith("!="):
        return not evaluate_condition(expression[1:], context)

    parsed = parse_expression(expression)
    if parsed.operator and parsed.compare_value is not None:
        value = get_context_value(context, parsed.variable, MISSING)
        return _compare(value, parsed.operator, parsed.compare_value)

    if ".includes(" in expression:
        match = _INCLUDES_RE.match(expression)
        if match:
            return _list_contains(context, match.group(1), match.group(2))
        return False

    if expression.startswith("has "):
        match = _HAS_RE.match(expression)
        if match:
            return _list_contains(context, match.group(1), match.group(2))
        return False

    return is_truthy(get_context_value(context, parsed.variable, MISSING))


def _compare(value: Any, operator: str, compare_value: str) -> bool:
    if operator == "==":
        return _compare_string(value) == compare_value
    if operator == "!=":
        return _compare_string(value) != compare_value

    left = _to_number(value)
    right = _to_number(compare_value)
    # Every ordering comparison involving NaN is false.
    if math.isnan(left) or math.isnan(right):
        return False
    if operator == ">":
        return left > right
    if operator == ">=":
        return left >= right
    if operator == "<":
        return left < right
    if operator == "<=":
        return left <= right
    return False


def _list_contains(context: Mapping[str, Any], path: str, needle: str) -> bool:
    value = get_context_value(context, path, MISSING)
    if isinstance(value, (list, tuple)):
        return needle in value
    return False


def _compare_string(value: Any) -> str:
    """String cast used by ``==`` and ``!=``.

    Unlike :func:`stringify`, a missing path reads as ``"undefined"`` and
    ``None`` as ``"null"``, so ``x != ""`` holds when ``x`` is absent.
    Mappings read as ``"[object Object]"``.
    """
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(
            "" if item is None or item is MISSING else _compare_string(item) for item in value
        )
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def _to_number(value: Any) -> float:
    """Numeric cast used by ordering comparisons; unparsable input is NaN.

    Strings follow the rules of a JavaScript ``Number()`` call: surrounding
    whitespace is ignored, an empty string is zero, ``Infinity`` is accepted
    with an optional sign and unsigned ``0x``/``0o``/``0b`` literals are
    read in their base.  Python-only spellings such as ``inf``, ``nan`` or
    ``1_000`` are NaN.  Lists are cast through their joined string form.
    """
    if value is MISSING:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (list, tuple)):
        return _to_number(_compare_string(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        if _RADIX_RE.match(text):
            return float(int(text, 0))
        if _DECIMAL_RE.match(text):
            return float(text)
    return math.nan


def is_truthy(value: Any) -> bool:
    """Template truthiness.

    Missing and ``None`` are false, booleans pass through, strings, numbers,
    lists and mappings are true when non-empty or non-zero.  NaN is not zero,
    so it is true.
    """
    if value is MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if isinstance(value, Mapping):
        return len(value) > 0
    return bool(value)


# ---------------------------------------------------------------------------
# Loops
# ---------------------------------------------------------------------------


def get_iterable(expression: str, context: Mapping[str, Any]) -> list[LoopItem]:
    """Resolve the items an ``each`` block iterates over.

    Lists yield ``item``/``index`` pairs, mappings additionally carry the
    entry ``key`` (insertion order).  Any other value yields no items.
    """
    value = get_context_value(context, expression, MISSING)

    if isinstance(value, (list, tuple)):
        return [LoopItem(item=item, index=index) for index, item in enumerate(value)]

    if isinstance(value, Mapping):
        return [
            LoopItem(item=item, index=index, key=str(key))
            for index, (key, item) in enumerate(value.items())
        ]

    return []


def create_loop_context(
    parent: Mapping[str, Any],
    item: Any,
    index: int,
    key: str | None = None,
) -> dict[str, Any]:
    """Return a new context for one loop iteration; *parent* is not touched."""
    loop_context = dict(parent)
    loop_context["item"] = item
    loop_context["index"] = index
    if key is not None:
        loop_context["key"] = key
    else:
        loop_context.pop("key", None)
    return loop_context


# ---------------------------------------------------------------------------
# Stringification and transforms
# ---------------------------------------------------------------------------


def stringify(value: Any) -> str:
    """Render a context value the way it appears inside template output."""
    if value is MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, Mapping):
        return _to_json(value)
    return str(value)


def _to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def apply_template_transform(value: Any, transform: str) -> str:
    """Apply a named transform to *value* and return the rendered string.

    Names are case-insensitive.  An unknown name returns the value rendered
    as-is.

    Examples::

        apply_template_transform("hello world", "pascal") -> "HelloWorld"
        apply_template_transform(["a", "b"], "bullet")    -> "- a\\n- b"
    """
    if value is MISSING or value is None:
        return ""

    is_list = isinstance(value, (list, tuple))
    items = [stringify(item) for item in value] if is_list else []
    text = ", ".join(items) if is_list else stringify(value)
    name = transform.strip().lower()

    if name in ("lowercase", "lower"):
        return text.lower()
    if name in ("uppercase", "upper"):
        return text.upper()
    if name in ("capitalize", "title"):
        return " ".join(_capitalize(word) for word in text.split(" "))
    if name in ("kebab", "kebabcase"):
        return re.sub(r"\s+", "-", text.lower())
    if name in ("snake", "snakecase"):
        return re.sub(r"\s+", "_", text.lower())
    if name in ("camel", "camelcase"):
        words = [word for word in _WORD_SPLIT_RE.split(text) if word]
        return "".join(
            word.lower() if i == 0 else _capitalize(word) for i, word in enumerate(words)
        )
    if name in ("pascal", "pascalcase"):
        return "".join(_capitalize(word) for word in _WORD_SPLIT_RE.split(text) if word)
    if name == "json":
        return _to_json(list(value) if is_list else value)
    if name == "count":
        return str(len(value) if is_list else len(text))
    if name == "first":
        return items[0] if is_list and items else ("" if is_list else text)
    if name == "last":
        return items[-1] if is_list and items else ("" if is_list else text)
    if name == "join":
        return text
    if name == "joinlines":
        return "\n".join(items) if is_list else text
    if name in ("bullet", "bullets"):
        if is_list:
            return "\n".join(f"- {item}" for item in items)
        return f"- {text}"
    if name == "numbered":
        if is_list:
            return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))
        return f"1. {text}"

    return text
