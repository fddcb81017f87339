"""Direct replacement of flat placeholders from configuration values.

Unlike the directive processor there are no conditionals or loops here: a
configuration is flattened into ``{"{{TOKEN}}": "value"}`` pairs and every
occurrence of each token is replaced in a single pass, so a value that
itself contains a token is never expanded again.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from dotclaude.config import ProjectInfo, StandardsConfig, TemplateConfig
from dotclaude.templates.models import (
    PlaceholderReplacement,
    ReplacementReport,
    ReplacementResult,
)
from dotclaude.templates.placeholders import (
    PROJECT_PLACEHOLDERS,
    PlaceholderDefinition,
    apply_transform,
)
from dotclaude.templates.scanner import extract_placeholders, iter_template_files
from dotclaude.utils import camel_to_upper_snake

_TOKEN_RE = re.compile(r"^\{\{[A-Z][A-Z0-9_]*\}\}$")

# Leaf keys whose placeholder name differs from the plain conversion.
_KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "BUNDLE_SIZE_TARGET_KB": ("BUNDLE_SIZE_TARGET",),
    "API_RESPONSE_TARGET_MS": ("API_RESPONSE_TARGET",),
    "ACCESSIBILITY_LEVEL": ("ACCESSIBILITY_LEVEL", "WCAG_LEVEL"),
}

_CATEGORY_SUFFIXES: dict[str, str] = {"commands": "_COMMAND", "environment": "_ENV"}


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(_render_value(item) for item in value)
    return str(value)


def _leaf_keys(key: str, category: str | None) -> tuple[str, ...]:
    if _TOKEN_RE.match(key):
        return (key.strip("{}"),)
    name = camel_to_upper_snake(key)
    suffix = _CATEGORY_SUFFIXES.get(category or "")
    if suffix and not name.endswith(suffix):
        name += suffix
    return _KEY_ALIASES.get(name, (name,))


def flatten_config(config: Mapping[str, Any] | BaseModel) -> dict[str, str]:
    """Flatten a (possibly nested) configuration into ``{{TOKEN}}`` pairs.

    Leaf keys in camelCase or snake_case become ``UPPER_SNAKE`` tokens.
    Leaves under a ``commands`` mapping get a ``_COMMAND`` suffix and those
    under ``environment`` an ``_ENV`` suffix.  Booleans render as
    ``yes``/``no``, lists are comma-joined, and ``None`` or empty strings are
    dropped.

    Examples::

        flatten_config({"indentStyle": "space", "indentSize": 2})
        -> {"{{INDENT_STYLE}}": "space", "{{INDENT_SIZE}}": "2"}
        flatten_config({"commands": {"typecheck": "pnpm tsc"}})
        -> {"{{TYPECHECK_COMMAND}}": "pnpm tsc"}
    """
    data = config.model_dump() if isinstance(config, BaseModel) else config
    flattened: dict[str, str] = {}

    def walk(node: Mapping[str, Any], category: str | None) -> None:
        for key, value in node.items():
            if isinstance(value, Mapping):
                walk(value, str(key))
                continue
            if value is None or value == "":
                continue
            for name in _leaf_keys(str(key), category):
                flattened[f"{{{{{name}}}}}"] = _render_value(value)

    walk(data, None)
    return flattened


def to_replacements(config: Any) -> dict[str, str]:
    """Resolve any supported configuration object to ``{{TOKEN}}`` pairs."""
    if isinstance(config, (TemplateConfig, StandardsConfig)):
        return config.to_placeholders()
    return flatten_config(config)


# ---------------------------------------------------------------------------
# String replacement
# ---------------------------------------------------------------------------


def replace_placeholders(content: str, replacements: Mapping[str, str]) -> ReplacementResult:
    """Replace every token in *replacements* found in *content*.

    Returns:
        A ``ReplacementResult`` listing the tokens that were found and
        replaced, and the tokens that did not occur at all.
    """
    present = [token for token in replacements if token in content]
    unused = [token for token in replacements if token not in content]
    if not present:
        return ReplacementResult(content=content, unused=unused)

    pattern = re.compile("|".join(re.escape(token) for token in sorted(present, key=len, reverse=True)))
    replaced_content = pattern.sub(lambda m: replacements[m.group(0)], content)
    return ReplacementResult(content=replaced_content, replaced=present, unused=unused)


def replace_template_placeholders(
    directory: str | Path,
    config: Any,
    dry_run: bool = False,
    only: Collection[str] | None = None,
) -> ReplacementReport:
    """Apply configuration values to every template file under *directory*.

    A file that cannot be read or written is recorded in
    ``files_with_errors`` and the run continues with the next one.

    Args:
        directory: Root of the template tree.
        config: ``TemplateConfig``, ``StandardsConfig``, a Pydantic model or a
            nested mapping.
        dry_run: Build the report without writing any file.
        only: Relative POSIX paths to restrict the run to; every file when
            ``None``.
    """
    root = Path(directory)
    replacements = to_replacements(config)
    report = ReplacementReport()
    used: set[str] = set()

    for file_path in iter_template_files(root):
        name = file_path.relative_to(root).as_posix()
        if only is not None and name not in only:
            continue
        report.total_files += 1
        try:
            content = file_path.read_text(encoding="utf-8")
            result = replace_placeholders(content, replacements)
            if result.modified:
                if not dry_run:
                    file_path.write_text(result.content, encoding="utf-8")
                report.files_modified.append(name)
                for token in result.replaced:
                    if token not in used:
                        used.add(token)
                        report.replaced_placeholders.append(token)
            leftover = extract_placeholders(result.content)
            if leftover:
                report.unreplaced[name] = leftover
        except (OSError, UnicodeDecodeError) as exc:
            report.files_with_errors.append(name)
            report.errors.append(f"Error processing {name}: {exc}")

    report.unused_placeholders = [token for token in replacements if token not in used]
    return report


def preview_replacements(directory: str | Path, config: Any) -> list[dict[str, str]]:
    """List the ``file``/``placeholder``/``value`` replacements a run would make."""
    root = Path(directory)
    replacements = to_replacements(config)
    preview: list[dict[str, str]] = []
    for file_path in iter_template_files(root):
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        name = file_path.relative_to(root).as_posix()
        for token, value in replacements.items():
            if token in content:
                preview.append({"file": name, "placeholder": token, "value": value})
    return preview


def format_replacement_report(report: ReplacementReport) -> str:
    """Human-readable multi-line summary of a replacement run."""
    lines = [
        f"Modified {len(report.files_modified)} of {report.total_files} files",
        f"Replaced {len(report.replaced_placeholders)} placeholders",
    ]
    if report.files_modified:
        lines.append("")
        lines.append("Files modified:")
        lines.extend(f"  - {name}" for name in report.files_modified)
    if report.unreplaced:
        lines.append("")
        lines.append("Placeholders still unconfigured:")
        for name, tokens in report.unreplaced.items():
            lines.append(f"  - {name}: {', '.join(tokens)}")
    if report.errors:
        lines.append("")
        lines.append("Errors:")
        lines.extend(f"  - {error}" for error in report.errors)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Project placeholders ([Project Name], your-org, ...)
# ---------------------------------------------------------------------------


def _line_number(content: str, index: int) -> int:
    return content.count("\n", 0, index) + 1


def replace_project_placeholders(
    content: str,
    project: ProjectInfo | Mapping[str, str],
    definitions: Iterable[PlaceholderDefinition] = PROJECT_PLACEHOLDERS,
    file: str = "",
) -> tuple[str, list[PlaceholderReplacement]]:
    """Replace bracket-style project placeholders in *content*.

    Definitions whose config value is empty are skipped.  Each replacement is
    recorded with the 1-based line it was found on in the input.

    Returns:
        ``(new_content, replacements)``
    """
    values = project.placeholder_values() if isinstance(project, ProjectInfo) else dict(project)
    replacements: list[PlaceholderReplacement] = []

    for definition in definitions:
        raw = values.get(definition.config_key)
        if not raw:
            continue
        value = apply_transform(str(raw), definition.transform)
        pattern = (
            definition.pattern
            if isinstance(definition.pattern, re.Pattern)
            else re.compile(re.escape(definition.pattern))
        )
        for match in pattern.finditer(content):
            replacements.append(
                PlaceholderReplacement(
                    file=file,
                    line=_line_number(content, match.start()),
                    original=match.group(0),
                    replacement=value,
                    key=definition.key,
                )
            )
        content = pattern.sub(lambda _m: value, content)

    return content, replacements


def replace_project_placeholders_in_directory(
    directory: str | Path,
    project: ProjectInfo,
    dry_run: bool = False,
    only: Collection[str] | None = None,
) -> ReplacementReport:
    """Directory-wide ``replace_project_placeholders``."""
    root = Path(directory)
    report = ReplacementReport()
    used: set[str] = set()

    for file_path in iter_template_files(root):
        name = file_path.relative_to(root).as_posix()
        if only is not None and name not in only:
            continue
        report.total_files += 1
        try:
            content = file_path.read_text(encoding="utf-8")
            new_content, replacements = replace_project_placeholders(content, project, file=name)
            if replacements:
                if not dry_run:
                    file_path.write_text(new_content, encoding="utf-8")
                report.files_modified.append(name)
                for replacement in replacements:
                    if replacement.key not in used:
                        used.add(replacement.key)
                        report.replaced_placeholders.append(replacement.key)
        except (OSError, UnicodeDecodeError) as exc:
            report.files_with_errors.append(name)
            report.errors.append(f"Error processing {name}: {exc}")

    return report


def find_unreplaced_placeholders(project: ProjectInfo) -> list[PlaceholderDefinition]:
    """Required project placeholders whose value is still empty."""
    values = project.placeholder_values()
    return [
        definition
        for definition in PROJECT_PLACEHOLDERS
        if definition.required and not values.get(definition.config_key)
    ]
