"""Template processor.

Renders ``{{#if}}``/``{{#unless}}``/``{{#each}}``/``{{#section}}`` blocks and
``{{variable|transform}}`` interpolations against a template context, either
for a single string or for every eligible file under a directory.

Problems are reported, never raised: syntax errors leave the template
untouched, unknown variables and ``{{> include}}`` directives are kept
verbatim with a warning, and a file that cannot be read or written is listed
in the report while the rest of the batch carries on.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotclaude.templates.evaluator import (
    MISSING,
    apply_template_transform,
    create_loop_context,
    evaluate_condition,
    get_context_value,
    get_iterable,
    stringify,
)
from dotclaude.templates.models import (
    BlockNode,
    DirectiveType,
    IncludeNode,
    Node,
    TemplateProcessingReport,
    TemplateResult,
    TextNode,
    VariableNode,
)
from dotclaude.templates.parser import has_directives, parse_template, validate_template
from dotclaude.utils import console, create_progress, iter_files, print_warning

DEFAULT_EXTENSIONS: tuple[str, ...] = ("md", "json", "yaml", "yml", "txt")
DEFAULT_EXCLUDE: tuple[str, ...] = ("node_modules", ".git", "dist", "build", ".next", ".turbo")
MAX_REPORTED_WARNINGS = 5

_BLANK_RUN_RE = re.compile(r"\n{3,}")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


@dataclass
class _RenderState:
    """Counters and messages collected while rendering one template."""

    directives: int = 0
    warnings: list[str] = field(default_factory=list)


def _cleanup(content: str) -> str:
    return _BLANK_RUN_RE.sub("\n\n", content).strip()


def _render_nodes(nodes: list[Node], context: Mapping[str, Any], state: _RenderState) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, TextNode):
            parts.append(node.text)
        elif isinstance(node, VariableNode):
            parts.append(_render_variable(node, context, state))
        elif isinstance(node, IncludeNode):
            state.warnings.append(f"Include directive not yet supported: {node.name}")
            state.directives += 1
            parts.append(node.match)
        else:
            parts.append(_render_block(node, context, state))
            state.directives += 1
    return "".join(parts)


def _render_variable(node: VariableNode, context: Mapping[str, Any], state: _RenderState) -> str:
    value = get_context_value(context, node.variable, MISSING)
    if value is MISSING:
        state.warnings.append(f"Variable not found: {node.variable}")
        return node.match
    state.directives += 1
    if node.transform:
        return apply_template_transform(value, node.transform)
    return stringify(value)


def _render_body(block: BlockNode, context: Mapping[str, Any], state: _RenderState) -> str:
    # Bodies without template syntax are spliced in verbatim.
    if not has_directives(block.content):
        return block.content
    return _cleanup(_render_nodes(block.children, context, state))


def _render_block(block: BlockNode, context: Mapping[str, Any], state: _RenderState) -> str:
    if block.type is DirectiveType.IF:
        if evaluate_condition(block.expression, context):
            return _render_body(block, context, state)
        return ""

    if block.type is DirectiveType.UNLESS:
        if not evaluate_condition(block.expression, context):
            return _render_body(block, context, state)
        return ""

    if block.type is DirectiveType.EACH:
        outputs = [
            _render_body(block, create_loop_context(context, entry.item, entry.index, entry.key), state)
            for entry in get_iterable(block.expression, context)
        ]
        return "".join(outputs)

    return _render_body(block, context, state)


def process_template(content: str, context: Mapping[str, Any]) -> TemplateResult:
    """Process a single template string against *context*.

    Args:
        content: Raw template source.
        context: Nested mapping the template is rendered against.  It is
            never modified.

    Returns:
        A ``TemplateResult``.  When validation fails ``errors`` is populated
        and ``content`` is returned unchanged.
    """
    result = TemplateResult(content=content)

    validation = validate_template(content)
    if not validation.valid:
        result.errors.extend(validation.errors)
        return result

    if not has_directives(content):
        return result

    state = _RenderState()
    try:
        rendered = _render_nodes(parse_template(content), context, state)
    except (TypeError, ValueError, RecursionError) as exc:
        result.errors.append(f"Template processing error: {exc}")
        return result

    result.content = _cleanup(rendered)
    result.modified = result.content != content
    result.directives_processed = state.directives
    result.warnings.extend(state.warnings)
    return result


# ---------------------------------------------------------------------------
# Files and directories
# ---------------------------------------------------------------------------


def process_template_file(
    path: str | Path,
    context: Mapping[str, Any],
    dry_run: bool = False,
) -> TemplateResult:
    """Process a template file in place.

    The file is rewritten only when the content changed, no errors were
    reported and *dry_run* is ``False``.
    """
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8")
    result = process_template(content, context)
    if result.modified and not result.errors and not dry_run:
        file_path.write_text(result.content, encoding="utf-8")
    return result


def process_templates_in_directory(
    directory: str | Path,
    context: Mapping[str, Any],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude: Iterable[str] = DEFAULT_EXCLUDE,
    dry_run: bool = False,
    only: Collection[str] | None = None,
) -> TemplateProcessingReport:
    """Process every eligible template file under *directory*.

    Files are handled one at a time.  A file that fails to read, decode or
    write is recorded in ``files_with_errors`` and the batch continues.

    Args:
        directory: Root of the tree to walk.
        context: Template context shared by every file.
        extensions: File extensions to consider, without the leading dot.
        exclude: Directory names to skip (dot-directories are always skipped).
        dry_run: Compute the report without writing anything.
        only: Relative POSIX paths to restrict the run to; every eligible
            file when ``None``.

    Returns:
        A ``TemplateProcessingReport`` with warnings prefixed by the file's
        path relative to *directory*.
    """
    root = Path(directory)
    files = [
        path for path in iter_files(root, extensions=extensions, exclude=exclude)
        if only is None or path.relative_to(root).as_posix() in only
    ]
    report = TemplateProcessingReport(total_files=len(files))

    for file_path in files:
        name = file_path.relative_to(root).as_posix()
        try:
            content = file_path.read_text(encoding="utf-8")
            if not has_directives(content):
                continue

            result = process_template(content, context)
            if result.errors:
                report.files_with_errors.append(name)
                report.warnings.append(f"{name}: {', '.join(result.errors)}")
                continue

            if result.modified:
                if not dry_run:
                    file_path.write_text(result.content, encoding="utf-8")
                report.files_modified += 1

            report.total_directives += result.directives_processed
            report.warnings.extend(f"{name}: {warning}" for warning in result.warnings)
        except (OSError, UnicodeDecodeError) as exc:
            report.files_with_errors.append(name)
            report.warnings.append(f"{name}: {exc}")

    return report


def process_templates(
    directory: str | Path,
    context: Mapping[str, Any],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude: Iterable[str] = DEFAULT_EXCLUDE,
    dry_run: bool = False,
    silent: bool = False,
) -> TemplateProcessingReport:
    """``process_templates_in_directory`` wrapped in a progress spinner."""
    if silent or dry_run:
        return process_templates_in_directory(directory, context, extensions, exclude, dry_run)

    with create_progress() as progress:
        task = progress.add_task("Processing templates...", total=None)
        report = process_templates_in_directory(directory, context, extensions, exclude, dry_run)
        progress.update(task, description="Templates processed")
    return report


def show_template_report(report: TemplateProcessingReport) -> None:
    """Print a processing report to the console."""
    console.print()
    console.print("[bold]Template Processing Report[/bold]")
    console.print(f"  Files scanned:        {report.total_files}")
    console.print(f"  Files modified:       {report.files_modified}")
    console.print(f"  Directives processed: {report.total_directives}")

    if report.files_with_errors:
        console.print()
        print_warning("Files with errors:")
        for name in report.files_with_errors:
            console.print(f"  - {name}")

    if report.warnings:
        console.print()
        if len(report.warnings) > MAX_REPORTED_WARNINGS:
            print_warning(
                f"{len(report.warnings)} warnings (showing first {MAX_REPORTED_WARNINGS}):"
            )
        else:
            print_warning("Warnings:")
        for warning in report.warnings[:MAX_REPORTED_WARNINGS]:
            console.print(f"  - {warning}", markup=False)
