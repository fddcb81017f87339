"""Template engine for generated ``.claude`` files.

Two independent pipelines live here:

* the directive processor (``{{#if}}``, ``{{#each}}``, ``{{path|transform}}``)
  rendering templates against a nested context, and
* the flat placeholder scanner/replacer for ``{{UPPER_SNAKE}}`` tokens.

Quick usage::

    from dotclaude.templates import process_template

    result = process_template("{{#each items}}{{item}},{{/each}}", {"items": ["a", "b"]})
    result.content  # "a,b,"
"""

from dotclaude.templates.config_replacer import (
    flatten_config,
    format_replacement_report,
    preview_replacements,
    replace_placeholders,
    replace_project_placeholders,
    replace_template_placeholders,
)
from dotclaude.templates.context import build_template_context, extend_context
from dotclaude.templates.evaluator import (
    apply_template_transform,
    evaluate_condition,
    get_context_value,
    get_iterable,
    is_truthy,
)
from dotclaude.templates.parser import (
    find_variables,
    has_directives,
    parse_directives,
    parse_template,
    validate_template,
)
from dotclaude.templates.processor import (
    process_template,
    process_template_file,
    process_templates,
    process_templates_in_directory,
    show_template_report,
)
from dotclaude.templates.scanner import format_scan_summary, scan_for_placeholders

__all__ = [
    "apply_template_transform",
    "build_template_context",
    "evaluate_condition",
    "extend_context",
    "find_variables",
    "flatten_config",
    "format_replacement_report",
    "format_scan_summary",
    "get_context_value",
    "get_iterable",
    "has_directives",
    "is_truthy",
    "parse_directives",
    "parse_template",
    "preview_replacements",
    "process_template",
    "process_template_file",
    "process_templates",
    "process_templates_in_directory",
    "replace_placeholders",
    "replace_project_placeholders",
    "replace_template_placeholders",
    "scan_for_placeholders",
    "show_template_report",
    "validate_template",
]
