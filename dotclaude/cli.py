"""Command-line entry point for dotclaude.

Sub-commands:

* ``init``    run the setup wizard and generate ``.claude/`` in a project
* ``process`` render ``{{#if}}``/``{{#each}}`` directives in a directory
* ``scan``    list the ``{{UPPER_SNAKE}}`` placeholders used in a directory
* ``apply``   replace ``{{UPPER_SNAKE}}`` placeholders from a JSON config
* ``fetch``   download a remote template file
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from dotclaude import __version__
from dotclaude.config import ScaffoldConfig
from dotclaude.generator import (
    GenerationResult,
    ScaffoldError,
    ScaffoldGenerator,
    discover_modules,
    discover_placeholders,
    resolve_templates_dir,
)
from dotclaude.prompts import PromptCancelled
from dotclaude.templates.config_replacer import (
    format_replacement_report,
    replace_template_placeholders,
)
from dotclaude.templates.placeholders import ConfigContext
from dotclaude.templates.processor import process_templates, show_template_report
from dotclaude.templates.scanner import (
    format_scan_summary,
    get_missing_required_placeholders,
    get_unconfigured_placeholders,
    scan_for_placeholders,
)
from dotclaude.utils import (
    FetchError,
    console,
    fetch_file,
    format_duration,
    load_json,
    print_section_header,
    print_success,
    print_summary_table,
    print_warning,
)
from dotclaude.wizard.engine import run_wizard
from dotclaude.wizard.history import get_history_summary, get_wizard_duration
from dotclaude.wizard.init_steps import (
    build_scaffold_config,
    create_init_wizard_config,
    default_init_values,
)
from dotclaude.wizard.navigator import (
    prompt_keep_or_reconfigure,
    show_step_progress,
    show_wizard_summary,
)


class CLIError(Exception):
    """A user-facing error that ends the command with exit code 1."""


def _error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")


def _require_dir(path: str) -> Path:
    directory = Path(path)
    if not directory.is_dir():
        raise CLIError(f"Directory not found: {directory}")
    return directory


def _read_json(path: str) -> dict[str, Any]:
    try:
        return load_json(path)
    except FileNotFoundError as exc:
        raise CLIError(f"File not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise CLIError(f"Invalid JSON in {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


def _wizard_context(project_path: Path, templates_dir: Path) -> dict[str, Any]:
    return {
        "project_path": project_path,
        "detection": ConfigContext.detect(project_path),
        "available_modules": discover_modules(templates_dir),
        "configurable_placeholders": discover_placeholders(templates_dir),
    }


def _show_generation(result: GenerationResult) -> None:
    print_summary_table(
        {
            "Target": str(result.claude_path),
            "Files copied": str(len(result.files_copied)),
            "Files skipped (already present)": str(len(result.files_skipped)),
            "Placeholders replaced": str(len(result.replacement_report.replaced_placeholders)),
            "Directives processed": str(result.template_report.total_directives),
        },
        title="Generated .claude",
    )
    show_template_report(result.template_report)
    if result.replacement_report.unreplaced:
        print_warning("Placeholders still unconfigured:")
        for name, tokens in result.replacement_report.unreplaced.items():
            console.print(f"  - {name}: {', '.join(tokens)}", markup=False)
    if result.files_skipped:
        console.print("[dim]Re-run with --overwrite to replace existing files.[/dim]")


async def run_init(project_path: Path, overwrite: bool = False, assume_yes: bool = False) -> int:
    """Collect settings (interactively unless *assume_yes*) and generate ``.claude/``."""
    base = ScaffoldConfig.from_env()
    templates_dir = resolve_templates_dir(base)
    context = _wizard_context(project_path, templates_dir)

    if assume_yes:
        values = default_init_values(context)
    else:
        wizard = create_init_wizard_config()
        print_section_header(wizard.title)
        result = await run_wizard(
            wizard,
            initial_context=context,
            on_revisit=prompt_keep_or_reconfigure,
            on_progress=show_step_progress,
            on_rejected=lambda _step, message: print_warning(message),
        )
        if result.cancelled:
            print_warning("Setup cancelled. Nothing was written.")
            return 1
        show_wizard_summary(result.state)
        for line in get_history_summary(result.state):
            console.print(f"[dim]{line}[/dim]")
        console.print(f"[dim]Wizard took {format_duration(get_wizard_duration(result.state))}[/dim]")
        values = result.values

    config = build_scaffold_config(values, project_path, base)
    try:
        generation = await ScaffoldGenerator(config).generate(project_path, overwrite=overwrite)
    except ScaffoldError as exc:
        raise CLIError(str(exc)) from exc

    _show_generation(generation)
    if generation.has_errors:
        return 1
    print_success(f"Configuration written to {generation.claude_path}")
    return 0


# ---------------------------------------------------------------------------
# process / scan / apply / fetch
# ---------------------------------------------------------------------------


def run_process(directory: str, context_file: Optional[str], dry_run: bool) -> int:
    root = _require_dir(directory)
    context = _read_json(context_file) if context_file else {}
    report = process_templates(root, context, dry_run=dry_run)
    show_template_report(report)
    if dry_run:
        console.print("[dim]Dry run: no files were written.[/dim]")
    return 1 if report.has_errors else 0


def run_scan(directory: str, config_file: Optional[str]) -> int:
    root = _require_dir(directory)
    result = scan_for_placeholders(root)
    console.print(format_scan_summary(result), markup=False)
    if result.unrecognized:
        print_warning(f"Unrecognized placeholders: {', '.join(result.unrecognized)}")

    if config_file:
        values = _read_json(config_file)
        configured = values.get("values", values)
        unconfigured = get_unconfigured_placeholders(root, configured)
        missing = get_missing_required_placeholders(root, configured)
        if unconfigured:
            print_warning(f"Not configured: {', '.join(unconfigured)}")
        if missing:
            _error(f"Required placeholders missing: {', '.join(missing)}")
            return 1
    return 0


def run_apply(directory: str, config_file: str, dry_run: bool) -> int:
    root = _require_dir(directory)
    config = _read_json(config_file)
    report = replace_template_placeholders(root, config, dry_run=dry_run)
    console.print(format_replacement_report(report), markup=False)
    if dry_run:
        console.print("[dim]Dry run: no files were written.[/dim]")
    return 1 if report.files_with_errors else 0


async def run_fetch(url: str, destination: str) -> int:
    try:
        written = await fetch_file(url, destination)
    except FetchError as exc:
        raise CLIError(str(exc)) from exc
    print_success(f"Saved {url} to {written}")
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dotclaude",
        description="dotclaude -- scaffold a .claude/ configuration into a project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  dotclaude init ./my-app\n"
            "  dotclaude init --yes --overwrite\n"
            "  dotclaude process .claude --context context.json --dry-run\n"
            "  dotclaude scan .claude --config dotclaude.json\n"
            "  dotclaude apply .claude --config values.json\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init", help="Run the setup wizard and generate .claude/")
    init.add_argument("path", nargs="?", default=".", help="Project directory (default: .)")
    init.add_argument("--overwrite", action="store_true", help="Replace existing files")
    init.add_argument("--yes", "-y", action="store_true",
                      help="Accept every default without prompting")

    process = commands.add_parser("process", help="Render template directives in a directory")
    process.add_argument("directory")
    process.add_argument("--context", default=None, help="JSON file with the template context")
    process.add_argument("--dry-run", action="store_true", help="Report without writing files")

    scan = commands.add_parser("scan", help="List placeholders used in a directory")
    scan.add_argument("directory")
    scan.add_argument("--config", default=None, help="JSON file with configured values")

    apply = commands.add_parser("apply", help="Replace placeholders from a JSON config")
    apply.add_argument("directory")
    apply.add_argument("--config", required=True, help="JSON file with placeholder values")
    apply.add_argument("--dry-run", action="store_true", help="Report without writing files")

    fetch = commands.add_parser("fetch", help="Download a remote template file")
    fetch.add_argument("url")
    fetch.add_argument("destination")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for ``dotclaude``."""
    args = build_parser().parse_args(argv)

    try:
        if args.command == "init":
            project_path = Path(args.path)
            if project_path.exists() and not project_path.is_dir():
                raise CLIError(f"Not a directory: {project_path}")
            code = asyncio.run(run_init(project_path, args.overwrite, args.yes))
        elif args.command == "process":
            code = run_process(args.directory, args.context, args.dry_run)
        elif args.command == "scan":
            code = run_scan(args.directory, args.config)
        elif args.command == "apply":
            code = run_apply(args.directory, args.config, args.dry_run)
        else:
            code = asyncio.run(run_fetch(args.url, args.destination))
    except CLIError as exc:
        _error(str(exc))
        sys.exit(1)
    except PromptCancelled:
        print_warning("Cancelled.")
        sys.exit(1)

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
