"""Scaffold generator.

Copies the bundled template tree into ``<project>/.claude/`` and renders it:
flat ``{{UPPER_SNAKE}}`` tokens and bracket-style project placeholders are
substituted first, then the directive processor expands ``{{#if}}`` /
``{{#each}}`` blocks against the template context built from the
configuration.

Quick usage::

    from dotclaude.config import ScaffoldConfig
    from dotclaude.generator import ScaffoldGenerator

    config = ScaffoldConfig(project_path=Path("my-app"))
    result = await ScaffoldGenerator(config).generate()
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from dotclaude.config import ScaffoldConfig
from dotclaude.templates.config_replacer import (
    replace_project_placeholders_in_directory,
    replace_template_placeholders,
)
from dotclaude.templates.context import MODULE_CATEGORIES, build_template_context
from dotclaude.templates.models import ReplacementReport, TemplateProcessingReport
from dotclaude.templates.processor import process_templates_in_directory
from dotclaude.templates.scanner import SCANNABLE_EXTENSIONS, scan_for_placeholders
from dotclaude.utils import ensure_dir, iter_files, save_json

BUNDLED_TEMPLATES_DIR = Path(__file__).parent / "data" / "templates"

_GENERATED_FILES = ("settings.json", "dotclaude.json")


class ScaffoldError(Exception):
    """Raised when the ``.claude`` tree cannot be generated."""


class GenerationResult(BaseModel):
    """Outcome of a single ``ScaffoldGenerator.generate`` call."""

    claude_path: Path
    files_copied: list[str] = Field(default_factory=list)
    files_skipped: list[str] = Field(default_factory=list)
    template_report: TemplateProcessingReport = Field(default_factory=TemplateProcessingReport)
    replacement_report: ReplacementReport = Field(default_factory=ReplacementReport)
    project_report: ReplacementReport = Field(default_factory=ReplacementReport)
    settings_path: Optional[Path] = None
    config_path: Optional[Path] = None

    @property
    def has_errors(self) -> bool:
        return bool(
            self.template_report.files_with_errors
            or self.replacement_report.files_with_errors
            or self.project_report.files_with_errors
        )


# ---------------------------------------------------------------------------
# Template discovery
# ---------------------------------------------------------------------------


def resolve_templates_dir(config: ScaffoldConfig) -> Path:
    return Path(config.templates_dir) if config.templates_dir else BUNDLED_TEMPLATES_DIR


def module_id(path: Path) -> str:
    """``agents/code-reviewer.md`` -> ``code-reviewer``; ``skills/tdd/SKILL.md`` -> ``tdd``."""
    return path.parts[1] if len(path.parts) > 2 else path.stem


def discover_modules(templates_dir: str | Path) -> dict[str, list[str]]:
    """Module ids available per category (``agents``, ``skills``, ...)."""
    root = Path(templates_dir)
    modules: dict[str, list[str]] = {}
    for category in MODULE_CATEGORIES:
        category_dir = root / category
        if not category_dir.is_dir():
            continue
        ids: list[str] = []
        for file_path in iter_files(category_dir, extensions=SCANNABLE_EXTENSIONS):
            identifier = module_id(file_path.relative_to(root))
            if identifier not in ids:
                ids.append(identifier)
        modules[category] = ids
    return modules


def discover_placeholders(templates_dir: str | Path) -> list[str]:
    """Configurable ``{{UPPER_SNAKE}}`` keys used anywhere in the templates."""
    result = scan_for_placeholders(templates_dir)
    return [token.strip("{}") for token in result.placeholders]


def build_settings(config: ScaffoldConfig) -> dict[str, Any]:
    """Contents of the generated ``.claude/settings.json``."""
    manager = config.preferences.package_manager
    return {
        "permissions": {
            "allow": [
                f"Bash({manager} run:*)",
                f"Bash({manager} test:*)",
                "Bash(git status)",
                "Bash(git diff:*)",
                "Bash(git log:*)",
            ],
            "deny": ["Read(./.env)", "Read(./.env.*)"],
        },
        "includeCoAuthoredBy": config.preferences.include_co_author,
    }


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class ScaffoldGenerator:
    """Materialises a ``ScaffoldConfig`` as a ``.claude/`` directory.

    Existing files are left untouched unless ``overwrite`` is set, so a
    cancelled or partial run is recovered by running again with
    ``overwrite=True``.
    """

    def __init__(self, config: ScaffoldConfig) -> None:
        self.config = config
        self.templates_dir = resolve_templates_dir(config)

    # -- Public API --------------------------------------------------------

    async def generate(
        self,
        project_path: str | Path | None = None,
        overwrite: bool = False,
    ) -> GenerationResult:
        """Copy, render and configure the ``.claude`` tree.

        Args:
            project_path: Target project. Defaults to ``config.project_path``.
            overwrite: Replace files that already exist in ``.claude/``.

        Raises:
            ScaffoldError: When the template source is missing or the target
                is not a directory.
        """
        if not self.templates_dir.is_dir():
            raise ScaffoldError(f"Template directory not found: {self.templates_dir}")

        root = Path(project_path) if project_path is not None else Path(self.config.project_path)
        if root.exists() and not root.is_dir():
            raise ScaffoldError(f"Project path is not a directory: {root}")

        config = self.config.model_copy(update={"project_path": root})
        claude_path = await asyncio.to_thread(ensure_dir, config.claude_path)
        result = GenerationResult(claude_path=claude_path)

        # 1. Copy templates for the selected modules
        await asyncio.to_thread(self._copy_templates, config, claude_path, overwrite, result)
        # Files that were already present are left untouched by the passes below.
        copied = frozenset(result.files_copied)

        # 2. Flat {{UPPER_SNAKE}} tokens from standards and template values
        replacements = {
            **config.standards.to_placeholders(),
            **config.templates.to_placeholders(),
        }
        result.replacement_report = await asyncio.to_thread(
            replace_template_placeholders, claude_path, replacements, only=copied
        )

        # 3. [Project Name]-style placeholders
        result.project_report = await asyncio.to_thread(
            replace_project_placeholders_in_directory, claude_path, config.project, only=copied
        )

        # 4. Directives
        context = build_template_context(config)
        result.template_report = await asyncio.to_thread(
            process_templates_in_directory, claude_path, context, only=copied
        )

        # 5. settings.json and the persisted configuration
        result.settings_path = await self._write_settings(config, overwrite)
        result.config_path = await asyncio.to_thread(config.save)
        return result

    # -- Internals ---------------------------------------------------------

    def _is_selected(self, config: ScaffoldConfig, relative: Path) -> bool:
        category = relative.parts[0] if len(relative.parts) > 1 else ""
        if category not in MODULE_CATEGORIES:
            return True
        return module_id(relative) in getattr(config.modules, category)

    def _copy_templates(
        self,
        config: ScaffoldConfig,
        claude_path: Path,
        overwrite: bool,
        result: GenerationResult,
    ) -> None:
        for source in iter_files(self.templates_dir, extensions=SCANNABLE_EXTENSIONS):
            relative = source.relative_to(self.templates_dir)
            if relative.as_posix() in _GENERATED_FILES or not self._is_selected(config, relative):
                continue
            target = claude_path / relative
            if target.exists() and not overwrite:
                result.files_skipped.append(relative.as_posix())
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, target)
            except OSError as exc:
                raise ScaffoldError(f"Could not copy {relative.as_posix()}: {exc}") from exc
            result.files_copied.append(relative.as_posix())

    async def _write_settings(self, config: ScaffoldConfig, overwrite: bool) -> Optional[Path]:
        settings_path = config.settings_path
        if settings_path.exists() and not overwrite:
            return None
        await save_json(build_settings(config), settings_path)
        return settings_path
