"""Step definitions for ``dotclaude init``.

The wizard context is seeded by the CLI with:

* ``project_path`` -- target directory (``Path``)
* ``detection`` -- a :class:`ConfigContext` built from the project on disk
* ``available_modules`` -- ``{category: [module ids]}`` found in the templates
* ``configurable_placeholders`` -- ``{{UPPER_SNAKE}}`` keys used by the templates

Each step stores a config model under its own id; ``build_scaffold_config``
turns the collected values into a :class:`ScaffoldConfig`.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from dotclaude import prompts
from dotclaude.config import (
    CodeStyleConfig,
    ModuleSelection,
    Preferences,
    ProjectInfo,
    ScaffoldConfig,
    StandardsConfig,
    TemplateConfig,
)
from dotclaude.templates.placeholders import (
    ConfigContext,
    compute_default_value,
    get_placeholder_by_key,
)
from dotclaude.utils import console
from dotclaude.wizard.navigator import inject_back_option, is_back_selected
from dotclaude.wizard.types import (
    Context,
    NavigationDirection,
    StepExecutionResult,
    WizardChoice,
    WizardConfig,
    WizardStep,
)

INIT_WIZARD_ID = "init-wizard"

_NEXT = NavigationDirection.NEXT
_BACK = NavigationDirection.BACK


StepExecutor = Callable[[Context, Any], Awaitable[StepExecutionResult]]


def _cancellable(execute: StepExecutor) -> StepExecutor:
    """Turn a cancelled prompt into the ``cancel`` direction."""

    @functools.wraps(execute)
    async def wrapper(ctx: Context, defaults: Any) -> StepExecutionResult:
        try:
            return await execute(ctx, defaults)
        except prompts.PromptCancelled:
            return StepExecutionResult(defaults, NavigationDirection.CANCEL, was_modified=False)

    return wrapper


async def _wants_back(message: str, is_first_step: bool = False) -> bool:
    choices = inject_back_option(
        [WizardChoice(name="Continue with this step", value="continue")],
        is_first_step,
        label="Back to previous step",
    )
    choice = await prompts.select(message, choices, default="continue")
    return is_back_selected(choice)


def _detection(ctx: Context) -> ConfigContext:
    detected = ctx.get("detection")
    if isinstance(detected, ConfigContext):
        return detected
    return ConfigContext()


# ---------------------------------------------------------------------------
# Project information
# ---------------------------------------------------------------------------

def default_project_info(ctx: Context) -> ProjectInfo:
    project_path = Path(ctx.get("project_path") or ".").resolve()
    return ProjectInfo(name=project_path.name, repo=project_path.name)


@_cancellable
async def _execute_project(ctx: Context, defaults: ProjectInfo) -> StepExecutionResult:
    info = ProjectInfo(
        name=await prompts.text("Project name", default=defaults.name),
        description=await prompts.text("Description", default=defaults.description),
        org=await prompts.text("GitHub organization or username", default=defaults.org),
        repo=await prompts.text("Repository name", default=defaults.repo or defaults.name),
        domain=await prompts.text("Domain", default=defaults.domain),
        entity_type=await prompts.text("Primary entity (singular)", default=defaults.entity_type),
        location=defaults.location,
    )
    console.print(
        f"\n[bold]{info.name}[/bold] {info.org}/{info.repo} "
        f"[dim]({info.entity_type})[/dim]"
    )
    if not await prompts.confirm("Is this correct?", default=True):
        return StepExecutionResult(info, _BACK)
    return StepExecutionResult(info, _NEXT)


def _validate_project(value: ProjectInfo, _ctx: Context) -> bool | str:
    if not value.name.strip():
        return "Project name is required"
    return True


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

def default_preferences(ctx: Context) -> Preferences:
    return Preferences(package_manager=_detection(ctx).package_manager)


_LANGUAGES = [
    WizardChoice(name="English", value="en"),
    WizardChoice(name="Español", value="es"),
]

_PACKAGE_MANAGERS = [WizardChoice(name=name, value=name) for name in ("pnpm", "npm", "yarn", "bun")]


@_cancellable
async def _execute_preferences(ctx: Context, defaults: Preferences) -> StepExecutionResult:
    if await _wants_back("Configure preferences or go back?"):
        return StepExecutionResult(defaults, _BACK)
    value = Preferences(
        language=await prompts.select("Language for generated files", _LANGUAGES, defaults.language),
        response_language=await prompts.select(
            "Language Claude should answer in", _LANGUAGES, defaults.response_language
        ),
        package_manager=await prompts.select(
            "Package manager", _PACKAGE_MANAGERS, defaults.package_manager
        ),
        include_co_author=await prompts.confirm(
            "Add a Co-Authored-By trailer to commits?", default=defaults.include_co_author
        ),
    )
    return StepExecutionResult(value, _NEXT)


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------

def default_modules(ctx: Context) -> ModuleSelection:
    """Everything available is selected by default."""
    available = ctx.get("available_modules") or {}
    return ModuleSelection(**{category: list(ids) for category, ids in available.items()})


@_cancellable
async def _execute_modules(ctx: Context, defaults: ModuleSelection) -> StepExecutionResult:
    if await _wants_back("Select modules or go back?"):
        return StepExecutionResult(defaults, _BACK)
    available: dict[str, list[str]] = ctx.get("available_modules") or {}
    selected: dict[str, list[str]] = {}
    for category, ids in available.items():
        if not ids:
            continue
        selected[category] = await prompts.checkbox(
            f"Select {category}",
            [WizardChoice(name=module_id, value=module_id) for module_id in ids],
            default=getattr(defaults, category, []),
        )
    return StepExecutionResult(ModuleSelection(**selected), _NEXT)


def _no_modules_available(ctx: Context) -> bool:
    available = ctx.get("available_modules") or {}
    return not any(available.values())


# ---------------------------------------------------------------------------
# Code style
# ---------------------------------------------------------------------------

_TOOLS = {
    "formatter": ("biome", "prettier", "none"),
    "linter": ("biome", "eslint", "none"),
}


@_cancellable
async def _execute_code_style(ctx: Context, defaults: CodeStyleConfig) -> StepExecutionResult:
    if await _wants_back("Configure code style or go back?"):
        return StepExecutionResult(defaults, _BACK)
    formatter = await prompts.select(
        "Formatter",
        [WizardChoice(name=name, value=name) for name in _TOOLS["formatter"]],
        defaults.formatter,
    )
    linter = await prompts.select(
        "Linter",
        [WizardChoice(name=name, value=name) for name in _TOOLS["linter"]],
        defaults.linter,
    )
    value = CodeStyleConfig(
        formatter=formatter,
        linter=linter,
        editor_config=await prompts.confirm("Generate .editorconfig?", default=defaults.editor_config),
        commitlint=await prompts.confirm("Enforce conventional commits?", default=defaults.commitlint),
    )
    return StepExecutionResult(value, _NEXT)


# ---------------------------------------------------------------------------
# Standards
# ---------------------------------------------------------------------------

@_cancellable
async def _execute_standards(ctx: Context, defaults: StandardsConfig) -> StepExecutionResult:
    if await _wants_back("Configure standards or go back?"):
        return StepExecutionResult(defaults, _BACK)
    if await prompts.confirm("Keep the current code and testing standards?", default=True):
        return StepExecutionResult(defaults, _NEXT, was_modified=False)

    code = defaults.code.model_copy(update={
        "indent_style": await prompts.select(
            "Indent style",
            [WizardChoice(name="Spaces", value="space"), WizardChoice(name="Tabs", value="tab")],
            defaults.code.indent_style,
        ),
        "indent_size": int(await prompts.text(
            "Indent size", default=str(defaults.code.indent_size),
            validate=lambda v: v.isdigit() and 1 <= int(v) <= 8 or "Enter a number from 1 to 8",
        )),
        "max_line_length": int(await prompts.text(
            "Maximum line length", default=str(defaults.code.max_line_length),
            validate=lambda v: v.isdigit() and int(v) >= 40 or "Enter a number of at least 40",
        )),
    })
    testing = defaults.testing.model_copy(update={
        "coverage_target": int(await prompts.text(
            "Coverage target (%)", default=str(defaults.testing.coverage_target),
            validate=lambda v: v.isdigit() and int(v) <= 100 or "Enter a number from 0 to 100",
        )),
        "tdd_required": await prompts.confirm("Require TDD?", default=defaults.testing.tdd_required),
    })
    value = defaults.model_copy(update={"code": code, "testing": testing})
    return StepExecutionResult(value, _NEXT)


# ---------------------------------------------------------------------------
# Template placeholders
# ---------------------------------------------------------------------------

def default_template_config(ctx: Context) -> TemplateConfig:
    """Computed defaults for every placeholder the templates use."""
    detection = replace(_detection(ctx), values={})
    values: dict[str, str] = {}
    for key in ctx.get("configurable_placeholders") or ():
        definition = get_placeholder_by_key(key)
        if definition is None:
            continue
        value = compute_default_value(definition, detection)
        detection.values[key] = value
        values[key] = value
    return TemplateConfig(values=values)


def _no_configurable_placeholders(ctx: Context) -> bool:
    return not ctx.get("configurable_placeholders")


@_cancellable
async def _execute_templates(ctx: Context, defaults: TemplateConfig) -> StepExecutionResult:
    if await _wants_back("Configure template placeholders or go back?"):
        return StepExecutionResult(defaults, _BACK)
    values: dict[str, str] = {}
    for key in ctx.get("configurable_placeholders") or ():
        definition = get_placeholder_by_key(key)
        if definition is None:
            continue
        label = definition.label or key
        current = defaults.values.get(key, "")
        if definition.choices:
            values[key] = await prompts.select(
                label, [WizardChoice(name=c, value=c) for c in definition.choices], current
            )
        else:
            values[key] = await prompts.text(label, default=current, validate=definition.validate)
    return StepExecutionResult(TemplateConfig(values=values), _NEXT)


# ---------------------------------------------------------------------------
# Wizard assembly
# ---------------------------------------------------------------------------

def _model_default(model: type) -> Any:
    return lambda _ctx: model()


def create_init_wizard_config() -> WizardConfig:
    steps = [
        WizardStep(
            id="project",
            name="Project Information",
            description="Basic project identification and metadata",
            compute_defaults=default_project_info,
            execute=_execute_project,
            validate=_validate_project,
        ),
        WizardStep(
            id="preferences",
            name="Preferences",
            description="Language and package manager settings",
            compute_defaults=default_preferences,
            execute=_execute_preferences,
        ),
        WizardStep(
            id="modules",
            name="Modules",
            description="Agents, skills, commands and docs to install",
            compute_defaults=default_modules,
            execute=_execute_modules,
            skip_condition=_no_modules_available,
            required=False,
        ),
        WizardStep(
            id="code_style",
            name="Code Style",
            description="Formatter and linter",
            compute_defaults=_model_default(CodeStyleConfig),
            execute=_execute_code_style,
            required=False,
        ),
        WizardStep(
            id="standards",
            name="Standards",
            description="Code and testing standards",
            compute_defaults=_model_default(StandardsConfig),
            execute=_execute_standards,
            required=False,
        ),
        WizardStep(
            id="templates",
            name="Template Placeholders",
            description="Values for {{PLACEHOLDER}} tokens in the templates",
            compute_defaults=default_template_config,
            execute=_execute_templates,
            skip_condition=_no_configurable_placeholders,
            required=False,
            depends_on=("project",),
        ),
    ]
    return WizardConfig(id=INIT_WIZARD_ID, title="Claude configuration", steps=steps)


def default_init_values(ctx: Context) -> dict[str, Any]:
    """Every step's computed default, for non-interactive runs."""
    config = create_init_wizard_config()
    return {step.id: step.compute_defaults(ctx) for step in config.steps}


def build_scaffold_config(
    values: dict[str, Any],
    project_path: Path,
    base: Optional[ScaffoldConfig] = None,
) -> ScaffoldConfig:
    """Assemble a :class:`ScaffoldConfig` from wizard answers keyed by step id.

    Settings the wizard does not ask about (``claude_dir``, ``templates_dir``)
    come from *base*.
    """
    base = base or ScaffoldConfig()
    return base.model_copy(update={
        "project_path": project_path,
        "project": values.get("project") or ProjectInfo(name=project_path.resolve().name),
        "preferences": values.get("preferences") or base.preferences,
        "modules": values.get("modules") or ModuleSelection(),
        "code_style": values.get("code_style") or base.code_style,
        "standards": values.get("standards") or base.standards,
        "templates": values.get("templates") or base.templates,
    })
