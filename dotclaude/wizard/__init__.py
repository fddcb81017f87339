"""Multi-step wizard with back navigation and per-step history."""

from dotclaude.wizard.engine import collect_values, create_wizard_state, run_wizard
from dotclaude.wizard.navigator import (
    BACK_OPTION_VALUE,
    apply_navigation,
    calculate_next_step,
    inject_back_option,
    is_back_selected,
    prompt_keep_or_reconfigure,
    show_step_progress,
    show_wizard_summary,
)
from dotclaude.wizard.types import (
    NavigationDirection,
    RevisitAction,
    StepExecutionResult,
    StepState,
    StepStatus,
    WizardChoice,
    WizardConfig,
    WizardResult,
    WizardState,
    WizardStep,
)

__all__ = [
    "BACK_OPTION_VALUE",
    "NavigationDirection",
    "RevisitAction",
    "StepExecutionResult",
    "StepState",
    "StepStatus",
    "WizardChoice",
    "WizardConfig",
    "WizardResult",
    "WizardState",
    "WizardStep",
    "apply_navigation",
    "calculate_next_step",
    "collect_values",
    "create_wizard_state",
    "inject_back_option",
    "is_back_selected",
    "prompt_keep_or_reconfigure",
    "run_wizard",
    "show_step_progress",
    "show_wizard_summary",
]
