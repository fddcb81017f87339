"""Navigation between wizard steps.

``calculate_next_step`` and ``apply_navigation`` are pure: they take a
:class:`WizardState` and return a new one.  The rest of the module holds the
back-option helpers for choice lists and the Rich progress/summary output.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any, Optional

from dotclaude import prompts
from dotclaude.utils import console, print_success
from dotclaude.wizard.history import get_completed_steps_count
from dotclaude.wizard.types import (
    NavigationDirection,
    RevisitAction,
    StepState,
    StepStatus,
    WizardChoice,
    WizardState,
)

BACK_OPTION_VALUE = "__wizard_back__"


# ---------------------------------------------------------------------------
# Back option helpers
# ---------------------------------------------------------------------------

def create_back_option(label: str = "Go back") -> WizardChoice:
    return WizardChoice(name=f"← {label}", value=BACK_OPTION_VALUE,
                        description="Return to the previous step")


def inject_back_option(
    choices: Sequence[WizardChoice],
    is_first_step: bool,
    label: str = "Go back",
) -> list[WizardChoice]:
    """Append a "go back" entry unless this is the first step."""
    if is_first_step:
        return list(choices)
    return [*choices, create_back_option(label)]


def is_back_selected(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return BACK_OPTION_VALUE in value
    return value == BACK_OPTION_VALUE


# ---------------------------------------------------------------------------
# State transitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NextStepResult:
    """Where the wizard goes next and the status the current step exits with.

    ``next_step_id`` is ``None`` when the wizard ends.
    """

    next_step_id: Optional[str]
    current_status: StepStatus


def calculate_next_step(state: WizardState, direction: NavigationDirection) -> NextStepResult:
    index = state.current_index
    order = state.step_order
    following = order[index + 1] if index + 1 < len(order) else None

    if direction is NavigationDirection.NEXT:
        return NextStepResult(following, StepStatus.COMPLETED)
    if direction is NavigationDirection.BACK:
        if index == 0:
            return NextStepResult(state.current_step_id, StepStatus.CURRENT)
        return NextStepResult(order[index - 1], StepStatus.PENDING)
    if direction is NavigationDirection.SKIP:
        return NextStepResult(following, StepStatus.SKIPPED)
    return NextStepResult(None, StepStatus.PENDING)


def apply_navigation(
    state: WizardState,
    direction: NavigationDirection,
    value: Any = None,
) -> WizardState:
    """Move the wizard one step in *direction*.

    ``next`` stores *value* on the current step and ``skip`` clears it; ``back``
    and ``cancel`` leave the stored value alone.
    """
    outcome = calculate_next_step(state, direction)
    current = state.current_step

    if direction is NavigationDirection.NEXT:
        current = replace(current, status=outcome.current_status, value=value)
    elif direction is NavigationDirection.SKIP:
        current = replace(current, status=outcome.current_status, value=None)
    else:
        current = replace(current, status=outcome.current_status)

    steps = {**state.steps, state.current_step_id: current}

    if outcome.next_step_id is None:
        return replace(
            state,
            steps=steps,
            is_complete=direction in (NavigationDirection.NEXT, NavigationDirection.SKIP),
            is_cancelled=direction is NavigationDirection.CANCEL,
        )

    steps[outcome.next_step_id] = replace(steps[outcome.next_step_id], status=StepStatus.CURRENT)
    return replace(state, steps=steps, current_step_id=outcome.next_step_id)


# ---------------------------------------------------------------------------
# Interaction and output
# ---------------------------------------------------------------------------

async def prompt_keep_or_reconfigure(step: StepState) -> RevisitAction:
    """Ask whether a step completed earlier should keep its answer."""
    return await prompts.select(
        f"'{step.metadata.name}' is already configured. What would you like to do?",
        [
            WizardChoice(name="Keep current settings", value=RevisitAction.KEEP),
            WizardChoice(name="Reconfigure", value=RevisitAction.RECONFIGURE),
        ],
        default=RevisitAction.KEEP,
    )


_STATUS_ICONS = {
    StepStatus.COMPLETED: "[green]●[/green]",
    StepStatus.SKIPPED: "[dim]●[/dim]",
    StepStatus.CURRENT: "[cyan]◉[/cyan]",
    StepStatus.PENDING: "[dim]○[/dim]",
}


def format_step_progress(state: WizardState, is_revisit: bool = False) -> str:
    """``[2/5] ●◉○○○ Preferences (revisiting)`` as Rich markup."""
    total = len(state.step_order)
    position = state.current_index + 1
    icons = "".join(_STATUS_ICONS[state.steps[step_id].status] for step_id in state.step_order)
    line = f"[dim][{position}/{total}][/dim] {icons} [bold]{state.current_step.metadata.name}[/bold]"
    if is_revisit:
        line += " [yellow](revisiting)[/yellow]"
    return line


def show_step_progress(state: WizardState, is_revisit: bool = False) -> None:
    if not state.metadata.show_progress:
        return
    console.print()
    console.print(format_step_progress(state, is_revisit))


def show_wizard_summary(state: WizardState) -> None:
    completed = sum(
        1 for step_id in state.step_order
        if state.steps[step_id].status is StepStatus.COMPLETED
    )
    skipped = get_completed_steps_count(state) - completed
    revisited = sum(1 for step_id in state.step_order if len(state.steps[step_id].history) > 1)

    console.print()
    print_success(f"Wizard completed: {completed} steps configured")
    if skipped:
        console.print(f"  {skipped} steps skipped")
    if revisited:
        console.print(f"  {revisited} steps were reconfigured")
