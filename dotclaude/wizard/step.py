"""Step-level state transitions."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Union

from dotclaude.wizard.types import (
    Context,
    NavigationDirection,
    StepHistoryEntry,
    StepMetadata,
    StepState,
    StepStatus,
    WizardStep,
)


def create_step_state(step: WizardStep, index: int) -> StepState:
    """Initial state for *step*; the first step starts ``current``."""
    metadata = StepMetadata(
        id=step.id,
        name=step.name,
        description=step.description,
        index=index,
        required=step.required,
        depends_on=tuple(step.depends_on),
    )
    status = StepStatus.CURRENT if index == 0 else StepStatus.PENDING
    return StepState(metadata=metadata, status=status)


def record_step_history(
    state: StepState,
    value: Any,
    exit_direction: NavigationDirection,
) -> StepState:
    """Append a history entry and make *value* the step's current value."""
    entry = StepHistoryEntry(
        value=value,
        exit_direction=exit_direction,
        visit_count=len(state.history) + 1,
    )
    return replace(state, value=value, history=(*state.history, entry), is_modified=True)


def update_step_status(state: StepState, status: StepStatus) -> StepState:
    return replace(state, status=status)


def has_been_visited(state: StepState) -> bool:
    return bool(state.history) or state.status is StepStatus.COMPLETED


def get_visit_count(state: StepState) -> int:
    return len(state.history)


def validate_step(step: WizardStep, value: Any, context: Context) -> Union[bool, str]:
    """Run the step's validator.

    Returns:
        ``True`` when the value is accepted (or there is no validator),
        otherwise the rejection message.  A validator returning ``False``
        yields ``"Validation failed"``.
    """
    if step.validate is None:
        return True
    outcome = step.validate(value, context)
    if outcome is True:
        return True
    if outcome is False or outcome == "":
        return "Validation failed"
    return str(outcome)


def should_skip_step(step: WizardStep, context: Context) -> bool:
    if step.skip_condition is None:
        return False
    return bool(step.skip_condition(context))
