"""Queries over recorded step history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dotclaude.wizard.types import StepState, StepStatus, WizardState


def get_last_value(step: StepState) -> Any:
    """Most recently recorded value, or the step's value if nothing is recorded."""
    if not step.history:
        return step.value
    return step.history[-1].value


def get_initial_value(step: StepState) -> Any:
    if not step.history:
        return step.value
    return step.history[0].value


def get_modified_steps(state: WizardState) -> list[tuple[str, StepState]]:
    return [(step_id, state.steps[step_id]) for step_id in state.step_order
            if state.steps[step_id].is_modified]


def get_revisited_steps(state: WizardState) -> list[tuple[str, StepState]]:
    """Steps recorded more than once (the user went back and re-answered)."""
    return [(step_id, state.steps[step_id]) for step_id in state.step_order
            if len(state.steps[step_id].history) > 1]


def get_total_visits(state: WizardState) -> int:
    total = 0
    for step_id in state.step_order:
        step = state.steps[step_id]
        total += max(len(step.history), 1 if step.value is not None else 0)
    return total


def get_completed_steps_count(state: WizardState) -> int:
    return sum(
        1 for step_id in state.step_order
        if state.steps[step_id].status in (StepStatus.COMPLETED, StepStatus.SKIPPED)
    )


def get_history_summary(state: WizardState) -> list[str]:
    revisited = get_revisited_steps(state)
    if not revisited:
        return []
    summary = ["Steps that were reconfigured:"]
    for _step_id, step in revisited:
        summary.append(f"  - {step.metadata.name}: modified {len(step.history)} times")
    return summary


def was_step_completed(step: StepState) -> bool:
    return step.status is StepStatus.COMPLETED or bool(step.history)


def get_time_on_step(step: StepState) -> float:
    """Seconds between the first and last recorded exit (0 with fewer than two)."""
    if len(step.history) < 2:
        return 0.0
    return (step.history[-1].timestamp - step.history[0].timestamp).total_seconds()


def get_wizard_duration(state: WizardState, now: datetime | None = None) -> float:
    """Seconds since the wizard started."""
    current = now or datetime.now(timezone.utc)
    return (current - state.metadata.start_time).total_seconds()
