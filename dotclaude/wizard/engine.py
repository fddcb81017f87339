"""Wizard runner.

Drives a :class:`WizardConfig` step by step, accumulating answers into a
context mapping and recording each step's history so earlier answers can be
revisited with their previous values as defaults.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Optional, Union

from dotclaude.wizard.history import get_last_value, was_step_completed
from dotclaude.wizard.navigator import apply_navigation
from dotclaude.wizard.step import (
    create_step_state,
    record_step_history,
    should_skip_step,
    validate_step,
)
from dotclaude.wizard.types import (
    NavigationDirection,
    RevisitAction,
    StepState,
    StepStatus,
    WizardConfig,
    WizardMetadata,
    WizardResult,
    WizardState,
    WizardStep,
)

RevisitHandler = Callable[[StepState], Union[RevisitAction, Awaitable[RevisitAction]]]
ProgressHandler = Callable[[WizardState, bool], None]
RejectionHandler = Callable[[WizardStep, str], None]

_NO_OVERRIDE = object()


def create_wizard_state(config: WizardConfig) -> WizardState:
    """Fresh state for *config*: the first step is current, the rest pending."""
    if not config.steps:
        raise ValueError(f"Wizard '{config.id}' has no steps")
    ids = [step.id for step in config.steps]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Wizard '{config.id}' has duplicate step ids")

    metadata = WizardMetadata(
        id=config.id,
        title=config.title,
        total_steps=len(config.steps),
        allow_skip=config.allow_skip,
        show_progress=config.show_progress,
    )
    return WizardState(
        steps={step.id: create_step_state(step, i) for i, step in enumerate(config.steps)},
        current_step_id=ids[0],
        step_order=tuple(ids),
        metadata=metadata,
    )


async def _resolve_revisit(handler: Optional[RevisitHandler], step: StepState) -> RevisitAction:
    if handler is None:
        return RevisitAction.RECONFIGURE
    action = handler(step)
    if inspect.isawaitable(action):
        action = await action
    return RevisitAction(action)


def _step_back_over_skipped(state: WizardState) -> WizardState:
    """Move back from a skipped step, leaving it marked as skipped."""
    step_id = state.current_step_id
    moved = apply_navigation(state, NavigationDirection.BACK)
    skipped = replace(moved.steps[step_id], status=StepStatus.SKIPPED, value=None)
    return replace(moved, steps={**moved.steps, step_id: skipped})


def collect_values(state: WizardState) -> dict[str, Any]:
    """Final answers keyed by step id; steps without a value are left out."""
    return {
        step_id: state.steps[step_id].value
        for step_id in state.step_order
        if state.steps[step_id].value is not None
    }


async def run_wizard(
    config: WizardConfig,
    initial_context: Optional[Mapping[str, Any]] = None,
    on_revisit: Optional[RevisitHandler] = None,
    on_progress: Optional[ProgressHandler] = None,
    on_rejected: Optional[RejectionHandler] = None,
) -> WizardResult:
    """Run every step of *config* until the wizard completes or is cancelled.

    Args:
        config: Ordered step definitions.
        initial_context: Values visible to the first step (e.g. detected
            project settings).
        on_revisit: Asked whether to keep or re-run a step that was already
            completed when the user moves forward again after going back.
            Without a handler the step is re-run.
        on_progress: Called before each step executes with the current state
            and whether the step is being revisited.
        on_rejected: Called with the step and the validator's message when
            an answer is rejected; the step is then asked again.

    Returns:
        A :class:`WizardResult` with the collected values and the final state.
        Exceptions raised by steps propagate unchanged.
    """
    state = create_wizard_state(config)
    steps_by_id = {step.id: step for step in config.steps}
    context: dict[str, Any] = dict(initial_context or {})
    retry_defaults: dict[str, Any] = {}
    moving_forward_after_back = False
    # (step id, entered value) of the step that last went back, until a step runs
    back_origin: Optional[tuple[str, Any]] = None

    while not state.is_complete and not state.is_cancelled:
        step_id = state.current_step_id
        step = steps_by_id[step_id]
        step_state = state.current_step
        view = MappingProxyType(context)

        if should_skip_step(step, view):
            if back_origin is not None and state.current_index > 0:
                state = _step_back_over_skipped(state)
                continue
            if back_origin is not None:
                # Nothing runnable before this step: return to where back was chosen.
                origin_id, origin_value = back_origin
                retry_defaults[origin_id] = origin_value
                back_origin = None
            state = apply_navigation(state, NavigationDirection.SKIP)
            continue
        back_origin = None

        if moving_forward_after_back and was_step_completed(step_state):
            if await _resolve_revisit(on_revisit, step_state) is RevisitAction.KEEP:
                state = apply_navigation(state, NavigationDirection.NEXT, step_state.value)
                continue

        is_revisit = bool(step_state.history)
        if on_progress is not None:
            on_progress(state, is_revisit)

        override = retry_defaults.pop(step_id, _NO_OVERRIDE)
        if override is not _NO_OVERRIDE:
            defaults = override
        else:
            defaults = get_last_value(step_state)
            if defaults is None:
                defaults = step.compute_defaults(view)

        result = await step.execute(view, defaults)
        direction = NavigationDirection(result.navigation)

        if direction is NavigationDirection.BACK:
            if state.current_index == 0:
                retry_defaults[step_id] = result.value
            else:
                back_origin = (step_id, result.value)
            moving_forward_after_back = False
            state = apply_navigation(state, direction)
            continue

        if direction is NavigationDirection.NEXT:
            verdict = validate_step(step, result.value, view)
            if verdict is not True:
                if on_rejected is not None:
                    on_rejected(step, verdict)
                retry_defaults[step_id] = result.value
                continue
            context = {**context, step_id: result.value, **(result.context_updates or {})}
            moving_forward_after_back = is_revisit or moving_forward_after_back

        if direction is not NavigationDirection.SKIP:
            recorded = record_step_history(step_state, result.value, direction)
            if not result.was_modified:
                recorded = replace(recorded, is_modified=step_state.is_modified)
            state = replace(state, steps={**state.steps, step_id: recorded})

        state = apply_navigation(state, direction, result.value)

    return WizardResult(values=collect_values(state), state=state, cancelled=state.is_cancelled)
