"""Unit tests for step state transitions (dotclaude.wizard.step).

Tests cover:
- create_step_state (metadata, first step is current)
- record_step_history (append-only, visit counts, immutability)
- validate_step message handling
- should_skip_step
"""

from __future__ import annotations

import pytest

from dotclaude.wizard.step import (
    create_step_state,
    get_visit_count,
    has_been_visited,
    record_step_history,
    should_skip_step,
    update_step_status,
    validate_step,
)
from dotclaude.wizard.types import (
    NavigationDirection,
    StepExecutionResult,
    StepStatus,
    WizardStep,
)

pytestmark = pytest.mark.unit


async def _noop(ctx, defaults):
    return StepExecutionResult(value=defaults)


def _step(**kwargs) -> WizardStep:
    return WizardStep(id="project", name="Project", compute_defaults=lambda ctx: None,
                      execute=_noop, **kwargs)


class TestCreateStepState:
    def test_first_step_is_current(self):
        state = create_step_state(_step(description="Basics", depends_on=["x"]), 0)
        assert state.status is StepStatus.CURRENT
        assert state.metadata.id == "project"
        assert state.metadata.description == "Basics"
        assert state.metadata.depends_on == ("x",)
        assert state.history == ()
        assert state.is_modified is False

    def test_later_steps_are_pending(self):
        assert create_step_state(_step(), 3).status is StepStatus.PENDING


class TestRecordStepHistory:
    def test_appends_entries(self):
        state = create_step_state(_step(), 0)
        once = record_step_history(state, "a", NavigationDirection.NEXT)
        twice = record_step_history(once, "b", NavigationDirection.NEXT)

        assert [entry.value for entry in twice.history] == ["a", "b"]
        assert [entry.visit_count for entry in twice.history] == [1, 2]
        assert twice.value == "b"
        assert twice.is_modified is True
        assert get_visit_count(twice) == 2

    def test_original_state_is_untouched(self):
        state = create_step_state(_step(), 0)
        record_step_history(state, "a", NavigationDirection.NEXT)
        assert state.history == ()
        assert state.value is None

    def test_frozen(self):
        state = create_step_state(_step(), 0)
        with pytest.raises(AttributeError):
            state.value = "x"  # type: ignore[misc]

    def test_visited(self):
        state = create_step_state(_step(), 0)
        assert not has_been_visited(state)
        assert has_been_visited(update_step_status(state, StepStatus.COMPLETED))
        assert has_been_visited(record_step_history(state, 1, NavigationDirection.CANCEL))


class TestValidateStep:
    def test_no_validator(self):
        assert validate_step(_step(), "anything", {}) is True

    def test_message_is_returned(self):
        step = _step(validate=lambda value, ctx: True if value else "Name is required")
        assert validate_step(step, "x", {}) is True
        assert validate_step(step, "", {}) == "Name is required"

    def test_false_becomes_generic_message(self):
        step = _step(validate=lambda value, ctx: False)
        assert validate_step(step, "x", {}) == "Validation failed"

    def test_validator_sees_context(self):
        step = _step(validate=lambda value, ctx: value != ctx["taken"] or "taken")
        assert validate_step(step, "a", {"taken": "a"}) == "taken"


class TestShouldSkipStep:
    def test_without_condition(self):
        assert should_skip_step(_step(), {}) is False

    def test_condition_uses_context(self):
        step = _step(skip_condition=lambda ctx: not ctx.get("modules"))
        assert should_skip_step(step, {}) is True
        assert should_skip_step(step, {"modules": ["a"]}) is False
