"""Types for the multi-step wizard engine.

Step and wizard state are frozen dataclasses: every transition returns a new
instance, and a step's history is an append-only tuple.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class StepStatus(str, Enum):
    """Lifecycle of a single step: pending -> current -> completed | skipped."""
    PENDING = "pending"
    CURRENT = "current"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class NavigationDirection(str, Enum):
    """What a step asked the engine to do once it finished."""
    NEXT = "next"
    BACK = "back"
    SKIP = "skip"
    CANCEL = "cancel"


class RevisitAction(str, Enum):
    """Choice offered when moving forward onto an already-completed step."""
    KEEP = "keep"
    RECONFIGURE = "reconfigure"


# ---------------------------------------------------------------------------
# Step state
# ---------------------------------------------------------------------------

def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StepMetadata:
    id: str
    name: str
    description: str
    index: int
    required: bool = True
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class StepHistoryEntry:
    """One recorded exit from a step."""

    value: Any
    exit_direction: NavigationDirection
    visit_count: int
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class StepState:
    metadata: StepMetadata
    status: StepStatus = StepStatus.PENDING
    value: Any = None
    history: tuple[StepHistoryEntry, ...] = ()
    is_modified: bool = False


# ---------------------------------------------------------------------------
# Step definitions
# ---------------------------------------------------------------------------

Context = Mapping[str, Any]


@dataclass
class StepExecutionResult:
    """What a step's ``execute`` returns.

    ``context_updates`` are merged into the wizard context (after the step's
    own ``{step_id: value}`` entry) when the step exits with ``next``.
    """

    value: Any
    navigation: NavigationDirection = NavigationDirection.NEXT
    was_modified: bool = True
    context_updates: dict[str, Any] = field(default_factory=dict)


DefaultsComputer = Callable[[Context], Any]
StepExecutor = Callable[[Context, Any], Awaitable[StepExecutionResult]]
StepValidator = Callable[[Any, Context], Union[bool, str]]
SkipCondition = Callable[[Context], bool]


@dataclass
class WizardStep:
    """Definition of one step: how to default, run, validate and skip it."""

    id: str
    name: str
    compute_defaults: DefaultsComputer
    execute: StepExecutor
    description: str = ""
    required: bool = True
    validate: Optional[StepValidator] = None
    skip_condition: Optional[SkipCondition] = None
    depends_on: tuple[str, ...] = ()


@dataclass
class WizardConfig:
    id: str
    title: str
    steps: list[WizardStep]
    allow_skip: bool = True
    show_progress: bool = True


# ---------------------------------------------------------------------------
# Wizard state and result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WizardMetadata:
    id: str
    title: str
    total_steps: int
    start_time: datetime = field(default_factory=_now)
    allow_skip: bool = True
    show_progress: bool = True


@dataclass(frozen=True)
class WizardState:
    steps: Mapping[str, StepState]
    current_step_id: str
    step_order: tuple[str, ...]
    metadata: WizardMetadata
    is_complete: bool = False
    is_cancelled: bool = False

    @property
    def current_step(self) -> StepState:
        return self.steps[self.current_step_id]

    @property
    def current_index(self) -> int:
        return self.step_order.index(self.current_step_id)


@dataclass
class WizardResult:
    values: dict[str, Any]
    state: WizardState
    cancelled: bool


@dataclass
class WizardChoice:
    """A selectable option for select/checkbox prompts."""

    name: str
    value: Any
    description: str = ""
