"""
Data models for liftlog.

Dataclasses for the exercise catalog, routines ("splits"), the active
workout and the sets logged against it.  Wire-format conversion lives in
io/serializers.py; these classes only validate their own invariants.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal


class SessionStatus(str, Enum):
    """States of the workout-session state machine."""

    IDLE = "idle"
    ACTIVE = "active"
    FINISHING = "finishing"


EventKind = Literal["changed", "reward", "reconciliation", "badges"]


@dataclass(frozen=True)
class Exercise:
    """
    A catalog exercise.

    Reference data owned by the backend catalog; never mutated client-side.
    """

    id: str
    name: str
    muscle_group: str
    equipment: str | None = None
    description: str | None = None
    animation_url: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Exercise.id must be non-empty")


@dataclass(frozen=True)
class QueuedExercise:
    """
    An exercise placed in the session queue.

    ``queue_id`` is session-local and distinct from ``exercise.id`` so the
    same exercise can be queued more than once (supersets, revisits).
    """

    queue_id: str
    exercise: Exercise

    @property
    def exercise_id(self) -> str:
        return self.exercise.id


@dataclass(frozen=True)
class LoggedSet:
    """
    A set as recorded by the backend.

    The PR flags are frozen at log time: they answer "was this a record when
    it was logged", not "is this currently a record".
    """

    workout_id: str
    exercise_id: str
    weight_kg: float
    reps: int
    rpe: float | None = None
    is_new_1rm: bool = False
    is_vol_pr: bool = False
    id: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if not math.isfinite(self.weight_kg) or self.weight_kg < 0:
            raise ValueError("weight_kg must be finite and non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")


@dataclass(frozen=True)
class ActiveWorkout:
    """
    A workout record created by the backend.

    ``template_id`` is the routine the workout was started from, if any.
    """

    id: str
    user_id: str | None = None
    name: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    template_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class RoutineExerciseTarget:
    """One exercise slot of a routine with its targets."""

    exercise_id: str
    order_index: int
    target_sets: int
    target_reps: int
    target_weight_kg: float | None = None
    exercise_name: str | None = None  # display only; not sent on write

    def __post_init__(self) -> None:
        if self.order_index < 0:
            raise ValueError("order_index must be non-negative")
        if self.target_sets < 0:
            raise ValueError("target_sets must be non-negative")
        if self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")
        if self.target_weight_kg is not None and self.target_weight_kg < 0:
            raise ValueError("target_weight_kg must be non-negative")


@dataclass(frozen=True)
class RoutineSpec:
    """
    A named routine ("split") with its ordered exercise targets.

    ``exercises`` is kept sorted by ``order_index``; indices must be unique.
    """

    id: str
    name: str
    description: str | None = None
    user_id: str | None = None
    created_at: datetime | None = None
    exercises: tuple[RoutineExerciseTarget, ...] = ()

    def __post_init__(self) -> None:
        indices = [t.order_index for t in self.exercises]
        if len(set(indices)) != len(indices):
            raise ValueError(f"Routine {self.id}: duplicate order_index values")
        ordered = tuple(sorted(self.exercises, key=lambda t: t.order_index))
        object.__setattr__(self, "exercises", ordered)

    @property
    def exercise_ids(self) -> list[str]:
        return [t.exercise_id for t in self.exercises]


@dataclass(frozen=True)
class LogSetResult:
    """Backend response to a log-set call: the canonical set plus PR flags."""

    set: LoggedSet
    is_new_1rm: bool
    is_vol_pr: bool


@dataclass(frozen=True)
class FinishResult:
    """Outcome of finishing a workout."""

    workout_id: str
    end_time: datetime | None
    badges: tuple[str, ...] = ()
    routine_updated: bool = False


@dataclass(frozen=True)
class PRFlags:
    """
    Record flags for a candidate set.

    ``provisional`` marks locally computed previews that the backend has not
    confirmed.
    """

    is_new_1rm: bool
    is_vol_pr: bool
    provisional: bool = False

    @property
    def any(self) -> bool:
        return self.is_new_1rm or self.is_vol_pr


@dataclass(frozen=True)
class ReconciliationProposal:
    """
    Candidate replacement for a routine's exercise list.

    ``derived`` replaces ``stored`` in full when applied; ``changed`` is
    False only when every target field matches.
    """

    routine_id: str
    routine_name: str
    stored: tuple[RoutineExerciseTarget, ...]
    derived: tuple[RoutineExerciseTarget, ...]
    changed: bool


@dataclass(frozen=True)
class SessionEvent:
    """A notification emitted by SessionState to its subscribers."""

    kind: EventKind
    message: str = ""
    payload: object | None = None
    detail: str = ""


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of SessionState for rendering."""

    status: SessionStatus
    workout: ActiveWorkout | None
    queue: tuple[QueuedExercise, ...]
    selected_queue_id: str | None
    current_sets: tuple[LoggedSet, ...]
    sets: tuple[LoggedSet, ...] = field(default_factory=tuple)
    pending_reconciliation: ReconciliationProposal | None = None

    @property
    def current_exercise(self) -> QueuedExercise | None:
        for item in self.queue:
            if item.queue_id == self.selected_queue_id:
                return item
        return None
