"""
Workout-session state machine.

SessionState is the single source of truth for the workout in progress:
the active workout record, the exercise queue, the current selection and
the sets logged so far.  UI code owns an instance, calls its transitions
and re-renders from snapshot() when notified.

States:
    IDLE ──start()──▶ ACTIVE ──finish()──▶ FINISHING ──(backend ok)──▶ IDLE

A workout started from a routine pauses in FINISHING when the performed
session differs from the routine's targets; the caller answers through
resolve_reconciliation() before the backend finish call is made.  A failed
finish leaves the session in FINISHING so finish() can be retried without
asking again.

Network responses are tied to the session generation they were issued for.
reset() bumps the generation, and late responses for an abandoned session
are discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone

from .config import (
    DEFAULT_USER_ID,
    FREESTYLE_WORKOUT_NAME,
    REWARD_NEW_1RM,
    REWARD_REP_PR,
    REWARD_ROUTINE_UPDATED,
    REWARD_WORKOUT_COMPLETE,
)
from .errors import (
    FinishFailed,
    InvalidTransition,
    InvariantViolation,
    LogFailed,
    OperationInProgress,
    StaleResponse,
    ValidationError,
)
from .exercise_queue import ExerciseQueue
from .interfaces import ExerciseCatalog, RoutineStore, WorkoutClient
from .models import (
    ActiveWorkout,
    EventKind,
    Exercise,
    FinishResult,
    LoggedSet,
    PRFlags,
    QueuedExercise,
    ReconciliationProposal,
    RoutineSpec,
    SessionEvent,
    SessionSnapshot,
    SessionStatus,
)
from .pr_detector import detect_records
from .reconciler import propose_update
from .validation import validate_set_input

logger = logging.getLogger(__name__)

Listener = Callable[[SessionEvent], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionState:
    """
    State machine for one user's workout session.

    Args:
        workouts: Backend workout operations (create / log set / finish)
        routines: Routine store, read at start and written on reconciliation
        catalog: Exercise catalog used to resolve routine exercises
        user_id: Owner of the workouts created by this session
        clock: Returns the current time; injectable for tests
    """

    def __init__(
        self,
        workouts: WorkoutClient,
        routines: RoutineStore,
        catalog: ExerciseCatalog,
        user_id: str = DEFAULT_USER_ID,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._workouts = workouts
        self._routines = routines
        self._catalog = catalog
        self._user_id = user_id
        self._clock = clock

        self._status = SessionStatus.IDLE
        self._workout: ActiveWorkout | None = None
        self._queue = ExerciseQueue()
        self._selected: str | None = None
        self._sets: list[LoggedSet] = []

        self._proposal: ReconciliationProposal | None = None
        self._reconciliation_checked = False
        self._reconciliation_resolved = False
        self._routine_updated = False

        self._generation = 0
        self._in_flight: set[str] = set()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def workout(self) -> ActiveWorkout | None:
        return self._workout

    @property
    def queue(self) -> tuple[QueuedExercise, ...]:
        return self._queue.items

    @property
    def selected_queue_id(self) -> str | None:
        return self._selected

    @property
    def current_exercise(self) -> QueuedExercise | None:
        if self._selected is None:
            return None
        return self._queue.get(self._selected)

    @property
    def sets(self) -> tuple[LoggedSet, ...]:
        return tuple(self._sets)

    @property
    def current_sets(self) -> tuple[LoggedSet, ...]:
        """Sets logged this session for the selected exercise, oldest first."""
        current = self.current_exercise
        if current is None:
            return ()
        return tuple(s for s in self._sets if s.exercise_id == current.exercise_id)

    @property
    def pending_reconciliation(self) -> ReconciliationProposal | None:
        """The routine-update proposal awaiting a decision, if any."""
        if self._awaiting_decision():
            return self._proposal
        return None

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self._status,
            workout=self._workout,
            queue=self.queue,
            selected_queue_id=self._selected,
            current_sets=self.current_sets,
            sets=self.sets,
            pending_reconciliation=self.pending_reconciliation,
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for session events.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(
        self,
        kind: EventKind,
        message: str = "",
        payload: object | None = None,
        detail: str = "",
    ) -> None:
        event = SessionEvent(kind=kind, message=message, payload=payload, detail=detail)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed on %s event", kind)

    def _reward(self, reward: tuple[str, str], payload: object) -> None:
        message, detail = reward
        self._emit("reward", message, payload, detail=detail)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require(self, *allowed: SessionStatus, action: str) -> None:
        if self._status not in allowed:
            raise InvalidTransition(
                f"Cannot {action} while session is {self._status.value}"
            )

    @contextmanager
    def _operation(self, kind: str) -> Iterator[int]:
        """Mark ``kind`` as in flight and yield the current generation."""
        if kind in self._in_flight:
            raise OperationInProgress(f"A {kind} operation is already in progress")
        self._in_flight.add(kind)
        try:
            yield self._generation
        finally:
            self._in_flight.discard(kind)

    def _check_current(self, generation: int, what: str) -> None:
        if generation != self._generation:
            logger.warning("Discarding %s response for a session that was reset", what)
            raise StaleResponse(f"Session was reset before the {what} response arrived")

    def _active_workout(self) -> ActiveWorkout:
        if self._workout is None:
            logger.critical("Session is %s without a workout", self._status.value)
            raise InvariantViolation(f"No workout while session is {self._status.value}")
        return self._workout

    def _awaiting_decision(self) -> bool:
        return (
            self._status is SessionStatus.FINISHING
            and self._proposal is not None
            and self._proposal.changed
            and not self._reconciliation_resolved
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, routine_id: str | None = None, name: str | None = None) -> ActiveWorkout:
        """
        Create a workout and make it active.

        With ``routine_id`` the routine is read first, its name becomes the
        default workout name and its exercises seed the queue in order.

        Raises:
            InvalidTransition: If a workout is already active or finishing
            FetchFailed: If the routine or catalog could not be read
            CreateFailed: If the backend rejected the workout
        """
        self._require(SessionStatus.IDLE, action="start a workout")

        with self._operation("start") as generation:
            routine: RoutineSpec | None = None
            exercises_by_id: dict[str, Exercise] = {}
            if routine_id is not None:
                routine = self._routines.get(routine_id)
                self._check_current(generation, "routine")
                exercises_by_id = {ex.id: ex for ex in self._catalog.list()}
                self._check_current(generation, "catalog")

            if name is None:
                name = routine.name if routine is not None else FREESTYLE_WORKOUT_NAME

            workout = self._workouts.create(
                self._user_id,
                name=name,
                start_time=self._clock(),
                routine_id=routine_id,
            )
            self._check_current(generation, "workout creation")

        if routine_id is not None and workout.template_id is None:
            workout = replace(workout, template_id=routine_id)

        self._workout = workout
        self._sets = []
        self._queue.clear()
        self._selected = None
        self._status = SessionStatus.ACTIVE

        if routine is not None:
            for target in routine.exercises:
                exercise = exercises_by_id.get(target.exercise_id)
                if exercise is None:
                    logger.warning(
                        "Routine %s references unknown exercise %s; skipped",
                        routine.id, target.exercise_id,
                    )
                    continue
                self._queue.append(exercise)
            if len(self._queue):
                self._selected = self._queue.items[0].queue_id

        logger.info(
            "Started workout %s (%s) with %d queued exercises",
            workout.id, workout.name, len(self._queue),
        )
        self._emit("changed")
        return workout

    def enqueue(self, exercise: Exercise) -> QueuedExercise:
        """Append an exercise to the queue; selects it if nothing is selected."""
        self._require(SessionStatus.ACTIVE, action="queue an exercise")
        item = self._queue.append(exercise)
        if self._selected is None:
            self._selected = item.queue_id
        logger.debug("Queued %s as %s", exercise.name, item.queue_id)
        self._emit("changed")
        return item

    def remove(self, queue_id: str) -> QueuedExercise:
        """Drop an entry from the queue; deselects it if it was current."""
        self._require(SessionStatus.ACTIVE, action="remove an exercise")
        item = self._queue.remove(queue_id)
        if self._selected == queue_id:
            self._selected = None
        self._emit("changed")
        return item

    def reorder(self, queue_id: str, new_position: int) -> None:
        """
        Move a queued exercise to ``new_position`` (array-move semantics).

        Raises:
            InvariantViolation: If ``queue_id`` is not in the queue
        """
        self._require(SessionStatus.ACTIVE, action="reorder the queue")
        self._queue.move(queue_id, new_position)
        self._emit("changed")

    def select(self, queue_id: str | None) -> None:
        """Make ``queue_id`` the current exercise; None clears the selection."""
        self._require(SessionStatus.ACTIVE, action="select an exercise")
        if queue_id == self._selected:
            return
        if queue_id is not None:
            self._queue.index_of(queue_id)
        self._selected = queue_id
        self._emit("changed")

    def log_set(self, weight_kg: float, reps: int, rpe: float | None = None) -> LoggedSet:
        """
        Log a set for the current exercise.

        The backend's PR flags are stored as returned; nothing is recomputed
        locally.

        Raises:
            InvalidTransition: If no workout is active
            ValidationError: If nothing is selected or the input is invalid
            LogFailed: If the backend call failed (nothing recorded)
        """
        self._require(SessionStatus.ACTIVE, action="log a set")
        current = self.current_exercise
        if current is None:
            raise ValidationError("Select an exercise before logging a set")
        weight_kg, reps, rpe = validate_set_input(weight_kg, reps, rpe)

        workout_id = self._active_workout().id
        with self._operation("log_set") as generation:
            result = self._workouts.log_set(workout_id, current.exercise_id, weight_kg, reps, rpe)
            self._check_current(generation, "log set")
        if result.set.workout_id != workout_id:
            raise LogFailed(
                f"Backend logged the set against workout {result.set.workout_id}, expected {workout_id}"
            )

        logged = replace(result.set, is_new_1rm=result.is_new_1rm, is_vol_pr=result.is_vol_pr)
        self._sets.append(logged)
        logger.info(
            "Logged %s: %.1f kg x %d (1RM=%s, rep PR=%s)",
            current.exercise.name, logged.weight_kg, logged.reps,
            logged.is_new_1rm, logged.is_vol_pr,
        )

        if logged.is_new_1rm:
            self._reward(REWARD_NEW_1RM, logged)
        elif logged.is_vol_pr:
            self._reward(REWARD_REP_PR, logged)
        self._emit("changed")
        return logged

    def preview_set(
        self, weight_kg: float, reps: int, history: Iterable[LoggedSet]
    ) -> PRFlags:
        """
        Provisional PR check for a set that has not been logged yet.

        Sets belonging to the active workout are excluded from ``history``.
        The result is marked provisional; the backend's flags win.
        """
        self._require(SessionStatus.ACTIVE, action="preview a set")
        current = self.current_exercise
        if current is None:
            raise ValidationError("Select an exercise before previewing a set")
        weight_kg, reps, _ = validate_set_input(weight_kg, reps)
        workout_id = self._active_workout().id
        return detect_records(
            current.exercise_id,
            weight_kg,
            reps,
            history,
            exclude_workout_id=workout_id,
            provisional=True,
        )

    def finish(self) -> FinishResult | None:
        """
        Finish the active workout.

        Returns None while a routine-update decision is pending (see
        ``pending_reconciliation`` and resolve_reconciliation()).  Otherwise
        calls the backend, clears the session and returns the result.

        Raises:
            InvalidTransition: If no workout is active (including a second
                finish after success)
            OperationInProgress: If a set is being logged or a finish is pending
            FetchFailed: If the routine could not be read for reconciliation
            FinishFailed: If the backend call failed; the session stays
                FINISHING and finish() may be retried
        """
        self._require(SessionStatus.ACTIVE, SessionStatus.FINISHING, action="finish")
        if "log_set" in self._in_flight:
            raise OperationInProgress("Cannot finish while a set is being logged")

        with self._operation("finish") as generation:
            if self._status is SessionStatus.ACTIVE:
                self._status = SessionStatus.FINISHING
                self._proposal = None
                self._reconciliation_checked = False
                self._reconciliation_resolved = False
                self._routine_updated = False
                logger.info("Finishing workout %s", self._workout.id if self._workout else None)
                self._emit("changed")

            if not self._reconciliation_checked:
                self._prepare_reconciliation(generation)

            if self._awaiting_decision():
                self._emit("reconciliation", "Update routine to match this workout?", self._proposal)
                return None

            return self._complete(generation)

    def resolve_reconciliation(self, apply: bool) -> FinishResult:
        """
        Answer the pending routine-update question and finish.

        With ``apply`` the routine's exercise list is replaced by the derived
        targets.  A failed routine update keeps the question pending.

        Raises:
            InvalidTransition: If no decision is pending
            RoutineUpdateFailed: If the routine could not be updated
            FinishFailed: If the backend finish call failed
        """
        if not self._awaiting_decision():
            raise InvalidTransition("No routine update is pending")
        proposal = self._proposal
        if proposal is None:
            raise InvariantViolation("Reconciliation pending without a proposal")

        if apply:
            with self._operation("reconcile") as generation:
                self._routines.replace_exercises(proposal.routine_id, list(proposal.derived))
                self._check_current(generation, "routine update")
            self._routine_updated = True
            logger.info("Routine %s updated from workout", proposal.routine_id)
            self._reward(REWARD_ROUTINE_UPDATED, proposal)
        else:
            logger.info("Routine %s left unchanged", proposal.routine_id)

        self._reconciliation_resolved = True
        result = self.finish()
        if result is None:
            raise InvariantViolation("Reconciliation still pending after it was resolved")
        return result

    def reset(self) -> None:
        """
        Abandon the current session and return to IDLE.

        Responses still in flight for the abandoned session are discarded
        when they arrive.
        """
        self._generation += 1
        if self._workout is not None:
            logger.info("Abandoning workout %s", self._workout.id)
        self._clear()
        self._emit("changed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _prepare_reconciliation(self, generation: int) -> None:
        """
        Compute the routine-update proposal once per finish attempt.

        The routine is read again so edits made elsewhere during the session
        are compared against.  A failed read raises FetchFailed and is retried
        by the next finish().
        """
        template_id = self._active_workout().template_id
        if template_id:
            routine = self._routines.get(template_id)
            self._check_current(generation, "routine")
            self._proposal = propose_update(routine, self._queue.items, self._sets)
            logger.debug(
                "Reconciliation for routine %s: changed=%s",
                routine.id, self._proposal.changed,
            )
        self._reconciliation_checked = True

    def _complete(self, generation: int) -> FinishResult:
        workout_id = self._active_workout().id
        try:
            response = self._workouts.finish(workout_id)
        except FinishFailed:
            logger.warning("Finish failed for workout %s; session kept for retry", workout_id)
            raise
        self._check_current(generation, "finish")
        if response.workout_id != workout_id:
            raise FinishFailed(
                f"Backend finished workout {response.workout_id}, expected {workout_id}"
            )

        result = replace(response, routine_updated=self._routine_updated)
        self._clear()
        logger.info("Finished workout %s; badges: %s", workout_id, list(result.badges) or "none")

        if result.badges:
            self._emit("badges", f"You earned {len(result.badges)} new badges!", result.badges)
        else:
            self._reward(REWARD_WORKOUT_COMPLETE, result)
        self._emit("changed")
        return result

    def _clear(self) -> None:
        self._status = SessionStatus.IDLE
        self._workout = None
        self._queue.clear()
        self._selected = None
        self._sets = []
        self._proposal = None
        self._reconciliation_checked = False
        self._reconciliation_resolved = False
        self._routine_updated = False
