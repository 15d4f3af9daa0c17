"""
Routine reconciliation.

At the end of a session started from a routine, derive replacement targets
from what was actually performed:

  target_sets   = number of sets logged for the exercise (default 3)
  target_reps   = mean reps, rounded half-up (default 10)
  target_weight = heaviest set (omitted when nothing was lifted)

The queue order fixes the new order_index sequence.  The result replaces
the routine's exercise list in full; exercises absent from the session are
dropped.
"""

import math
from collections.abc import Sequence

from .config import DEFAULT_TARGET_REPS, DEFAULT_TARGET_SETS, WEIGHT_TOLERANCE_KG
from .models import (
    LoggedSet,
    QueuedExercise,
    ReconciliationProposal,
    RoutineExerciseTarget,
    RoutineSpec,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (6.5 → 7, not 6)."""
    return math.floor(value + 0.5)


def derive_targets(
    queue: Sequence[QueuedExercise],
    sets: Sequence[LoggedSet],
) -> list[RoutineExerciseTarget]:
    """
    Build routine targets from the performed queue and logged sets.

    Sets are grouped by exercise id, so an exercise queued twice gets the
    same targets in both slots.

    Args:
        queue: Final session queue, in order
        sets: All sets logged in the session

    Returns:
        Ordered targets with order_index 0..n-1
    """
    targets: list[RoutineExerciseTarget] = []
    for index, item in enumerate(queue):
        ex_sets = [s for s in sets if s.exercise_id == item.exercise_id]

        if ex_sets:
            target_sets = len(ex_sets)
            target_reps = round_half_up(sum(s.reps for s in ex_sets) / len(ex_sets))
            max_weight = max(s.weight_kg for s in ex_sets)
            target_weight = max_weight if max_weight > 0 else None
        else:
            target_sets = DEFAULT_TARGET_SETS
            target_reps = DEFAULT_TARGET_REPS
            target_weight = None

        targets.append(
            RoutineExerciseTarget(
                exercise_id=item.exercise_id,
                order_index=index,
                target_sets=target_sets,
                target_reps=target_reps,
                target_weight_kg=target_weight,
                exercise_name=item.exercise.name,
            )
        )
    return targets


def _weights_equal(a: float | None, b: float | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return math.isclose(a, b, abs_tol=WEIGHT_TOLERANCE_KG)


def targets_equal(a: RoutineExerciseTarget, b: RoutineExerciseTarget) -> bool:
    """Compare the persisted fields of two targets (display name ignored)."""
    return (
        a.exercise_id == b.exercise_id
        and a.order_index == b.order_index
        and a.target_sets == b.target_sets
        and a.target_reps == b.target_reps
        and _weights_equal(a.target_weight_kg, b.target_weight_kg)
    )


def routine_changed(
    stored: Sequence[RoutineExerciseTarget],
    derived: Sequence[RoutineExerciseTarget],
) -> bool:
    """
    True when the derived targets differ from the stored ones in any field.

    Membership, order and per-exercise targets all count: the same
    exercises in the same order with a heavier top set is still a change.
    """
    if len(stored) != len(derived):
        return True
    ordered = sorted(stored, key=lambda t: t.order_index)
    return not all(targets_equal(a, b) for a, b in zip(ordered, derived))


def propose_update(
    routine: RoutineSpec,
    queue: Sequence[QueuedExercise],
    sets: Sequence[LoggedSet],
) -> ReconciliationProposal:
    """Derive targets for ``routine`` and report whether they differ."""
    derived = derive_targets(queue, sets)
    return ReconciliationProposal(
        routine_id=routine.id,
        routine_name=routine.name,
        stored=routine.exercises,
        derived=tuple(derived),
        changed=routine_changed(routine.exercises, derived),
    )
