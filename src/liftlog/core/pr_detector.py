"""
Personal-record detection.

Two records are tracked per exercise:

  Estimated 1RM, Epley formula:
    1RM = weight × (1 + reps / 30)
    A set is a new 1RM when its estimate strictly exceeds the best estimate
    over all prior sets of the exercise.

  Volume (rep) PR:
    Most reps ever completed at an exact weight.  A set is a volume PR when
    no prior set at the same weight reached as many reps.

The backend computes the authoritative flags.  These functions exist so
local previews use the identical contract; results are marked provisional.

History passed in must contain prior sessions only.  Sets from the workout
in progress are excluded by the caller to avoid self-comparison.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .config import EPLEY_REP_DIVISOR
from .models import LoggedSet, PRFlags


def estimate_1rm(weight_kg: float, reps: int) -> float:
    """
    Epley one-rep-max estimate.

    Monotonic in both weight and reps.  A single rep still gets the
    1/30 bump, which keeps the ordering consistent across rep ranges.
    """
    if reps <= 0 or weight_kg <= 0:
        return 0.0
    return weight_kg * (1.0 + reps / EPLEY_REP_DIVISOR)


def best_1rm(history: Iterable[LoggedSet]) -> float:
    """Highest 1RM estimate over a set history (0.0 when empty)."""
    return max((estimate_1rm(s.weight_kg, s.reps) for s in history), default=0.0)


def max_reps_at_weight(history: Iterable[LoggedSet], weight_kg: float) -> int | None:
    """Most reps at exactly ``weight_kg``, or None if never lifted at that weight."""
    reps = [s.reps for s in history if math.isclose(s.weight_kg, weight_kg, abs_tol=1e-9)]
    return max(reps) if reps else None


def is_new_1rm(weight_kg: float, reps: int, history: Iterable[LoggedSet]) -> bool:
    """True iff the candidate's estimate strictly beats every prior estimate."""
    return estimate_1rm(weight_kg, reps) > best_1rm(history)


def is_vol_pr(weight_kg: float, reps: int, history: Iterable[LoggedSet]) -> bool:
    """True iff no prior set at this exact weight reached ``reps`` or more."""
    previous = max_reps_at_weight(history, weight_kg)
    return previous is None or reps > previous


def detect_records(
    exercise_id: str,
    weight_kg: float,
    reps: int,
    history: Iterable[LoggedSet],
    *,
    exclude_workout_id: str | None = None,
    provisional: bool = True,
) -> PRFlags:
    """
    Compute both record flags for a candidate set.

    Args:
        exercise_id: Exercise of the candidate set
        weight_kg: Candidate weight
        reps: Candidate reps
        history: Set history (any exercises; filtered here)
        exclude_workout_id: Workout whose sets must not count (the one in progress)
        provisional: Mark the result as a local, unconfirmed preview

    Returns:
        PRFlags for the candidate
    """
    prior = [
        s
        for s in history
        if s.exercise_id == exercise_id
        and (exclude_workout_id is None or s.workout_id != exclude_workout_id)
    ]
    return PRFlags(
        is_new_1rm=is_new_1rm(weight_kg, reps, prior),
        is_vol_pr=is_vol_pr(weight_kg, reps, prior),
        provisional=provisional,
    )
