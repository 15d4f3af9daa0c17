"""
Input validation for sets entered during a session.

Runs before any network call; failures raise ValidationError with a
message the user can act on.
"""

import math
import numbers

from .config import RPE_MAX, RPE_MIN
from .errors import ValidationError


def validate_weight(weight_kg: float) -> float:
    """
    Validate a set weight.

    Args:
        weight_kg: Weight in kilograms

    Returns:
        The weight as float

    Raises:
        ValidationError: If weight is not a finite, non-negative number
    """
    if isinstance(weight_kg, bool) or not isinstance(weight_kg, numbers.Real):
        raise ValidationError(f"Weight must be a number, got {weight_kg!r}")
    if not math.isfinite(weight_kg):
        raise ValidationError("Weight must be a finite number")
    if weight_kg < 0:
        raise ValidationError(f"Weight must be non-negative, got {weight_kg}")
    return float(weight_kg)


def validate_reps(reps: int) -> int:
    """
    Validate a rep count.

    Zero-rep sets are rejected rather than logged.

    Raises:
        ValidationError: If reps is not a positive integer
    """
    if isinstance(reps, bool) or not isinstance(reps, numbers.Integral):
        if isinstance(reps, float) and reps.is_integer():
            reps = int(reps)
        else:
            raise ValidationError(f"Reps must be a whole number, got {reps!r}")
    if reps <= 0:
        raise ValidationError("Reps must be positive")
    return int(reps)


def validate_rpe(rpe: float | None) -> float | None:
    """Validate an optional perceived-exertion rating (0-10)."""
    if rpe is None:
        return None
    if isinstance(rpe, bool) or not isinstance(rpe, numbers.Real) or not math.isfinite(rpe):
        raise ValidationError(f"RPE must be a number, got {rpe!r}")
    if not RPE_MIN <= rpe <= RPE_MAX:
        raise ValidationError(f"RPE must be between {RPE_MIN:g} and {RPE_MAX:g}, got {rpe}")
    return float(rpe)


def validate_set_input(
    weight_kg: float, reps: int, rpe: float | None = None
) -> tuple[float, int, float | None]:
    """Validate all fields of a set entry at once."""
    return validate_weight(weight_kg), validate_reps(reps), validate_rpe(rpe)
