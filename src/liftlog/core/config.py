"""
Configuration constants for the workout session model.

Runtime settings (API url, user id, timeouts) are loaded by
io/config_loader.py; everything here is fixed domain behaviour.
"""

from typing import Final

# =============================================================================
# IDENTITY
# =============================================================================

# Stand-in user until real authentication exists
DEFAULT_USER_ID: Final[str] = "763b9c95-4bae-4044-9d30-7ae513286b37"

FREESTYLE_WORKOUT_NAME: Final[str] = "Freestyle Workout"

# =============================================================================
# ONE-REP MAX ESTIMATION (Epley)
# =============================================================================

EPLEY_REP_DIVISOR: Final[float] = 30.0  # 1RM = w * (1 + reps / 30)

# =============================================================================
# ROUTINE RECONCILIATION
# =============================================================================

DEFAULT_TARGET_SETS: Final[int] = 3  # for queued exercises with no logged sets
DEFAULT_TARGET_REPS: Final[int] = 10
WEIGHT_TOLERANCE_KG: Final[float] = 1e-3  # backend stores weights as float32

# =============================================================================
# SET VALIDATION
# =============================================================================

RPE_MIN: Final[float] = 0.0
RPE_MAX: Final[float] = 10.0

# =============================================================================
# REWARDS
# =============================================================================

REWARD_NEW_1RM: Final[tuple[str, str]] = ("New 1RM!", "Heaviest lift for this exercise!")
REWARD_REP_PR: Final[tuple[str, str]] = ("Rep PR!", "Most reps at this weight!")
REWARD_ROUTINE_UPDATED: Final[tuple[str, str]] = ("Routine Updated!", "Your split is now optimized.")
REWARD_WORKOUT_COMPLETE: Final[tuple[str, str]] = ("Workout Complete!", "Great job!")

BADGE_DESCRIPTIONS: Final[dict[str, str]] = {
    "Titan Volume": "Lifted over 10,000kg in a single session!",
    "Heavy Lifter": "Lifted over 5,000kg in a single session!",
    "Marathoner": "Trained for over 90 minutes!",
    "Speed Demon": "High volume in under 30 minutes!",
    "Volume Warrior": "Completed 20+ sets!",
}
DEFAULT_BADGE_DESCRIPTION: Final[str] = "Great Achievement!"


def describe_badge(name: str) -> str:
    """Return the display description for a badge name."""
    return BADGE_DESCRIPTIONS.get(name, DEFAULT_BADGE_DESCRIPTION)
