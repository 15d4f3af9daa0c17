"""
JSON serialization for liftlog data models.

Handles conversion between backend JSON payloads and dataclasses.  Parsing
errors raise ValidationError so callers can wrap them as network failures.
"""

import math
from datetime import datetime
from typing import Any

from ..core.errors import ValidationError
from ..core.models import (
    ActiveWorkout,
    Exercise,
    FinishResult,
    LoggedSet,
    LogSetResult,
    RoutineExerciseTarget,
    RoutineSpec,
)


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp from the backend.

    Accepts a trailing ``Z`` for UTC.

    Raises:
        ValidationError: If the string is not a valid timestamp
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value!r}") from e


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _require(data: dict[str, Any], key: str, what: str) -> Any:
    if not isinstance(data, dict):
        raise ValidationError(f"Expected an object for {what}, got {type(data).__name__}")
    if data.get(key) is None:
        raise ValidationError(f"Missing required field {key!r} in {what}")
    return data[key]


def _to_float(value: Any, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(result):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return result


def _to_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer, got {value!r}") from e


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    return Exercise(
        id=str(_require(data, "id", "exercise")),
        name=str(_require(data, "name", "exercise")),
        muscle_group=str(data.get("muscle_group") or ""),
        equipment=data.get("equipment"),
        description=data.get("description"),
        animation_url=data.get("animation_url"),
    )


def dict_to_workout(data: dict[str, Any]) -> ActiveWorkout:
    return ActiveWorkout(
        id=str(_require(data, "id", "workout")),
        user_id=data.get("user_id"),
        name=data.get("name"),
        start_time=parse_timestamp(data.get("start_time")),
        end_time=parse_timestamp(data.get("end_time")),
        template_id=data.get("template_id"),
        notes=data.get("notes"),
    )


def dict_to_logged_set(data: dict[str, Any]) -> LoggedSet:
    """
    Convert a backend set record to LoggedSet.

    PR flags default to False; the log-set response carries them separately.
    """
    rpe = data.get("rpe")
    try:
        return LoggedSet(
            id=data.get("id"),
            workout_id=str(_require(data, "workout_id", "set")),
            exercise_id=str(_require(data, "exercise_id", "set")),
            weight_kg=_to_float(_require(data, "weight_kg", "set"), "weight_kg"),
            reps=_to_int(_require(data, "reps", "set"), "reps"),
            rpe=_to_float(rpe, "rpe") if rpe is not None else None,
            is_new_1rm=bool(data.get("is_new_1rm", False)),
            is_vol_pr=bool(data.get("is_vol_pr", False)),
            created_at=parse_timestamp(data.get("created_at")),
        )
    except ValueError as e:
        if isinstance(e, ValidationError):
            raise
        raise ValidationError(str(e)) from e


def dict_to_log_set_result(data: dict[str, Any]) -> LogSetResult:
    logged = dict_to_logged_set(_require(data, "set", "log-set response"))
    return LogSetResult(
        set=logged,
        is_new_1rm=bool(data.get("is_new_1rm", False)),
        is_vol_pr=bool(data.get("is_vol_pr", False)),
    )


def dict_to_finish_result(data: dict[str, Any]) -> FinishResult:
    badges = data.get("badges") or []
    if not isinstance(badges, list):
        raise ValidationError(f"badges must be a list, got {type(badges).__name__}")
    return FinishResult(
        workout_id=str(_require(data, "id", "finish response")),
        end_time=parse_timestamp(data.get("end_time")),
        badges=tuple(str(b) for b in badges),
    )


def dict_to_target(data: dict[str, Any], default_index: int = 0) -> RoutineExerciseTarget:
    """
    Convert a routine exercise record.

    The routine detail endpoint returns exercises already ordered but without
    ``order_index``; ``default_index`` supplies the position in that case.
    """
    weight = data.get("target_weight_kg")
    try:
        return RoutineExerciseTarget(
            exercise_id=str(_require(data, "exercise_id", "routine exercise")),
            order_index=_to_int(data.get("order_index", default_index), "order_index"),
            target_sets=_to_int(data.get("target_sets", 0), "target_sets"),
            target_reps=_to_int(data.get("target_reps", 0), "target_reps"),
            target_weight_kg=_to_float(weight, "target_weight_kg") if weight is not None else None,
            exercise_name=data.get("exercise_name"),
        )
    except ValueError as e:
        if isinstance(e, ValidationError):
            raise
        raise ValidationError(str(e)) from e


def target_to_dict(target: RoutineExerciseTarget) -> dict[str, Any]:
    """Convert a target to the write payload; a missing weight is left out."""
    data: dict[str, Any] = {
        "exercise_id": target.exercise_id,
        "order_index": target.order_index,
        "target_sets": target.target_sets,
        "target_reps": target.target_reps,
    }
    if target.target_weight_kg is not None:
        data["target_weight_kg"] = target.target_weight_kg
    return data


def dict_to_routine(data: dict[str, Any]) -> RoutineSpec:
    """
    Convert a routine payload.

    Accepts both the list form (bare template) and the detail form
    ``{"template": {...}, "exercises": [...]}``.
    """
    if isinstance(data, dict) and "template" in data:
        header = data["template"]
        raw_exercises = data.get("exercises") or []
    else:
        header = data
        raw_exercises = []
    if not isinstance(raw_exercises, list):
        raise ValidationError("routine exercises must be a list")

    targets = tuple(dict_to_target(e, default_index=i) for i, e in enumerate(raw_exercises))
    try:
        return RoutineSpec(
            id=str(_require(header, "id", "routine")),
            name=str(_require(header, "name", "routine")),
            description=header.get("description"),
            user_id=header.get("user_id"),
            created_at=parse_timestamp(header.get("created_at")),
            exercises=targets,
        )
    except ValueError as e:
        if isinstance(e, ValidationError):
            raise
        raise ValidationError(str(e)) from e


def routine_to_dict(routine: RoutineSpec) -> dict[str, Any]:
    """Routine as JSON for ``--json`` output."""
    return {
        "id": routine.id,
        "name": routine.name,
        "description": routine.description,
        "exercises": [
            {**target_to_dict(t), "exercise_name": t.exercise_name}
            for t in routine.exercises
        ],
    }


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    return {
        "id": exercise.id,
        "name": exercise.name,
        "muscle_group": exercise.muscle_group,
        "equipment": exercise.equipment,
        "description": exercise.description,
        "animation_url": exercise.animation_url,
    }
