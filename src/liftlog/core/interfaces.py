"""
Collaborator interfaces consumed by SessionState.

The REST implementations live in io/api_client.py; tests use in-memory
fakes that satisfy the same protocols.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import (
    ActiveWorkout,
    Exercise,
    FinishResult,
    LoggedSet,
    LogSetResult,
    RoutineExerciseTarget,
    RoutineSpec,
)


class ExerciseCatalog(Protocol):
    def list(self) -> list[Exercise]: ...


class RoutineStore(Protocol):
    def list(self) -> list[RoutineSpec]: ...

    def get(self, routine_id: str) -> RoutineSpec: ...

    def replace_exercises(
        self, routine_id: str, targets: list[RoutineExerciseTarget]
    ) -> list[RoutineExerciseTarget]: ...

    def create(self, user_id: str, name: str, description: str | None = None) -> RoutineSpec: ...

    def add_exercise(
        self, routine_id: str, target: RoutineExerciseTarget
    ) -> RoutineExerciseTarget: ...


class WorkoutClient(Protocol):
    def create(
        self,
        user_id: str,
        name: str | None = None,
        start_time: datetime | None = None,
        routine_id: str | None = None,
    ) -> ActiveWorkout: ...

    def log_set(
        self,
        workout_id: str,
        exercise_id: str,
        weight_kg: float,
        reps: int,
        rpe: float | None = None,
    ) -> LogSetResult: ...

    def finish(self, workout_id: str) -> FinishResult: ...

    def list_sets(self) -> list[LoggedSet]: ...
