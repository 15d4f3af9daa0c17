"""
Shared fixtures: in-memory stand-ins for the backend collaborators.

FakeWorkoutClient behaves like the real server closely enough for the
session tests: it assigns ids, stores sets and computes PR flags against
prior workouts only.
"""

import itertools
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from liftlog.core.errors import CreateFailed, FetchFailed, FinishFailed, LogFailed, RoutineUpdateFailed
from liftlog.core.models import (
    ActiveWorkout,
    Exercise,
    FinishResult,
    LoggedSet,
    LogSetResult,
    RoutineExerciseTarget,
    RoutineSpec,
)
from liftlog.core.pr_detector import detect_records

BENCH = Exercise(id="ex-bench", name="Barbell Bench Press", muscle_group="Chest", equipment="Barbell")
SQUAT = Exercise(id="ex-squat", name="Barbell Squat", muscle_group="Legs", equipment="Barbell")
ROW = Exercise(id="ex-row", name="Barbell Row", muscle_group="Back", equipment="Barbell")
CURL = Exercise(id="ex-curl", name="Dumbbell Curl", muscle_group="Arms", equipment="Dumbbell")

T0 = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)


class FakeCatalog:
    def __init__(self, exercises=None):
        self.exercises = list(exercises if exercises is not None else [BENCH, SQUAT, ROW, CURL])
        self.calls = 0
        self.fail = False

    def list(self):
        self.calls += 1
        if self.fail:
            raise FetchFailed("catalog unavailable")
        return list(self.exercises)


class FakeRoutineStore:
    def __init__(self, routines=None):
        self.routines = {r.id: r for r in (routines or [])}
        self.replaced: list[tuple[str, list[RoutineExerciseTarget]]] = []
        self.fail_get = False
        self.fail_replace = False
        self._ids = itertools.count(1)

    def list(self):
        return list(self.routines.values())

    def get(self, routine_id):
        if self.fail_get or routine_id not in self.routines:
            raise FetchFailed(f"routine {routine_id} unavailable")
        return self.routines[routine_id]

    def replace_exercises(self, routine_id, targets):
        if self.fail_replace:
            raise RoutineUpdateFailed("update rejected")
        self.replaced.append((routine_id, list(targets)))
        self.routines[routine_id] = replace(self.routines[routine_id], exercises=tuple(targets))
        return list(targets)

    def create(self, user_id, name, description=None):
        routine = RoutineSpec(id=f"r-{next(self._ids)}", name=name, description=description, user_id=user_id)
        self.routines[routine.id] = routine
        return routine

    def add_exercise(self, routine_id, target):
        routine = self.routines[routine_id]
        self.routines[routine_id] = replace(routine, exercises=routine.exercises + (target,))
        return target


class FakeWorkoutClient:
    def __init__(self, prior_sets=None):
        self.sets: list[LoggedSet] = list(prior_sets or [])
        self.created: list[dict] = []
        self.log_calls = 0
        self.finish_calls = 0
        self.fail_create = False
        self.fail_log = False
        self.fail_finish = False
        self.badges: tuple[str, ...] = ()
        self.on_create = None
        self.on_log = None  # hook run inside log_set, before the response
        self.on_finish = None
        self._ids = itertools.count(1)

    def create(self, user_id, name=None, start_time=None, routine_id=None):
        if self.on_create is not None:
            self.on_create()
        if self.fail_create:
            raise CreateFailed("backend down")
        self.created.append(
            {"user_id": user_id, "name": name, "start_time": start_time, "routine_id": routine_id}
        )
        return ActiveWorkout(
            id=f"w-{next(self._ids)}",
            user_id=user_id,
            name=name,
            start_time=start_time,
            template_id=routine_id,
        )

    def log_set(self, workout_id, exercise_id, weight_kg, reps, rpe=None):
        self.log_calls += 1
        if self.on_log is not None:
            self.on_log()
        if self.fail_log:
            raise LogFailed("backend down")
        flags = detect_records(
            exercise_id, weight_kg, reps, self.sets, exclude_workout_id=workout_id, provisional=False
        )
        logged = LoggedSet(
            id=f"s-{len(self.sets) + 1}",
            workout_id=workout_id,
            exercise_id=exercise_id,
            weight_kg=weight_kg,
            reps=reps,
            rpe=rpe,
        )
        self.sets.append(logged)
        return LogSetResult(set=logged, is_new_1rm=flags.is_new_1rm, is_vol_pr=flags.is_vol_pr)

    def finish(self, workout_id):
        self.finish_calls += 1
        if self.on_finish is not None:
            self.on_finish()
        if self.fail_finish:
            raise FinishFailed("backend down")
        return FinishResult(workout_id=workout_id, end_time=T0 + timedelta(hours=1), badges=self.badges)

    def list_sets(self):
        return list(self.sets)


def make_set(exercise_id, weight, reps, workout_id="w-old"):
    return LoggedSet(workout_id=workout_id, exercise_id=exercise_id, weight_kg=weight, reps=reps)


def make_routine(routine_id="r-push", name="Push Day", targets=()):
    exercises = tuple(
        RoutineExerciseTarget(
            exercise_id=ex_id,
            order_index=i,
            target_sets=sets,
            target_reps=reps,
            target_weight_kg=weight,
        )
        for i, (ex_id, sets, reps, weight) in enumerate(targets)
    )
    return RoutineSpec(id=routine_id, name=name, exercises=exercises)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def routine():
    return make_routine(
        targets=[(BENCH.id, 3, 5, 80.0), (SQUAT.id, 3, 8, 100.0)],
    )


@pytest.fixture
def routines(routine):
    return FakeRoutineStore([routine])


@pytest.fixture
def workouts():
    return FakeWorkoutClient(prior_sets=[make_set(BENCH.id, 85.0, 5)])


@pytest.fixture
def session(workouts, routines, catalog):
    from liftlog.core.session import SessionState

    return SessionState(workouts, routines, catalog, user_id="user-1", clock=lambda: T0)


@pytest.fixture
def events(session):
    received = []
    session.subscribe(received.append)
    return received
