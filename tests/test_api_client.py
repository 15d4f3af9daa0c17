"""
Tests for the REST client: request shapes, payload parsing and error mapping.

A recording stand-in replaces requests.Session so no network is used.
"""

import json
import typing
from datetime import datetime, timezone

import pytest
import requests

from liftlog.core.errors import (
    CreateFailed,
    FetchFailed,
    FinishFailed,
    LogFailed,
    RoutineUpdateFailed,
)
from liftlog.core.interfaces import RoutineStore, WorkoutClient
from liftlog.core.models import LoggedSet, RoutineExerciseTarget
from liftlog.io.api_client import ApiTransport, RoutineApi, WorkoutApi, connect
from liftlog.io.config_loader import ClientConfig


def _response(status: int, body, url: str = "http://test/api") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.encoding = "utf-8"
    resp._content = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    return resp


class RecordingSession:
    """Replays queued responses and records every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _backend(*responses):
    session = RecordingSession(*responses)
    backend = connect(ClientConfig(api_url="http://test/api/", timeout_seconds=5), session=session)
    return backend, session


class TestTransport:
    def test_url_and_timeout(self):
        session = RecordingSession(_response(200, []))
        transport = ApiTransport("http://test/api/", timeout=3, session=session)

        assert transport.request("GET", "/exercises", FetchFailed) == []
        assert session.calls[0]["url"] == "http://test/api/exercises"
        assert session.calls[0]["timeout"] == 3

    def test_http_error_maps_to_operation_error(self):
        backend, _ = _backend(_response(500, {"error": "boom"}))
        with pytest.raises(LogFailed, match="HTTP 500"):
            backend.workouts.log_set("w-1", "ex-bench", 60.0, 5)

    def test_connection_error_maps_to_operation_error(self):
        backend, _ = _backend(requests.ConnectionError("refused"))
        with pytest.raises(CreateFailed):
            backend.workouts.create("user-1")

    def test_invalid_json(self):
        backend, _ = _backend(_response(200, b"<html>oops</html>"))
        with pytest.raises(FetchFailed):
            backend.exercises.list()


class TestExercises:
    def test_list(self):
        backend, session = _backend(_response(200, [
            {"id": "ex-bench", "name": "Barbell Bench Press", "muscle_group": "Chest", "equipment": "Barbell"},
            {"id": "ex-pullup", "name": "Pull-up", "muscle_group": "Back"},
        ]))

        exercises = backend.exercises.list()

        assert session.calls[0]["method"] == "GET"
        assert [e.id for e in exercises] == ["ex-bench", "ex-pullup"]
        assert exercises[1].equipment is None

    def test_malformed_entry(self):
        backend, _ = _backend(_response(200, [{"name": "no id"}]))
        with pytest.raises(FetchFailed, match="Malformed"):
            backend.exercises.list()

    def test_not_a_list(self):
        backend, _ = _backend(_response(200, {"exercises": []}))
        with pytest.raises(FetchFailed):
            backend.exercises.list()


class TestRoutines:
    def test_get_detail_form(self):
        backend, session = _backend(_response(200, {
            "template": {"id": "r-1", "name": "Push Day", "created_at": "2026-01-05T10:00:00Z"},
            "exercises": [
                {"exercise_id": "ex-squat", "target_sets": 3, "target_reps": 8, "target_weight_kg": 100},
                {"exercise_id": "ex-bench", "target_sets": 3, "target_reps": 5, "exercise_name": "Bench"},
            ],
        }))

        routine = backend.routines.get("r-1")

        assert session.calls[0]["url"] == "http://test/api/templates/r-1"
        assert routine.name == "Push Day"
        assert routine.created_at == datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)
        assert routine.exercise_ids == ["ex-squat", "ex-bench"]
        assert [t.order_index for t in routine.exercises] == [0, 1]
        assert routine.exercises[0].target_weight_kg == 100.0
        assert routine.exercises[1].target_weight_kg is None

    def test_list_bare_form(self):
        backend, _ = _backend(_response(200, [{"id": "r-1", "name": "Push Day"}]))
        (routine,) = backend.routines.list()
        assert routine.exercises == ()

    def test_replace_sends_full_list_without_null_weight(self):
        backend, session = _backend(_response(200, [
            {"exercise_id": "ex-bench", "order_index": 0, "target_sets": 1, "target_reps": 5, "target_weight_kg": 90},
            {"exercise_id": "ex-squat", "order_index": 1, "target_sets": 3, "target_reps": 10},
        ]))
        targets = [
            RoutineExerciseTarget("ex-bench", 0, 1, 5, 90.0, exercise_name="Bench"),
            RoutineExerciseTarget("ex-squat", 1, 3, 10, None),
        ]

        saved = backend.routines.replace_exercises("r-1", targets)

        call = session.calls[0]
        assert call["method"] == "PUT"
        assert call["url"] == "http://test/api/templates/r-1/exercises"
        assert call["json"] == {"exercises": [
            {"exercise_id": "ex-bench", "order_index": 0, "target_sets": 1, "target_reps": 5, "target_weight_kg": 90.0},
            {"exercise_id": "ex-squat", "order_index": 1, "target_sets": 3, "target_reps": 10},
        ]}
        assert len(saved) == 2

    def test_replace_accepts_wrapped_response(self):
        backend, _ = _backend(_response(200, {"exercises": []}))
        assert backend.routines.replace_exercises("r-1", []) == []

    def test_replace_failure(self):
        backend, _ = _backend(_response(404, {"error": "not found"}))
        with pytest.raises(RoutineUpdateFailed):
            backend.routines.replace_exercises("r-x", [])

    def test_create(self):
        backend, session = _backend(_response(201, {"id": "r-9", "name": "Legs"}))
        routine = backend.routines.create("user-1", "Legs")
        assert routine.id == "r-9"
        assert session.calls[0]["json"] == {"user_id": "user-1", "name": "Legs"}

    def test_routine_api_type(self):
        backend, _ = _backend()
        assert isinstance(backend.routines, RoutineApi)
        assert isinstance(backend.workouts, WorkoutApi)


class TestAnnotations:
    """Clients define a `list` method, so list[...] hints must still resolve to the builtin."""

    def test_client_hints_resolve(self):
        hints = typing.get_type_hints(RoutineApi.replace_exercises)
        assert hints["return"] == list[RoutineExerciseTarget]
        assert typing.get_type_hints(WorkoutApi.list_sets)["return"] == list[LoggedSet]

    def test_protocol_hints_resolve(self):
        hints = typing.get_type_hints(RoutineStore.replace_exercises)
        assert hints["targets"] == list[RoutineExerciseTarget]
        assert typing.get_type_hints(WorkoutClient.list_sets)["return"] == list[LoggedSet]


class TestWorkouts:
    def test_create_body(self):
        backend, session = _backend(_response(201, {
            "id": "w-1", "name": "Push Day", "start_time": "2026-03-01T18:00:00+00:00", "template_id": "r-1",
        }))
        start = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)

        workout = backend.workouts.create("user-1", name="Push Day", start_time=start, routine_id="r-1")

        assert session.calls[0]["url"] == "http://test/api/workouts"
        assert session.calls[0]["json"] == {
            "user_id": "user-1",
            "name": "Push Day",
            "start_time": "2026-03-01T18:00:00+00:00",
            "template_id": "r-1",
        }
        assert workout.id == "w-1"
        assert workout.start_time == start

    def test_log_set_reads_flags_beside_set(self):
        backend, session = _backend(_response(200, {
            "set": {"id": "s-1", "workout_id": "w-1", "exercise_id": "ex-bench", "weight_kg": "90.5", "reps": 5},
            "is_new_1rm": True,
            "is_vol_pr": False,
        }))

        result = backend.workouts.log_set("w-1", "ex-bench", 90.5, 5, rpe=8)

        assert session.calls[0]["json"] == {
            "workout_id": "w-1", "exercise_id": "ex-bench", "weight_kg": 90.5, "reps": 5, "rpe": 8,
        }
        assert result.set.weight_kg == 90.5
        assert result.is_new_1rm is True
        assert result.is_vol_pr is False

    def test_log_set_missing_set(self):
        backend, _ = _backend(_response(200, {"is_new_1rm": True}))
        with pytest.raises(LogFailed):
            backend.workouts.log_set("w-1", "ex-bench", 90.0, 5)

    def test_finish(self):
        backend, session = _backend(_response(200, {
            "id": "w-1", "end_time": "2026-03-01T19:00:00Z", "badges": ["Heavy Lifter"],
        }))

        result = backend.workouts.finish("w-1")

        assert session.calls[0]["method"] == "POST"
        assert session.calls[0]["url"] == "http://test/api/workouts/w-1/finish"
        assert result.badges == ("Heavy Lifter",)
        assert result.routine_updated is False

    def test_finish_failure(self):
        backend, _ = _backend(_response(503, {}))
        with pytest.raises(FinishFailed):
            backend.workouts.finish("w-1")

    def test_list_sets(self):
        backend, _ = _backend(_response(200, [
            {"workout_id": "w-0", "exercise_id": "ex-bench", "weight_kg": 85, "reps": 5, "is_new_1rm": True},
        ]))
        (logged,) = backend.workouts.list_sets()
        assert logged.is_new_1rm is True
        assert logged.reps == 5
