"""
REST client for the liftlog backend.

One shared ApiTransport (base URL, timeout, requests.Session) backs three
small clients that implement the collaborator protocols used by
SessionState:

- ExerciseApi  → ExerciseCatalog
- RoutineApi   → RoutineStore
- WorkoutApi   → WorkoutClient

Transport errors, non-2xx statuses and malformed payloads are re-raised as
the operation's NetworkError subclass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import requests

from ..core.errors import (
    CreateFailed,
    FetchFailed,
    FinishFailed,
    LogFailed,
    NetworkError,
    RoutineUpdateFailed,
    ValidationError,
)
from ..core.models import (
    ActiveWorkout,
    Exercise,
    FinishResult,
    LoggedSet,
    LogSetResult,
    RoutineExerciseTarget,
    RoutineSpec,
)
from .config_loader import ClientConfig
from .serializers import (
    dict_to_exercise,
    dict_to_finish_result,
    dict_to_log_set_result,
    dict_to_logged_set,
    dict_to_routine,
    dict_to_target,
    dict_to_workout,
    format_timestamp,
    target_to_dict,
)

logger = logging.getLogger(__name__)


class ApiTransport:
    """Thin JSON-over-HTTP wrapper around a requests.Session."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def request(
        self,
        method: str,
        path: str,
        error: type[NetworkError],
        json: Any = None,
    ) -> Any:
        """
        Perform a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path below the base URL, starting with "/"
            error: NetworkError subclass raised on any failure
            json: Optional JSON body

        Raises:
            error: On connection failure, non-2xx status or invalid JSON
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, json=json, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.debug("%s %s failed with HTTP %s", method, url, status)
            raise error(f"{method} {path} failed with HTTP {status}") from e
        except requests.RequestException as e:
            logger.debug("%s %s failed: %s", method, url, e)
            raise error(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise error(f"{method} {path} returned invalid JSON") from e


def _parse(error: type[NetworkError], what: str, func, data):
    """Apply a serializer, turning payload problems into ``error``."""
    try:
        return func(data)
    except (ValidationError, TypeError, AttributeError) as e:
        raise error(f"Malformed {what} payload: {e}") from e


def _parse_list(error: type[NetworkError], what: str, func, data) -> list:
    if not isinstance(data, list):
        raise error(f"Expected a list of {what}, got {type(data).__name__}")
    return [_parse(error, what, func, item) for item in data]


class ExerciseApi:
    """Exercise catalog backed by ``GET /exercises``."""

    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    def list(self) -> list[Exercise]:
        data = self._transport.request("GET", "/exercises", FetchFailed)
        return _parse_list(FetchFailed, "exercise", dict_to_exercise, data)


class RoutineApi:
    """Routine ("split") store backed by the ``/templates`` endpoints."""

    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    def list(self) -> list[RoutineSpec]:
        data = self._transport.request("GET", "/templates", FetchFailed)
        return _parse_list(FetchFailed, "routine", dict_to_routine, data)

    def get(self, routine_id: str) -> RoutineSpec:
        data = self._transport.request("GET", f"/templates/{routine_id}", FetchFailed)
        return _parse(FetchFailed, "routine", dict_to_routine, data)

    def create(self, user_id: str, name: str, description: str | None = None) -> RoutineSpec:
        body: dict[str, Any] = {"user_id": user_id, "name": name}
        if description is not None:
            body["description"] = description
        data = self._transport.request("POST", "/templates", RoutineUpdateFailed, json=body)
        return _parse(RoutineUpdateFailed, "routine", dict_to_routine, data)

    def add_exercise(
        self, routine_id: str, target: RoutineExerciseTarget
    ) -> RoutineExerciseTarget:
        data = self._transport.request(
            "POST",
            f"/templates/{routine_id}/exercises",
            RoutineUpdateFailed,
            json=target_to_dict(target),
        )
        return _parse(RoutineUpdateFailed, "routine exercise", dict_to_target, data)

    def replace_exercises(
        self, routine_id: str, targets: list[RoutineExerciseTarget]
    ) -> list[RoutineExerciseTarget]:
        """Replace the routine's exercise list in full (not a merge)."""
        data = self._transport.request(
            "PUT",
            f"/templates/{routine_id}/exercises",
            RoutineUpdateFailed,
            json={"exercises": [target_to_dict(t) for t in targets]},
        )
        if isinstance(data, dict) and "exercises" in data:
            data = data["exercises"]
        return _parse_list(RoutineUpdateFailed, "routine exercise", dict_to_target, data)


class WorkoutApi:
    """Workout lifecycle: create, log sets, finish."""

    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    def create(
        self,
        user_id: str,
        name: str | None = None,
        start_time: datetime | None = None,
        routine_id: str | None = None,
    ) -> ActiveWorkout:
        body: dict[str, Any] = {"user_id": user_id}
        if name is not None:
            body["name"] = name
        if start_time is not None:
            body["start_time"] = format_timestamp(start_time)
        if routine_id is not None:
            body["template_id"] = routine_id
        data = self._transport.request("POST", "/workouts", CreateFailed, json=body)
        return _parse(CreateFailed, "workout", dict_to_workout, data)

    def log_set(
        self,
        workout_id: str,
        exercise_id: str,
        weight_kg: float,
        reps: int,
        rpe: float | None = None,
    ) -> LogSetResult:
        body: dict[str, Any] = {
            "workout_id": workout_id,
            "exercise_id": exercise_id,
            "weight_kg": weight_kg,
            "reps": reps,
        }
        if rpe is not None:
            body["rpe"] = rpe
        data = self._transport.request("POST", "/sets", LogFailed, json=body)
        return _parse(LogFailed, "log-set", dict_to_log_set_result, data)

    def finish(self, workout_id: str) -> FinishResult:
        data = self._transport.request("POST", f"/workouts/{workout_id}/finish", FinishFailed)
        return _parse(FinishFailed, "finish", dict_to_finish_result, data)

    def list_sets(self) -> list[LoggedSet]:
        data = self._transport.request("GET", "/sets", FetchFailed)
        return _parse_list(FetchFailed, "set", dict_to_logged_set, data)


@dataclass
class Backend:
    """The three backend clients sharing one transport."""

    exercises: ExerciseApi
    routines: RoutineApi
    workouts: WorkoutApi


def connect(config: ClientConfig, session: requests.Session | None = None) -> Backend:
    """Build backend clients from a ClientConfig."""
    transport = ApiTransport(config.api_url, timeout=config.timeout_seconds, session=session)
    return Backend(
        exercises=ExerciseApi(transport),
        routines=RoutineApi(transport),
        workouts=WorkoutApi(transport),
    )
