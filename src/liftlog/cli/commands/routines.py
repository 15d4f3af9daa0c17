"""Routine ("split") commands: routines, routine-show, routine-create, routine-add."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import DEFAULT_TARGET_REPS, DEFAULT_TARGET_SETS
from ...core.errors import NetworkError
from ...core.models import RoutineExerciseTarget
from ...io.serializers import routine_to_dict
from .. import views
from ..app import ApiUrlOption, UserIdOption, app, get_backend, get_config


@app.command("routines")
def list_routines(
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
    api_url: ApiUrlOption = None,
) -> None:
    """
    List all splits.
    """
    backend = get_backend(api_url)
    try:
        routines = backend.routines.list()
    except NetworkError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([routine_to_dict(r) for r in routines], indent=2))
        return

    views.print_routines(routines)


@app.command("routine-show")
def show_routine(
    routine_id: Annotated[str, typer.Argument(help="Split ID (see 'routines')")],
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
    api_url: ApiUrlOption = None,
) -> None:
    """
    Show one split with its exercise targets.
    """
    backend = get_backend(api_url)
    try:
        routine = backend.routines.get(routine_id)
    except NetworkError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(routine_to_dict(routine), indent=2))
        return

    views.print_routine(routine)


@app.command("routine-create")
def create_routine(
    name: Annotated[str, typer.Argument(help="Split name, e.g. 'Push Day'")],
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Optional description"),
    ] = None,
    api_url: ApiUrlOption = None,
    user_id: UserIdOption = None,
) -> None:
    """
    Create an empty split.
    """
    if not name.strip():
        views.print_error("Split name must not be empty")
        raise typer.Exit(1)

    config = get_config(api_url, user_id)
    backend = get_backend(api_url)
    try:
        routine = backend.routines.create(config.user_id, name.strip(), description)
    except NetworkError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Created split '{routine.name}' ({routine.id})")


@app.command("routine-add")
def add_routine_exercise(
    routine_id: Annotated[str, typer.Argument(help="Split ID")],
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID (see 'exercises')")],
    sets: Annotated[
        int, typer.Option("--sets", "-s", min=1, help="Target sets")
    ] = DEFAULT_TARGET_SETS,
    reps: Annotated[
        int, typer.Option("--reps", "-r", min=1, help="Target reps")
    ] = DEFAULT_TARGET_REPS,
    weight: Annotated[
        Optional[float], typer.Option("--weight", "-w", min=0, help="Target weight in kg")
    ] = None,
    api_url: ApiUrlOption = None,
) -> None:
    """
    Append an exercise to the end of a split.
    """
    backend = get_backend(api_url)
    try:
        routine = backend.routines.get(routine_id)
        order_index = max((t.order_index for t in routine.exercises), default=-1) + 1
        target = RoutineExerciseTarget(
            exercise_id=exercise_id,
            order_index=order_index,
            target_sets=sets,
            target_reps=reps,
            target_weight_kg=weight,
        )
        backend.routines.add_exercise(routine_id, target)
    except NetworkError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Added exercise to '{routine.name}' at position {order_index + 1}")
