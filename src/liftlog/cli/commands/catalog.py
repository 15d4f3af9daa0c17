"""Catalog commands: exercises, plus the name lookup shared with training."""

import json
from typing import Annotated, Optional

import typer

from ...core.errors import NetworkError
from ...core.models import Exercise
from ...io.serializers import exercise_to_dict
from .. import views
from ..app import ApiUrlOption, app, get_backend


def find_exercises(exercises: list[Exercise], query: str) -> list[Exercise]:
    """
    Resolve a user query to catalog exercises.

    An exact id or a case-insensitive exact name wins; otherwise every
    exercise whose name contains the query is returned.
    """
    query = query.strip()
    if not query:
        return []
    for ex in exercises:
        if ex.id == query:
            return [ex]
    lowered = query.lower()
    exact = [ex for ex in exercises if ex.name.lower() == lowered]
    if exact:
        return exact
    return [ex for ex in exercises if lowered in ex.name.lower()]


@app.command("exercises")
def list_exercises(
    muscle: Annotated[
        Optional[str],
        typer.Option("--muscle", "-m", help="Only show exercises for this muscle group"),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
    api_url: ApiUrlOption = None,
) -> None:
    """
    List the exercise catalog.
    """
    backend = get_backend(api_url)
    try:
        exercises = backend.exercises.list()
    except NetworkError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if muscle is not None:
        exercises = [ex for ex in exercises if ex.muscle_group.lower() == muscle.lower()]

    if json_out:
        print(json.dumps([exercise_to_dict(ex) for ex in exercises], indent=2))
        return

    views.print_exercises(exercises)
