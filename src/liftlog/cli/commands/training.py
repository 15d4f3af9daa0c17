"""Training command: an interactive workout session driven by SessionState."""

from typing import Annotated, Optional

import typer

from ...core.errors import (
    InvalidTransition,
    InvariantViolation,
    NetworkError,
    RoutineUpdateFailed,
    ValidationError,
)
from ...core.models import Exercise, LoggedSet
from ...core.session import SessionState
from ...io.api_client import Backend
from .. import views
from ..app import ApiUrlOption, UserIdOption, app, get_backend, get_config
from .catalog import find_exercises

SESSION_HELP = [
    ("add NAME", "queue an exercise (name, part of a name, or ID)"),
    ("rm N", "remove queue entry N"),
    ("move N POS", "move queue entry N to position POS"),
    ("sel N | sel -", "select queue entry N, or clear the selection"),
    ("log KG REPS [RPE]", "log a set for the selected exercise"),
    ("preview KG REPS", "check whether a set would be a record (provisional)"),
    ("show", "show the queue and sets"),
    ("finish", "finish the workout"),
    ("quit", "abandon the workout"),
]


def _print_session_help() -> None:
    views.console.print("[bold]Commands:[/bold]")
    for cmd, desc in SESSION_HELP:
        views.console.print(f"  [cyan]{cmd:<18}[/cyan] {desc}")


def _queue_id_at(session: SessionState, raw: str) -> str:
    """Translate a 1-based queue position typed by the user into a queue id."""
    try:
        position = int(raw)
    except ValueError:
        raise ValidationError(f"Expected a queue number, got {raw!r}")
    queue = session.queue
    if position < 1 or position > len(queue):
        raise ValidationError(f"Queue number must be between 1 and {len(queue)}")
    return queue[position - 1].queue_id


def _parse_position(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Position must be a whole number, got {raw!r}")


def _parse_number(raw: str, name: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number, got {raw!r}")


def _choose_routine(backend: Backend) -> str | None:
    """Prompt for a split to train from; Enter starts a freestyle workout."""
    routines = backend.routines.list()
    if not routines:
        return None
    views.print_routines(routines)
    while True:
        raw = views.console.input("Split # (Enter for freestyle): ").strip()
        if not raw:
            return None
        try:
            choice = int(raw)
        except ValueError:
            views.print_error("Enter a number")
            continue
        if 1 <= choice <= len(routines):
            return routines[choice - 1].id
        views.print_error(f"Enter a number between 1 and {len(routines)}")


def _add(session: SessionState, catalog: list[Exercise], query: str) -> None:
    matches = find_exercises(catalog, query)
    if not matches:
        views.print_error(f"No exercise matches {query!r}")
        return
    if len(matches) > 1:
        views.print_warning(f"{len(matches)} exercises match {query!r}; be more specific:")
        views.print_exercises(matches)
        return
    item = session.enqueue(matches[0])
    views.print_success(f"Queued {item.exercise.name}")


def _finish(session: SessionState) -> None:
    """Finish the workout, asking about the split when the session changed it."""
    result = session.finish()
    while result is None:
        proposal = session.pending_reconciliation
        if proposal is None:
            raise InvariantViolation("Finish is waiting for a decision but nothing is pending")
        views.print_proposal(proposal)
        apply = views.confirm_action(
            "You modified this workout. Update the original split to match what you just did?"
        )
        try:
            result = session.resolve_reconciliation(apply)
        except RoutineUpdateFailed as e:
            views.print_error(str(e))
            views.print_info("The split was not changed. Answer again to retry or skip.")
    views.print_success(f"Workout finished ({len(result.badges)} badges).")


def _dispatch(
    session: SessionState,
    catalog: list[Exercise],
    history: dict[str, list[LoggedSet]],
    backend: Backend,
    line: str,
) -> bool:
    """
    Run one session command.

    Returns:
        True when the session is over (finished or abandoned)
    """
    cmd, *args = line.split()
    cmd = cmd.lower()

    if cmd in ("help", "?"):
        _print_session_help()
    elif cmd == "show":
        views.print_session(session.snapshot())
    elif cmd == "add":
        if not args:
            raise ValidationError("Usage: add NAME")
        _add(session, catalog, " ".join(args))
    elif cmd == "rm":
        if len(args) != 1:
            raise ValidationError("Usage: rm N")
        item = session.remove(_queue_id_at(session, args[0]))
        views.print_info(f"Removed {item.exercise.name}")
    elif cmd == "move":
        if len(args) != 2:
            raise ValidationError("Usage: move N POS")
        queue_id = _queue_id_at(session, args[0])
        position = _parse_position(args[1])
        session.reorder(queue_id, position - 1)
        views.print_session(session.snapshot())
    elif cmd == "sel":
        if len(args) != 1:
            raise ValidationError("Usage: sel N | sel -")
        session.select(None if args[0] == "-" else _queue_id_at(session, args[0]))
        views.print_session(session.snapshot())
    elif cmd == "log":
        if len(args) not in (2, 3):
            raise ValidationError("Usage: log KG REPS [RPE]")
        weight = _parse_number(args[0], "Weight")
        reps = _parse_number(args[1], "Reps")
        rpe = _parse_number(args[2], "RPE") if len(args) == 3 else None
        logged = session.log_set(weight, reps, rpe)
        views.print_success(f"Logged {logged.weight_kg:g} kg × {logged.reps}")
    elif cmd == "preview":
        if len(args) != 2:
            raise ValidationError("Usage: preview KG REPS")
        if "sets" not in history:
            history["sets"] = backend.workouts.list_sets()
        flags = session.preview_set(
            _parse_number(args[0], "Weight"), _parse_number(args[1], "Reps"), history["sets"]
        )
        views.print_preview(flags)
    elif cmd == "finish":
        _finish(session)
        return True
    elif cmd in ("quit", "exit"):
        if views.confirm_action("Abandon this workout?"):
            session.reset()
            views.print_info("Workout abandoned.")
            return True
    else:
        views.print_error(f"Unknown command: {cmd}. Type 'help' for commands.")
    return False


@app.command("train")
def train(
    routine_id: Annotated[
        Optional[str],
        typer.Option("--routine", "-r", help="Split ID to train from"),
    ] = None,
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Workout name (default: split name)"),
    ] = None,
    freestyle: Annotated[
        bool,
        typer.Option("--freestyle", "-f", help="Start without a split, no prompt"),
    ] = False,
    api_url: ApiUrlOption = None,
    user_id: UserIdOption = None,
) -> None:
    """
    Start a workout and log sets interactively.

    Run without options to pick a split from a list.
    """
    config = get_config(api_url, user_id)
    backend = get_backend(api_url)
    session = SessionState(
        backend.workouts, backend.routines, backend.exercises, user_id=config.user_id
    )
    session.subscribe(views.print_event)

    try:
        catalog = backend.exercises.list()
        if routine_id is None and not freestyle:
            routine_id = _choose_routine(backend)
        workout = session.start(routine_id, name)
    except (NetworkError, InvalidTransition) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Started {workout.name}")
    views.print_session(session.snapshot())
    views.console.print("[dim]Type 'help' for commands.[/dim]")

    history: dict[str, list[LoggedSet]] = {}
    while True:
        try:
            line = views.console.input("> ").strip()
        except EOFError:
            session.reset()
            views.print_warning("Input closed; workout abandoned.")
            raise typer.Exit(1)
        if not line:
            continue

        try:
            if _dispatch(session, catalog, history, backend, line):
                return
        except ValidationError as e:
            views.print_error(str(e))
        except NetworkError as e:
            views.print_error(str(e))
            views.print_info("Nothing was recorded. Repeat the command to retry.")
        except (InvalidTransition, InvariantViolation) as e:
            views.print_error(str(e))
