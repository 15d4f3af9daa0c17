"""
CLI view formatters using Rich for pretty console output.

Handles table formatting for the catalog, routines and the live session.
"""

from rich.console import Console
from rich.table import Table

from ..core.config import describe_badge
from ..core.models import (
    Exercise,
    LoggedSet,
    PRFlags,
    ReconciliationProposal,
    RoutineExerciseTarget,
    RoutineSpec,
    SessionEvent,
    SessionSnapshot,
)

console = Console()


def _fmt_weight(weight_kg: float | None) -> str:
    if weight_kg is None:
        return "-"
    return f"{weight_kg:g} kg"


def _fmt_target(target: RoutineExerciseTarget) -> str:
    base = f"{target.target_sets}x{target.target_reps}"
    if target.target_weight_kg is not None:
        return f"{base} @ {_fmt_weight(target.target_weight_kg)}"
    return base


def format_exercise_table(exercises: list[Exercise]) -> Table:
    """
    Format the exercise catalog as a Rich table.

    Args:
        exercises: Exercises to display

    Returns:
        Rich Table object
    """
    table = Table(title="Exercises", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Muscle group", style="magenta")
    table.add_column("Equipment")
    table.add_column("ID", style="dim")

    for i, ex in enumerate(exercises, 1):
        table.add_row(str(i), ex.name, ex.muscle_group, ex.equipment or "-", ex.id)
    return table


def print_exercises(exercises: list[Exercise]) -> None:
    if not exercises:
        console.print("[yellow]No exercises found.[/yellow]")
        return
    console.print(format_exercise_table(exercises))


def print_routines(routines: list[RoutineSpec]) -> None:
    """Print the list of routines (without their exercises)."""
    if not routines:
        console.print("[yellow]No splits yet. Create one with 'routine-create'.[/yellow]")
        return

    table = Table(title="Splits", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("ID", style="dim")
    for i, r in enumerate(routines, 1):
        table.add_row(str(i), r.name, r.description or "", r.id)
    console.print(table)


def print_routine(routine: RoutineSpec) -> None:
    """Print one routine with its ordered targets."""
    console.print(f"[bold cyan]{routine.name}[/bold cyan]  [dim]{routine.id}[/dim]")
    if routine.description:
        console.print(routine.description)
    if not routine.exercises:
        console.print("[yellow]No exercises in this split.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("Target", justify="right")
    for t in routine.exercises:
        table.add_row(str(t.order_index + 1), t.exercise_name or t.exercise_id, _fmt_target(t))
    console.print(table)


def print_session(snapshot: SessionSnapshot) -> None:
    """Print the queue with the current exercise highlighted, then its sets."""
    workout = snapshot.workout
    if workout is None:
        console.print("[dim]No active workout.[/dim]")
        return

    console.print()
    console.print(
        f"[bold]{workout.name or 'Workout'}[/bold]  "
        f"[dim]{snapshot.status.value}[/dim]"
    )

    if not snapshot.queue:
        console.print("[yellow]Queue is empty. Add an exercise with 'add <name>'.[/yellow]")
    else:
        table = Table(show_header=True, header_style="dim")
        table.add_column("#", justify="right")
        table.add_column("Exercise")
        table.add_column("Muscle group", style="magenta")
        table.add_column("Sets", justify="right")
        for i, item in enumerate(snapshot.queue, 1):
            done = sum(1 for s in snapshot.sets if s.exercise_id == item.exercise_id)
            marker = "▶ " if item.queue_id == snapshot.selected_queue_id else ""
            name = f"[bold green]{marker}{item.exercise.name}[/bold green]" if marker else item.exercise.name
            table.add_row(str(i), name, item.exercise.muscle_group, str(done))
        console.print(table)

    current = snapshot.current_exercise
    if current is not None:
        print_sets(current.exercise.name, list(snapshot.current_sets))


def print_sets(exercise_name: str, sets: list[LoggedSet]) -> None:
    """Print sets for one exercise, newest first."""
    console.print(f"[bold]{exercise_name}[/bold] — {len(sets)} sets")
    if not sets:
        console.print("  [dim]No sets logged yet.[/dim]")
        return
    for n, s in reversed(list(enumerate(sets, 1))):
        flags = []
        if s.is_new_1rm:
            flags.append("[yellow]1RM[/yellow]")
        if s.is_vol_pr:
            flags.append("[yellow]Rep PR[/yellow]")
        rpe = f"  RPE {s.rpe:g}" if s.rpe is not None else ""
        console.print(f"  {n:>2}. {_fmt_weight(s.weight_kg)} × {s.reps}{rpe}  {' '.join(flags)}")


def print_preview(flags: PRFlags) -> None:
    """Print a provisional PR preview."""
    if not flags.any:
        console.print("[dim]Preview: not a record.[/dim]")
        return
    parts = []
    if flags.is_new_1rm:
        parts.append("new 1RM")
    if flags.is_vol_pr:
        parts.append("rep PR")
    console.print(f"[dim]Preview (provisional): {' and '.join(parts)}[/dim]")


def print_proposal(proposal: ReconciliationProposal) -> None:
    """Print stored vs derived targets for the routine-update prompt."""
    table = Table(
        title=f"Update '{proposal.routine_name}'?", show_header=True, header_style="bold"
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("New", justify="right", style="green")

    stored_by_id = {t.exercise_id: t for t in proposal.stored}
    for t in proposal.derived:
        old = stored_by_id.get(t.exercise_id)
        table.add_row(
            str(t.order_index + 1),
            t.exercise_name or t.exercise_id,
            _fmt_target(old) if old else "[dim]new[/dim]",
            _fmt_target(t),
        )
    dropped = [t for t in proposal.stored if t.exercise_id not in {d.exercise_id for d in proposal.derived}]
    for t in dropped:
        table.add_row("-", t.exercise_name or t.exercise_id, _fmt_target(t), "[red]removed[/red]")
    console.print(table)


def print_badges(badges: list[str] | tuple[str, ...]) -> None:
    console.print()
    console.print(f"[bold magenta]You earned {len(badges)} new badges![/bold magenta]")
    for badge in badges:
        console.print(f"  [bold]{badge}[/bold] — {describe_badge(badge)}")


def print_event(event: SessionEvent) -> None:
    """Render session notifications that are not plain state changes."""
    if event.kind == "reward":
        console.print(f"[bold yellow]★ {event.message}[/bold yellow]")
        if event.detail:
            console.print(f"  [dim]{event.detail}[/dim]")
    elif event.kind == "badges" and isinstance(event.payload, tuple):
        print_badges(event.payload)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
