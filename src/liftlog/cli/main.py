"""
CLI entry point using Typer.

Provides commands for training with splits:
- exercises: List the exercise catalog
- routines / routine-show: Browse splits
- routine-create / routine-add: Build splits
- train: Run a workout session interactively
"""

from typing import Annotated

import typer

from . import views
from .app import app, configure_logging, get_config
from .commands import catalog, routines, training  # noqa: F401  (registers commands)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr"),
    ] = False,
) -> None:
    """
    Workout logger. Run without a command for interactive mode.
    """
    try:
        level = "DEBUG" if verbose else get_config().log_level
    except ValueError as e:
        views.print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)
    configure_logging(level)

    if ctx.invoked_subcommand is not None:
        return

    # ── Interactive main menu ───────────────────────────────────────────────
    views.console.print()
    views.console.print("[bold cyan]liftlog[/bold cyan] — ready to lift?")
    views.console.print()

    menu = {
        "1": ("train",     "Start a workout"),
        "2": ("routines",  "Show splits"),
        "3": ("exercises", "Show exercise catalog"),
        "0": ("quit",      "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    chosen = {k: v[0] for k, v in menu.items()}.get(choice)
    if chosen is None:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    if chosen == "train":
        ctx.invoke(training.train)
    elif chosen == "routines":
        ctx.invoke(routines.list_routines)
    elif chosen == "exercises":
        ctx.invoke(catalog.list_exercises)


if __name__ == "__main__":
    app()
