"""Shared Typer app object, shared option types, and backend utility."""

import logging
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..io.api_client import Backend, connect
from ..io.config_loader import ClientConfig, load_client_config

# Shared --api-url option type used across all commands
ApiUrlOption = Annotated[
    Optional[str],
    typer.Option("--api-url", "-a", help="Backend base URL (default from config)"),
]

# Shared --user-id option type for commands that create records
UserIdOption = Annotated[
    Optional[str],
    typer.Option("--user-id", "-u", help="User ID that owns created records"),
]

app = typer.Typer(
    name="liftlog",
    help="Workout logger: train from your splits, log sets, chase PRs.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_config(api_url: str | None = None, user_id: str | None = None) -> ClientConfig:
    """Load client config with CLI overrides applied."""
    return load_client_config(api_url=api_url, user_id=user_id)


def get_backend(api_url: str | None = None) -> Backend:
    """Get backend clients for the given URL or the configured default."""
    return connect(get_config(api_url))


def configure_logging(level: str) -> None:
    """Send library logs to stderr through Rich."""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
