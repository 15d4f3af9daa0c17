"""
YAML → typed client config loader.

Loads defaults from liftlog.yaml (bundled with the package), merges user
overrides from ~/.liftlog/config.yaml, then applies environment variables.

Usage:
    from liftlog.io.config_loader import load_client_config
    cfg = load_client_config()
    cfg.api_url  # "http://localhost:3000/api"

Environment overrides: LIFTLOG_API_URL, LIFTLOG_USER_ID, LIFTLOG_TIMEOUT,
LIFTLOG_LOG_LEVEL.  A user file that cannot be parsed is ignored with a
warning.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..core.config import DEFAULT_USER_ID

logger = logging.getLogger(__name__)

ENV_PREFIX = "LIFTLOG_"


@dataclass(frozen=True)
class ClientConfig:
    """Runtime settings for talking to the backend."""

    api_url: str = "http://localhost:3000/api"
    user_id: str = DEFAULT_USER_ID
    timeout_seconds: float = 10.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not self.api_url:
            raise ValueError("api_url must be non-empty")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} (with a warning) on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    mapping = {
        "API_URL": "api_url",
        "USER_ID": "user_id",
        "TIMEOUT": "timeout_seconds",
        "LOG_LEVEL": "log_level",
    }
    client: dict[str, Any] = {}
    for env_key, field_name in mapping.items():
        value = environ.get(ENV_PREFIX + env_key)
        if value:
            client[field_name] = value
    return {"client": client} if client else {}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled liftlog.yaml, or None if not found."""
    ref = importlib.resources.files("liftlog").joinpath("liftlog.yaml")
    if not ref.is_file():
        return None
    with importlib.resources.as_file(ref) as p:
        return p


def get_user_yaml_path() -> Path | None:
    """Return ~/.liftlog/config.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".liftlog" / "config.yaml"
    return p if p.exists() else None


def load_raw_config(
    user_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Load and merge config sections from YAML sources and the environment.

    Load order (later overrides earlier):
    1. Bundled src/liftlog/liftlog.yaml
    2. User override (``user_path`` or ~/.liftlog/config.yaml)
    3. LIFTLOG_* environment variables

    Returns:
        Merged dict of config sections.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        config = _deep_merge(config, _load_yaml_file(user))

    env = os.environ if environ is None else environ
    return _deep_merge(config, _env_overrides(env))


def load_client_config(
    user_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ClientConfig:
    """
    Build a ClientConfig from all sources.

    Keyword ``overrides`` (e.g. CLI options) win over everything; None
    values are ignored.

    Raises:
        ValueError: If a value has the wrong type or is out of range
    """
    section = dict(load_raw_config(user_path, environ).get("client") or {})
    section.update({k: v for k, v in overrides.items() if v is not None})

    defaults = ClientConfig()
    try:
        timeout = float(section.get("timeout_seconds", defaults.timeout_seconds))
    except (TypeError, ValueError) as e:
        raise ValueError(f"timeout_seconds must be a number, got {section['timeout_seconds']!r}") from e

    return ClientConfig(
        api_url=str(section.get("api_url", defaults.api_url)),
        user_id=str(section.get("user_id", defaults.user_id)),
        timeout_seconds=timeout,
        log_level=str(section.get("log_level", defaults.log_level)).upper(),
    )
