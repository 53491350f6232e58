"""
Configuration loaded from environment variables, optionally seeded from a .env file.

Exposes SETTINGS with the values used when wiring up a GameManager and its repository.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

from dotenv import load_dotenv

DEFAULT_MAX_CONCURRENT_GAMES = 5
DEFAULT_DATABASE_URL = "sqlite:///games.db"
ENV_PREFIX = "CHESS_SESSIONS_"


def _get(name: str, default: Any, cast: Callable[[str], Any] | None = None) -> Any:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return default
    return cast(value) if cast else value


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    max_concurrent_games: int
    log_level: str
    sql_echo: bool


def load_settings(env_file: str | None = None) -> Settings:
    """
    Read the settings from the current environment.

    Values from `env_file` (or a .env found by python-dotenv) fill in variables that are not set yet;
    the real environment always wins.
    """
    load_dotenv(env_file)
    return Settings(
        database_url=_get("DATABASE_URL", DEFAULT_DATABASE_URL),
        max_concurrent_games=_get(
            "MAX_CONCURRENT_GAMES", DEFAULT_MAX_CONCURRENT_GAMES, cast=int
        ),
        log_level=_get("LOG_LEVEL", "INFO").upper(),
        sql_echo=_get("SQL_ECHO", False, cast=_as_bool),
    )


SETTINGS = load_settings()


def configure_logging(level: str | None = None) -> None:
    """Basic root logger setup for processes embedding the package."""
    logging.basicConfig(
        level=level or SETTINGS.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
