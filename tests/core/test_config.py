"""Unit tests for chess_sessions/core/config.py"""

import logging

import pytest

from chess_sessions.core.config import (
    DEFAULT_DATABASE_URL,
    DEFAULT_MAX_CONCURRENT_GAMES,
    configure_logging,
    load_settings,
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("DATABASE_URL", "MAX_CONCURRENT_GAMES", "LOG_LEVEL", "SQL_ECHO"):
        monkeypatch.delenv(f"CHESS_SESSIONS_{name}", raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = load_settings()

    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.max_concurrent_games == DEFAULT_MAX_CONCURRENT_GAMES == 5
    assert settings.log_level == "INFO"
    assert settings.sql_echo is False


def test_environment_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("CHESS_SESSIONS_DATABASE_URL", "sqlite:///:memory:")
    clean_env.setenv("CHESS_SESSIONS_MAX_CONCURRENT_GAMES", "12")
    clean_env.setenv("CHESS_SESSIONS_LOG_LEVEL", "debug")
    clean_env.setenv("CHESS_SESSIONS_SQL_ECHO", "yes")

    settings = load_settings()
    assert settings.database_url == "sqlite:///:memory:"
    assert settings.max_concurrent_games == 12
    assert settings.log_level == "DEBUG"
    assert settings.sql_echo is True


def test_bad_ceiling(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("CHESS_SESSIONS_MAX_CONCURRENT_GAMES", "many")
    with pytest.raises(ValueError):
        load_settings()


def test_configure_logging_does_not_override_existing_setup(caplog: pytest.LogCaptureFixture) -> None:
    """basicConfig is a no-op once the root logger has handlers (pytest installs its own)."""
    configure_logging("DEBUG")
    with caplog.at_level(logging.INFO, logger="chess_sessions"):
        logging.getLogger("chess_sessions.test").info("hello")
    assert "hello" in caplog.text


def test_env_file(clean_env: pytest.MonkeyPatch, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("CHESS_SESSIONS_MAX_CONCURRENT_GAMES=7\nCHESS_SESSIONS_LOG_LEVEL=warning\n")
    # registered with monkeypatch so the values loaded from the file are removed again afterwards
    for name in ("CHESS_SESSIONS_MAX_CONCURRENT_GAMES", "CHESS_SESSIONS_LOG_LEVEL"):
        clean_env.setenv(name, "")
        clean_env.delenv(name)

    settings = load_settings(str(env_file))
    assert settings.max_concurrent_games == 7
    assert settings.log_level == "WARNING"


def test_environment_beats_env_file(clean_env: pytest.MonkeyPatch, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("CHESS_SESSIONS_MAX_CONCURRENT_GAMES=7\n")
    clean_env.setenv("CHESS_SESSIONS_MAX_CONCURRENT_GAMES", "3")

    assert load_settings(str(env_file)).max_concurrent_games == 3
