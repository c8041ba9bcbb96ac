"""Tests for application settings."""

import pytest

from michishirube.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("DATABASE_URL", "DB_PATH", "HOST", "PORT", "LOG_LEVEL", "LOG_FORMAT", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the tests.
    monkeypatch.chdir(tmp_path)


def test_defaults():
    settings = Settings()
    assert settings.db_path == "michishirube.db"
    assert settings.host == "0.0.0.0"
    assert settings.port == 8080
    assert settings.log_level == "info"
    assert settings.log_format == "console"
    assert settings.resolved_database_url() == "sqlite:///michishirube.db"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("DB_PATH", "/data/tasks.db")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FORMAT", "json")

    settings = Settings()
    assert settings.port == 9090
    assert settings.resolved_database_url() == "sqlite:////data/tasks.db"
    assert settings.log_level == "debug"
    assert settings.log_format == "json"


@pytest.mark.parametrize("value", ["", "verbose", "trace"])
def test_invalid_log_level_falls_back_to_info(monkeypatch, value):
    monkeypatch.setenv("LOG_LEVEL", value)
    assert Settings().log_level == "info"


def test_empty_db_path_uses_default(monkeypatch):
    monkeypatch.setenv("DB_PATH", "")
    assert Settings().db_path == "michishirube.db"


def test_database_url_wins_over_db_path(monkeypatch):
    monkeypatch.setenv("DB_PATH", "ignored.db")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///async.db")
    assert Settings().resolved_database_url() == "sqlite:///async.db"


def test_memory_db_path():
    assert Settings(db_path=":memory:").resolved_database_url() == "sqlite://"


def test_env_file(tmp_path):
    (tmp_path / ".env").write_text("PORT=7000\nLOG_LEVEL=warning\n")
    settings = Settings()
    assert settings.port == 7000
    assert settings.log_level == "warning"


def test_non_sqlite_url_rejected():
    with pytest.raises(ValueError):
        Settings(database_url="postgresql://db/michishirube").resolved_database_url()
