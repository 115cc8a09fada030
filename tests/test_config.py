"""
tests/test_config.py
"""

from __future__ import annotations

import pytest

from app.config import get_fan_out_relay_settings, get_query_settings
from db.config import get_database_settings, normalize_database_url, parse_env_file, resolve_database_url


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_fan_out_relay_settings.cache_clear()
    get_query_settings.cache_clear()
    yield
    get_fan_out_relay_settings.cache_clear()
    get_query_settings.cache_clear()


def test_relay_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("FAN_OUT_RELAY_ENABLED", "false")
    monkeypatch.setenv("FAN_OUT_RELAY_INTERVAL_SECONDS", "12.5")
    monkeypatch.setenv("FAN_OUT_RELAY_BATCH_SIZE", "25")
    monkeypatch.setenv("FAN_OUT_RELAY_MAX_ATTEMPTS", "0")

    settings = get_fan_out_relay_settings()

    assert settings.enabled is False
    assert settings.interval_seconds == 12.5
    assert settings.batch_size == 25
    assert settings.max_attempts == 1


def test_relay_settings_clamp_and_fallback(monkeypatch) -> None:
    monkeypatch.setenv("FAN_OUT_RELAY_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("FAN_OUT_RELAY_BATCH_SIZE", "not-a-number")

    settings = get_fan_out_relay_settings()

    assert settings.interval_seconds == 0.5
    assert settings.batch_size == 100


def test_query_default_limit_never_exceeds_max(monkeypatch) -> None:
    monkeypatch.setenv("SOURCE_REQUEST_QUERY_MAX_LIMIT", "50")
    monkeypatch.setenv("SOURCE_REQUEST_QUERY_DEFAULT_LIMIT", "200")

    settings = get_query_settings()

    assert settings.max_limit == 50
    assert settings.default_limit == 50


# ---------------------------------------------------------------------------
# Database settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_db_env(monkeypatch):
    for name in ("INTEGRATOR_DATABASE_URL", "DATABASE_URL", "INTEGRATOR_DB_POOL_SIZE", "INTEGRATOR_SQL_ECHO"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql+psycopg://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        (" sqlite:///local.db ", "sqlite:///local.db"),
    ],
)
def test_normalize_database_url(url, expected) -> None:
    assert normalize_database_url(url) == expected


def test_integrator_url_wins_over_database_url(clean_db_env) -> None:
    clean_db_env.setenv("DATABASE_URL", "postgresql://shared/db")
    clean_db_env.setenv("INTEGRATOR_DATABASE_URL", "postgres://integrator/db")

    assert resolve_database_url() == "postgresql+psycopg://integrator/db"


def test_override_wins_over_environment(clean_db_env) -> None:
    clean_db_env.setenv("INTEGRATOR_DATABASE_URL", "postgresql://integrator/db")

    assert resolve_database_url("postgresql://migrations/db") == "postgresql+psycopg://migrations/db"


def test_missing_url_raises(clean_db_env) -> None:
    with pytest.raises(RuntimeError, match="INTEGRATOR_DATABASE_URL"):
        resolve_database_url()


def test_non_postgres_url_is_rejected(clean_db_env) -> None:
    clean_db_env.setenv("INTEGRATOR_DATABASE_URL", "sqlite:///local.db")

    with pytest.raises(RuntimeError, match="requires PostgreSQL"):
        resolve_database_url()


def test_database_settings_from_env(clean_db_env) -> None:
    clean_db_env.setenv("INTEGRATOR_DATABASE_URL", "postgresql://integrator/db")
    clean_db_env.setenv("INTEGRATOR_DB_POOL_SIZE", "12")
    clean_db_env.setenv("INTEGRATOR_SQL_ECHO", "yes")

    settings = get_database_settings()

    assert settings.url == "postgresql+psycopg://integrator/db"
    assert settings.pool_size == 12
    assert settings.echo is True
    assert settings.application_name == "source-integrator"


def test_parse_env_file(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\n"
        "\n"
        "export INTEGRATOR_DATABASE_URL='postgresql://u:p@h/db'\n"
        'FAN_OUT_RELAY_BATCH_SIZE="50"\n'
        "not a pair\n",
        encoding="utf-8",
    )

    assert parse_env_file(env_file) == {
        "INTEGRATOR_DATABASE_URL": "postgresql://u:p@h/db",
        "FAN_OUT_RELAY_BATCH_SIZE": "50",
    }
