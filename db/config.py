"""
Database settings for the integrator.

Every setting is read from an ``INTEGRATOR_``-prefixed variable. The URL
alone also falls back to the conventional ``DATABASE_URL``. Values from the
project's ``.env`` / ``.env.local`` files fill in whatever the process
environment leaves unset.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "INTEGRATOR_"
ENV_FILES = (".env", ".env.local")
PROJECT_ROOT = Path(__file__).resolve().parents[1]


def parse_env_file(path: Path) -> dict[str, str]:
    """
    Parse ``KEY=VALUE`` lines. Blank lines, ``#`` comments and an optional
    leading ``export`` are accepted; surrounding quotes are stripped.
    """

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()

        key, separator, value = line.partition("=")
        key = key.strip()
        if separator and key:
            values[key] = value.strip().strip("\"'")
    return values


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    for filename in ENV_FILES:
        env_path = root / filename
        if env_path.is_file():
            for key, value in parse_env_file(env_path).items():
                os.environ.setdefault(key, value)


def _setting(name: str) -> str | None:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    return value.strip() if value is not None else None


def _int_setting(name: str, default: int) -> int:
    raw_value = _setting(name)
    if not raw_value:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def normalize_database_url(url: str) -> str:
    """
    Point bare ``postgres://`` / ``postgresql://`` URLs at the psycopg driver.
    """

    url = url.strip()
    scheme, separator, rest = url.partition("://")
    if separator and scheme in {"postgres", "postgresql"}:
        return f"postgresql+psycopg://{rest}"
    return url


def resolve_database_url(override: str | None = None) -> str:
    """
    Resolve the integrator database URL.

    Priority:
    1) ``override`` (Alembic's ``-x db_url=...``)
    2) INTEGRATOR_DATABASE_URL
    3) DATABASE_URL

    Only PostgreSQL is accepted: the fan-out relay claims outbox rows with
    ``FOR UPDATE SKIP LOCKED``.
    """

    load_env_files()

    raw_url = override or _setting("DATABASE_URL") or os.getenv("DATABASE_URL", "").strip()
    if not raw_url:
        raise RuntimeError(
            "No integrator database URL configured. Set INTEGRATOR_DATABASE_URL or DATABASE_URL."
        )

    url = normalize_database_url(raw_url)
    if not url.startswith("postgresql"):
        scheme = url.partition(":")[0]
        raise RuntimeError(f"Unsupported database URL scheme {scheme!r}: the integrator requires PostgreSQL.")
    return url


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800
    application_name: str = "source-integrator"


def get_database_settings(override_url: str | None = None) -> DatabaseSettings:
    """
    Build engine settings from INTEGRATOR_SQL_ECHO, INTEGRATOR_DB_POOL_SIZE,
    INTEGRATOR_DB_MAX_OVERFLOW, INTEGRATOR_DB_POOL_RECYCLE and
    INTEGRATOR_DB_APPLICATION_NAME.
    """

    url = resolve_database_url(override_url)
    return DatabaseSettings(
        url=url,
        echo=(_setting("SQL_ECHO") or "").lower() in {"1", "true", "yes", "on"},
        pool_size=max(1, _int_setting("DB_POOL_SIZE", 5)),
        max_overflow=max(0, _int_setting("DB_MAX_OVERFLOW", 10)),
        pool_recycle_seconds=_int_setting("DB_POOL_RECYCLE", 1800),
        application_name=_setting("DB_APPLICATION_NAME") or "source-integrator",
    )
