"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class FanOutRelaySettings:
    """
    Runtime settings for the outbox relay that creates destination requests.
    """

    enabled: bool = True
    interval_seconds: float = 5.0
    batch_size: int = 100
    max_attempts: int = 5


@dataclass(frozen=True)
class QuerySettings:
    """
    Paging limits for source request listings.
    """

    default_limit: int = 100
    max_limit: int = 500


@lru_cache(maxsize=1)
def get_fan_out_relay_settings() -> FanOutRelaySettings:
    """
    Return cached relay settings from environment variables.
    """

    return FanOutRelaySettings(
        enabled=_get_bool_env("FAN_OUT_RELAY_ENABLED", True),
        interval_seconds=max(0.5, _get_float_env("FAN_OUT_RELAY_INTERVAL_SECONDS", 5.0)),
        batch_size=max(1, _get_int_env("FAN_OUT_RELAY_BATCH_SIZE", 100)),
        max_attempts=max(1, _get_int_env("FAN_OUT_RELAY_MAX_ATTEMPTS", 5)),
    )


@lru_cache(maxsize=1)
def get_query_settings() -> QuerySettings:
    max_limit = max(1, _get_int_env("SOURCE_REQUEST_QUERY_MAX_LIMIT", 500))
    default_limit = _get_int_env("SOURCE_REQUEST_QUERY_DEFAULT_LIMIT", 100)
    return QuerySettings(
        default_limit=min(max(1, default_limit), max_limit),
        max_limit=max_limit,
    )
