"""
db/session.py

Engine and sessions for the integrator database.

Nothing connects at import time: the engine is built on first use from
``db.config.get_database_settings`` so that the ORM layer, Alembic and the
test suite can import models without a database URL.
"""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import DatabaseSettings, get_database_settings


def create_db_engine(settings: DatabaseSettings | None = None) -> Engine:
    settings = settings or get_database_settings()
    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle_seconds,
        connect_args={"application_name": settings.application_name},
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Sessions never autoflush and keep attribute values after commit, which
    the unit of work and the relay rely on.
    """

    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker[Session]:
    return build_session_factory(get_engine())


def SessionLocal() -> Session:
    return _session_factory()()


def dispose_engine() -> None:
    """Close pooled connections; the next session builds a fresh engine."""
    if get_engine.cache_info().currsize:
        get_engine().dispose()
    _session_factory.cache_clear()
    get_engine.cache_clear()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
