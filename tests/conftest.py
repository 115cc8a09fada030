"""
Shared fixtures: an in-memory SQLite database with the integrator schema,
source configuration builders and publisher doubles.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Generator, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401
from db.base import Base
from db.models.source import Destination, FinalDestination, Method, Source
from db.session import build_session_factory


class RecordingPublisher:
    """Publisher double that remembers every published source request id."""

    def __init__(self) -> None:
        self.published: list[uuid.UUID] = []

    def publish(self, source_request_id: uuid.UUID) -> None:
        self.published.append(source_request_id)


class FailingPublisher:
    def __init__(self) -> None:
        self.attempts = 0

    def publish(self, source_request_id: uuid.UUID) -> None:
        self.attempts += 1
        raise RuntimeError("broker unavailable")


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_source(db: Session) -> Callable[..., Source]:
    """
    Build and commit a Source.

    ``destinations`` is a list of ``(bridge, destination_identifier,
    method_identifier)`` tuples.
    """

    def _make(
        identifier: str,
        *,
        allows_multiple_requests: bool = False,
        destinations: list[tuple[str, str, str]] | None = None,
    ) -> Source:
        source = Source(
            identifier=identifier,
            allows_multiple_requests=allows_multiple_requests,
        )
        for bridge, destination_identifier, method_identifier in destinations or []:
            source.destinations.append(
                Destination(
                    method=Method(identifier=f"{identifier}:{method_identifier}", name=method_identifier),
                    final_destination=FinalDestination(bridge=bridge, identifier=destination_identifier),
                )
            )
        db.add(source)
        db.commit()
        return source

    return _make


@pytest.fixture()
def publisher() -> RecordingPublisher:
    return RecordingPublisher()
