"""
Unit of work wrapping source request persistence and fan-out publishing.
"""

from __future__ import annotations

import logging
import uuid
from types import TracebackType

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.errors import DependencyError, UnitOfWorkError
from app.services.fan_out_publisher import FanOutPublisher

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Collects pending saves and at most one fan-out publish, then commits
    them in a single transaction.

    Used as a context manager: a clean exit commits, any exception discards
    everything collected and rolls the session back. The unit of work owns
    the session's current transaction, including reads made inside it.

    ``IntegrityError`` is re-raised unchanged so callers can treat a unique
    constraint conflict as a deduplication hit. Every other persistence or
    publishing failure surfaces as ``DependencyError``.
    """

    def __init__(self, session: Session, publisher: FanOutPublisher) -> None:
        self._session = session
        self._publisher = publisher
        self._pending_saves: list[object] = []
        self._pending_publish: uuid.UUID | None = None

    @property
    def pending_publish(self) -> uuid.UUID | None:
        return self._pending_publish

    def register_save(self, entity: object) -> None:
        if entity not in self._pending_saves:
            self._pending_saves.append(entity)

    def register_publish(self, source_request_id: uuid.UUID) -> None:
        if self._pending_publish is not None and self._pending_publish != source_request_id:
            raise UnitOfWorkError("A unit of work publishes at most one fan-out signal.")
        self._pending_publish = source_request_id

    def commit(self) -> None:
        try:
            for entity in self._pending_saves:
                self._session.add(entity)
            self._session.flush()
        except IntegrityError:
            self.rollback()
            raise
        except SQLAlchemyError as exc:
            self.rollback()
            raise DependencyError("Failed to persist the unit of work.") from exc

        if self._pending_publish is not None:
            try:
                self._publisher.publish(self._pending_publish)
            except Exception as exc:
                self.rollback()
                raise DependencyError(
                    f"Failed to schedule fan-out for source request {self._pending_publish}."
                ) from exc

        try:
            self._session.commit()
        except IntegrityError:
            self.rollback()
            raise
        except SQLAlchemyError as exc:
            self.rollback()
            raise DependencyError("Failed to commit the unit of work.") from exc

        self._clear()

    def rollback(self) -> None:
        self._clear()
        self._session.rollback()

    def _clear(self) -> None:
        self._pending_saves.clear()
        self._pending_publish = None

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            logger.debug("Discarding unit of work after %s", exc_type.__name__)
            self.rollback()
            if isinstance(exc, SQLAlchemyError) and not isinstance(exc, IntegrityError):
                raise DependencyError("Persistence failed inside the unit of work.") from exc
            return
        self.commit()
