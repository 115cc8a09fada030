"""
Integrator service: entry point for inbound source events.

``integrate`` records (or reuses) a source request and schedules its fan-out
in one unit of work; ``retry_integrate`` re-schedules an existing request.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.logging_utils import log_event
from app.services.destination_request_creator import DestinationRequestCreator
from app.services.errors import DependencyError, NotFoundError
from app.services.fan_out_publisher import FanOutPublisher, OutboxFanOutPublisher
from app.services.request_service import RequestService
from app.services.unit_of_work import UnitOfWork
from db.models.source import Source
from db.models.source_request import SourceRequest
from db.repositories.source_repository import SourceRepository

logger = logging.getLogger(__name__)

PublisherFactory = Callable[[Session], FanOutPublisher]


class IntegratorService:
    """
    Coordinates deduplication, source request persistence and fan-out
    scheduling.

    The publisher is built per session by ``publisher_factory``; the default
    writes to the transactional outbox so persistence and enqueue share one
    commit.
    """

    def __init__(
        self,
        *,
        publisher_factory: PublisherFactory | None = None,
        destination_request_creator: DestinationRequestCreator | None = None,
    ) -> None:
        self._publisher_factory: PublisherFactory = publisher_factory or OutboxFanOutPublisher
        self._destination_request_creator = destination_request_creator or DestinationRequestCreator()

    def integrate(
        self,
        *,
        db: Session,
        source_identifier: str,
        query_parameter: str,
        data: dict[str, Any] | None = None,
    ) -> SourceRequest:
        try:
            return self._integrate(
                db=db,
                source_identifier=source_identifier,
                query_parameter=query_parameter,
                data=data,
            )
        except IntegrityError as exc:
            # A concurrent integrate() committed the same (source, query_parameter)
            # first; the second pass finds that request through the dedup lookup.
            log_event(
                logger,
                logging.INFO,
                "source_request_conflict",
                source=source_identifier,
                query_parameter=query_parameter,
            )
            try:
                return self._integrate(
                    db=db,
                    source_identifier=source_identifier,
                    query_parameter=query_parameter,
                    data=data,
                )
            except IntegrityError:
                raise DependencyError(
                    f"Failed to persist source request for source {source_identifier!r}."
                ) from exc

    def retry_integrate(self, *, db: Session, source_request_id: uuid.UUID) -> SourceRequest:
        """
        Reset the try count and publish a fan-out signal again, whether or
        not destination requests already exist. The recorded outcome is
        left untouched.
        """

        request_service = self._request_service(db)
        with UnitOfWork(db, self._publisher_factory(db)) as unit_of_work:
            source_request = request_service.find_source_request(source_request_id)
            if source_request is None:
                raise NotFoundError(f"Source Request not found: {source_request_id}")

            request_service.update_try_count(source_request, 0)
            unit_of_work.register_publish(source_request.id)

        log_event(
            logger,
            logging.INFO,
            "retry_requested",
            source_request_id=source_request_id,
            try_count=source_request.try_count,
        )
        return source_request

    def _integrate(
        self,
        *,
        db: Session,
        source_identifier: str,
        query_parameter: str,
        data: dict[str, Any] | None,
    ) -> SourceRequest:
        request_service = self._request_service(db)
        with UnitOfWork(db, self._publisher_factory(db)) as unit_of_work:
            source = self._find_source(db, source_identifier)
            source_request, created = request_service.create_source_request(
                source,
                query_parameter,
                unit_of_work=unit_of_work,
                data=data,
            )
            # Also covers a reused request that was never fanned out.
            publish = not source_request.destination_requests
            if publish:
                unit_of_work.register_publish(source_request.id)

        log_event(
            logger,
            logging.INFO,
            "source_request_created" if created else "source_request_deduplicated",
            source=source_identifier,
            source_request_id=source_request.id,
            fan_out_published=publish,
        )
        return source_request

    def _find_source(self, db: Session, source_identifier: str) -> Source:
        source = SourceRepository(db).find_by_identifier(source_identifier)
        if source is None:
            raise NotFoundError(f"Source not found: {source_identifier}")
        return source

    def _request_service(self, db: Session) -> RequestService:
        return RequestService(db, destination_request_creator=self._destination_request_creator)


@lru_cache(maxsize=1)
def get_integrator_service() -> IntegratorService:
    return IntegratorService()
