"""
Request service: source request creation, fan-out persistence, lookups and
try-count / outcome bookkeeping for both request kinds.

Methods flush through the repositories but never commit; transaction
boundaries belong to the caller (``IntegratorService``, ``FanOutRelay`` or
an API handler).
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol

from sqlalchemy.orm import Session

from app.logging_utils import log_event
from app.services.destination_request_creator import DestinationRequestCreator
from app.services.errors import ConfigurationError, ValidationError
from app.services.unit_of_work import UnitOfWork
from db.models.capabilities import HasOutcome, HasTryCount, Outcome
from db.models.destination_request import DestinationRequest
from db.models.source import Source
from db.models.source_request import SourceRequest
from db.repositories.destination_request_repository import DestinationRequestRepository
from db.repositories.source_request_repository import SourceRequestRepository
from db.repositories.types import SearchTarget, SourceRequestFilters

logger = logging.getLogger(__name__)


class _RequestRepository(Protocol):
    def save(self, request: Any) -> Any:
        ...


class RequestService:
    def __init__(
        self,
        db: Session,
        *,
        destination_request_creator: DestinationRequestCreator | None = None,
    ) -> None:
        self._destination_request_creator = destination_request_creator or DestinationRequestCreator()
        self._source_requests = SourceRequestRepository(db)
        self._destination_requests = DestinationRequestRepository(db)
        self._repositories: dict[str, _RequestRepository] = {
            SourceRequest.repository_key: self._source_requests,
            DestinationRequest.repository_key: self._destination_requests,
        }

    # ------------------------------------------------------------------
    # Source requests
    # ------------------------------------------------------------------

    def find_existing_source_request(
        self,
        source: Source,
        query_parameter: str,
    ) -> SourceRequest | None:
        """Return the request a dedup-enabled source already holds for the pair."""
        if source.allows_multiple_requests:
            return None
        return self._source_requests.find_one_by(source, query_parameter)

    def create_source_request(
        self,
        source: Source,
        query_parameter: str,
        *,
        unit_of_work: UnitOfWork,
        data: dict[str, Any] | None = None,
    ) -> tuple[SourceRequest, bool]:
        """
        Reuse or create the source request for ``(source, query_parameter)``.

        Returns ``(request, created)``. A new request is only registered on
        ``unit_of_work``; it becomes durable when the unit of work commits.
        """

        existing = self.find_existing_source_request(source, query_parameter)
        if existing is not None:
            return existing, False

        source_request = SourceRequest(source, query_parameter, data=data)
        unit_of_work.register_save(source_request)
        return source_request, True

    def create_destination_requests(self, source_request: SourceRequest) -> list[DestinationRequest]:
        """
        Fan ``source_request`` out to every destination of its source and
        persist the result.

        Raises ConfigurationError, without saving anything, when the source
        has no destinations configured.
        """

        created = self._destination_request_creator.create(source_request)

        if not source_request.destination_requests:
            raise ConfigurationError(
                f"Destination Requests list is empty for source request {source_request.id}: "
                f"source {source_request.source_identifier!r} has no destinations configured."
            )

        self._source_requests.save(source_request)
        log_event(
            logger,
            logging.INFO,
            "destination_requests_created",
            source_request_id=source_request.id,
            source=source_request.source_identifier,
            created=len(created),
        )
        return created

    def find_source_request(self, source_request_id: uuid.UUID) -> SourceRequest | None:
        return self._source_requests.find(source_request_id)

    def find_destination_request(self, destination_request_id: uuid.UUID) -> DestinationRequest | None:
        return self._destination_requests.find(destination_request_id)

    def find_source_requests_by_source(
        self,
        source: Source,
        filters: SourceRequestFilters | None = None,
    ) -> list[SourceRequest]:
        filters = filters or SourceRequestFilters()
        target = filters.target or SearchTarget.SOURCE_REQUEST

        if target not in SearchTarget.ALL:
            raise ValidationError(
                f"Invalid Target: {target}. Availables: {', '.join(SearchTarget.ALL)}",
                value=target,
                allowed=SearchTarget.ALL,
            )

        if target == SearchTarget.DESTINATION_REQUEST:
            return self._source_requests.find_by_source_using_destination_request(source, filters)
        return self._source_requests.find_by_source(source, filters)

    # ------------------------------------------------------------------
    # Shared capabilities
    # ------------------------------------------------------------------

    def update_try_count(self, request: HasTryCount, try_count: int) -> None:
        if try_count < 0:
            raise ValidationError(
                f"Try count must be zero or positive, got {try_count}.",
                value=try_count,
            )
        request.try_count = try_count
        self._repository_for(request).save(request)

    def update_response(
        self,
        request: HasOutcome,
        success: bool,
        message: str | None = None,
        error_trace: str | None = None,
    ) -> None:
        request.outcome = Outcome(success=success, message=message, error_trace=error_trace)
        self._repository_for(request).save(request)

    def _repository_for(self, request: HasTryCount | HasOutcome) -> _RequestRepository:
        return self._repositories[request.repository_key]
