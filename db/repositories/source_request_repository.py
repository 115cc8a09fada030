"""
db/repositories/source_request_repository.py

Persistence for SourceRequest rows.

The caller controls commit/rollback; ``save`` only adds and flushes.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.destination_request import DestinationRequest
from db.models.source import Source
from db.models.source_request import SourceRequest
from db.repositories.types import SourceRequestFilters


class SourceRequestRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find(self, source_request_id: uuid.UUID) -> SourceRequest | None:
        return self._session.get(SourceRequest, source_request_id)

    def find_one_by(self, source: Source, query_parameter: str) -> SourceRequest | None:
        stmt = (
            select(SourceRequest)
            .where(
                SourceRequest.source_id == source.id,
                SourceRequest.query_parameter == query_parameter,
            )
            .order_by(SourceRequest.created_at.asc())
            .limit(1)
        )
        return self._session.scalars(stmt).first()

    def save(self, source_request: SourceRequest) -> SourceRequest:
        self._session.add(source_request)
        self._session.flush()
        return source_request

    def find_by_source(
        self,
        source: Source,
        filters: SourceRequestFilters,
    ) -> list[SourceRequest]:
        stmt = self._base_query(source, filters)
        if filters.success is not None:
            stmt = stmt.where(SourceRequest.success == filters.success)
        return self._paginate(stmt, filters)

    def find_by_source_using_destination_request(
        self,
        source: Source,
        filters: SourceRequestFilters,
    ) -> list[SourceRequest]:
        """
        Same as ``find_by_source`` but ``success`` is matched against the
        owned destination requests. A source request is returned once even
        when several of its destination requests match.
        """

        stmt = self._base_query(source, filters).join(
            DestinationRequest,
            DestinationRequest.source_request_id == SourceRequest.id,
        )
        if filters.success is not None:
            stmt = stmt.where(DestinationRequest.success == filters.success)
        return self._paginate(stmt.distinct(), filters)

    def _base_query(
        self,
        source: Source,
        filters: SourceRequestFilters,
    ) -> Select[tuple[SourceRequest]]:
        stmt: Select[tuple[SourceRequest]] = select(SourceRequest).where(
            SourceRequest.source_id == source.id
        )
        if filters.query_parameter:
            stmt = stmt.where(SourceRequest.query_parameter == filters.query_parameter)
        if filters.created_from is not None:
            stmt = stmt.where(SourceRequest.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(SourceRequest.created_at <= filters.created_to)
        return stmt

    def _paginate(
        self,
        stmt: Select[tuple[SourceRequest]],
        filters: SourceRequestFilters,
    ) -> list[SourceRequest]:
        stmt = (
            stmt.order_by(SourceRequest.created_at.desc(), SourceRequest.id)
            .offset(max(0, filters.offset))
            .limit(max(1, filters.limit))
        )
        return list(self._session.scalars(stmt).all())
