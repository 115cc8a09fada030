"""
Repository for the fan-out outbox: enqueueing signals and tracking their
consumption.
"""

from __future__ import annotations

import uuid
from collections.abc import Collection
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.fan_out_message import FanOutMessage, FanOutMessageStatus


class FanOutMessageRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def enqueue(self, source_request_id: uuid.UUID) -> FanOutMessage:
        message = FanOutMessage(
            source_request_id=source_request_id,
            status=FanOutMessageStatus.PENDING,
        )
        self._session.add(message)
        self._session.flush()
        return message

    def claim_pending(
        self,
        *,
        limit: int = 100,
        exclude_ids: Collection[uuid.UUID] = (),
    ) -> list[FanOutMessage]:
        """
        Lock up to ``limit`` pending messages, oldest first, skipping
        ``exclude_ids``.

        Rows locked by another relay are skipped on PostgreSQL; dialects
        without row locks simply return the oldest rows.
        """

        stmt = (
            select(FanOutMessage)
            .where(FanOutMessage.status == FanOutMessageStatus.PENDING)
            .order_by(FanOutMessage.created_at.asc(), FanOutMessage.id)
            .limit(max(1, limit))
            .with_for_update(skip_locked=True)
        )
        if exclude_ids:
            stmt = stmt.where(FanOutMessage.id.not_in(list(exclude_ids)))
        return list(self._session.scalars(stmt).all())

    def list_for_source_request(self, source_request_id: uuid.UUID) -> list[FanOutMessage]:
        stmt = (
            select(FanOutMessage)
            .where(FanOutMessage.source_request_id == source_request_id)
            .order_by(FanOutMessage.created_at.asc())
        )
        return list(self._session.scalars(stmt).all())

    def mark_dispatched(self, message: FanOutMessage) -> FanOutMessage:
        return self._mark(message, FanOutMessageStatus.DISPATCHED, None)

    def mark_discarded(self, message: FanOutMessage, reason: str) -> FanOutMessage:
        return self._mark(message, FanOutMessageStatus.DISCARDED, reason)

    def record_failed_attempt(self, message: FanOutMessage, error_message: str) -> FanOutMessage:
        """Count a failed attempt and keep the message pending for a later run."""
        message.attempts = (message.attempts or 0) + 1
        message.error_message = error_message[:2000]
        self._session.add(message)
        return message

    def mark_failed(self, message: FanOutMessage, error_message: str) -> FanOutMessage:
        return self._mark(message, FanOutMessageStatus.FAILED, error_message[:2000])

    def _mark(
        self,
        message: FanOutMessage,
        status: str,
        error_message: str | None,
    ) -> FanOutMessage:
        message.status = status
        message.error_message = error_message
        message.processed_at = datetime.now(timezone.utc)
        self._session.add(message)
        return message
