"""
Scheduling port for fan-out signals and its transactional-outbox adapter.
"""

from __future__ import annotations

import logging
import uuid
from typing import Protocol

from sqlalchemy.orm import Session

from app.logging_utils import log_event
from db.repositories.fan_out_message_repository import FanOutMessageRepository

logger = logging.getLogger(__name__)


class FanOutPublisher(Protocol):
    """
    Enqueues an at-least-once fan-out signal for a source request.

    Consumers must tolerate duplicates: a retry legitimately re-publishes.
    """

    def publish(self, source_request_id: uuid.UUID) -> None:
        ...


class OutboxFanOutPublisher:
    """
    Writes the signal as a ``fan_out_messages`` row in the caller's session,
    so it commits or rolls back together with the source request.
    """

    def __init__(self, session: Session) -> None:
        self._repository = FanOutMessageRepository(session)

    def publish(self, source_request_id: uuid.UUID) -> None:
        message = self._repository.enqueue(source_request_id)
        log_event(
            logger,
            logging.DEBUG,
            "fan_out_enqueued",
            message_id=message.id,
            source_request_id=source_request_id,
        )
