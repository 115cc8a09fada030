"""
Relay that drains the fan-out outbox and turns each signal into destination
requests.

Each message is claimed and handled in its own transaction. A message whose
source has no destinations is marked failed at once. Any other error counts
an attempt, leaves the message pending for a later run and moves on to the
next message; after ``max_attempts`` the message is marked failed. Delivery
of the destination requests to their bridges happens elsewhere.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from app.logging_utils import log_event
from app.services.destination_request_creator import DestinationRequestCreator
from app.services.errors import ConfigurationError
from app.services.request_service import RequestService
from db.models.fan_out_message import FanOutMessage, FanOutMessageStatus
from db.repositories.fan_out_message_repository import FanOutMessageRepository

logger = logging.getLogger(__name__)

# A message that failed this run but stays pending.
DEFERRED = "deferred"


@dataclass(frozen=True)
class FanOutRelaySummary:
    claimed: int = 0
    dispatched: int = 0
    discarded: int = 0
    failed: int = 0
    deferred: int = 0


class FanOutRelay:
    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | None = None,
        destination_request_creator: DestinationRequestCreator | None = None,
        batch_size: int = 100,
        max_attempts: int = 5,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._destination_request_creator = destination_request_creator or DestinationRequestCreator()
        self._batch_size = max(1, batch_size)
        self._max_attempts = max(1, max_attempts)

    def process_pending(self, *, limit: int | None = None) -> FanOutRelaySummary:
        budget = max(1, limit) if limit is not None else self._batch_size
        counts = {
            FanOutMessageStatus.DISPATCHED: 0,
            FanOutMessageStatus.DISCARDED: 0,
            FanOutMessageStatus.FAILED: 0,
            DEFERRED: 0,
        }
        # Messages that failed during this run are not claimed again until the next one.
        skipped: set[uuid.UUID] = set()

        with self._session_factory() as db:
            for _ in range(budget):
                status = self._process_next(db, skipped)
                if status is None:
                    break
                counts[status] += 1

        summary = FanOutRelaySummary(
            claimed=sum(counts.values()),
            dispatched=counts[FanOutMessageStatus.DISPATCHED],
            discarded=counts[FanOutMessageStatus.DISCARDED],
            failed=counts[FanOutMessageStatus.FAILED],
            deferred=counts[DEFERRED],
        )
        if summary.claimed:
            log_event(
                logger,
                logging.INFO,
                "fan_out_relay_batch",
                claimed=summary.claimed,
                dispatched=summary.dispatched,
                discarded=summary.discarded,
                failed=summary.failed,
                deferred=summary.deferred,
            )
        return summary

    def _process_next(self, db: Session, skipped: set[uuid.UUID]) -> str | None:
        claimed = FanOutMessageRepository(db).claim_pending(limit=1, exclude_ids=skipped)
        if not claimed:
            db.rollback()
            return None

        message = claimed[0]
        message_id = message.id
        try:
            status = self._dispatch(db, message)
            db.commit()
        except ConfigurationError as exc:
            self._mark_message_failed(db=db, message_id=message_id, exc=exc)
            return FanOutMessageStatus.FAILED
        except Exception as exc:
            logger.exception("Fan-out relay failed on message id=%s", message_id)
            skipped.add(message_id)
            return self._record_failed_attempt(db=db, message_id=message_id, exc=exc)
        return status

    def _dispatch(self, db: Session, message: FanOutMessage) -> str:
        outbox = FanOutMessageRepository(db)
        request_service = RequestService(
            db,
            destination_request_creator=self._destination_request_creator,
        )

        source_request = request_service.find_source_request(message.source_request_id)
        if source_request is None:
            outbox.mark_discarded(message, "Source request no longer exists.")
            log_event(
                logger,
                logging.WARNING,
                "fan_out_discarded",
                message_id=message.id,
                source_request_id=message.source_request_id,
            )
            return FanOutMessageStatus.DISCARDED

        if source_request.destination_requests:
            # Retry signal for a request that was already fanned out.
            outbox.mark_dispatched(message)
            log_event(
                logger,
                logging.INFO,
                "fan_out_redelivery",
                message_id=message.id,
                source_request_id=source_request.id,
                destination_requests=len(source_request.destination_requests),
            )
            return FanOutMessageStatus.DISPATCHED

        request_service.create_destination_requests(source_request)
        outbox.mark_dispatched(message)
        return FanOutMessageStatus.DISPATCHED

    def _record_failed_attempt(self, *, db: Session, message_id: uuid.UUID, exc: Exception) -> str:
        error_message = f"{type(exc).__name__}: {exc}"
        db.rollback()
        message = db.get(FanOutMessage, message_id)
        if message is None:
            logger.error("Unable to record a failed attempt because the message was not found id=%s", message_id)
            return DEFERRED

        outbox = FanOutMessageRepository(db)
        outbox.record_failed_attempt(message, error_message)
        if message.attempts >= self._max_attempts:
            outbox.mark_failed(message, error_message)
            status = FanOutMessageStatus.FAILED
        else:
            status = DEFERRED
        db.commit()

        log_event(
            logger,
            logging.WARNING if status == DEFERRED else logging.ERROR,
            "fan_out_attempt_failed",
            message_id=message_id,
            attempts=message.attempts,
            max_attempts=self._max_attempts,
            status=status,
            error=error_message,
        )
        return status

    def _mark_message_failed(self, *, db: Session, message_id: uuid.UUID, exc: Exception) -> None:
        error_message = f"{type(exc).__name__}: {exc}"
        log_event(
            logger,
            logging.ERROR,
            "fan_out_failed",
            message_id=message_id,
            error=error_message,
        )
        db.rollback()
        message = db.get(FanOutMessage, message_id)
        if message is None:
            logger.error("Unable to mark fan-out message as failed because it was not found id=%s", message_id)
            return
        FanOutMessageRepository(db).mark_failed(message, error_message)
        db.commit()
