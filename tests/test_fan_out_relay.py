"""
tests/test_fan_out_relay.py

FanOutRelay draining the outbox written by the default publisher.
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.services.fan_out_relay import FanOutRelay, FanOutRelaySummary
from app.services.integrator_service import IntegratorService
from app.services.request_service import RequestService
from db.models.fan_out_message import FanOutMessage, FanOutMessageStatus
from db.models.source_request import SourceRequest
from db.repositories.fan_out_message_repository import FanOutMessageRepository


def _messages(db, source_request_id: uuid.UUID) -> list[FanOutMessage]:
    db.expire_all()
    return FanOutMessageRepository(db).list_for_source_request(source_request_id)


class TestFanOutRelay:
    def test_creates_destination_requests_and_marks_dispatched(
        self, db, session_factory, make_source
    ) -> None:
        make_source("S1", destinations=[("erp", "D1", "insert"), ("crm", "D2", "upsert")])
        request = IntegratorService().integrate(db=db, source_identifier="S1", query_parameter="q=1")

        summary = FanOutRelay(session_factory=session_factory).process_pending()

        assert summary == FanOutRelaySummary(claimed=1, dispatched=1)
        (message,) = _messages(db, request.id)
        assert message.status == FanOutMessageStatus.DISPATCHED
        assert message.processed_at is not None
        assert len(db.get(SourceRequest, request.id).destination_requests) == 2

    def test_empty_outbox_is_a_no_op(self, session_factory) -> None:
        summary = FanOutRelay(session_factory=session_factory).process_pending()

        assert summary == FanOutRelaySummary()

    def test_missing_destinations_marks_failed_and_continues(
        self, db, session_factory, make_source
    ) -> None:
        make_source("BROKEN")
        make_source("S1", destinations=[("erp", "D1", "insert")])
        integrator = IntegratorService()
        broken = integrator.integrate(db=db, source_identifier="BROKEN", query_parameter="q=1")
        healthy = integrator.integrate(db=db, source_identifier="S1", query_parameter="q=1")

        summary = FanOutRelay(session_factory=session_factory).process_pending()

        assert summary.claimed == 2
        assert summary.failed == 1
        assert summary.dispatched == 1
        (failed_message,) = _messages(db, broken.id)
        assert failed_message.status == FanOutMessageStatus.FAILED
        assert "ConfigurationError" in failed_message.error_message
        assert db.get(SourceRequest, broken.id).destination_requests == []
        assert len(db.get(SourceRequest, healthy.id).destination_requests) == 1

    def test_retry_signal_does_not_duplicate_destination_requests(
        self, db, session_factory, make_source
    ) -> None:
        make_source("S1", destinations=[("erp", "D1", "insert")])
        integrator = IntegratorService()
        request = integrator.integrate(db=db, source_identifier="S1", query_parameter="q=1")
        relay = FanOutRelay(session_factory=session_factory)
        relay.process_pending()

        db.expire_all()
        integrator.retry_integrate(db=db, source_request_id=request.id)
        summary = relay.process_pending()

        assert summary == FanOutRelaySummary(claimed=1, dispatched=1)
        db.expire_all()
        assert len(db.get(SourceRequest, request.id).destination_requests) == 1
        statuses = [message.status for message in _messages(db, request.id)]
        assert statuses == [FanOutMessageStatus.DISPATCHED, FanOutMessageStatus.DISPATCHED]

    def test_vanished_source_request_is_discarded(self, db, session_factory) -> None:
        orphan_id = uuid.uuid4()
        FanOutMessageRepository(db).enqueue(orphan_id)
        db.commit()

        summary = FanOutRelay(session_factory=session_factory).process_pending()

        assert summary == FanOutRelaySummary(claimed=1, discarded=1)
        (message,) = _messages(db, orphan_id)
        assert message.status == FanOutMessageStatus.DISCARDED

    def test_limit_caps_the_batch(self, db, session_factory, make_source) -> None:
        make_source("MULTI", allows_multiple_requests=True, destinations=[("erp", "D1", "insert")])
        integrator = IntegratorService()
        for index in range(3):
            integrator.integrate(db=db, source_identifier="MULTI", query_parameter=f"q={index}")

        relay = FanOutRelay(session_factory=session_factory)
        first = relay.process_pending(limit=2)
        second = relay.process_pending(limit=2)

        assert first.claimed == 2
        assert second.claimed == 1
        db.expire_all()
        pending = db.scalars(
            select(FanOutMessage).where(FanOutMessage.status == FanOutMessageStatus.PENDING)
        ).all()
        assert pending == []


class TestFailedAttempts:
    @pytest.fixture()
    def flaky_fan_out(self, monkeypatch):
        real_create = RequestService.create_destination_requests

        def create(self, source_request):
            if source_request.source_identifier == "FLAKY":
                raise OperationalError("INSERT INTO destination_requests", {}, Exception("db down"))
            return real_create(self, source_request)

        monkeypatch.setattr(RequestService, "create_destination_requests", create)

    def test_failing_message_does_not_block_the_rest(
        self, db, session_factory, make_source, flaky_fan_out
    ) -> None:
        make_source("FLAKY", destinations=[("erp", "D1", "insert")])
        make_source("S1", destinations=[("crm", "D2", "upsert")])
        integrator = IntegratorService()
        flaky = integrator.integrate(db=db, source_identifier="FLAKY", query_parameter="q=1")
        healthy = integrator.integrate(db=db, source_identifier="S1", query_parameter="q=1")

        summary = FanOutRelay(session_factory=session_factory, max_attempts=3).process_pending()

        assert summary == FanOutRelaySummary(claimed=2, dispatched=1, deferred=1)
        (healthy_message,) = _messages(db, healthy.id)
        assert healthy_message.status == FanOutMessageStatus.DISPATCHED
        assert len(db.get(SourceRequest, healthy.id).destination_requests) == 1
        (flaky_message,) = _messages(db, flaky.id)
        assert flaky_message.status == FanOutMessageStatus.PENDING
        assert flaky_message.attempts == 1
        assert "OperationalError" in flaky_message.error_message

    def test_marked_failed_after_max_attempts(
        self, db, session_factory, make_source, flaky_fan_out
    ) -> None:
        make_source("FLAKY", destinations=[("erp", "D1", "insert")])
        flaky = IntegratorService().integrate(db=db, source_identifier="FLAKY", query_parameter="q=1")
        relay = FanOutRelay(session_factory=session_factory, max_attempts=3)

        summaries = [relay.process_pending() for _ in range(3)]

        assert [summary.deferred for summary in summaries] == [1, 1, 0]
        assert summaries[-1].failed == 1
        (message,) = _messages(db, flaky.id)
        assert message.status == FanOutMessageStatus.FAILED
        assert message.attempts == 3
        assert message.processed_at is not None
        assert relay.process_pending() == FanOutRelaySummary()
