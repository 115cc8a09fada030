"""
tests/test_destination_request_creator.py

DestinationRequestCreator is pure: these tests build transient ORM objects
only, no database session is involved.
"""

from __future__ import annotations

from app.services.destination_request_creator import DestinationRequestCreator
from db.models.source import Destination, FinalDestination, Method, Source
from db.models.source_request import SourceRequest


def _source(*targets: tuple[str, str]) -> Source:
    source = Source(identifier="S1", allows_multiple_requests=False)
    for bridge, identifier in targets:
        source.destinations.append(
            Destination(
                method=Method(identifier=f"{bridge}-method"),
                final_destination=FinalDestination(bridge=bridge, identifier=identifier),
            )
        )
    return source


class TestDestinationRequestCreator:
    def test_creates_one_per_destination(self) -> None:
        source_request = SourceRequest(_source(("erp", "D1"), ("crm", "D2")), "q=1")

        created = DestinationRequestCreator().create(source_request)

        assert len(created) == 2
        assert {request.destination_identifier for request in created} == {"D1", "D2"}

    def test_attaches_to_source_request(self) -> None:
        source_request = SourceRequest(_source(("erp", "D1"), ("crm", "D2")), "q=1")

        created = DestinationRequestCreator().create(source_request)

        assert len(source_request.destination_requests) == 2
        assert all(request.source_request is source_request for request in created)
        assert set(map(id, source_request.destination_requests)) == set(map(id, created))

    def test_copies_source_data(self) -> None:
        source_request = SourceRequest(_source(("erp", "D1")), "q=1", data={"nested": {"k": 1}})

        (created,) = DestinationRequestCreator().create(source_request)
        created.data["nested"]["k"] = 2

        assert source_request.data == {"nested": {"k": 1}}

    def test_initial_state(self) -> None:
        source_request = SourceRequest(_source(("erp", "D1")), "q=1")

        (created,) = DestinationRequestCreator().create(source_request)

        assert created.try_count == 0
        assert created.success is None
        assert created.data == {"query_parameter": "q=1"}

    def test_no_destinations_creates_nothing(self) -> None:
        source_request = SourceRequest(_source(), "q=1")

        assert DestinationRequestCreator().create(source_request) == []
        assert source_request.destination_requests == []


class TestSourceRequestConstruction:
    def test_dedup_key_set_when_multiples_disallowed(self) -> None:
        request = SourceRequest(Source(identifier="S1", allows_multiple_requests=False), "q=1")
        assert request.dedup_key == "q=1"

    def test_dedup_key_empty_when_multiples_allowed(self) -> None:
        request = SourceRequest(Source(identifier="S2", allows_multiple_requests=True), "q=1")
        assert request.dedup_key is None

    def test_id_assigned_before_persistence(self) -> None:
        request = SourceRequest(Source(identifier="S1", allows_multiple_requests=False), "q=1")
        assert request.id is not None
