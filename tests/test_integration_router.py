"""
tests/test_integration_router.py

Route handlers are called directly with a test session; no HTTP client.
"""

from __future__ import annotations

import uuid

import pytest
from fastapi import HTTPException

from app.api.routers.integration_router import (
    get_source_request,
    integrate,
    list_source_requests,
    retry_integrate,
    to_http_exception,
)
from app.config import get_query_settings
from app.schemas.integration import IntegrateRequest
from app.services.errors import (
    ConfigurationError,
    DependencyError,
    NotFoundError,
    UnitOfWorkError,
    ValidationError,
)
from app.services.integrator_service import IntegratorService


@pytest.fixture(autouse=True)
def _fresh_query_settings():
    get_query_settings.cache_clear()
    yield
    get_query_settings.cache_clear()


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (NotFoundError("missing"), 404),
        (ValidationError("bad target", value="x", allowed=("source_request",)), 400),
        (ConfigurationError("no destinations"), 409),
        (DependencyError("db down"), 503),
        (UnitOfWorkError("second publish"), 500),
    ],
)
def test_error_kinds_map_to_http_status(error, status_code) -> None:
    exc = to_http_exception(error)
    assert exc.status_code == status_code
    assert exc.detail == str(error)


class TestIntegrationRoutes:
    def test_integrate_returns_new_request(self, db, make_source) -> None:
        make_source("S1", destinations=[("erp", "D1", "insert")])

        response = integrate("S1", IntegrateRequest(query_parameter="q=1"), db=db, integrator=IntegratorService())

        assert response.source == "S1"
        assert response.query_parameter == "q=1"
        assert response.try_count == 0
        assert response.outcome.success is None
        assert response.destination_requests == []

    def test_integrate_unknown_source_is_404(self, db) -> None:
        with pytest.raises(HTTPException) as excinfo:
            integrate("NOPE", IntegrateRequest(query_parameter="q=1"), db=db, integrator=IntegratorService())

        assert excinfo.value.status_code == 404

    def test_retry_unknown_request_is_404(self, db) -> None:
        with pytest.raises(HTTPException) as excinfo:
            retry_integrate(uuid.uuid4(), db=db, integrator=IntegratorService())

        assert excinfo.value.status_code == 404

    def test_get_source_request(self, db, make_source) -> None:
        make_source("S1")
        created = IntegratorService().integrate(db=db, source_identifier="S1", query_parameter="q=1")

        response = get_source_request(created.id, db=db)

        assert response.source_request_id == created.id

    def test_list_with_invalid_target_is_400(self, db, make_source) -> None:
        make_source("S1")

        with pytest.raises(HTTPException) as excinfo:
            list_source_requests(
                "S1",
                target="bogus",
                query_parameter=None,
                success=None,
                created_from=None,
                created_to=None,
                limit=None,
                offset=0,
                db=db,
            )

        assert excinfo.value.status_code == 400
        assert "Invalid Target: bogus" in excinfo.value.detail

    def test_list_returns_requests_for_source(self, db, make_source) -> None:
        make_source("MULTI", allows_multiple_requests=True)
        integrator = IntegratorService()
        integrator.integrate(db=db, source_identifier="MULTI", query_parameter="q=1")
        integrator.integrate(db=db, source_identifier="MULTI", query_parameter="q=2")

        response = list_source_requests(
            "MULTI",
            target=None,
            query_parameter=None,
            success=None,
            created_from=None,
            created_to=None,
            limit=None,
            offset=0,
            db=db,
        )

        assert sorted(item.query_parameter for item in response.requests) == ["q=1", "q=2"]
