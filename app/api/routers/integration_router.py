"""
Source request integration endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.config import get_query_settings
from app.schemas.integration import (
    DestinationRequestResponse,
    IntegrateRequest,
    OutcomeResponse,
    SourceRequestListResponse,
    SourceRequestResponse,
)
from app.services.errors import (
    ConfigurationError,
    DependencyError,
    IntegratorError,
    NotFoundError,
    UnitOfWorkError,
    ValidationError,
)
from app.services.integrator_service import IntegratorService, get_integrator_service
from app.services.request_service import RequestService
from db.models.capabilities import Outcome
from db.models.destination_request import DestinationRequest
from db.models.source_request import SourceRequest
from db.repositories.source_repository import SourceRepository
from db.repositories.types import SourceRequestFilters
from db.session import get_db

router = APIRouter(tags=["integration"])

_STATUS_BY_ERROR: tuple[tuple[type[IntegratorError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ConfigurationError, status.HTTP_409_CONFLICT),
    (DependencyError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (UnitOfWorkError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_exception(exc: IntegratorError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "/sources/{source_identifier}/requests",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SourceRequestResponse,
)
def integrate(
    source_identifier: str,
    payload: IntegrateRequest,
    db: Session = Depends(get_db),
    integrator: IntegratorService = Depends(get_integrator_service),
) -> SourceRequestResponse:
    try:
        source_request = integrator.integrate(
            db=db,
            source_identifier=source_identifier,
            query_parameter=payload.query_parameter,
            data=payload.data,
        )
    except IntegratorError as exc:
        raise to_http_exception(exc) from exc
    return _to_source_request_response(source_request)


@router.post(
    "/source-requests/{source_request_id}/retry",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SourceRequestResponse,
)
def retry_integrate(
    source_request_id: UUID,
    db: Session = Depends(get_db),
    integrator: IntegratorService = Depends(get_integrator_service),
) -> SourceRequestResponse:
    try:
        source_request = integrator.retry_integrate(db=db, source_request_id=source_request_id)
    except IntegratorError as exc:
        raise to_http_exception(exc) from exc
    return _to_source_request_response(source_request)


@router.get("/source-requests/{source_request_id}", response_model=SourceRequestResponse)
def get_source_request(
    source_request_id: UUID,
    db: Session = Depends(get_db),
) -> SourceRequestResponse:
    source_request = RequestService(db).find_source_request(source_request_id)
    if source_request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Source Request not found: {source_request_id}",
        )
    return _to_source_request_response(source_request)


@router.get("/sources/{source_identifier}/requests", response_model=SourceRequestListResponse)
def list_source_requests(
    source_identifier: str,
    target: str | None = Query(default=None, description="source_request or destination_request"),
    query_parameter: str | None = Query(default=None),
    success: bool | None = Query(default=None),
    created_from: datetime | None = Query(default=None),
    created_to: datetime | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> SourceRequestListResponse:
    source = SourceRepository(db).find_by_identifier(source_identifier)
    if source is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Source not found: {source_identifier}",
        )

    settings = get_query_settings()
    filters = SourceRequestFilters(
        target=target,
        query_parameter=query_parameter,
        success=success,
        created_from=created_from,
        created_to=created_to,
        limit=min(limit or settings.default_limit, settings.max_limit),
        offset=offset,
    )
    try:
        requests = RequestService(db).find_source_requests_by_source(source, filters)
    except IntegratorError as exc:
        raise to_http_exception(exc) from exc
    return SourceRequestListResponse(requests=[_to_source_request_response(item) for item in requests])


def _to_outcome_response(outcome: Outcome | None) -> OutcomeResponse:
    if outcome is None:
        return OutcomeResponse()
    return OutcomeResponse(
        success=outcome.success,
        message=outcome.message,
        error_trace=outcome.error_trace,
    )


def _to_destination_request_response(request: DestinationRequest) -> DestinationRequestResponse:
    return DestinationRequestResponse(
        destination_request_id=request.id,
        bridge=request.bridge,
        method=request.method_identifier,
        destination_identifier=request.destination_identifier,
        try_count=request.try_count,
        outcome=_to_outcome_response(request.outcome),
        created_at=request.created_at,
    )


def _to_source_request_response(request: SourceRequest) -> SourceRequestResponse:
    return SourceRequestResponse(
        source_request_id=request.id,
        source=request.source_identifier,
        query_parameter=request.query_parameter,
        try_count=request.try_count,
        outcome=_to_outcome_response(request.outcome),
        data=request.data,
        created_at=request.created_at,
        destination_requests=[
            _to_destination_request_response(item) for item in request.destination_requests
        ],
    )
