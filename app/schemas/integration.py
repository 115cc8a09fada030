"""
Schemas for source request integration endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class OutcomeResponse(BaseModel):
    success: bool | None = None
    message: str | None = None
    error_trace: str | None = None


class IntegrateRequest(BaseModel):
    query_parameter: str = Field(min_length=1, max_length=255)
    data: dict[str, Any] | None = None


class DestinationRequestResponse(BaseModel):
    destination_request_id: UUID
    bridge: str
    method: str
    destination_identifier: str
    try_count: int
    outcome: OutcomeResponse
    created_at: datetime | None = None


class SourceRequestResponse(BaseModel):
    source_request_id: UUID
    source: str
    query_parameter: str
    try_count: int
    outcome: OutcomeResponse
    data: dict[str, Any] | None = None
    created_at: datetime | None = None
    destination_requests: list[DestinationRequestResponse] = Field(default_factory=list)


class SourceRequestListResponse(BaseModel):
    requests: list[SourceRequestResponse] = Field(default_factory=list)
