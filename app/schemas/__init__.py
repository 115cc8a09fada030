"""
app/schemas package marker.
"""

from app.schemas.integration import (
    DestinationRequestResponse,
    IntegrateRequest,
    OutcomeResponse,
    SourceRequestListResponse,
    SourceRequestResponse,
)

__all__ = [
    "DestinationRequestResponse",
    "IntegrateRequest",
    "OutcomeResponse",
    "SourceRequestListResponse",
    "SourceRequestResponse",
]
