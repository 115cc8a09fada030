"""
Typed DTOs used by the source request query flows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


class SearchTarget:
    """Which table a source request filter is evaluated against."""

    SOURCE_REQUEST = "source_request"
    DESTINATION_REQUEST = "destination_request"

    ALL = (SOURCE_REQUEST, DESTINATION_REQUEST)


@dataclass(frozen=True)
class SourceRequestFilters:
    """
    Filters accepted by ``find_by_source`` and
    ``find_by_source_using_destination_request``.

    ``success`` applies to the source request itself, or to its destination
    requests when ``target`` is ``SearchTarget.DESTINATION_REQUEST``.
    """

    target: str | None = None
    query_parameter: str | None = None
    success: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    limit: int = 100
    offset: int = 0
