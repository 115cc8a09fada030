"""
Repository layer exports.
"""

from db.repositories.destination_request_repository import DestinationRequestRepository
from db.repositories.fan_out_message_repository import FanOutMessageRepository
from db.repositories.source_repository import SourceRepository
from db.repositories.source_request_repository import SourceRequestRepository
from db.repositories.types import SearchTarget, SourceRequestFilters

__all__ = [
    "DestinationRequestRepository",
    "FanOutMessageRepository",
    "SourceRepository",
    "SourceRequestRepository",
    "SearchTarget",
    "SourceRequestFilters",
]
