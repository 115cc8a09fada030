"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.capabilities import HasOutcome, HasTryCount, Outcome
from db.models.destination_request import DestinationRequest
from db.models.fan_out_message import FanOutMessage, FanOutMessageStatus
from db.models.source import Destination, FinalDestination, Method, Source
from db.models.source_request import SourceRequest

__all__ = [
    "Source",
    "Destination",
    "Method",
    "FinalDestination",
    "SourceRequest",
    "DestinationRequest",
    "FanOutMessage",
    "FanOutMessageStatus",
    "Outcome",
    "HasTryCount",
    "HasOutcome",
]
