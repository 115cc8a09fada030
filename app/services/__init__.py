"""
app/services package marker.
"""

from app.services.destination_request_creator import DestinationRequestCreator
from app.services.errors import (
    ConfigurationError,
    DependencyError,
    IntegratorError,
    NotFoundError,
    ValidationError,
)
from app.services.fan_out_relay import FanOutRelay, FanOutRelaySummary
from app.services.integrator_service import IntegratorService, get_integrator_service
from app.services.request_service import RequestService

__all__ = [
    "DestinationRequestCreator",
    "IntegratorError",
    "NotFoundError",
    "ValidationError",
    "ConfigurationError",
    "DependencyError",
    "FanOutRelay",
    "FanOutRelaySummary",
    "IntegratorService",
    "get_integrator_service",
    "RequestService",
]
