"""
Exceptions raised by the request-routing core.
"""

from __future__ import annotations

from collections.abc import Sequence


class IntegratorError(Exception):
    """Base exception for request-routing failures."""


class NotFoundError(IntegratorError):
    """Raised when a source identifier or request id does not resolve."""


class ValidationError(IntegratorError):
    """Raised for caller input the core refuses (HTTP 400 at the edge)."""

    def __init__(
        self,
        message: str,
        *,
        value: object | None = None,
        allowed: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.value = value
        self.allowed = tuple(allowed)


class ConfigurationError(IntegratorError):
    """Raised when fan-out yields no destination requests for a source."""


class DependencyError(IntegratorError):
    """Raised after rollback when persistence or scheduling fails."""


class UnitOfWorkError(IntegratorError):
    """Raised when a unit of work is used outside its contract."""
