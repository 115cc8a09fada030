"""
db/models/capabilities.py

Capabilities shared by source and destination requests.

Both request kinds embed an ``Outcome`` value (mapped as a SQLAlchemy
composite over the ``success`` / ``msg`` / ``error_tracer`` columns) and a
``try_count`` column. Services operate on the protocols below rather than on
the concrete entity classes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Outcome:
    """
    Result of the last attempt: success flag plus diagnostics.

    ``success`` is ``None`` until an outcome has been recorded.
    """

    success: bool | None = None
    message: str | None = None
    error_trace: str | None = None

    @property
    def is_recorded(self) -> bool:
        return self.success is not None


class HasTryCount(Protocol):
    repository_key: str
    try_count: int


class HasOutcome(Protocol):
    repository_key: str
    outcome: Outcome
