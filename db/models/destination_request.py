"""
db/models/destination_request.py

Destination request: one delivery of a source request's data to one
configured destination.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from db.base import Base, JSONDocument, TimestampMixin
from db.models.capabilities import Outcome

if TYPE_CHECKING:
    from db.models.source import Destination, Method
    from db.models.source_request import SourceRequest


class DestinationRequest(Base, TimestampMixin):
    __tablename__ = "destination_requests"

    repository_key = "destination_request"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    source_request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("source_requests.id", ondelete="CASCADE"),
        nullable=False,
    )

    destination_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("destinations.id"),
        nullable=False,
    )

    data: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)

    try_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    success: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    message: Mapped[str | None] = mapped_column("msg", Text, nullable=True)
    error_trace: Mapped[str | None] = mapped_column("error_tracer", Text, nullable=True)
    outcome: Mapped[Outcome] = composite(Outcome, "success", "message", "error_trace")

    # ── Relationships ──────────────────────────────────────────────────────────

    source_request: Mapped["SourceRequest"] = relationship(
        "SourceRequest",
        back_populates="destination_requests",
    )

    destination: Mapped["Destination"] = relationship("Destination", lazy="joined")

    __table_args__ = (
        Index("ix_destination_requests_source_request_id", "source_request_id"),
        Index("ix_destination_requests_success", "success"),
    )

    def __init__(
        self,
        destination: "Destination",
        source_request: "SourceRequest",
        data: dict[str, Any] | None,
    ) -> None:
        self.id = uuid.uuid4()
        self.destination = destination
        self.source_request = source_request
        self.data = data
        self.try_count = 0
        self.outcome = Outcome()

    @property
    def method(self) -> "Method":
        return self.destination.method

    @property
    def method_identifier(self) -> str:
        return self.destination.method.identifier

    @property
    def bridge(self) -> str:
        return self.destination.final_destination.bridge

    @property
    def destination_identifier(self) -> str:
        return self.destination.final_destination.identifier

    @property
    def source_identifier(self) -> str:
        return self.source_request.source_identifier

    def __repr__(self) -> str:
        return (
            f"<DestinationRequest id={self.id} bridge={self.bridge!r} "
            f"method={self.method_identifier!r}>"
        )
