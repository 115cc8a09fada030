"""
db/models/source_request.py

Source request: one logical unit of inbound work and the owner of its
destination requests.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from db.base import Base, JSONDocument, TimestampMixin
from db.models.capabilities import Outcome

if TYPE_CHECKING:
    from db.models.destination_request import DestinationRequest
    from db.models.source import Source


class SourceRequest(Base, TimestampMixin):
    """
    Durable record of one ``integrate`` call.

    ``dedup_key`` mirrors ``query_parameter`` only for sources that disallow
    multiple requests. The unique constraint on ``(source_id, dedup_key)``
    keeps at most one such request per pair; NULL keys never collide, so
    sources that allow multiples are unaffected.
    """

    __tablename__ = "source_requests"

    repository_key = "source_request"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    source_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sources.id", ondelete="CASCADE"),
        nullable=False,
    )

    query_parameter: Mapped[str] = mapped_column(String(255), nullable=False)

    dedup_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    data: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
        comment="Opaque payload copied into every destination request",
    )

    try_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    success: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    message: Mapped[str | None] = mapped_column("msg", Text, nullable=True)
    error_trace: Mapped[str | None] = mapped_column("error_tracer", Text, nullable=True)
    outcome: Mapped[Outcome] = composite(Outcome, "success", "message", "error_trace")

    # ── Relationships ──────────────────────────────────────────────────────────

    source: Mapped["Source"] = relationship("Source", back_populates="requests")

    destination_requests: Mapped[list["DestinationRequest"]] = relationship(
        "DestinationRequest",
        back_populates="source_request",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("source_id", "dedup_key", name="uq_source_requests_source_dedup_key"),
        Index("ix_source_requests_source_id_query_parameter", "source_id", "query_parameter"),
        Index("ix_source_requests_success", "success"),
        Index("ix_source_requests_created_at", "created_at"),
    )

    def __init__(
        self,
        source: "Source",
        query_parameter: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        # The id is assigned up front so a fan-out can be published before flush.
        self.id = uuid.uuid4()
        self.source = source
        self.query_parameter = query_parameter
        self.dedup_key = None if source.allows_multiple_requests else query_parameter
        self.data = dict(data) if data is not None else {"query_parameter": query_parameter}
        self.try_count = 0
        self.outcome = Outcome()
        self.destination_requests = []

    @property
    def source_identifier(self) -> str:
        return self.source.identifier

    def __repr__(self) -> str:
        return (
            f"<SourceRequest id={self.id} source={self.source_identifier!r} "
            f"query_parameter={self.query_parameter!r}>"
        )
