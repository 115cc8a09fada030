"""
db/models/source.py

Source configuration: where inbound requests come from and which
destinations must receive a copy of them. Read-only to the routing core.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.source_request import SourceRequest


class Source(Base, TimestampMixin):
    """
    A configured origin of inbound events.

    ``allows_multiple_requests`` is the dedup policy: when false, a
    ``(source, query_parameter)`` pair maps to at most one source request.
    """

    __tablename__ = "sources"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    identifier: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    allows_multiple_requests: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="When false, integrate() deduplicates on (source, query_parameter)",
    )

    destinations: Mapped[list["Destination"]] = relationship(
        "Destination",
        back_populates="source",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    requests: Mapped[list["SourceRequest"]] = relationship(
        "SourceRequest",
        back_populates="source",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Source identifier={self.identifier!r} "
            f"allows_multiple_requests={self.allows_multiple_requests}>"
        )


class Method(Base):
    """Delivery method understood by a bridge (e.g. ``insert_order``)."""

    __tablename__ = "methods"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    identifier: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)


class FinalDestination(Base):
    """The external system reached through a named bridge."""

    __tablename__ = "final_destinations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    bridge: Mapped[str] = mapped_column(String(100), nullable=False)
    identifier: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("bridge", "identifier", name="uq_final_destinations_bridge_identifier"),
    )


class Destination(Base):
    """
    One target a source fans out to: a method on a final destination.
    """

    __tablename__ = "destinations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    source_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sources.id", ondelete="CASCADE"),
        nullable=False,
    )
    method_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("methods.id"),
        nullable=False,
    )
    final_destination_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("final_destinations.id"),
        nullable=False,
    )

    source: Mapped[Source] = relationship("Source", back_populates="destinations")
    method: Mapped[Method] = relationship("Method", lazy="joined")
    final_destination: Mapped[FinalDestination] = relationship("FinalDestination", lazy="joined")

    __table_args__ = (Index("ix_destinations_source_id", "source_id"),)

    def __repr__(self) -> str:
        return (
            f"<Destination method={self.method.identifier!r} "
            f"bridge={self.final_destination.bridge!r} "
            f"identifier={self.final_destination.identifier!r}>"
        )
