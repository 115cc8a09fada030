"""
db/models/fan_out_message.py

Transactional outbox row carrying one fan-out signal for a source request.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class FanOutMessageStatus:
    PENDING = "pending"
    DISPATCHED = "dispatched"
    DISCARDED = "discarded"
    FAILED = "failed"


class FanOutMessage(Base, TimestampMixin):
    __tablename__ = "fan_out_messages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Not a foreign key: the consumer tolerates signals for vanished requests.
    source_request_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=FanOutMessageStatus.PENDING,
        comment="pending, dispatched, discarded, failed",
    )

    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_fan_out_messages_status_created_at", "status", "created_at"),
        Index("ix_fan_out_messages_source_request_id", "source_request_id"),
    )
