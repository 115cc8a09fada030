"""create integrator tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _outcome_columns() -> list[sa.Column]:
    return [
        sa.Column("try_count", sa.Integer(), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=True),
        sa.Column("msg", sa.Text(), nullable=True),
        sa.Column("error_tracer", sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "sources",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("identifier", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("allows_multiple_requests", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("identifier"),
    )
    op.create_table(
        "methods",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("identifier", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("identifier"),
    )
    op.create_table(
        "final_destinations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("bridge", sa.String(length=100), nullable=False),
        sa.Column("identifier", sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bridge", "identifier", name="uq_final_destinations_bridge_identifier"),
    )
    op.create_table(
        "destinations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_id", sa.Uuid(), nullable=False),
        sa.Column("method_id", sa.Uuid(), nullable=False),
        sa.Column("final_destination_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["source_id"], ["sources.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["method_id"], ["methods.id"]),
        sa.ForeignKeyConstraint(["final_destination_id"], ["final_destinations.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_destinations_source_id", "destinations", ["source_id"], unique=False)

    op.create_table(
        "source_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_id", sa.Uuid(), nullable=False),
        sa.Column("query_parameter", sa.String(length=255), nullable=False),
        sa.Column("dedup_key", sa.String(length=255), nullable=True),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_outcome_columns(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["source_id"], ["sources.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("source_id", "dedup_key", name="uq_source_requests_source_dedup_key"),
    )
    op.create_index(
        "ix_source_requests_source_id_query_parameter",
        "source_requests",
        ["source_id", "query_parameter"],
        unique=False,
    )
    op.create_index("ix_source_requests_success", "source_requests", ["success"], unique=False)
    op.create_index("ix_source_requests_created_at", "source_requests", ["created_at"], unique=False)

    op.create_table(
        "destination_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_request_id", sa.Uuid(), nullable=False),
        sa.Column("destination_id", sa.Uuid(), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_outcome_columns(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["source_request_id"], ["source_requests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["destination_id"], ["destinations.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_destination_requests_source_request_id",
        "destination_requests",
        ["source_request_id"],
        unique=False,
    )
    op.create_index("ix_destination_requests_success", "destination_requests", ["success"], unique=False)

    op.create_table(
        "fan_out_messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_request_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_fan_out_messages_status_created_at",
        "fan_out_messages",
        ["status", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_fan_out_messages_source_request_id",
        "fan_out_messages",
        ["source_request_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_fan_out_messages_source_request_id", table_name="fan_out_messages")
    op.drop_index("ix_fan_out_messages_status_created_at", table_name="fan_out_messages")
    op.drop_table("fan_out_messages")
    op.drop_index("ix_destination_requests_success", table_name="destination_requests")
    op.drop_index("ix_destination_requests_source_request_id", table_name="destination_requests")
    op.drop_table("destination_requests")
    op.drop_index("ix_source_requests_created_at", table_name="source_requests")
    op.drop_index("ix_source_requests_success", table_name="source_requests")
    op.drop_index("ix_source_requests_source_id_query_parameter", table_name="source_requests")
    op.drop_table("source_requests")
    op.drop_index("ix_destinations_source_id", table_name="destinations")
    op.drop_table("destinations")
    op.drop_table("final_destinations")
    op.drop_table("methods")
    op.drop_table("sources")
