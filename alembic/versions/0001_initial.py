"""Initial schema — audit log entries.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "audit_log_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("partition_key", sa.String(64), nullable=True),
        sa.Column("resource_type", sa.String(100), nullable=True),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("metadata_hash", sa.String(64), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("previous_hash", sa.String(64), nullable=False),
        sa.Column("current_hash", sa.String(64), nullable=False),
        sa.Column("sequence_number", sa.BigInteger, nullable=False),
        sa.UniqueConstraint(
            "partition_key", "sequence_number", name="uq_audit_log_partition_sequence"
        ),
    )
    # NULL partition keys are distinct under the constraint above
    op.create_index(
        "uq_audit_log_global_sequence",
        "audit_log_entries",
        ["sequence_number"],
        unique=True,
        sqlite_where=sa.text("partition_key IS NULL"),
        postgresql_where=sa.text("partition_key IS NULL"),
    )
    op.create_index(
        "ix_audit_log_partition_timestamp",
        "audit_log_entries",
        ["partition_key", "timestamp"],
    )
    op.create_index(
        "ix_audit_log_resource",
        "audit_log_entries",
        ["resource_type", "resource_id"],
    )
    op.create_index("ix_audit_log_entries_event_type", "audit_log_entries", ["event_type"])
    op.create_index("ix_audit_log_entries_user_id", "audit_log_entries", ["user_id"])


def downgrade() -> None:
    op.drop_table("audit_log_entries")
