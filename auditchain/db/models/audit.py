"""
Immutable audit log entry model.

Entries form one hash chain per partition: each row records the SHA-256
hash of the preceding row in the same partition. Rows are only ever
inserted; nothing in this package issues UPDATE or DELETE against them.

Uniqueness of (partition_key, sequence_number) is the last line of defence
against forked chains. SQL treats NULLs as distinct, so the global
partition (partition_key IS NULL) gets its own partial unique index.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from auditchain.db.base import Base, UUIDPrimaryKeyMixin


class AuditLogEntry(Base, UUIDPrimaryKeyMixin):
    """Single immutable audit log entry."""

    __tablename__ = "audit_log_entries"
    __table_args__ = (
        UniqueConstraint(
            "partition_key", "sequence_number", name="uq_audit_log_partition_sequence"
        ),
        Index(
            "uq_audit_log_global_sequence",
            "sequence_number",
            unique=True,
            sqlite_where=text("partition_key IS NULL"),
            postgresql_where=text("partition_key IS NULL"),
        ),
        Index("ix_audit_log_partition_timestamp", "partition_key", "timestamp"),
        Index("ix_audit_log_resource", "resource_type", "resource_id"),
    )

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    partition_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    resource_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[Any | None] = mapped_column("metadata", JSON, nullable=True)
    metadata_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Hash of the preceding entry in this partition; GENESIS_HASH for sequence 1
    previous_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    # Hash of this entry (covers every hashed field, previous_hash included)
    current_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<AuditLogEntry {self.event_type} "
            f"[{self.partition_key or 'global'}#{self.sequence_number}]>"
        )
