"""Audit chain schemas: event input, stored entries and result shapes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuditEventIn(BaseModel):
    """An event the host application wants recorded."""

    event_type: str = Field(min_length=1, max_length=100)
    user_id: str | None = Field(default=None, max_length=64)
    partition_key: str | None = Field(
        default=None,
        max_length=64,
        description="Chain scope such as a team id; None is the global chain",
    )
    resource_type: str | None = Field(default=None, max_length=100)
    resource_id: str | None = Field(default=None, max_length=64)
    metadata: Any | None = None
    ip_address: str | None = Field(default=None, max_length=64)
    user_agent: str | None = None

    @field_validator("event_type", "resource_type", mode="before")
    @classmethod
    def enum_to_value(cls, v: Any) -> Any:
        # StrEnum members are stored and hashed as their plain value
        return v.value if isinstance(v, Enum) else v


class AuditEntry(BaseModel):
    """A persisted, immutable link in a partition's hash chain."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    event_type: str
    user_id: str | None
    partition_key: str | None
    resource_type: str | None
    resource_id: str | None
    metadata: Any | None
    metadata_hash: str | None
    ip_address: str | None
    user_agent: str | None
    previous_hash: str
    current_hash: str
    sequence_number: int


class ChainErrorKind(StrEnum):
    LINKAGE = "linkage"
    HASH_MISMATCH = "hash_mismatch"
    SEQUENCE_GAP = "sequence_gap"


class ChainError(BaseModel):
    entry_id: str
    sequence_number: int
    kind: ChainErrorKind
    message: str


class ChainVerificationResult(BaseModel):
    is_valid: bool = True
    total_entries: int = 0
    verified_entries: int = 0
    first_invalid_entry: str | None = Field(
        default=None, description="ID of the first entry that failed any check"
    )
    errors: list[ChainError] = Field(default_factory=list)


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: datetime = Field(alias="from")
    to: datetime


class ExportMetadata(BaseModel):
    exported_at: datetime
    exported_by: str
    partition_key: str | None
    date_range: DateRange
    total_records: int
    checksum: str
    hash_algorithm: str


class ComplianceExport(BaseModel):
    entries: list[AuditEntry]
    chain_verification: ChainVerificationResult
    export_metadata: ExportMetadata


class IntegrityStatus(BaseModel):
    chain_length: int
    latest_hash: str
    is_valid: bool
    genesis_hash: str
    last_verified_at: datetime
