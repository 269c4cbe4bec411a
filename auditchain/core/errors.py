"""
Structured error taxonomy for the audit chain.

Every error has:
  - A stable error code (prefixed by domain)
  - A human-readable message
  - An optional detail dict for machine consumers

Chain integrity violations are deliberately absent: they are reported as
data on verification results and never raised.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Stable, versioned error codes. Never reuse a retired code."""

    # Audit
    AUDIT_APPEND_FAILED = "AUD_001"
    AUDIT_APPEND_CONFLICT = "AUD_002"
    AUDIT_METADATA_UNSERIALIZABLE = "AUD_003"
    AUDIT_STORE_UNAVAILABLE = "AUD_004"

    # Generic
    VALIDATION_ERROR = "GEN_001"


class AppError(Exception):
    """Base class for all auditchain errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "detail": self.detail,
            }
        }


# ── Typed convenience subclasses ──────────────────────────────────────── #


class AppendFailedError(AppError):
    """The durable write of an audit entry did not complete."""

    def __init__(self, message: str, partition_key: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.AUDIT_APPEND_FAILED,
            message=message,
            detail={"partition_key": partition_key},
        )
        self.partition_key = partition_key


class AppendConflictError(AppError):
    """Another writer already holds this (partition, sequence number) slot."""

    def __init__(self, partition_key: str | None, sequence_number: int) -> None:
        super().__init__(
            code=ErrorCode.AUDIT_APPEND_CONFLICT,
            message=(
                f"Sequence number {sequence_number} already exists "
                f"in partition {partition_key!r}"
            ),
            detail={"partition_key": partition_key, "sequence_number": sequence_number},
        )
        self.partition_key = partition_key
        self.sequence_number = sequence_number


class MetadataSerializationError(AppError):
    def __init__(self, message: str, path: str = "$") -> None:
        super().__init__(
            code=ErrorCode.AUDIT_METADATA_UNSERIALIZABLE,
            message=message,
            detail={"path": path},
        )
        self.path = path


class StoreUnavailableError(AppError):
    """The durable store could not be read."""

    def __init__(self, message: str, partition_key: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.AUDIT_STORE_UNAVAILABLE,
            message=message,
            detail={"partition_key": partition_key},
        )
        self.partition_key = partition_key


class ValidationError(AppError):
    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            detail=detail,
        )


class InvalidDateRangeError(ValidationError):
    def __init__(self, from_: str, to: str) -> None:
        super().__init__(
            "Export window start must not be after its end",
            detail={"from": from_, "to": to},
        )
