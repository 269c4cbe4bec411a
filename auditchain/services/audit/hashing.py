"""
Canonicalization and SHA-256 digests for audit entries.

``canonicalize`` turns arbitrary JSON-like metadata into a stable string:
object keys are sorted at every depth, so two logically equal objects
hash identically regardless of key insertion order. It does not unify
types (``"1"`` and ``1`` stay distinct).

``compute_entry_hash`` digests the fixed-order tuple of hashed entry
fields. The algorithm is fixed for the life of a chain; every existing
entry was hashed with it.
"""

from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from auditchain.core.errors import MetadataSerializationError

HASH_ALGORITHM = "sha256"

# previous_hash of the first entry in every partition
GENESIS_HASH: str = "0" * 64


def _sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def _format_float(value: float) -> str:
    # Integral floats render like JSON numbers do: 1.0 -> "1"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _canonicalize(value: Any, path: str) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            return "null"
        return _format_float(value)
    if isinstance(value, str):
        return json.dumps(str(value), ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        items = (_canonicalize(item, f"{path}[{i}]") for i, item in enumerate(value))
        return "[" + ",".join(items) + "]"
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise MetadataSerializationError(
                    f"Object keys must be strings, got {type(key).__name__}", path=path
                )
        pairs = (
            json.dumps(key, ensure_ascii=False) + ":" + _canonicalize(value[key], f"{path}.{key}")
            for key in sorted(value)
        )
        return "{" + ",".join(pairs) + "}"
    raise MetadataSerializationError(
        f"Value of type {type(value).__name__} is not JSON-serializable", path=path
    )


def canonicalize(value: Any) -> str:
    """
    Serialize a JSON-like value deterministically.

    Raises:
        MetadataSerializationError: for values outside the JSON data model
            (sets, datetimes, arbitrary objects) or non-string object keys.
    """
    return _canonicalize(value, "$")


def hash_metadata(metadata: Any | None) -> str | None:
    """SHA-256 of the canonical metadata, or None when there is no metadata."""
    if metadata is None:
        return None
    return _sha256_hex(canonicalize(metadata))


def normalize_metadata(metadata: Any | None) -> Any | None:
    """
    Metadata in the form it is stored: its canonical JSON parsed back.

    Non-finite floats become None and tuples become lists, so any JSON
    column accepts the value and it re-hashes to the same metadata_hash.
    """
    if metadata is None:
        return None
    return json.loads(canonicalize(metadata))


def as_utc(moment: datetime) -> datetime:
    """Interpret naive datetimes (SQLite round-trips) as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def truncate_to_millis(moment: datetime) -> datetime:
    return moment.replace(microsecond=(moment.microsecond // 1000) * 1000)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. ``2026-01-02T03:04:05.678Z``."""
    moment = as_utc(moment)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def compute_entry_hash(
    *,
    timestamp: datetime,
    event_type: str,
    user_id: str | None,
    partition_key: str | None,
    resource_type: str | None,
    resource_id: str | None,
    metadata_hash: str | None,
    previous_hash: str,
    sequence_number: int,
) -> str:
    """Compute the SHA-256 hash of one chain entry.

    ``ip_address``, ``user_agent`` and the raw ``metadata`` are not part of
    the digest; metadata participates only through ``metadata_hash``.
    """
    payload = json.dumps(
        {
            "timestamp": format_timestamp(timestamp),
            "eventType": event_type,
            "userId": user_id,
            "partitionKey": partition_key,
            "resourceType": resource_type,
            "resourceId": resource_id,
            "metadataHash": metadata_hash,
            "previousHash": previous_hash,
            "sequenceNumber": str(sequence_number),
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return _sha256_hex(payload)


class HashedFields(Protocol):
    timestamp: datetime
    event_type: str
    user_id: str | None
    partition_key: str | None
    resource_type: str | None
    resource_id: str | None
    metadata_hash: str | None
    previous_hash: str
    sequence_number: int


def recompute_entry_hash(entry: HashedFields) -> str:
    """Recompute an entry's hash from its own stored fields."""
    return compute_entry_hash(
        timestamp=entry.timestamp,
        event_type=entry.event_type,
        user_id=entry.user_id,
        partition_key=entry.partition_key,
        resource_type=entry.resource_type,
        resource_id=entry.resource_id,
        metadata_hash=entry.metadata_hash,
        previous_hash=entry.previous_hash,
        sequence_number=entry.sequence_number,
    )
