"""
Immutable audit logger.

Every entry is SHA-256 hashed together with the hash of the immediately
preceding entry in the same partition. This forms one cryptographic hash
chain per partition (tenant, team, or the global ``None`` partition) that
makes tampering with historical records detectable.

Appends to one partition are a read-modify-write cycle on the chain tail,
so they are serialised three ways: an in-process asyncio lock per
partition, the store's partition lock (PostgreSQL advisory lock), and the
store's unique (partition_key, sequence_number) constraint. A conflict
reported by the constraint is resolved by re-reading the tail.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import Counter
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import structlog

from auditchain.config.settings import get_settings
from auditchain.core import metrics
from auditchain.core.errors import AppendConflictError, AppendFailedError, StoreUnavailableError
from auditchain.db.base import utcnow
from auditchain.schemas.audit import AuditEntry, AuditEventIn
from auditchain.services.audit.context import HeaderValue, client_info_from_headers
from auditchain.services.audit.hashing import (
    GENESIS_HASH,
    compute_entry_hash,
    hash_metadata,
    normalize_metadata,
    truncate_to_millis,
)
from auditchain.services.audit.store import AuditStore, ChainTail

_log = structlog.get_logger(__name__)


def _build_entry(
    event: AuditEventIn,
    metadata: Any | None,
    metadata_hash: str | None,
    tail: ChainTail | None,
) -> AuditEntry:
    previous_hash = tail.current_hash if tail is not None else GENESIS_HASH
    sequence_number = tail.sequence_number + 1 if tail is not None else 1
    timestamp = truncate_to_millis(utcnow())

    current_hash = compute_entry_hash(
        timestamp=timestamp,
        event_type=event.event_type,
        user_id=event.user_id,
        partition_key=event.partition_key,
        resource_type=event.resource_type,
        resource_id=event.resource_id,
        metadata_hash=metadata_hash,
        previous_hash=previous_hash,
        sequence_number=sequence_number,
    )
    return AuditEntry(
        id=str(uuid.uuid4()),
        timestamp=timestamp,
        event_type=event.event_type,
        user_id=event.user_id,
        partition_key=event.partition_key,
        resource_type=event.resource_type,
        resource_id=event.resource_id,
        metadata=metadata,
        metadata_hash=metadata_hash,
        ip_address=event.ip_address,
        user_agent=event.user_agent,
        previous_hash=previous_hash,
        current_hash=current_hash,
        sequence_number=sequence_number,
    )


class AuditLogger:
    """
    Appends entries to per-partition audit hash chains.

    Usage:
        audit = AuditLogger(SqlAlchemyAuditStore())
        entry = await audit.log(
            event_type=AuditEventType.WIRE_CONFIRMED,
            user_id=admin.id,
            partition_key=team.id,
            resource_type=ResourceType.TRANSACTION,
            resource_id=tx.id,
            metadata={"amount": "250000.00", "currency": "USD"},
        )
    """

    def __init__(self, store: AuditStore, *, max_retries: int | None = None) -> None:
        self._store = store
        self._max_retries = (
            get_settings().audit_append_max_retries if max_retries is None else max_retries
        )
        # Per-partition locks live only while an append holds or awaits them
        self._locks: dict[str | None, asyncio.Lock] = {}
        self._lock_users: Counter[str | None] = Counter()

    @asynccontextmanager
    async def _partition_guard(self, partition_key: str | None) -> AsyncIterator[None]:
        lock = self._locks.setdefault(partition_key, asyncio.Lock())
        self._lock_users[partition_key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[partition_key] -= 1
            if not self._lock_users[partition_key]:
                del self._lock_users[partition_key]
                del self._locks[partition_key]

    async def log(self, event: AuditEventIn | None = None, **fields: Any) -> AuditEntry:
        """
        Append one event to its partition's chain and return the stored entry.

        Accepts either an ``AuditEventIn`` or its fields as keyword arguments.

        Raises:
            MetadataSerializationError: metadata is not JSON-like. Raised
                before the store is touched.
            AppendFailedError: the entry was not durably written. The caller
                owns the policy for the audited business operation.
        """
        if event is None:
            event = AuditEventIn(**fields)
        elif fields:
            raise TypeError("Pass either an AuditEventIn or keyword fields, not both")

        metadata_hash = hash_metadata(event.metadata)
        metadata = normalize_metadata(event.metadata)
        partition_key = event.partition_key

        async with self._partition_guard(partition_key), self._store.partition_lock(partition_key):
            for attempt in range(self._max_retries + 1):
                try:
                    tail = await self._store.query_tail(partition_key)
                except StoreUnavailableError as exc:
                    metrics.APPENDS.labels(outcome="failed").inc()
                    raise AppendFailedError(
                        "Chain tail could not be read", partition_key
                    ) from exc

                entry = _build_entry(event, metadata, metadata_hash, tail)
                try:
                    await self._store.append(entry)
                except AppendConflictError:
                    metrics.APPEND_CONFLICTS.inc()
                    _log.warning(
                        "audit_append_retry",
                        partition_key=partition_key,
                        sequence_number=entry.sequence_number,
                        attempt=attempt + 1,
                    )
                    continue
                except AppendFailedError:
                    metrics.APPENDS.labels(outcome="failed").inc()
                    raise

                metrics.APPENDS.labels(outcome="appended").inc()
                _log.debug(
                    "audit_entry_appended",
                    event_type=entry.event_type,
                    partition_key=partition_key,
                    sequence_number=entry.sequence_number,
                    current_hash=entry.current_hash,
                )
                return entry

        metrics.APPENDS.labels(outcome="failed").inc()
        _log.error(
            "audit_append_conflicts_exhausted",
            partition_key=partition_key,
            attempts=self._max_retries + 1,
        )
        raise AppendFailedError(
            f"Sequence conflict persisted after {self._max_retries + 1} attempts",
            partition_key,
        )

    async def log_from_headers(
        self,
        headers: Mapping[str, HeaderValue],
        event: AuditEventIn | None = None,
        **fields: Any,
    ) -> AuditEntry:
        """
        Append an event with client details taken from request headers.

        ``ip_address`` and ``user_agent`` already set on the event win over
        the headers.
        """
        if event is None:
            event = AuditEventIn(**fields)
        elif fields:
            raise TypeError("Pass either an AuditEventIn or keyword fields, not both")

        client = client_info_from_headers(headers)
        event = AuditEventIn(
            **{
                **event.model_dump(),
                "ip_address": event.ip_address or client.ip_address,
                "user_agent": event.user_agent or client.user_agent,
            }
        )
        return await self.log(event)

    async def log_best_effort(self, event: AuditEventIn | None = None, **fields: Any) -> str | None:
        """
        Append an event, returning its id, or None if the write failed.

        Only for callers that explicitly document best-effort audit logging.
        Metadata serialization errors are programming errors and still raise.
        """
        try:
            entry = await self.log(event, **fields)
        except AppendFailedError as exc:
            _log.warning(
                "audit_entry_dropped",
                error_code=exc.code.value,
                partition_key=exc.partition_key,
                exc_info=True,
            )
            return None
        return entry.id
