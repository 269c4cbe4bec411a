"""
Durable storage for audit chains.

``AuditStore`` is the whole contract the chain services rely on: append
one entry, read a partition's tail, read a partition's entries in sequence
order, and (optionally) serialise writers on one partition.
``SqlAlchemyAuditStore`` implements it on an async SQLAlchemy engine.
Every operation runs in its own short-lived session, so an append is a
single committed transaction and reads see committed rows only.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import structlog
from sqlalchemy import ColumnElement, desc, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auditchain.config.settings import get_settings
from auditchain.core.errors import AppendConflictError, AppendFailedError, StoreUnavailableError
from auditchain.db.models.audit import AuditLogEntry
from auditchain.db.session import get_session_factory
from auditchain.schemas.audit import AuditEntry
from auditchain.services.audit.hashing import as_utc

_log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChainTail:
    """The newest link of a partition's chain."""

    current_hash: str
    sequence_number: int


class AuditStore(Protocol):
    async def append(self, entry: AuditEntry) -> None:
        """Insert one entry atomically.

        Raises AppendConflictError when (partition_key, sequence_number) is
        taken, AppendFailedError for any other write failure.
        """

    async def query_tail(self, partition_key: str | None) -> ChainTail | None: ...

    async def query_range(
        self,
        partition_key: str | None,
        from_: datetime | None = None,
        to: datetime | None = None,
    ) -> list[AuditEntry]: ...

    def partition_lock(self, partition_key: str | None) -> AbstractAsyncContextManager[None]:
        """Serialise appenders on one partition. May be a no-op."""
        ...


def _partition_clause(partition_key: str | None) -> ColumnElement[bool]:
    # NULL never equals NULL in SQL; the global chain needs IS NULL
    if partition_key is None:
        return AuditLogEntry.partition_key.is_(None)
    return AuditLogEntry.partition_key == partition_key


def _advisory_lock_key(partition_key: str | None) -> str:
    return f"audit_log:{partition_key if partition_key is not None else '<global>'}"


def _to_entry(row: AuditLogEntry) -> AuditEntry:
    return AuditEntry(
        id=row.id,
        timestamp=as_utc(row.timestamp),
        event_type=row.event_type,
        user_id=row.user_id,
        partition_key=row.partition_key,
        resource_type=row.resource_type,
        resource_id=row.resource_id,
        metadata=row.metadata_,
        metadata_hash=row.metadata_hash,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        previous_hash=row.previous_hash,
        current_hash=row.current_hash,
        sequence_number=int(row.sequence_number),
    )


def _to_row(entry: AuditEntry) -> AuditLogEntry:
    return AuditLogEntry(
        id=entry.id,
        timestamp=entry.timestamp,
        event_type=entry.event_type,
        user_id=entry.user_id,
        partition_key=entry.partition_key,
        resource_type=entry.resource_type,
        resource_id=entry.resource_id,
        metadata_=entry.metadata,
        metadata_hash=entry.metadata_hash,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        previous_hash=entry.previous_hash,
        current_hash=entry.current_hash,
        sequence_number=entry.sequence_number,
    )


class SqlAlchemyAuditStore:
    """Audit store backed by the ``audit_log_entries`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        *,
        advisory_locks: bool | None = None,
    ) -> None:
        self._factory = session_factory or get_session_factory()
        self._advisory_locks = (
            get_settings().audit_advisory_locks if advisory_locks is None else advisory_locks
        )

    async def append(self, entry: AuditEntry) -> None:
        try:
            async with self._factory() as session, session.begin():
                session.add(_to_row(entry))
        except IntegrityError as exc:
            _log.info(
                "audit_append_conflict",
                partition_key=entry.partition_key,
                sequence_number=entry.sequence_number,
            )
            raise AppendConflictError(entry.partition_key, entry.sequence_number) from exc
        except (SQLAlchemyError, OSError) as exc:
            _log.error(
                "audit_append_write_failed",
                partition_key=entry.partition_key,
                sequence_number=entry.sequence_number,
                exc_info=True,
            )
            raise AppendFailedError(
                "Audit entry could not be written", entry.partition_key
            ) from exc

    async def query_tail(self, partition_key: str | None) -> ChainTail | None:
        try:
            async with self._factory() as session:
                result = await session.execute(
                    select(AuditLogEntry.current_hash, AuditLogEntry.sequence_number)
                    .where(_partition_clause(partition_key))
                    .order_by(desc(AuditLogEntry.sequence_number))
                    .limit(1)
                )
                row = result.first()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError("Chain tail could not be read", partition_key) from exc

        if row is None:
            return None
        return ChainTail(current_hash=row[0], sequence_number=int(row[1]))

    async def query_range(
        self,
        partition_key: str | None,
        from_: datetime | None = None,
        to: datetime | None = None,
    ) -> list[AuditEntry]:
        query = select(AuditLogEntry).where(_partition_clause(partition_key))
        if from_ is not None:
            query = query.where(AuditLogEntry.timestamp >= as_utc(from_))
        if to is not None:
            query = query.where(AuditLogEntry.timestamp <= as_utc(to))

        try:
            async with self._factory() as session:
                result = await session.execute(
                    query.order_by(AuditLogEntry.sequence_number.asc())
                )
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError("Chain entries could not be read", partition_key) from exc

        return [_to_entry(row) for row in rows]

    @asynccontextmanager
    async def partition_lock(self, partition_key: str | None) -> AsyncIterator[None]:
        """
        Hold a PostgreSQL session-level advisory lock for the partition.

        The lock lives on its own connection, so it spans the separate
        tail-read and append transactions. Other dialects get no lock.
        """
        if not self._advisory_locks:
            yield
            return

        async with self._factory() as session:
            if session.bind is None or session.bind.dialect.name != "postgresql":
                yield
                return

            params = {"key": _advisory_lock_key(partition_key)}
            try:
                await session.execute(text("SELECT pg_advisory_lock(hashtext(:key))"), params)
            except (SQLAlchemyError, OSError) as exc:
                raise AppendFailedError(
                    "Partition lock could not be acquired", partition_key
                ) from exc
            try:
                yield
            finally:
                await session.execute(text("SELECT pg_advisory_unlock(hashtext(:key))"), params)
