"""
Shared pytest fixtures for auditchain tests.

Provides:
  - async SQLite in-memory database (per-test isolation)
  - a store, logger, verifier, exporter and status reporter bound to it
  - a helper that rewrites stored rows behind the chain's back
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import auditchain.db.models  # noqa: F401
from auditchain.db.base import Base
from auditchain.db.models.audit import AuditLogEntry
from auditchain.services.audit.exporter import ComplianceExporter
from auditchain.services.audit.logger import AuditLogger
from auditchain.services.audit.status import IntegrityStatusReporter
from auditchain.services.audit.store import SqlAlchemyAuditStore
from auditchain.services.audit.verifier import ChainVerifier


# ─── Database ─────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an async in-memory SQLite engine per test function."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, expire_on_commit=False, autoflush=False)


# ─── Chain services ───────────────────────────────────────────────────────────

@pytest.fixture
def store(session_factory) -> SqlAlchemyAuditStore:
    return SqlAlchemyAuditStore(session_factory, advisory_locks=False)


@pytest.fixture
def audit_logger(store) -> AuditLogger:
    return AuditLogger(store, max_retries=3)


@pytest.fixture
def verifier(store) -> ChainVerifier:
    return ChainVerifier(store)


@pytest.fixture
def exporter(store) -> ComplianceExporter:
    return ComplianceExporter(store)


@pytest.fixture
def status_reporter(store) -> IntegrityStatusReporter:
    return IntegrityStatusReporter(store)


# ─── Tampering ────────────────────────────────────────────────────────────────

@pytest.fixture
def tamper(session_factory):
    """Return a coroutine that overwrites columns of one stored entry."""

    async def _tamper(entry_id: str, values: dict[Any, Any]) -> None:
        async with session_factory() as session, session.begin():
            await session.execute(
                update(AuditLogEntry).where(AuditLogEntry.id == entry_id).values(values)
            )

    return _tamper
