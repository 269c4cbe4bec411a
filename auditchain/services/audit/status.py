"""Integrity status summary for a partition's audit chain."""

from __future__ import annotations

from auditchain.db.base import utcnow
from auditchain.schemas.audit import IntegrityStatus
from auditchain.services.audit.hashing import GENESIS_HASH
from auditchain.services.audit.store import AuditStore
from auditchain.services.audit.verifier import report_verification, verify_entries


class IntegrityStatusReporter:
    """
    Summarises a chain: length, newest hash and a full verification.

    Length, newest hash and validity all come from one read of the
    partition, so a concurrent append cannot pair a length with another
    entry's hash. Each call replays the whole partition, so it is O(n) in
    chain length. Hosts that poll frequently should cache or rate-limit
    the result.
    """

    def __init__(self, store: AuditStore) -> None:
        self._store = store

    async def status(self, partition_key: str | None) -> IntegrityStatus:
        entries = await self._store.query_range(partition_key)
        verification = verify_entries(entries)
        report_verification(partition_key, verification)

        return IntegrityStatus(
            chain_length=verification.total_entries,
            latest_hash=entries[-1].current_hash if entries else GENESIS_HASH,
            is_valid=verification.is_valid,
            genesis_hash=GENESIS_HASH,
            last_verified_at=utcnow(),
        )
