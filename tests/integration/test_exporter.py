"""Integration tests — compliance exports and integrity status."""
from datetime import timedelta

import pytest

from auditchain.core.errors import InvalidDateRangeError
from auditchain.db.base import utcnow
from auditchain.db.models.audit import AuditLogEntry
from auditchain.services.audit.exporter import compute_export_checksum, verify_export_checksum
from auditchain.services.audit.hashing import GENESIS_HASH, HASH_ALGORITHM
from auditchain.services.audit.status import IntegrityStatusReporter

pytestmark = pytest.mark.asyncio


async def _append(audit_logger, n: int, partition_key: str | None = "team-1") -> list:
    return [
        await audit_logger.log(
            event_type="CAPITAL_CALL_SENT",
            user_id="gp-1",
            partition_key=partition_key,
            metadata={"call": i, "amount": 1000.0 * (i + 1)},
        )
        for i in range(n)
    ]


def _window():
    now = utcnow()
    return now - timedelta(hours=1), now + timedelta(hours=1)


# ─── export ───────────────────────────────────────────────────────────────────

async def test_export_bundle_shape(audit_logger, exporter):
    entries = await _append(audit_logger, 3)
    from_, to = _window()

    bundle = await exporter.export("team-1", from_, to, exported_by="auditor@fund.example")

    assert [e.id for e in bundle.entries] == [e.id for e in entries]
    assert bundle.chain_verification.is_valid is True
    assert bundle.chain_verification.total_entries == 3
    meta = bundle.export_metadata
    assert meta.exported_by == "auditor@fund.example"
    assert meta.partition_key == "team-1"
    assert meta.total_records == 3
    assert meta.date_range.from_ == from_
    assert meta.date_range.to == to
    assert meta.hash_algorithm == HASH_ALGORITHM
    assert meta.checksum == compute_export_checksum(bundle.entries)
    assert len(meta.checksum) == 64


async def test_export_identity_defaults_to_settings(audit_logger, exporter):
    await _append(audit_logger, 1)
    bundle = await exporter.export("team-1", *_window())
    assert bundle.export_metadata.exported_by == "system"


async def test_checksum_stable_across_exports(audit_logger, exporter):
    await _append(audit_logger, 3)
    from_, to = _window()
    first = await exporter.export("team-1", from_, to)
    second = await exporter.export("team-1", from_, to)
    assert first.export_metadata.checksum == second.export_metadata.checksum


async def test_modified_bundle_fails_checksum(audit_logger, exporter):
    await _append(audit_logger, 2)
    bundle = await exporter.export("team-1", *_window())
    assert verify_export_checksum(bundle) is True

    forged = bundle.model_copy(
        update={"entries": [bundle.entries[0].model_copy(update={"user_id": "x"}), bundle.entries[1]]}
    )
    assert verify_export_checksum(forged) is False


async def test_invalid_chain_still_exported(audit_logger, exporter, tamper):
    entries = await _append(audit_logger, 3)
    await tamper(entries[1].id, {AuditLogEntry.event_type: "CAPITAL_CALL_CANCELLED"})

    bundle = await exporter.export("team-1", *_window())

    assert bundle.export_metadata.total_records == 3
    assert bundle.chain_verification.is_valid is False
    assert bundle.chain_verification.first_invalid_entry == entries[1].id


async def test_export_outside_window_is_empty(audit_logger, exporter):
    await _append(audit_logger, 2)
    past = utcnow() - timedelta(days=30)
    bundle = await exporter.export("team-1", past - timedelta(days=1), past)
    assert bundle.entries == []
    assert bundle.chain_verification.is_valid is True
    assert bundle.export_metadata.total_records == 0


async def test_inverted_window_rejected(exporter):
    from_, to = _window()
    with pytest.raises(InvalidDateRangeError):
        await exporter.export("team-1", to, from_)


async def test_export_serializes_date_range_by_alias(audit_logger, exporter):
    await _append(audit_logger, 1)
    bundle = await exporter.export("team-1", *_window())
    dumped = bundle.model_dump(mode="json", by_alias=True)
    assert set(dumped["export_metadata"]["date_range"]) == {"from", "to"}


# ─── status ───────────────────────────────────────────────────────────────────

async def test_status_of_empty_partition(status_reporter):
    status = await status_reporter.status("team-1")
    assert status.chain_length == 0
    assert status.is_valid is True
    assert status.latest_hash == GENESIS_HASH
    assert status.genesis_hash == GENESIS_HASH


async def test_status_reports_tail(audit_logger, status_reporter):
    entries = await _append(audit_logger, 4)
    status = await status_reporter.status("team-1")
    assert status.chain_length == 4
    assert status.latest_hash == entries[-1].current_hash
    assert status.is_valid is True


async def test_status_flags_tampering(audit_logger, status_reporter, tamper):
    entries = await _append(audit_logger, 2)
    await tamper(entries[0].id, {AuditLogEntry.resource_type: "Fund"})
    status = await status_reporter.status("team-1")
    assert status.is_valid is False
    assert status.chain_length == 2


async def test_status_scoped_to_partition(audit_logger, status_reporter):
    await _append(audit_logger, 3, partition_key="team-A")
    (global_entry,) = await _append(audit_logger, 1, partition_key=None)
    status = await status_reporter.status(None)
    assert status.chain_length == 1
    assert status.latest_hash == global_entry.current_hash


class SnapshotStore:
    """Serves range reads from a fixed snapshot while the tail keeps moving."""

    def __init__(self, inner, snapshot) -> None:
        self._inner = inner
        self._snapshot = snapshot

    async def append(self, entry):
        await self._inner.append(entry)

    async def query_tail(self, partition_key):
        return await self._inner.query_tail(partition_key)

    async def query_range(self, partition_key, from_=None, to=None):
        return list(self._snapshot)

    def partition_lock(self, partition_key):
        return self._inner.partition_lock(partition_key)


async def test_status_length_and_hash_come_from_one_read(audit_logger, store):
    entries = await _append(audit_logger, 3)
    snapshot = await store.query_range("team-1")
    await _append(audit_logger, 1)

    status = await IntegrityStatusReporter(SnapshotStore(store, snapshot)).status("team-1")

    assert status.chain_length == 3
    assert status.latest_hash == entries[-1].current_hash
    assert status.is_valid is True
