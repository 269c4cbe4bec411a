"""
Compliance export of a partition's audit chain.

An export bundles the entries of a time window, the verification result
for exactly those entries, and a SHA-256 checksum over the serialized
entries. The exporter reports; it never filters or refuses on an invalid
chain.

The checksum input is the entry list dumped through the ``AuditEntry``
schema with sorted keys and compact separators, so repeated exports of an
unchanged window yield the same checksum.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Sequence
from datetime import datetime

import structlog

from auditchain.config.settings import get_settings
from auditchain.core.errors import InvalidDateRangeError
from auditchain.db.base import utcnow
from auditchain.schemas.audit import AuditEntry, ComplianceExport, DateRange, ExportMetadata
from auditchain.services.audit.hashing import HASH_ALGORITHM, as_utc
from auditchain.services.audit.store import AuditStore
from auditchain.services.audit.verifier import report_verification, verify_entries

_log = structlog.get_logger(__name__)


def compute_export_checksum(entries: Sequence[AuditEntry]) -> str:
    serialized = json.dumps(
        [entry.model_dump(mode="json") for entry in entries],
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def verify_export_checksum(bundle: ComplianceExport) -> bool:
    """Return True if the bundle's entries still match its recorded checksum."""
    return compute_export_checksum(bundle.entries) == bundle.export_metadata.checksum


class ComplianceExporter:
    """Builds regulator-facing export bundles for one partition."""

    def __init__(self, store: AuditStore, *, default_identity: str | None = None) -> None:
        self._store = store
        self._default_identity = default_identity

    async def export(
        self,
        partition_key: str | None,
        from_: datetime,
        to: datetime,
        exported_by: str | None = None,
    ) -> ComplianceExport:
        from_, to = as_utc(from_), as_utc(to)
        if from_ > to:
            raise InvalidDateRangeError(from_.isoformat(), to.isoformat())

        entries = await self._store.query_range(partition_key, from_, to)
        verification = verify_entries(entries, windowed=True)
        report_verification(partition_key, verification)

        metadata = ExportMetadata(
            exported_at=utcnow(),
            exported_by=(
                exported_by
                or self._default_identity
                or get_settings().audit_export_identity
            ),
            partition_key=partition_key,
            date_range=DateRange(from_=from_, to=to),
            total_records=len(entries),
            checksum=compute_export_checksum(entries),
            hash_algorithm=HASH_ALGORITHM,
        )
        _log.info(
            "audit_chain_exported",
            partition_key=partition_key,
            exported_by=metadata.exported_by,
            total_records=metadata.total_records,
            chain_valid=verification.is_valid,
        )
        return ComplianceExport(
            entries=entries,
            chain_verification=verification,
            export_metadata=metadata,
        )
