"""
Tamper-evident audit log built on per-partition SHA-256 hash chains.

Public entry points:
- **AuditLogger**: append events to a partition's chain
- **ChainVerifier** / **verify_entries**: replay and check a chain
- **ComplianceExporter**: date-bounded export with checksum
- **IntegrityStatusReporter**: chain length, newest hash, validity
- **SqlAlchemyAuditStore**: reference store on async SQLAlchemy
- **AuditChain**: all of the above wired from settings
"""

from auditchain.core.errors import (
    AppendConflictError,
    AppendFailedError,
    AppError,
    ErrorCode,
    InvalidDateRangeError,
    MetadataSerializationError,
    StoreUnavailableError,
)
from auditchain.runtime import AuditChain, apply_migrations
from auditchain.schemas.audit import (
    AuditEntry,
    AuditEventIn,
    ChainError,
    ChainErrorKind,
    ChainVerificationResult,
    ComplianceExport,
    IntegrityStatus,
)
from auditchain.services.audit.context import ClientInfo, client_info_from_headers
from auditchain.services.audit.events import AuditEventType, ResourceType
from auditchain.services.audit.exporter import ComplianceExporter, verify_export_checksum
from auditchain.services.audit.hashing import (
    GENESIS_HASH,
    HASH_ALGORITHM,
    canonicalize,
    compute_entry_hash,
    hash_metadata,
)
from auditchain.services.audit.logger import AuditLogger
from auditchain.services.audit.status import IntegrityStatusReporter
from auditchain.services.audit.store import AuditStore, ChainTail, SqlAlchemyAuditStore
from auditchain.services.audit.verifier import ChainVerifier, verify_entries

__version__ = "1.0.0"

__all__ = [
    "GENESIS_HASH",
    "HASH_ALGORITHM",
    "AppError",
    "AppendConflictError",
    "AppendFailedError",
    "AuditEntry",
    "AuditEventIn",
    "AuditChain",
    "AuditEventType",
    "AuditLogger",
    "AuditStore",
    "ChainError",
    "ChainErrorKind",
    "ChainTail",
    "ChainVerificationResult",
    "ChainVerifier",
    "ClientInfo",
    "ComplianceExport",
    "ComplianceExporter",
    "ErrorCode",
    "IntegrityStatus",
    "IntegrityStatusReporter",
    "InvalidDateRangeError",
    "MetadataSerializationError",
    "ResourceType",
    "SqlAlchemyAuditStore",
    "StoreUnavailableError",
    "apply_migrations",
    "canonicalize",
    "client_info_from_headers",
    "compute_entry_hash",
    "hash_metadata",
    "verify_entries",
    "verify_export_checksum",
]
