"""
Process-level wiring for hosts that embed the audit chain.

Lifecycle:
  startup  → configure logging, optionally apply migrations, bind services
  shutdown → dispose DB engine pool
"""

from __future__ import annotations

import structlog

from auditchain.config.logging_config import configure_logging
from auditchain.config.settings import Settings, get_settings
from auditchain.db.session import dispose_engine, get_session_factory
from auditchain.services.audit.exporter import ComplianceExporter
from auditchain.services.audit.logger import AuditLogger
from auditchain.services.audit.status import IntegrityStatusReporter
from auditchain.services.audit.store import AuditStore, SqlAlchemyAuditStore
from auditchain.services.audit.verifier import ChainVerifier

_log = structlog.get_logger(__name__)


def apply_migrations(alembic_ini: str = "alembic.ini") -> None:
    """Upgrade the audit schema to the latest Alembic revision."""
    from alembic import command
    from alembic.config import Config

    command.upgrade(Config(alembic_ini), "head")
    _log.info("migrations_applied")


class AuditChain:
    """The chain services bound to one store."""

    def __init__(
        self,
        store: AuditStore,
        *,
        max_retries: int | None = None,
        export_identity: str | None = None,
    ) -> None:
        self.store = store
        self.logger = AuditLogger(store, max_retries=max_retries)
        self.verifier = ChainVerifier(store)
        self.exporter = ComplianceExporter(store, default_identity=export_identity)
        self.status_reporter = IntegrityStatusReporter(store)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        configure_logs: bool = True,
    ) -> AuditChain:
        settings = settings or get_settings()
        if configure_logs:
            configure_logging(
                log_level=settings.log_level.value,
                json_logs=settings.log_json,
                service=settings.app_name,
                environment=settings.environment.value,
            )

        store = SqlAlchemyAuditStore(
            get_session_factory(settings),
            advisory_locks=settings.audit_advisory_locks,
        )
        _log.info(
            "auditchain_ready",
            environment=settings.environment.value,
            advisory_locks=settings.audit_advisory_locks,
        )
        return cls(
            store,
            max_retries=settings.audit_append_max_retries,
            export_identity=settings.audit_export_identity,
        )

    async def aclose(self) -> None:
        await dispose_engine()
        _log.info("auditchain_stopped")
