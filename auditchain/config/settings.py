"""
Library configuration via Pydantic Settings.

All values are sourced from ``AUDITCHAIN_``-prefixed environment variables
or an .env file. Defaults are safe for local development and tests.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    """Deployment environment identifiers."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(StrEnum):
    """Structured log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """
    Centralised, type-validated configuration for the audit chain.

    Reads from environment variables with an optional .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDITCHAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="forbid",
    )

    # ── Application ────────────────────────────────────────────────────── #
    app_name: str = Field(default="auditchain", description="Component name used in logs")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development|testing|production)",
    )

    # ── Database ───────────────────────────────────────────────────────── #
    database_url: str = Field(
        default="sqlite+aiosqlite:///./auditchain.db",
        description=(
            "Async SQLAlchemy connection string. "
            "Use sqlite+aiosqlite:// for local or postgresql+asyncpg:// for production."
        ),
    )
    db_pool_size: int = Field(default=5, ge=1, le=50, description="Connection pool size")
    db_max_overflow: int = Field(default=10, ge=0, le=100, description="Pool max overflow")
    db_echo: bool = Field(default=False, description="Log all SQL statements (debug only)")

    # ── Logging ────────────────────────────────────────────────────────── #
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Minimum log level")
    log_json: bool = Field(default=True, description="Emit logs as JSON (False for dev console)")

    # ── Audit chain ────────────────────────────────────────────────────── #
    audit_append_max_retries: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Tail re-reads allowed after a sequence-number conflict on append",
    )
    audit_export_identity: str = Field(
        default="system",
        description="Exporter identity recorded in compliance exports when none is given",
    )
    audit_advisory_locks: bool = Field(
        default=True,
        description="Serialise appends per partition with PostgreSQL advisory locks",
    )

    # ── Validators ─────────────────────────────────────────────────────── #

    @field_validator("audit_export_identity")
    @classmethod
    def export_identity_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("audit_export_identity must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def production_safety_checks(self) -> Settings:
        if self.environment == Environment.PRODUCTION and self.db_echo:
            raise ValueError("db_echo must be False in production")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings singleton."""
    return Settings()
