"""
Registry settings read from the environment and an optional .env file.

Only AppSettings reads the environment. Nested groups are plain models
filled through env_nested_delimiter="__": REGISTRY__ISSUER sets
registry.issuer, STORAGE__DSN sets storage.dsn, MONITOR__CRON sets
monitor.cron. Invalid values stop the process at startup.
"""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crl_registry.domain.commitment import hash_function
from crl_registry.domain.ports import HashFunction

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class RegistrySettings(BaseModel):
    """Behavior of the revocation registry itself."""

    issuer: str | None = Field(
        default=None,
        description="Authority the monitored registry must be bound to; unset checks whatever registry is stored",
    )
    update_window_seconds: int = Field(
        default=86_400,
        ge=1,
        description="Distance between this_update and next_update at initialization",
    )
    allow_reinitialize: bool = Field(
        default=False,
        description="Let initialize() overwrite an existing registry, discarding all entries",
    )
    commitment_hash: str = Field(
        default="sha256",
        description="hashlib algorithm used for commitment leaves and nodes",
    )

    @field_validator("commitment_hash")
    @classmethod
    def validate_commitment_hash(cls, value: str) -> str:
        """Reject unknown and variable-length algorithms at startup."""
        hash_function(value)
        return value

    @property
    def update_window(self) -> timedelta:
        return timedelta(seconds=self.update_window_seconds)

    def get_hash_function(self) -> HashFunction:
        return hash_function(self.commitment_hash)


class StorageSettings(BaseModel):
    """
    Key/value store selection.

    `memory` keeps state in-process (embedded services and tests; the monitor
    refuses it); `postgres` requires a DSN.
    """

    backend: Literal["memory", "postgres"] = Field(default="memory")
    dsn: SecretStr | None = Field(default=None, description="PostgreSQL connection string")
    table: str = Field(default="registry_state", description="Table holding registry records")

    @field_validator("table")
    @classmethod
    def validate_table(cls, value: str) -> str:
        if not _IDENTIFIER.match(value):
            raise ValueError(f"Table name must be a plain SQL identifier, got {value!r}")
        return value

    @model_validator(mode="after")
    def require_dsn_for_postgres(self) -> StorageSettings:
        if self.backend == "postgres" and self.dsn is None:
            raise ValueError("Set STORAGE__DSN when STORAGE__BACKEND=postgres")
        return self

    def get_dsn(self) -> str:
        """Plain DSN string; only valid for the postgres backend."""
        assert self.dsn is not None  # guaranteed by require_dsn_for_postgres
        return self.dsn.get_secret_value()


class MonitorSettings(BaseModel):
    """When the freshness check runs, e.g. "0 * * * *" for hourly."""

    cron: str = Field(
        default="*/15 * * * *",
        description="minute hour day-of-month month day-of-week",
    )

    @field_validator("cron")
    @classmethod
    def validate_cron(cls, value: str) -> str:
        fields = value.split()
        if len(fields) != 5:
            raise ValueError(f"Expected 5 cron fields, got {len(fields)}: {value!r}")
        return " ".join(fields)


class AppSettings(BaseSettings):
    """Environment variables win over .env, which wins over defaults."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    registry: RegistrySettings = Field(default_factory=lambda: RegistrySettings())
    storage: StorageSettings = Field(default_factory=lambda: StorageSettings())
    monitor: MonitorSettings = Field(default_factory=lambda: MonitorSettings())

    run_on_startup: bool = Field(default=True)
    log_level: str = Field(default="INFO")
