"""
PostgreSQL key/value store adapter — durable registry persistence.

Adapter layer — implements the KeyValueStore port using psycopg (v3)
for sync PostgreSQL access with parameterized queries.

One table holds every registry record, addressed by fixed logical keys:

  key        TEXT PRIMARY KEY    ("crl", "issuer")
  value      JSONB NOT NULL      (the JSON document)
  updated_at TIMESTAMPTZ         (set on every write)

A multi-key `put` runs in ONE transaction:
  1. BEGIN
  2. UPSERT every record
  3. COMMIT (or automatic ROLLBACK on failure → previous records preserved)

No ORM — raw parameterized SQL for maximum control and transparency.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import psycopg
import structlog
from psycopg import sql
from psycopg.types.json import Jsonb
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    key         TEXT PRIMARY KEY,
    value       JSONB NOT NULL,
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

_SELECT_VALUE = "SELECT value FROM {table} WHERE key = %s"

_SELECT_EXISTS = "SELECT EXISTS (SELECT 1 FROM {table} WHERE key = %s)"

_UPSERT = """
INSERT INTO {table} (key, value, updated_at) VALUES (%s, %s, now())
ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = EXCLUDED.updated_at
"""


class PsycopgKeyValueStore:
    """
    Persist registry records to PostgreSQL.

    Implements the KeyValueStore port.
    All exceptions are caught at this adapter boundary via Result.from_computation().
    """

    def __init__(self, dsn: str, table: str = "registry_state") -> None:
        self._dsn = dsn
        self._table = sql.Identifier(table)

    def ensure_schema(self) -> Result[bool]:
        """Create the backing table if it does not exist yet."""
        return Result.from_computation(
            self._create_table,
            ErrorCode.STORAGE_ERROR,
            "Failed to create registry table",
        )

    def get(self, key: str) -> Result[Any | None]:
        return Result.from_computation(
            lambda: self._fetch(_SELECT_VALUE, key),
            ErrorCode.STORAGE_ERROR,
            f"Failed to read record {key!r}",
        )

    def has(self, key: str) -> Result[bool]:
        return Result.from_computation(
            lambda: bool(self._fetch(_SELECT_EXISTS, key)),
            ErrorCode.STORAGE_ERROR,
            f"Failed to check record {key!r}",
        )

    def put(self, records: Mapping[str, Any]) -> Result[int]:
        """
        Upsert all records atomically.

        Returns Result[int] with the number of records written.
        On failure, previous records remain intact (transaction rolled back).
        """
        return Result.from_computation(
            lambda: self._transactional_upsert(records),
            ErrorCode.STORAGE_ERROR,
            "Failed to persist registry records",
        )

    def _create_table(self) -> bool:
        with psycopg.connect(self._dsn) as conn, conn.transaction():
            conn.execute(self._query(_CREATE_TABLE))
        return True

    def _fetch(self, template: str, key: str) -> Any:
        with psycopg.connect(self._dsn) as conn:
            row = conn.execute(self._query(template), (key,)).fetchone()
            return row[0] if row else None

    def _transactional_upsert(self, records: Mapping[str, Any]) -> int:
        """
        UPSERT every record in a single ACID transaction.

        If any exception occurs, psycopg rolls back automatically
        and the previous records remain intact.
        """
        with psycopg.connect(self._dsn) as conn, conn.transaction(), conn.cursor() as cur:
            for key, value in records.items():
                cur.execute(self._query(_UPSERT), (key, Jsonb(value)))
        log.info("store.written", backend="postgres", keys=sorted(records))
        return len(records)

    def _query(self, template: str) -> sql.Composed:
        return sql.SQL(template).format(table=self._table)
