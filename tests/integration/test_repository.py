"""
Integration tests for PsycopgKeyValueStore.

Tests run against a real PostgreSQL instance via testcontainers and verify
the transactional upsert: every record of a put is written, or none is.

BDD-style docstrings describe the behavior.

Markers: @pytest.mark.integration — requires Docker + PostgreSQL.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import psycopg
import pytest
from railway import ErrorCode, NoOpExecutionContext
from railway.assertions import ResultAssertions

from crl_registry.adapters.authorization import CallerAuthorizer
from crl_registry.adapters.clock import ManualClock
from crl_registry.adapters.repository import PsycopgKeyValueStore
from crl_registry.domain.commitment import commitment_root, sha256
from crl_registry.domain.models import ReasonCode, RevocationReason
from crl_registry.registry import RevocationRegistryService

pytestmark = pytest.mark.integration

START = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)
ISSUER = "authority-1"


def _count_rows(dsn: str) -> int:
    with psycopg.connect(dsn) as conn:
        return conn.execute("SELECT count(*) FROM registry_state").fetchone()[0]


# ── Adapter ──────────────────────────────────────────────────────────────────


class TestPsycopgKeyValueStore:
    """Verify the key/value contract against PostgreSQL."""

    def test_absent_key(self, pg_store: PsycopgKeyValueStore) -> None:
        assert ResultAssertions.assert_success(pg_store.get("crl")) is None
        assert ResultAssertions.assert_success(pg_store.has("crl")) is False

    def test_put_and_get_documents(self, pg_store: PsycopgKeyValueStore, dsn: str) -> None:
        """
        GIVEN an empty table
        WHEN two records are put in one call
        THEN both are readable as JSON documents.
        """
        written = pg_store.put({"crl": {"version": 1, "entries": []}, "issuer": ISSUER})

        assert ResultAssertions.assert_success(written) == 2
        assert ResultAssertions.assert_success(pg_store.get("crl")) == {"version": 1, "entries": []}
        assert ResultAssertions.assert_success(pg_store.get("issuer")) == ISSUER
        assert ResultAssertions.assert_success(pg_store.has("issuer")) is True
        assert _count_rows(dsn) == 2

    def test_put_overwrites_existing_key(self, pg_store: PsycopgKeyValueStore, dsn: str) -> None:
        pg_store.put({"crl": {"version": 1}})
        pg_store.put({"crl": {"version": 2}})

        assert ResultAssertions.assert_success(pg_store.get("crl")) == {"version": 2}
        assert _count_rows(dsn) == 1

    def test_failed_put_rolls_back_whole_batch(self, pg_store: PsycopgKeyValueStore) -> None:
        """
        GIVEN a stored registry at version 1
        WHEN a batch contains a value that cannot be encoded as JSON
        THEN STORAGE_ERROR is returned and no record of the batch is written.
        """
        pg_store.put({"crl": {"version": 1}})

        result = pg_store.put({"crl": {"version": 2}, "issuer": object()})

        ResultAssertions.assert_failure(result, ErrorCode.STORAGE_ERROR)
        assert ResultAssertions.assert_success(pg_store.get("crl")) == {"version": 1}
        assert ResultAssertions.assert_success(pg_store.has("issuer")) is False

    def test_unreachable_database(self) -> None:
        store = PsycopgKeyValueStore("postgresql://nobody@127.0.0.1:1/none?connect_timeout=1")
        result = store.get("crl")
        ResultAssertions.assert_failure(result, ErrorCode.STORAGE_ERROR)
        assert result.error().exception is not None

    def test_ensure_schema_is_idempotent(self, pg_store: PsycopgKeyValueStore) -> None:
        ResultAssertions.assert_success(pg_store.ensure_schema())
        ResultAssertions.assert_success(pg_store.ensure_schema())


# ── Service over PostgreSQL ──────────────────────────────────────────────────


class TestRegistryOverPostgres:
    """The full mutation protocol with durable storage."""

    @pytest.fixture()
    def service(self, pg_store: PsycopgKeyValueStore) -> RevocationRegistryService:
        return RevocationRegistryService(
            pg_store,
            ManualClock(START),
            CallerAuthorizer(ISSUER),
            context=NoOpExecutionContext(),
        )

    def test_lifecycle_survives_new_service_instance(self, service, dsn: str) -> None:
        """
        GIVEN a registry initialized and mutated through one service
        WHEN a second service reads the same table
        THEN it sees the same version, entries and commitment.
        """
        service.initialize(ISSUER)
        service.revoke("C1", RevocationReason(ReasonCode.KEY_COMPROMISE), START - timedelta(days=1))
        service.revoke("C2", RevocationReason.other("badge lost"))
        service.unrevoke("C1")

        reader = RevocationRegistryService(
            PsycopgKeyValueStore(dsn),
            ManualClock(START),
            CallerAuthorizer("anyone"),
            context=NoOpExecutionContext(),
        )
        registry = ResultAssertions.assert_success(reader.get_registry())

        assert registry.version == 4
        assert [e.id for e in registry.entries] == ["C2"]
        assert registry.entries[0].reason == RevocationReason.other("badge lost")
        assert registry.commitment == sha256(b"C2")
        assert registry.commitment == commitment_root(registry.entries)

    def test_rejected_mutation_leaves_table_unchanged(self, service) -> None:
        service.initialize(ISSUER)
        service.revoke("C1", RevocationReason(ReasonCode.SUPERSEDED))

        ResultAssertions.assert_failure(
            service.revoke("C1", RevocationReason(ReasonCode.SUPERSEDED)), ErrorCode.ALREADY_REVOKED
        )
        assert ResultAssertions.assert_success(service.get_registry()).version == 2
