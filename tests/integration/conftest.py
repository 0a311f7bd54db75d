"""
Integration test fixtures — PostgreSQL testcontainer and schema setup.

Provides a real PostgreSQL instance for each test session via testcontainers.
The registry table is created once through the adapter itself; each test
gets a clean table via truncation.
"""

from __future__ import annotations

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

from crl_registry.adapters.repository import PsycopgKeyValueStore

TABLE = "registry_state"

TRUNCATE = f"TRUNCATE {TABLE};"


def _psycopg_url(container: PostgresContainer) -> str:
    return container.get_connection_url().replace("postgresql+psycopg2", "postgresql")


@pytest.fixture(scope="session")
def postgres_container() -> PostgresContainer:
    """Start a PostgreSQL container for the entire test session."""
    with PostgresContainer("postgres:16-alpine") as pg:
        schema = PsycopgKeyValueStore(_psycopg_url(pg), TABLE).ensure_schema()
        assert schema.is_success(), schema.error().full_stack_trace()
        yield pg


@pytest.fixture()
def dsn(postgres_container: PostgresContainer) -> str:
    """Return a psycopg-compatible DSN and truncate the registry table before each test."""
    connection_url = _psycopg_url(postgres_container)
    with psycopg.connect(connection_url) as conn:
        conn.execute(TRUNCATE)
        conn.commit()
    return connection_url


@pytest.fixture()
def pg_store(dsn: str) -> PsycopgKeyValueStore:
    return PsycopgKeyValueStore(dsn, TABLE)
