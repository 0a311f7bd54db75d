"""
Shared test fixtures for the crl-registry test suite.

Every service fixture runs on a ManualClock pinned to a fixed UTC instant and
an in-memory store, so timestamps and versions are fully deterministic.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from railway import NoOpExecutionContext

from crl_registry.adapters.authorization import CallerAuthorizer
from crl_registry.adapters.clock import ManualClock
from crl_registry.adapters.memory_store import InMemoryKeyValueStore
from crl_registry.registry import RevocationRegistryService

ISSUER = "authority-1"
START = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def clock() -> ManualClock:
    """A clock frozen at START until a test advances it."""
    return ManualClock(START)


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def issuer() -> str:
    return ISSUER


@pytest.fixture()
def service(store: InMemoryKeyValueStore, clock: ManualClock, issuer: str) -> RevocationRegistryService:
    """Service acting as the authority; the registry is NOT yet initialized."""
    return RevocationRegistryService(
        store,
        clock,
        CallerAuthorizer(issuer),
        context=NoOpExecutionContext(),
    )


@pytest.fixture()
def initialized(service: RevocationRegistryService, issuer: str) -> RevocationRegistryService:
    """Service whose registry has been initialized at START (version 1)."""
    assert service.initialize(issuer).is_success()
    return service


@pytest.fixture()
def intruder(store: InMemoryKeyValueStore, clock: ManualClock) -> RevocationRegistryService:
    """Service sharing the same store but acting as a caller who is not the authority."""
    return RevocationRegistryService(
        store,
        clock,
        CallerAuthorizer("mallory"),
        context=NoOpExecutionContext(),
    )
