"""
Acceptance test fixtures — a signing authority and per-request services.

Each mutation is authorized the way a remote caller would be: the authority
signs the canonical request (operation, arguments, registry version) with its
Ed25519 key and a fresh service is built around that signature. Relying
parties read through a RegistryQueries that cannot mutate at all. Everything
shares one store and one clock.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from railway import NoOpExecutionContext

from crl_registry.adapters.authorization import Ed25519SignatureAuthorizer, identity_for, sign_request
from crl_registry.adapters.clock import ManualClock
from crl_registry.adapters.memory_store import InMemoryKeyValueStore
from crl_registry.queries import RegistryQueries
from crl_registry.registry import RevocationRegistryService

type SignedService = Callable[..., RevocationRegistryService]


@pytest.fixture()
def authority_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.generate()


@pytest.fixture()
def authority(authority_key: Ed25519PrivateKey) -> str:
    """The registry issuer: hex of the authority's raw public key."""
    return identity_for(authority_key)


@pytest.fixture()
def acceptance_clock() -> ManualClock:
    return ManualClock(datetime(2025, 6, 1, 9, 0, 0, tzinfo=UTC))


@pytest.fixture()
def shared_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def reader(shared_store: InMemoryKeyValueStore, acceptance_clock: ManualClock) -> RegistryQueries:
    return RegistryQueries(shared_store, acceptance_clock, NoOpExecutionContext())


@pytest.fixture()
def signed(shared_store: InMemoryKeyValueStore, acceptance_clock: ManualClock) -> SignedService:
    """signed(key, operation, version, **arguments): a service carrying that one signed request."""

    def _build(key: Ed25519PrivateKey, operation: str, version: int, **arguments: Any) -> RevocationRegistryService:
        return RevocationRegistryService(
            shared_store,
            acceptance_clock,
            Ed25519SignatureAuthorizer(sign_request(key, operation, version, **arguments)),
            context=NoOpExecutionContext(),
        )

    return _build
