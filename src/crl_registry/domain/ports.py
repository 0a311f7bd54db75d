"""
Ports — Protocol-based interfaces for the registry's external collaborators.

These define WHAT the registry needs (contracts) without specifying
HOW it's done (implementation). Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods — no inheritance.

Collaborators:
  1. KeyValueStore → durable, instance-scoped records addressed by fixed keys
  2. Authorizer    → proves the caller is the claimed authority
  3. Clock         → the current time
  4. HashFunction  → fixed-length digest for commitment leaves and nodes
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from railway.result import Result

type HashFunction = Callable[[bytes], bytes]


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Port: durable key/value storage for the registry records.

    Values are JSON-compatible documents. A write becomes visible to the next
    call once `put` returns Success; a failed `put` changes nothing.
    """

    def get(self, key: str) -> Result[Any | None]:
        """Return the stored document, or Success(None) when the key is absent."""
        ...

    def has(self, key: str) -> Result[bool]: ...

    def put(self, records: Mapping[str, Any]) -> Result[int]:
        """
        Atomically write every record in `records`.

        Returns Result[int] with the number of records written. On failure,
        none of the records are written.
        """
        ...


@runtime_checkable
class Authorizer(Protocol):
    """
    Port: fail the call unless the actual caller matches `identity`.

    `request` is the canonical encoding of the operation being authorized
    (see adapters.codec.encode_request). Returns Result[str] carrying the
    authorized identity, or an UNAUTHORIZED failure.
    """

    def require(self, identity: str, request: bytes) -> Result[str]: ...


@runtime_checkable
class Clock(Protocol):
    """Port: source of "now" as a timezone-aware datetime."""

    def now(self) -> datetime: ...
