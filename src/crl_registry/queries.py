"""
Query layer — read-only projections over the revocation registry.

The projections (find_entry, paginate, verification_snapshot) are pure
functions of a RevocationRegistry value. RegistryQueries loads the current
aggregate from the store and applies them; it never writes.

A missing *record* is an ordinary answer (None, False, an empty page).
A missing *registry* is a NOT_INITIALIZED failure: there is no empty
default to project from.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from railway import ExecutionContext, LoggingExecutionContext, ResultFailures
from railway.result import Result

from crl_registry.adapters.codec import decode_registry
from crl_registry.domain.models import (
    RevocationPage,
    RevocationRegistry,
    RevokedEntry,
    VerificationSnapshot,
)
from crl_registry.domain.ports import Clock, KeyValueStore

T = TypeVar("T")

REGISTRY_KEY = "crl"
ISSUER_KEY = "issuer"


# ─────────────────────── Pure projections ───────────────────────


def find_entry(registry: RevocationRegistry, entry_id: str) -> RevokedEntry | None:
    """Linear scan by identifier."""
    for entry in registry.entries:
        if entry.id == entry_id:
            return entry
    return None


def paginate(registry: RevocationRegistry, page: int, limit: int) -> RevocationPage:
    """
    Slice [page * limit, page * limit + limit) of the entries in registry order.

    Callers validate page >= 0 and limit >= 1. Python integers do not wrap,
    so a huge page simply lands past the end and yields an empty page.
    """
    total = len(registry.entries)
    start = page * limit
    if start >= total:
        return RevocationPage(entries=(), total=total, page=page, limit=limit, has_next=False)
    end = min(start + limit, total)
    return RevocationPage(
        entries=registry.entries[start:end],
        total=total,
        page=page,
        limit=limit,
        has_next=end < total,
    )


def verification_snapshot(registry: RevocationRegistry, entry_id: str) -> VerificationSnapshot:
    entry = find_entry(registry, entry_id)
    return VerificationSnapshot(
        is_revoked=entry is not None,
        entry=entry,
        version=registry.version,
        this_update=registry.this_update,
    )


# ─────────────────────── Store-backed queries ───────────────────────


class RegistryQueries:
    """
    Read-only operations against the persisted registry.

    Every method loads the current aggregate, so a query always reflects the
    last committed mutation.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        context: ExecutionContext | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._context = context or LoggingExecutionContext(operation="registry")

    def get_registry(self) -> Result[RevocationRegistry]:
        return self._run("get_registry", self._load_registry)

    def get_issuer(self) -> Result[str]:
        """Identity of the authority the stored registry is bound to."""
        return self._run("get_issuer", self._load_issuer)

    def get_commitment(self) -> Result[bytes | None]:
        return self._run("get_commitment", lambda: self._load_registry().map(lambda reg: reg.commitment))

    def count(self) -> Result[int]:
        return self._run("count", lambda: self._load_registry().map(lambda reg: reg.count))

    def is_revoked(self, entry_id: str) -> Result[bool]:
        return self._run(
            "is_revoked",
            lambda: self._load_registry().map(lambda reg: find_entry(reg, entry_id) is not None),
        )

    def get_entry(self, entry_id: str) -> Result[RevokedEntry | None]:
        return self._run("get_entry", lambda: self._load_registry().map(lambda reg: find_entry(reg, entry_id)))

    def list(self, page: int, limit: int) -> Result[RevocationPage]:
        """One page of revoked entries; page is zero-based."""

        def _page() -> Result[RevocationPage]:
            if page < 0:
                return ResultFailures.validation_error(f"Page must be >= 0, got {page}")
            if limit < 1:
                return ResultFailures.validation_error(f"Limit must be >= 1, got {limit}")
            return self._load_registry().map(lambda reg: paginate(reg, page, limit))

        return self._run("list", _page)

    def verify(self, entry_id: str) -> Result[VerificationSnapshot]:
        return self._run(
            "verify",
            lambda: self._load_registry().map(lambda reg: verification_snapshot(reg, entry_id)),
        )

    def needs_update(self) -> Result[bool]:
        """True once the advisory next_update deadline has been reached. Never acts on it."""
        return self._run(
            "needs_update",
            lambda: self._load_registry().map(lambda reg: self._clock.now() >= reg.next_update),
        )

    # ─────────────────────── Internal ───────────────────────

    def _load_registry(self) -> Result[RevocationRegistry]:
        return self._store.get(REGISTRY_KEY).flat_map(
            lambda doc: decode_registry(doc) if doc is not None else ResultFailures.not_initialized()
        )

    def _load_issuer(self) -> Result[str]:
        return self._store.get(ISSUER_KEY).flat_map(
            lambda issuer: Result.success(issuer) if issuer else ResultFailures.not_initialized()
        )

    def _run(self, operation: str, computation: Callable[[], Result[T]]) -> Result[T]:
        """Execute within the injected context, labelled with the operation name when it logs."""
        context = self._context
        if isinstance(context, LoggingExecutionContext):
            context = context.named(operation)
        return context.execute(computation)
