"""
Revocation registry service — the mutation and versioning protocol.

Application layer. Each mutating operation is a railway of Result steps:

  load issuer + aggregate → NOT_INITIALIZED / STORAGE_ERROR
    → authorize request   → UNAUTHORIZED
      → validate input    → VALIDATION_ERROR
        → apply change    → ALREADY_REVOKED / NOT_FOUND
          → commit        → STORAGE_ERROR

The authorizer sees the canonical request (operation, arguments and the
current version), so a caller's proof covers exactly the change being made.

The new aggregate is built completely in memory (frozen dataclass +
dataclasses.replace): version + 1, this_update = now, commitment rebuilt
over the new entry order. The single `store.put` at the end is the only
write; a failure at any earlier step leaves the store untouched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

import structlog
from railway import ExecutionContext, ResultFailures
from railway.failure import FailureDescription
from railway.result import Result

from crl_registry.adapters.codec import encode_registry, encode_request
from crl_registry.domain.commitment import commitment_root, sha256
from crl_registry.domain.models import RevocationReason, RevocationRegistry, RevokedEntry
from crl_registry.domain.ports import Authorizer, Clock, HashFunction, KeyValueStore
from crl_registry.queries import ISSUER_KEY, REGISTRY_KEY, RegistryQueries, find_entry

T = TypeVar("T")

DEFAULT_UPDATE_WINDOW = timedelta(hours=24)

log = structlog.get_logger()


class RevocationRegistryService(RegistryQueries):
    """
    Mutating operations of the revocation registry, on top of the read-only
    queries.

    Only the bound issuer may mutate. Authorization is checked before any
    other validation, so an unauthorized caller learns nothing about the
    registry contents.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        authorizer: Authorizer,
        *,
        hash_fn: HashFunction = sha256,
        update_window: timedelta = DEFAULT_UPDATE_WINDOW,
        allow_reinitialize: bool = False,
        context: ExecutionContext | None = None,
    ) -> None:
        super().__init__(store, clock, context)
        self._authorizer = authorizer
        self._hash_fn = hash_fn
        self._update_window = update_window
        self._allow_reinitialize = allow_reinitialize

    # ─────────────────────── Operations ───────────────────────

    def initialize(self, issuer: str) -> Result[RevocationRegistry]:
        """
        Create a fresh registry bound to `issuer`.

        The issuer asserts itself (there is no prior record to check against);
        the request is signed over version 0. An existing registry is rejected
        with ALREADY_INITIALIZED unless the service was built with
        allow_reinitialize=True, in which case the current authority must also
        authorize the request and every entry is discarded.
        """

        def _authorized(version: int) -> Result[str]:
            request = encode_request("initialize", version, issuer=issuer)
            return (
                self._authorizer.require(issuer, request)
                .flat_map(lambda _: self._require_non_empty(issuer, "Issuer"))
                .flat_map(lambda _: self._guard_reinitialize(issuer, version, request))
            )

        return self._mutate(
            "initialize",
            lambda: self._current_version()
            .flat_map(_authorized)
            .map(self._fresh_registry)
            .flat_map(self._commit_initial)
            .peek(
                lambda reg: log.info(
                    "registry.initialized",
                    issuer=reg.issuer,
                    version=reg.version,
                    next_update=reg.next_update.isoformat(),
                )
            ),
        )

    def revoke(
        self,
        entry_id: str,
        reason: RevocationReason,
        invalidity_at: datetime | None = None,
    ) -> Result[RevokedEntry]:
        """Append a revoked entry. Fails with ALREADY_REVOKED if `entry_id` is present."""

        def _append(registry: RevocationRegistry, invalid_since: datetime | None) -> Result[RevocationRegistry]:
            if find_entry(registry, entry_id) is not None:
                return ResultFailures.already_revoked(entry_id)
            now = self._clock.now()
            entry = RevokedEntry(
                id=entry_id,
                issuer=registry.issuer,
                revoked_at=now,
                reason=reason,
                invalidity_at=invalid_since,
            )
            return Result.success(self._next_version(registry, now, entries=(*registry.entries, entry)))

        return self._mutate(
            "revoke",
            lambda: self._authorize("revoke", id=entry_id, reason=reason, invalidity_at=invalidity_at)
            .flat_map(
                lambda reg: self._require_non_empty(entry_id, "Certificate id")
                .flat_map(lambda _: self._require_utc(invalidity_at, "invalidity_at"))
                .flat_map(lambda invalid_since: _append(reg, invalid_since))
            )
            .flat_map(self._commit)
            .map(lambda reg: reg.entries[-1])
            .peek(
                lambda entry: log.info(
                    "registry.revoked",
                    certificate_id=entry.id,
                    reason=str(entry.reason),
                )
            ),
        )

    def unrevoke(self, entry_id: str) -> Result[RevokedEntry]:
        """
        Permanently delete the entry for `entry_id`, keeping the relative order
        of the others. Returns the removed entry; NOT_FOUND if absent.
        """

        def _remove(registry: RevocationRegistry) -> Result[RevokedEntry]:
            removed = find_entry(registry, entry_id)
            if removed is None:
                return ResultFailures.not_found("Certificate in revocation list", entry_id)
            remaining = tuple(entry for entry in registry.entries if entry.id != entry_id)
            updated = self._next_version(registry, self._clock.now(), entries=remaining)
            return self._commit(updated).map(lambda _: removed)

        return self._mutate(
            "unrevoke",
            lambda: self._authorize("unrevoke", id=entry_id)
            .flat_map(lambda reg: self._require_non_empty(entry_id, "Certificate id").map(lambda _: reg))
            .flat_map(_remove)
            .peek(lambda entry: log.info("registry.unrevoked", certificate_id=entry.id)),
        )

    def update_metadata(
        self,
        next_update: datetime | None = None,
        authority_key_id: bytes | None = None,
    ) -> Result[RevocationRegistry]:
        """
        Overwrite the supplied fields, leave omitted ones unchanged.

        Always a new version, even when nothing was supplied. next_update must
        be timezone-aware but is not checked against the current time.
        """
        supplied = sorted(
            name
            for name, value in (("next_update", next_update), ("authority_key_id", authority_key_id))
            if value is not None
        )

        def _apply(registry: RevocationRegistry, deadline: datetime | None) -> RevocationRegistry:
            changes: dict[str, Any] = {}
            if deadline is not None:
                changes["next_update"] = deadline
            if authority_key_id is not None:
                changes["authority_key_id"] = authority_key_id
            return self._next_version(registry, self._clock.now(), **changes)

        return self._mutate(
            "update_metadata",
            lambda: self._authorize(
                "update_metadata", next_update=next_update, authority_key_id=authority_key_id
            )
            .flat_map(
                lambda reg: self._require_utc(next_update, "next_update").map(
                    lambda deadline: _apply(reg, deadline)
                )
            )
            .flat_map(self._commit)
            .peek(
                lambda reg: log.info(
                    "registry.metadata_updated",
                    fields=supplied,
                    next_update=reg.next_update.isoformat(),
                )
            ),
        )

    # ─────────────────────── Internal ───────────────────────

    def _authorize(self, operation: str, **arguments: Any) -> Result[RevocationRegistry]:
        """Load the registry and require the issuer's consent to `operation` at its current version."""
        return self._load_issuer().flat_map(
            lambda issuer: self._load_registry().flat_map(
                lambda registry: self._authorizer.require(
                    issuer, encode_request(operation, registry.version, **arguments)
                ).map(lambda _: registry)
            )
        )

    def _current_version(self) -> Result[int]:
        """Version of the stored registry, 0 when there is none."""
        return self._store.has(ISSUER_KEY).flat_map(
            lambda exists: self._load_registry().map(lambda reg: reg.version) if exists else Result.success(0)
        )

    def _guard_reinitialize(self, issuer: str, version: int, request: bytes) -> Result[str]:
        if version == 0:
            return Result.success(issuer)
        if not self._allow_reinitialize:
            return ResultFailures.already_initialized(issuer)
        # Only the current authority may replace its registry.
        return (
            self._load_issuer()
            .flat_map(lambda current: self._authorizer.require(current, request))
            .peek(lambda current: log.warning("registry.reinitializing", previous=current, issuer=issuer))
            .map(lambda _: issuer)
        )

    def _fresh_registry(self, issuer: str) -> RevocationRegistry:
        now = self._clock.now()
        return RevocationRegistry(
            issuer=issuer,
            this_update=now,
            next_update=now + self._update_window,
            entries=(),
            commitment=None,  # first computed by the first mutation
            version=1,
        )

    def _next_version(
        self,
        registry: RevocationRegistry,
        now: datetime,
        **changes: Any,
    ) -> RevocationRegistry:
        """Apply `changes` as the next published state: new version, new timestamp, fresh commitment."""
        entries = changes.get("entries", registry.entries)
        return replace(
            registry,
            **changes,
            this_update=now,
            version=registry.version + 1,
            commitment=commitment_root(entries, self._hash_fn),
        )

    def _commit(self, registry: RevocationRegistry) -> Result[RevocationRegistry]:
        return self._store.put({REGISTRY_KEY: encode_registry(registry)}).map(lambda _: registry)

    def _commit_initial(self, registry: RevocationRegistry) -> Result[RevocationRegistry]:
        records = {REGISTRY_KEY: encode_registry(registry), ISSUER_KEY: registry.issuer}
        return self._store.put(records).map(lambda _: registry)

    @staticmethod
    def _require_non_empty(value: str, label: str) -> Result[str]:
        if not value:
            return ResultFailures.validation_error(f"{label} must not be empty")
        return Result.success(value)

    @staticmethod
    def _require_utc(value: datetime | None, label: str) -> Result[datetime | None]:
        """Timezone-aware values are normalized to UTC; naive ones are rejected."""
        if value is None:
            return Result.success(None)
        if value.tzinfo is None or value.utcoffset() is None:
            return ResultFailures.validation_error(f"{label} must be timezone-aware, got {value.isoformat()}")
        return Result.success(value.astimezone(UTC))

    def _mutate(self, operation: str, computation: Callable[[], Result[T]]) -> Result[T]:
        return self._run(operation, computation).peek_failure(
            lambda failure: _log_failure(operation, failure)
        )


def _log_failure(operation: str, failure: FailureDescription) -> None:
    log.warning(
        "registry.operation_failed",
        operation=operation,
        code=failure.code.value,
        message=failure.message,
    )
