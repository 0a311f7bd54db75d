"""
Domain models — immutable data structures for the revocation registry.

These are pure value objects with no behavior beyond self-validation.
The registry aggregate is never mutated in place: every change produces a
new RevocationRegistry (dataclasses.replace), which is validated and then
persisted in a single write.

All models are frozen dataclasses (immutable) following functional principles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, unique


@unique
class ReasonCode(Enum):
    """
    Revocation reasons with their numeric wire codes.

    OTHER is the free-text variant: its detail lives in RevocationReason.text.
    """

    KEY_COMPROMISE = 0
    CA_COMPROMISE = 1
    AFFILIATION_CHANGED = 2
    SUPERSEDED = 3
    CESSATION_OF_OPERATION = 4
    CERTIFICATE_HOLD = 5
    REMOVE_FROM_CRL = 6
    PRIVILEGE_WITHDRAWN = 7
    AA_COMPROMISE = 8
    OTHER = 9


@dataclass(frozen=True, slots=True)
class RevocationReason:
    """
    Why a certificate was revoked.

    A closed ReasonCode, plus a free-text description that is required for
    ReasonCode.OTHER and rejected for every listed code.
    """

    code: ReasonCode
    text: str | None = None

    def __post_init__(self) -> None:
        if self.code is ReasonCode.OTHER:
            if not self.text:
                raise ValueError("ReasonCode.OTHER requires a non-empty text")
        elif self.text is not None:
            raise ValueError(f"ReasonCode.{self.code.name} does not take a text")

    @classmethod
    def other(cls, text: str) -> RevocationReason:
        return cls(ReasonCode.OTHER, text)

    def __str__(self) -> str:
        if self.code is ReasonCode.OTHER:
            return f"OTHER({self.text})"
        return self.code.name


@dataclass(frozen=True, slots=True)
class RevokedEntry:
    """
    One revoked certificate record.

    `invalidity_at` is when the certificate actually became compromised; it may
    precede `revoked_at` and is carried through without validation.
    """

    id: str
    issuer: str
    revoked_at: datetime
    reason: RevocationReason
    invalidity_at: datetime | None = None

    @property
    def reason_code(self) -> int:
        """Numeric reason code, as published in compact CRL entries."""
        return self.reason.code.value


@dataclass(frozen=True, slots=True)
class RevocationRegistry:
    """
    The aggregate root: one per deployed authority.

    `entries` is ordered by insertion and never re-sorted; the commitment
    depends on that order. `version` starts at 1 and grows by exactly one per
    mutating call.
    """

    issuer: str
    this_update: datetime
    next_update: datetime
    entries: tuple[RevokedEntry, ...] = ()
    commitment: bytes | None = field(default=None, repr=False)
    version: int = 1
    authority_key_id: bytes | None = field(default=None, repr=False)

    @property
    def count(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, slots=True)
class RevocationPage:
    """One page of revoked entries in registry order."""

    entries: tuple[RevokedEntry, ...]
    total: int
    page: int
    limit: int
    has_next: bool


@dataclass(frozen=True, slots=True)
class VerificationSnapshot:
    """
    Revocation status of one certificate together with the registry state it
    was read from. A plain lookup, not an inclusion proof.
    """

    is_revoked: bool
    entry: RevokedEntry | None
    version: int
    this_update: datetime
