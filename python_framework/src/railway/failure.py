"""
What went wrong, in a form callers can branch on.

Every failure carries an ErrorCode plus a human-readable message, an optional
exception (for infrastructure failures) and the moment it was produced.

The codes are grouped the way callers react to them:
  - Registry errors: the request was understood but the registry refused it
  - Infrastructure errors: storage, configuration or unexpected faults
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Why an operation ended on the failure track.

    Registry errors are deterministic: retrying the same call against the same
    state fails the same way. Infrastructure errors may be transient.
    """

    # --- Registry errors ---
    NOT_INITIALIZED = "NOT_INITIALIZED"
    """No registry has been created for this authority yet."""

    ALREADY_INITIALIZED = "ALREADY_INITIALIZED"
    """A registry already exists and re-initialization is disabled."""

    NOT_FOUND = "NOT_FOUND"
    """The requested record is absent."""

    ALREADY_REVOKED = "ALREADY_REVOKED"
    """The identifier is already present in the revocation list."""

    UNAUTHORIZED = "UNAUTHORIZED"
    """The caller does not match the registry's authority."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Malformed input: empty identifier, negative page, zero limit."""

    # --- Infrastructure errors ---
    STORAGE_ERROR = "STORAGE_ERROR"
    """Key/value store unreachable, write rejected or stored document unreadable."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """System misconfiguration."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected exception escaped an operation."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unclassified failure."""

    @property
    def is_registry_error(self) -> bool:
        return self in _REGISTRY_ERRORS


_REGISTRY_ERRORS = frozenset(
    {
        ErrorCode.NOT_INITIALIZED,
        ErrorCode.ALREADY_INITIALIZED,
        ErrorCode.NOT_FOUND,
        ErrorCode.ALREADY_REVOKED,
        ErrorCode.UNAUTHORIZED,
        ErrorCode.VALIDATION_ERROR,
    }
)


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    One failure: code, message, the exception behind it (if any) and when it happened.

    >>> desc = FailureDescription(ErrorCode.ALREADY_REVOKED, "Certificate already revoked: C1")
    >>> desc.code
    <ErrorCode.ALREADY_REVOKED: 'ALREADY_REVOKED'>
    >>> desc.message
    'Certificate already revoked: C1'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> FailureDescription:
        return FailureDescription(code=code, message=message, exception=exception)

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__)
        )
        return f"{self.message}\n{tb}"

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"
