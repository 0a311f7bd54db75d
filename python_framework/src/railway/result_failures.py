"""
Convenience factory methods for the registry's failure kinds.

One factory per ErrorCode keeps failure messages uniform across the
service and its adapters:

    ResultFailures.already_revoked("C1")
    # instead of
    Result.failure(ErrorCode.ALREADY_REVOKED, "Certificate already revoked: C1")
"""

from __future__ import annotations

from railway.failure import ErrorCode
from railway.result import Result


class ResultFailures:
    """One factory per failure kind the registry reports."""

    @staticmethod
    def not_initialized(message: str = "Registry not initialized") -> Result:
        """No aggregate stored under the registry key."""
        return Result.failure(ErrorCode.NOT_INITIALIZED, message)

    @staticmethod
    def already_initialized(issuer: str) -> Result:
        return Result.failure(
            ErrorCode.ALREADY_INITIALIZED,
            f"Registry already initialized for issuer: {issuer}",
        )

    @staticmethod
    def not_found(resource_type: str, identifier: str) -> Result:
        return Result.failure(
            ErrorCode.NOT_FOUND,
            f"{resource_type} not found: {identifier}",
        )

    @staticmethod
    def already_revoked(identifier: str) -> Result:
        return Result.failure(
            ErrorCode.ALREADY_REVOKED,
            f"Certificate already revoked: {identifier}",
        )

    @staticmethod
    def unauthorized(message: str) -> Result:
        """Caller does not match the registry authority."""
        return Result.failure(ErrorCode.UNAUTHORIZED, message)

    @staticmethod
    def validation_error(message: str) -> Result:
        return Result.failure(ErrorCode.VALIDATION_ERROR, message)

    @staticmethod
    def storage_error(message: str, exception: BaseException | None = None) -> Result:
        return Result.failure(ErrorCode.STORAGE_ERROR, message, exception)

    @staticmethod
    def configuration_error(message: str) -> Result:
        return Result.failure(ErrorCode.CONFIGURATION_ERROR, message)

