"""
Railway-Oriented Programming (ROP) toolkit used by the revocation registry.

Explicit, composable error handling — registry operations return Result
values instead of raising.

    from railway import Result, ErrorCode

    def require_non_empty(entry_id: str) -> Result[str]:
        if not entry_id:
            return Result.failure(ErrorCode.VALIDATION_ERROR, "Certificate id must not be empty")
        return Result.success(entry_id)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.result_failures import ResultFailures
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultFailures",
    "ResultAssertions",
]

__version__ = "1.1.0"
