"""
Execution contexts for Result pipelines.

A registry operation is a chain of Result-returning steps. The context it
runs in adds timing, logging and exception capture around that chain without
the chain knowing:

    ctx = LoggingExecutionContext(operation="revoke")
    result = ctx.execute(lambda: load().flat_map(mutate).flat_map(commit))
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol, TypeVar, runtime_checkable

from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result

T = TypeVar("T")
logger = logging.getLogger("railway.execution")


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything with execute(computation) -> Result."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        ...


class NoOpExecutionContext:
    """Calls the computation directly. Exceptions are not caught."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Logs start, duration and outcome of each computation it runs.

    Delegates to `inner` (NoOp by default). An exception escaping the
    computation is logged at ERROR and comes back as TECHNICAL_ERROR.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
        log_level: int = logging.DEBUG,
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation
        self._log_level = log_level

    @property
    def operation(self) -> str:
        return self._operation

    def named(self, operation: str) -> LoggingExecutionContext:
        return LoggingExecutionContext(self._inner, operation, self._log_level)

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        logger.log(self._log_level, "[%s] started", self._operation)
        started = time.monotonic()

        try:
            result = self._inner.execute(computation)
        except Exception as e:
            logger.error("[%s] raised after %.3fs: %s", self._operation, time.monotonic() - started, e)
            return Failure(FailureDescription(ErrorCode.TECHNICAL_ERROR, f"Unexpected error in {self._operation}: {e}", e))

        outcome = "SUCCESS" if result else "FAILURE"
        logger.log(self._log_level, "[%s] %s in %.3fs", self._operation, outcome, time.monotonic() - started)
        return result
