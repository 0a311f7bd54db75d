"""
Result — the two-track return type every registry operation uses.

An operation returns Success(value) or Failure(FailureDescription) instead of
raising. Steps are joined with .flat_map(); the first Failure skips all the
remaining steps and is handed back unchanged:

    issuer ──flat_map──▶ authorize ──flat_map──▶ apply ──flat_map──▶ put
      │                     │                      │                  │
      ╰──── Failure ────────┴──────────────────────┴──────────────────┴──▶ caller

Success may wrap None. "No such record" is an answer; "no registry at all"
is a Failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from railway.failure import ErrorCode, FailureDescription

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


class Result(Generic[T]):
    """
    Success(value) or Failure(error).

        >>> Result.success(1).map(lambda version: version + 1).value()
        2
        >>> Result.failure(ErrorCode.NOT_INITIALIZED, "Registry not initialized").is_failure()
        True
    """

    # ─────────────────────────── state ───────────────────────────

    def is_success(self) -> bool:
        return isinstance(self, Success)

    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def value(self) -> T:
        """The wrapped value. A Failure raises ValueError; use either() or match/case when unsure."""
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise ValueError(f"Cannot get value from a Failure: {err.message}")
        raise TypeError("unreachable")  # pragma: no cover

    def error(self) -> FailureDescription:
        """The failure description. A Success raises ValueError."""
        match self:
            case Failure(err):
                return err
            case Success(v):
                raise ValueError(f"Cannot get error from a Success: {v!r}")
        raise TypeError("unreachable")  # pragma: no cover

    def get_or_else(self, default: T) -> T:
        match self:
            case Success(v):
                return v
            case _:
                return default

    # ─────────────────────────── chaining ───────────────────────────

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        """
        Fold both tracks into one value.

            service.revoke("C1", reason).either(
                lambda entry: f"revoked {entry.id}",
                lambda err: f"refused: {err}",
            )
        """
        match self:
            case Success(v):
                return on_success(v)
            case Failure(err):
                return on_failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        match self:
            case Success(v):
                return Success(mapper(v))
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """
        Run the next Result-returning step on the success value.

            store.get("issuer").flat_map(authorizer.require)
        """
        match self:
            case Success(v):
                return mapper(v)
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def ensure(
        self,
        predicate: Callable[[T], bool],
        error: FailureDescription | ErrorCode,
        message: str = "",
    ) -> Result[T]:
        """
        Keep the value only if `predicate` holds; otherwise switch to the failure track.

            count.ensure(lambda n: n > 0, ErrorCode.NOT_FOUND, "Revocation list is empty")
        """
        failure = error if isinstance(error, FailureDescription) else FailureDescription(error, message)
        return self.flat_map(lambda v: Success(v) if predicate(v) else Failure(failure))

    def peek(self, action: Callable[[T], Any]) -> Result[T]:
        """Call `action` with the success value (logging, metrics); the Result passes through."""
        if isinstance(self, Success):
            action(self._value)
        return self

    def peek_failure(self, action: Callable[[FailureDescription], Any]) -> Result[T]:
        if isinstance(self, Failure):
            action(self._error)
        return self

    # ─────────────────────────── construction ───────────────────────────

    @staticmethod
    def success(value: T) -> Result[T]:
        return Success(value)

    @staticmethod
    def failure(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> Result[T]:
        """
        Failure from its parts.

            Result.failure(ErrorCode.ALREADY_REVOKED, "Certificate already revoked: C1")
        """
        return Failure(FailureDescription(code, message, exception))

    @staticmethod
    def failure_from(error: FailureDescription) -> Result[T]:
        return Failure(error)

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Run code that may raise and capture any exception as a Failure.

        Adapters wrap every driver call with this, so exceptions from psycopg,
        hashing or decoding never cross into the registry service.
        """
        try:
            value = computation()
        except Exception as e:
            return Failure(FailureDescription(error_code, error_message, e))
        return Success(value)

    @staticmethod
    def from_optional(
        value: Optional[T],
        error_message: str,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
    ) -> Result[T]:
        """None becomes a Failure with `error_code`; anything else a Success."""
        if value is None:
            return Failure(FailureDescription(error_code, error_message))
        return Success(value)

    # ─────────────────────────── protocol ───────────────────────────

    def __bool__(self) -> bool:
        """Truthiness follows the track, never the wrapped value: Success(None) is true."""
        return self.is_success()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        match (self, other):
            case (Success(a), Success(b)):
                return a == b
            case (Failure(a), Failure(b)):
                return (a.code, a.message) == (b.code, b.message)
            case _:
                return False

    def __hash__(self) -> int:
        match self:
            case Success(v):
                return hash(("Success", v))
            case Failure(err):
                return hash(("Failure", err.code, err.message))
        raise TypeError("unreachable")  # pragma: no cover

    def __repr__(self) -> str:
        match self:
            case Success(v):
                return f"Success({v!r})"
            case Failure(err):
                return f"Failure({err.code.value}: {err.message!r})"
        raise TypeError("unreachable")  # pragma: no cover


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class Success(Result[T]):
    """Success track. Any value, None included."""

    _value: T

    def __init__(self, value: T) -> None:
        object.__setattr__(self, "_value", value)


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class Failure(Result[T]):
    """Failure track. Always carries a FailureDescription."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)


# match/case support: `case Success(value)` and `case Failure(error)`
Success.__match_args__ = ("_value",)
Failure.__match_args__ = ("_error",)
