"""
pytest helpers for Result values.

    def test_duplicate_revoke_fails(initialized):
        result = initialized.revoke("C1", reason)
        ResultAssertions.assert_failure(result, ErrorCode.ALREADY_REVOKED)
"""

from __future__ import annotations

from typing import Any, TypeVar

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


def _suffix(note: str) -> str:
    return f" ({note})" if note else ""


class ResultAssertions:
    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Fail the test unless `result` is a Success; return its value."""
        if result.is_failure():
            raise AssertionError(f"Expected Success, got {result!r}{_suffix(message)}")
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Fail the test unless `result` is a Failure (with `expected_code`, if given)."""
        if result.is_success():
            raise AssertionError(f"Expected Failure, got {result!r}{_suffix(message)}")
        error = result.error()
        if expected_code is not None and error.code != expected_code:
            raise AssertionError(
                f"Expected error code {expected_code.value}, got {result!r}{_suffix(message)}"
            )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        error = ResultAssertions.assert_failure(result)
        if substring.lower() not in error.message.lower():
            raise AssertionError(f"{substring!r} not found in failure message {error.message!r}")

    @staticmethod
    def assert_success_value(result: Result[T], expected_value: Any) -> None:
        actual = ResultAssertions.assert_success(result)
        if actual != expected_value:
            raise AssertionError(f"Expected Success({expected_value!r}), got Success({actual!r})")
