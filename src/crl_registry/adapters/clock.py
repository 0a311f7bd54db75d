"""Clock adapters — wall clock for production, a settable clock for tests and replays."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


class SystemClock:
    """Current UTC time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class ManualClock:
    """
    A clock that only moves when told to.

    Naive datetimes are interpreted as UTC.
    """

    def __init__(self, start: datetime) -> None:
        self._now = _as_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = _as_utc(moment)

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """Move forward by `delta` or by timedelta keyword arguments (seconds=30)."""
        self._now += delta if delta is not None else timedelta(**kwargs)
        return self._now


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
