"""
In-memory key/value store adapter.

Implements the KeyValueStore port with a plain dict. Used by unit tests and
by the `memory` storage backend for local runs.

Writes are all-or-nothing: `put` deep-copies every record into a new dict
and only then swaps it in. Reads return deep copies, so callers can never
change persisted state by mutating a returned document.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

import structlog
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get(self, key: str) -> Result[Any | None]:
        return Result.success(copy.deepcopy(self._data.get(key)))

    def has(self, key: str) -> Result[bool]:
        return Result.success(key in self._data)

    def put(self, records: Mapping[str, Any]) -> Result[int]:
        return Result.from_computation(
            lambda: self._swap_in(records),
            ErrorCode.STORAGE_ERROR,
            "Failed to write records to the in-memory store",
        )

    def keys(self) -> list[str]:
        return sorted(self._data)

    def _swap_in(self, records: Mapping[str, Any]) -> int:
        staged = dict(self._data)
        staged.update(copy.deepcopy(dict(records)))
        self._data = staged
        log.debug("store.written", backend="memory", keys=sorted(records))
        return len(records)
