"""
Document codec — RevocationRegistry ↔ JSON-compatible document.

Adapter layer — the shape written to the key/value store under the "crl" key.

  bytes     → lowercase hex string
  datetime  → ISO-8601 string (UTC offset included)
  reason    → {"code": "<ReasonCode name>", "text": <str | null>}

Decoding never raises: a malformed document becomes a STORAGE_ERROR failure.

encode_request gives the bytes an authority signs for one mutation: the
operation, its arguments and the registry version it applies to, as compact
JSON with sorted keys.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from railway import ErrorCode
from railway.result import Result

from crl_registry.domain.models import (
    ReasonCode,
    RevocationReason,
    RevocationRegistry,
    RevokedEntry,
)


def encode_registry(registry: RevocationRegistry) -> dict[str, Any]:
    return {
        "issuer": registry.issuer,
        "this_update": registry.this_update.isoformat(),
        "next_update": registry.next_update.isoformat(),
        "entries": [encode_entry(entry) for entry in registry.entries],
        "commitment": _hex_or_none(registry.commitment),
        "version": registry.version,
        "authority_key_id": _hex_or_none(registry.authority_key_id),
    }


def encode_entry(entry: RevokedEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "issuer": entry.issuer,
        "revoked_at": entry.revoked_at.isoformat(),
        "reason": {"code": entry.reason.code.name, "text": entry.reason.text},
        "invalidity_at": entry.invalidity_at.isoformat() if entry.invalidity_at else None,
    }


def decode_registry(document: dict[str, Any]) -> Result[RevocationRegistry]:
    """Rebuild the aggregate from its stored document."""
    return Result.from_computation(
        lambda: _decode_registry(document),
        ErrorCode.STORAGE_ERROR,
        "Stored registry document is malformed",
    )


def _decode_registry(document: dict[str, Any]) -> RevocationRegistry:
    return RevocationRegistry(
        issuer=document["issuer"],
        this_update=datetime.fromisoformat(document["this_update"]),
        next_update=datetime.fromisoformat(document["next_update"]),
        entries=tuple(_decode_entry(item) for item in document["entries"]),
        commitment=_bytes_or_none(document.get("commitment")),
        version=int(document["version"]),
        authority_key_id=_bytes_or_none(document.get("authority_key_id")),
    )


def _decode_entry(item: dict[str, Any]) -> RevokedEntry:
    reason = item["reason"]
    invalidity_at = item.get("invalidity_at")
    return RevokedEntry(
        id=item["id"],
        issuer=item["issuer"],
        revoked_at=datetime.fromisoformat(item["revoked_at"]),
        reason=RevocationReason(ReasonCode[reason["code"]], reason.get("text")),
        invalidity_at=datetime.fromisoformat(invalidity_at) if invalidity_at else None,
    )


def _hex_or_none(value: bytes | None) -> str | None:
    return value.hex() if value is not None else None


def _bytes_or_none(value: str | None) -> bytes | None:
    return bytes.fromhex(value) if value is not None else None


def encode_request(operation: str, version: int, **arguments: Any) -> bytes:
    """
    Canonical bytes of one mutation request.

    `version` is the registry version the request applies to (0 before
    initialize), so a signature is good for one state only.

        >>> encode_request("unrevoke", 2, id="C1")
        b'{"arguments":{"id":"C1"},"operation":"unrevoke","version":2}'
    """
    document = {
        "operation": operation,
        "version": version,
        "arguments": {name: _plain(value) for name, value in arguments.items()},
    }
    return json.dumps(document, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _plain(value: Any) -> Any:
    if isinstance(value, RevocationReason):
        return {"code": value.code.name, "text": value.text}
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.hex()
    return value
