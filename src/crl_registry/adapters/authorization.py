"""
Authorization adapters — prove the caller is the registry's authority.

Adapter layer — implements the Authorizer port.

Two strategies:
  - CallerAuthorizer: the caller identity was already established upstream
    (trusted in-process caller); the check is an identity comparison.
  - Ed25519SignatureAuthorizer: the authority identity IS the hex-encoded raw
    Ed25519 public key. The caller presents a signature over the canonical
    request (operation, arguments, registry version); the call is authorized
    only when it verifies over the request the service is about to execute.

Either way a mismatch is an UNAUTHORIZED failure, never an exception.
"""

from __future__ import annotations

import hmac
from typing import Any

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from railway import ResultFailures
from railway.result import Result

from crl_registry.adapters.codec import encode_request

log = structlog.get_logger()


class CallerAuthorizer:
    """Authorize when the known caller identity equals the claimed one, whatever the request."""

    def __init__(self, caller: str) -> None:
        self._caller = caller

    def require(self, identity: str, request: bytes) -> Result[str]:
        if hmac.compare_digest(self._caller.encode("utf-8"), identity.encode("utf-8")):
            return Result.success(identity)
        log.warning("auth.denied", caller=self._caller, required=identity)
        return ResultFailures.unauthorized(f"Caller {self._caller!r} is not the registry authority")


class Ed25519SignatureAuthorizer:
    """
    Authorize one request by signature.

    `signature` is the 64-byte Ed25519 signature the caller made over
    encode_request(...) for the operation it wants executed. The bytes are
    rebuilt by the service, so a signature for one operation, argument set
    or registry version authorizes nothing else.
    """

    def __init__(self, signature: bytes) -> None:
        self._signature = signature

    def require(self, identity: str, request: bytes) -> Result[str]:
        try:
            public_key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(identity))
        except ValueError:
            return ResultFailures.unauthorized(
                f"Authority identity is not an Ed25519 public key: {identity!r}"
            )
        try:
            public_key.verify(self._signature, request)
        except InvalidSignature:
            log.warning("auth.denied", required=identity, reason="invalid signature")
            return ResultFailures.unauthorized("Request signature does not match the registry authority")
        return Result.success(identity)


def identity_for(private_key: Ed25519PrivateKey) -> str:
    """Authority identity string for a signing key: hex of the raw public key."""
    raw = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return raw.hex()


def sign_request(private_key: Ed25519PrivateKey, operation: str, version: int, **arguments: Any) -> bytes:
    """Signature an authority attaches to one mutation request."""
    return private_key.sign(encode_request(operation, version, **arguments))
