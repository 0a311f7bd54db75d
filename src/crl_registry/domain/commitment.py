"""
Commitment builder — the Merkle root over the revoked entries.

Domain layer — pure functions, no state, no I/O.

Commitment rules:
  1. Leaf:   hash(entry.id encoded as UTF-8). Only the identifier is hashed;
             reason, timestamps and issuer do not contribute.
  2. Parent: hash(left || right), raw concatenation of two digests.
  3. Odd level: the last node is paired with itself.
  4. Empty input: hash(b"").
  5. Single leaf: the root is the leaf hash.

Leaves are taken in registry order and never sorted, so the root commits to
the current sequence: the same ids in another insertion order give another
root. History that ends in the same sequence (revoke A, revoke B, unrevoke A
versus revoke B) gives the same root; the registry version tells them apart.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

from crl_registry.domain.models import RevokedEntry
from crl_registry.domain.ports import HashFunction


def sha256(data: bytes) -> bytes:
    """
    Default commitment hash.

    >>> sha256(b"").hex()
    'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(data).digest()


def hash_function(name: str) -> HashFunction:
    """
    Resolve a hashlib algorithm name into a HashFunction.

    Raises ValueError for unknown or variable-length (SHAKE) algorithms.
    """
    if name not in hashlib.algorithms_available:
        raise ValueError(f"Unknown hash algorithm: {name!r}")
    if hashlib.new(name).digest_size == 0:
        raise ValueError(f"Hash algorithm must have a fixed digest length: {name!r}")

    def _digest(data: bytes) -> bytes:
        return hashlib.new(name, data).digest()

    _digest.__name__ = name
    return _digest


def leaf_hash(entry_id: str, hash_fn: HashFunction = sha256) -> bytes:
    return hash_fn(entry_id.encode("utf-8"))


def node_hash(left: bytes, right: bytes, hash_fn: HashFunction = sha256) -> bytes:
    return hash_fn(left + right)


def build_root(leaves: Sequence[bytes], hash_fn: HashFunction = sha256) -> bytes:
    """
    Reduce an ordered sequence of leaf hashes to a single root.

    Example: [a, b, c] → [node(a, b), node(c, c)] → node(node(a, b), node(c, c))
    """
    if not leaves:
        return hash_fn(b"")

    level = list(leaves)
    while len(level) > 1:
        if len(level) % 2 == 1:
            level.append(level[-1])
        level = [node_hash(level[i], level[i + 1], hash_fn) for i in range(0, len(level), 2)]
    return level[0]


def commitment_root(entries: Sequence[RevokedEntry], hash_fn: HashFunction = sha256) -> bytes:
    """Root hash over `entries` in their current order."""
    return build_root([leaf_hash(entry.id, hash_fn) for entry in entries], hash_fn)


def tree_depth(leaf_count: int) -> int:
    """Number of pairing rounds for `leaf_count` leaves: ceil(log2(n)), 0 for n <= 1."""
    if leaf_count <= 1:
        return 0
    return (leaf_count - 1).bit_length()
