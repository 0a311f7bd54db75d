"""
End-to-end BDD acceptance tests for the revocation registry.

Exercises the full stack with signed requests: Ed25519 authorizer → registry
service → codec → key/value store, and the relying-party read path.

Each test follows Given/When/Then BDD structure in its docstring.

Markers: @pytest.mark.acceptance
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from railway import ErrorCode
from railway.assertions import ResultAssertions

from crl_registry.domain.commitment import commitment_root, sha256
from crl_registry.domain.models import ReasonCode, RevocationReason

pytestmark = pytest.mark.acceptance

KEY_COMPROMISE = RevocationReason(ReasonCode.KEY_COMPROMISE)


def _revocation(entry_id: str) -> dict:
    return {"id": entry_id, "reason": KEY_COMPROMISE, "invalidity_at": None}


@pytest.fixture()
def initialized(authority_key, authority, signed) -> None:
    ResultAssertions.assert_success(
        signed(authority_key, "initialize", 0, issuer=authority).initialize(authority)
    )


class TestRevocationLifecycle:
    """An authority publishes, amends and retracts revocations."""

    def test_revoke_then_unrevoke_single_certificate(self, authority_key, signed, reader, initialized) -> None:
        """
        GIVEN a registry initialized by the authority
        WHEN C1 is revoked for KEY_COMPROMISE
        THEN C1 is revoked at version 2
        WHEN C1 is unrevoked
        THEN C1 is no longer revoked at version 3, and the commitment differs
             from both the post-revoke and the pre-revoke value.
        """
        pre_revoke = ResultAssertions.assert_success(reader.get_commitment())

        revoke = signed(authority_key, "revoke", 1, **_revocation("C1"))
        ResultAssertions.assert_success(revoke.revoke("C1", KEY_COMPROMISE))
        assert ResultAssertions.assert_success(reader.is_revoked("C1")) is True
        assert ResultAssertions.assert_success(reader.get_registry()).version == 2
        post_revoke = ResultAssertions.assert_success(reader.get_commitment())

        unrevoke = signed(authority_key, "unrevoke", 2, id="C1")
        ResultAssertions.assert_success(unrevoke.unrevoke("C1"))
        assert ResultAssertions.assert_success(reader.is_revoked("C1")) is False
        assert ResultAssertions.assert_success(reader.get_registry()).version == 3
        post_unrevoke = ResultAssertions.assert_success(reader.get_commitment())

        assert post_unrevoke != post_revoke
        assert post_unrevoke != pre_revoke
        assert post_revoke == sha256(b"C1")
        assert post_unrevoke == sha256(b"")

    def test_relying_party_reads_a_consistent_snapshot(
        self, authority_key, signed, reader, initialized, acceptance_clock
    ) -> None:
        """
        GIVEN fifteen certificates revoked one minute apart
        WHEN a relying party pages through the list and verifies one id
        THEN the pages follow revocation order and the commitment matches
             the published entries.
        """
        for i in range(15):
            acceptance_clock.advance(minutes=1)
            entry_id = f"CERT-{i:03d}"
            service = signed(authority_key, "revoke", i + 1, **_revocation(entry_id))
            ResultAssertions.assert_success(service.revoke(entry_id, KEY_COMPROMISE))

        pages = [ResultAssertions.assert_success(reader.list(page, 5)) for page in range(4)]
        registry = ResultAssertions.assert_success(reader.get_registry())
        snapshot = ResultAssertions.assert_success(reader.verify("CERT-007"))

        assert [len(p.entries) for p in pages] == [5, 5, 5, 0]
        assert [p.has_next for p in pages] == [True, True, False, False]
        listed = [e.id for p in pages for e in p.entries]
        assert listed == [f"CERT-{i:03d}" for i in range(15)]
        assert registry.commitment == commitment_root(registry.entries)
        assert snapshot.is_revoked is True
        assert snapshot.version == 16
        assert snapshot.entry.revoked_at < registry.this_update


class TestSignedRequests:
    """A signature authorizes exactly the request it was made for."""

    def test_forged_requests_change_nothing(self, authority_key, authority, signed, reader, initialized) -> None:
        """
        GIVEN a registry holding one revocation
        WHEN someone without the authority key tries every mutation
        THEN each fails with UNAUTHORIZED and the published state is unchanged.
        """
        signed(authority_key, "revoke", 1, **_revocation("C1")).revoke("C1", KEY_COMPROMISE)
        before = ResultAssertions.assert_success(reader.get_registry())
        attacker = Ed25519PrivateKey.generate()

        attempts = [
            signed(attacker, "revoke", 2, **_revocation("C2")).revoke("C2", KEY_COMPROMISE),
            signed(attacker, "unrevoke", 2, id="C1").unrevoke("C1"),
            signed(attacker, "update_metadata", 2, next_update=None, authority_key_id=None).update_metadata(),
            signed(attacker, "initialize", 2, issuer=authority).initialize(authority),
        ]

        for result in attempts:
            ResultAssertions.assert_failure(result, ErrorCode.UNAUTHORIZED)
        assert ResultAssertions.assert_success(reader.get_registry()) == before

    def test_signature_cannot_be_reused_for_another_request(
        self, authority_key, signed, reader, initialized
    ) -> None:
        """
        GIVEN the authority's signature over "revoke C1 at version 1"
        WHEN that signature is presented for unrevoke C1 or for revoking X
        THEN both fail with UNAUTHORIZED and nothing changes
        WHEN it is presented for the request it was made for
        THEN C1 is revoked.
        """
        captured = signed(authority_key, "revoke", 1, **_revocation("C1"))

        ResultAssertions.assert_failure(captured.unrevoke("C1"), ErrorCode.UNAUTHORIZED)
        ResultAssertions.assert_failure(captured.revoke("X", KEY_COMPROMISE), ErrorCode.UNAUTHORIZED)
        assert ResultAssertions.assert_success(reader.get_registry()).version == 1

        ResultAssertions.assert_success(captured.revoke("C1", KEY_COMPROMISE))
        assert ResultAssertions.assert_success(reader.is_revoked("C1")) is True

    def test_signature_is_bound_to_the_registry_version(
        self, authority_key, signed, reader, initialized
    ) -> None:
        """
        GIVEN C1 revoked and unrevoked with the authority's signatures
        WHEN the revoke signed at version 1 is replayed at version 3
        THEN it fails with UNAUTHORIZED and C1 stays unrevoked.
        """
        replayed = signed(authority_key, "revoke", 1, **_revocation("C1"))
        ResultAssertions.assert_success(replayed.revoke("C1", KEY_COMPROMISE))
        ResultAssertions.assert_success(signed(authority_key, "unrevoke", 2, id="C1").unrevoke("C1"))

        ResultAssertions.assert_failure(replayed.revoke("C1", KEY_COMPROMISE), ErrorCode.UNAUTHORIZED)
        assert ResultAssertions.assert_success(reader.is_revoked("C1")) is False
        assert ResultAssertions.assert_success(reader.get_registry()).version == 3


class TestPublicationDeadline:
    def test_publication_deadline(self, authority_key, authority, signed, reader, initialized, acceptance_clock) -> None:
        """
        GIVEN a registry whose next_update is 24h after initialization
        WHEN 25 hours pass
        THEN needs_update reports True
        WHEN the authority publishes a new deadline and key id
        THEN needs_update reports False and the version has advanced.
        """
        acceptance_clock.advance(hours=25)
        assert ResultAssertions.assert_success(reader.needs_update()) is True

        deadline = acceptance_clock.now() + timedelta(days=1)
        key_id = bytes.fromhex(authority)[:20]
        service = signed(authority_key, "update_metadata", 1, next_update=deadline, authority_key_id=key_id)
        updated = ResultAssertions.assert_success(
            service.update_metadata(next_update=deadline, authority_key_id=key_id)
        )

        assert ResultAssertions.assert_success(reader.needs_update()) is False
        assert updated.version == 2
        assert updated.authority_key_id == key_id
