"""
crl_registry — certificate-revocation registry with a Merkle commitment.

An authority publishes the identifiers of the certificates it has revoked,
versioned and timestamped, together with a Merkle root over the list so
relying parties can check status and detect tampering.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
