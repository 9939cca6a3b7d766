"""
PKCE (RFC 7636) helpers for the upstream authorization-code flow.

S256 only. The verifier stays inside this gateway (embedded in state);
only the challenge is sent to the upstream authorize endpoint.
"""

import secrets

from authlib.oauth2.rfc7636 import create_s256_code_challenge

from gateway.core.domain import PkcePair


def generate_verifier() -> str:
    """
    Generate a code verifier.

    32 random bytes, base64url-encoded without padding (43 chars).
    """
    return secrets.token_urlsafe(32)


def derive_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier."""
    return create_s256_code_challenge(verifier)


def generate_pkce_pair() -> PkcePair:
    """Generate a fresh verifier and its matching challenge."""
    verifier = generate_verifier()
    return PkcePair(verifier=verifier, challenge=derive_challenge(verifier))
