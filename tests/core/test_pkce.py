"""
Tests for the PKCE helpers.
"""

import base64
import hashlib
import re

from gateway.core.pkce import derive_challenge, generate_pkce_pair, generate_verifier


BASE64URL = re.compile(r"^[A-Za-z0-9_-]+$")


class TestGenerateVerifier:
    def test_verifier_is_43_char_base64url(self):
        verifier = generate_verifier()

        assert len(verifier) == 43
        assert BASE64URL.match(verifier)
        assert "=" not in verifier

    def test_verifiers_are_unique(self):
        assert len({generate_verifier() for _ in range(50)}) == 50


class TestDeriveChallenge:
    def test_s256_transform(self):
        """BASE64URL(SHA256(ASCII(verifier))) without padding."""
        verifier = generate_verifier()
        digest = hashlib.sha256(verifier.encode("ascii")).digest()
        expected = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

        assert derive_challenge(verifier) == expected

    def test_deterministic(self):
        verifier = generate_verifier()

        assert derive_challenge(verifier) == derive_challenge(verifier)

    def test_different_verifiers_give_different_challenges(self):
        assert derive_challenge(generate_verifier()) != derive_challenge(generate_verifier())

    def test_challenge_has_no_padding(self):
        challenge = derive_challenge(generate_verifier())

        assert len(challenge) == 43
        assert BASE64URL.match(challenge)


def test_generate_pkce_pair_matches():
    pair = generate_pkce_pair()

    assert pair.challenge == derive_challenge(pair.verifier)
    assert pair.verifier not in repr(pair)
