"""
Shared test configuration and fixtures.
"""

import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Import the app with a predictable environment
with patch.dict(
    os.environ,
    {
        "BASE_URL": "http://testserver",
        "COOKIE_ENCRYPTION_KEY": "test-cookie-secret",
    },
):
    from gateway.main import app
    from gateway.core.domain import AuthorizationRequest, NormalizedIdentity
    from gateway.core.pkce import derive_challenge
    from gateway.oauth.config import GatewayConfig, ProviderConfig, get_gateway_config
    from gateway.sessions.repository import reset_session_repository


COOKIE_SECRET = "test-cookie-secret"

CODE_VERIFIER = "test-verifier-0123456789abcdefghijklmnopqrstuvwxyz"
CODE_CHALLENGE = derive_challenge(CODE_VERIFIER)

client = TestClient(app)


def make_config(**providers: ProviderConfig) -> GatewayConfig:
    """Build a configuration snapshot with the given providers."""
    return GatewayConfig(
        base_url="http://testserver",
        cookie_secret=COOKIE_SECRET,
        providers=providers,
        allowed_usernames=frozenset({"octocat"}),
        upstream_timeout=5.0,
        server_name="Test Gateway",
    )


GITHUB = ProviderConfig(client_id="gh-client", client_secret="gh-secret")
GOOGLE = ProviderConfig(client_id="google-client", client_secret="google-secret")
AUTH0 = ProviderConfig(
    client_id="auth0-client",
    client_secret="auth0-secret",
    domain="tenant.auth0.com",
    audience="https://api.example.com",
)
KEYCLOAK = ProviderConfig(
    client_id="kc-client",
    client_secret="kc-secret",
    domain="https://sso.example.com",
    realm="tools",
)
CUSTOM = ProviderConfig(client_id="demo-client", domain="http://oauth.local")


@pytest.fixture(autouse=True)
def reset_state():
    """
    Give every test an empty session store and no config override.

    This fixture runs automatically for every test (autouse=True).
    """
    reset_session_repository()
    yield
    app.dependency_overrides.pop(get_gateway_config, None)
    reset_session_repository()


@pytest.fixture
def use_config():
    """Return a function that installs a configuration snapshot on the app."""

    def _use(config: GatewayConfig) -> GatewayConfig:
        app.dependency_overrides[get_gateway_config] = lambda: config
        return config

    return _use


@pytest.fixture
def auth_request():
    """A downstream client's authorization request."""
    return AuthorizationRequest(
        client_id="client-abc",
        redirect_uri="https://client.example.com/callback",
        scope=["read", "write"],
        state="client-state-123",
        code_challenge=CODE_CHALLENGE,
        code_challenge_method="S256",
    )


@pytest.fixture
def identity():
    """A normalized identity as produced by the GitHub adapter."""
    return NormalizedIdentity(
        login="octocat",
        name="The Octocat",
        email="octocat@github.com",
        access_token="gho_upstream_token",
        provider="github",
    )
