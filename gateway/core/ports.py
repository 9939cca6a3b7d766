"""
Port definitions (interfaces) for the authorization core.

Ports define the contracts between the authorization core and the
systems around it. Provider adapters implement ProviderAdapter; the
session issuer implements AuthorizationCompleter.
"""

from typing import Any, Protocol

from gateway.core.domain import (
    AuthorizationRequest,
    NormalizedIdentity,
    TokenResponse,
)


class ProviderAdapter(Protocol):
    """
    Port (interface) for one upstream identity provider.

    Implementations differ only in endpoint templates, scope and the
    mapping of the provider's user payload into a NormalizedIdentity.
    """

    name: str
    display_name: str

    def build_authorize_url(
        self, redirect_uri: str, state: str, code_challenge: str
    ) -> str:
        """Build the upstream authorize URL (challenge only, never the verifier)."""
        ...

    async def exchange_token(
        self, code: str, code_verifier: str, redirect_uri: str
    ) -> TokenResponse:
        """Exchange an authorization code and PKCE verifier for a token."""
        ...

    async def fetch_user_info(self, access_token: str) -> dict[str, Any]:
        """Fetch the provider's user payload with a bearer token."""
        ...

    def normalize_identity(
        self, user_info: dict[str, Any], access_token: str
    ) -> NormalizedIdentity:
        """Map the provider's user payload into the uniform identity record."""
        ...


class AuthorizationCompleter(Protocol):
    """
    Port (interface) to the downstream session/token issuer.

    Idempotent-unsafe: the core calls it at most once per callback.
    """

    async def complete_authorization(
        self,
        identity: NormalizedIdentity,
        request: AuthorizationRequest,
        scope: list[str],
    ) -> str:
        """
        Complete the downstream client's authorization request.

        Returns:
            URL the browser is redirected to (the client's redirect URI)
        """
        ...
