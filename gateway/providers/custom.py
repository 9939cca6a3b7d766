"""
Generic OAuth 2.1 adapter.

Targets a PKCE-only public client against a standards-following OAuth
server (for example a local demo server). The server is trusted to
report the username; it does not provide an e-mail address.
"""

from typing import Any

from gateway.core.domain import NormalizedIdentity
from gateway.providers.base import BaseProviderAdapter


class CustomOAuthAdapter(BaseProviderAdapter):
    """Adapter for a generic OAuth 2.1 server."""

    name = "custom"
    display_name = "Custom OAuth"
    description = "MCP tool gateway using a custom OAuth 2.1 server for authentication."
    logo_url = "https://oauth.net/images/oauth-2-sm.png"
    scope = ("read", "write")
    confidential = False

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.config.domain}/oauth/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.config.domain}/oauth/token"

    @property
    def userinfo_endpoint(self) -> str:
        return f"{self.config.domain}/api/userinfo"

    def normalize_identity(
        self, user_info: dict[str, Any], access_token: str
    ) -> NormalizedIdentity:
        username = user_info.get("username")
        user_id = user_info.get("user_id")
        login = username or (str(user_id) if user_id else None) or "demo_user"
        scope = user_info.get("scope")
        if isinstance(scope, list):
            scope = " ".join(scope)

        return NormalizedIdentity(
            login=login,
            name=username or (str(user_id) if user_id else None) or "Demo User",
            email=f"{login}@custom-oauth.local",
            access_token=access_token,
            provider=self.name,
            user_id=str(user_id) if user_id else None,
            scope=scope,
            client_id=user_info.get("client_id"),
        )
