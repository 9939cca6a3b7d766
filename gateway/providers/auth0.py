"""
Auth0 adapter.

Endpoints live on the tenant domain. An API audience is forwarded to the
authorize endpoint when configured.
"""

from typing import Any

from gateway.core.domain import NormalizedIdentity
from gateway.providers.base import BaseProviderAdapter, email_local_part


def _sub_suffix(sub: str | None) -> str | None:
    # "auth0|abc123" -> "abc123"
    if not sub or "|" not in sub:
        return None
    return sub.split("|")[1] or None


class Auth0Adapter(BaseProviderAdapter):
    """Adapter for an Auth0 tenant."""

    name = "auth0"
    display_name = "Auth0"
    description = "MCP tool gateway using Auth0 for authentication."
    logo_url = "https://cdn.auth0.com/website/new-homepage/dark-favicon.png"
    scope = ("openid", "profile", "email")

    @property
    def base_url(self) -> str:
        domain = (self.config.domain or "").rstrip("/")
        if domain.startswith(("http://", "https://")):
            return domain
        return f"https://{domain}"

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.base_url}/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.base_url}/oauth/token"

    @property
    def userinfo_endpoint(self) -> str:
        return f"{self.base_url}/userinfo"

    def extra_authorize_params(self) -> dict[str, str]:
        if self.config.audience:
            return {"audience": self.config.audience}
        return {}

    def normalize_identity(
        self, user_info: dict[str, Any], access_token: str
    ) -> NormalizedIdentity:
        email = user_info.get("email")
        sub = user_info.get("sub")
        nickname = user_info.get("nickname")
        login = nickname or email_local_part(email) or _sub_suffix(sub) or "unknown"

        return NormalizedIdentity(
            login=login,
            name=user_info.get("name") or nickname or "Unknown User",
            email=email,
            access_token=access_token,
            provider=self.name,
            picture=user_info.get("picture"),
            verified_email=user_info.get("email_verified"),
            sub=sub,
            updated_at=user_info.get("updated_at"),
        )
