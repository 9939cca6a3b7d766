"""
Keycloak adapter.

Endpoints are the realm's OpenID Connect endpoints. The client secret is
sent only when the Keycloak client is confidential.
"""

from typing import Any
from urllib.parse import quote

from gateway.core.domain import NormalizedIdentity
from gateway.providers.base import BaseProviderAdapter, email_local_part


class KeycloakAdapter(BaseProviderAdapter):
    """Adapter for a Keycloak realm."""

    name = "keycloak"
    display_name = "Keycloak"
    description = "MCP tool gateway using Keycloak for authentication."
    logo_url = "https://www.keycloak.org/resources/images/keycloak_logo_480x108.png"
    scope = ("openid", "profile", "email")

    @property
    def realm_url(self) -> str:
        realm = quote(self.config.realm or "", safe="")
        return f"{self.config.domain}/realms/{realm}/protocol/openid-connect"

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.realm_url}/auth"

    @property
    def token_endpoint(self) -> str:
        return f"{self.realm_url}/token"

    @property
    def userinfo_endpoint(self) -> str:
        return f"{self.realm_url}/userinfo"

    def normalize_identity(
        self, user_info: dict[str, Any], access_token: str
    ) -> NormalizedIdentity:
        email = user_info.get("email")
        sub = user_info.get("sub")
        preferred_username = user_info.get("preferred_username")
        given_name = user_info.get("given_name")
        family_name = user_info.get("family_name")

        login = preferred_username or email_local_part(email) or sub or "unknown"
        full_name = f"{given_name or ''} {family_name or ''}".strip()
        name = user_info.get("name") or full_name or preferred_username or "Unknown User"

        return NormalizedIdentity(
            login=login,
            name=name,
            email=email,
            access_token=access_token,
            provider=self.name,
            picture=user_info.get("picture"),
            verified_email=user_info.get("email_verified"),
            sub=sub,
            updated_at=_as_str(user_info.get("updated_at")),
            preferred_username=preferred_username,
            given_name=given_name,
            family_name=family_name,
        )


def _as_str(value: Any) -> str | None:
    # Keycloak reports updated_at as epoch seconds
    if value is None:
        return None
    return str(value)
