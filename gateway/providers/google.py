"""
Google OAuth adapter.

Google has no username field: the login is the local part of the
account's e-mail address.
"""

from typing import Any

from gateway.core.domain import NormalizedIdentity
from gateway.providers.base import BaseProviderAdapter, email_local_part


class GoogleAdapter(BaseProviderAdapter):
    """Adapter for Google OAuth 2.0 (Gmail scopes appended when enabled)."""

    name = "google"
    display_name = "Google"
    description = "MCP tool gateway using Google for authentication."
    logo_url = "https://developers.google.com/identity/images/g-logo.png"
    scope = ("openid", "profile", "email")

    authorize_endpoint = "https://accounts.google.com/o/oauth2/v2/auth"
    token_endpoint = "https://oauth2.googleapis.com/token"
    userinfo_endpoint = "https://www.googleapis.com/oauth2/v2/userinfo"

    def normalize_identity(
        self, user_info: dict[str, Any], access_token: str
    ) -> NormalizedIdentity:
        email = user_info.get("email")
        login = email_local_part(email)
        if not login:
            raise self.malformed_user_info("email")

        return NormalizedIdentity(
            login=login,
            name=user_info.get("name") or login,
            email=email,
            access_token=access_token,
            provider=self.name,
            picture=user_info.get("picture"),
            verified_email=user_info.get("verified_email"),
            sub=user_info.get("id"),
            given_name=user_info.get("given_name"),
            family_name=user_info.get("family_name"),
        )
