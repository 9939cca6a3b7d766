"""
GitHub OAuth adapter.

GitHub's `login` field is the canonical username and is trusted verbatim.
"""

from typing import Any

from gateway.core.domain import NormalizedIdentity
from gateway.providers.base import BaseProviderAdapter


class GitHubAdapter(BaseProviderAdapter):
    """Adapter for GitHub OAuth Apps."""

    name = "github"
    display_name = "GitHub"
    description = "MCP tool gateway using GitHub for authentication."
    logo_url = "https://github.githubassets.com/images/modules/logos_page/GitHub-Mark.png"
    scope = ("read:user",)

    authorize_endpoint = "https://github.com/login/oauth/authorize"
    token_endpoint = "https://github.com/login/oauth/access_token"
    userinfo_endpoint = "https://api.github.com/user"

    def userinfo_headers(self) -> dict[str, str]:
        return {"Accept": "application/vnd.github+json"}

    def normalize_identity(
        self, user_info: dict[str, Any], access_token: str
    ) -> NormalizedIdentity:
        login = user_info.get("login")
        if not login:
            raise self.malformed_user_info("login")

        return NormalizedIdentity(
            login=login,
            name=user_info.get("name") or login,
            email=user_info.get("email"),
            access_token=access_token,
            provider=self.name,
            picture=user_info.get("avatar_url"),
        )
