"""
Gateway configuration and upstream provider credentials.

Loaded from environment variables as one immutable snapshot per request.
Each provider resolves to a ProviderConfig, or None when its required
variables are missing, so detection is a simple presence check.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Mapping


logger = logging.getLogger(__name__)


# Ordered: selection page lists providers in this order
SUPPORTED_PROVIDERS = ["github", "google", "auth0", "keycloak", "custom"]

DEFAULT_UPSTREAM_TIMEOUT = 10.0
DEFAULT_CUSTOM_CLIENT_ID = "demo-client"


@dataclass(frozen=True)
class ProviderConfig:
    """
    Static configuration for one upstream provider.

    The client secret is optional: public (PKCE-only) clients omit it.
    `domain` and `realm` are only used by providers whose endpoints are
    deployment-specific (Auth0, Keycloak, the generic OAuth server).
    """

    client_id: str
    client_secret: str | None = field(default=None, repr=False)
    domain: str | None = None
    realm: str | None = None
    audience: str | None = None
    extra_scopes: tuple[str, ...] = ()

    @property
    def is_confidential(self) -> bool:
        return bool(self.client_secret)


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "false").lower() in ("1", "true", "yes")


def _google_gmail_scopes(env: Mapping[str, str]) -> tuple[str, ...]:
    if not _env_flag(env, "GMAIL_ENABLED"):
        return ()
    return (
        "https://www.googleapis.com/auth/gmail.send",
        "https://www.googleapis.com/auth/gmail.readonly",
    )


@dataclass(frozen=True)
class GatewayConfig:
    """
    Configuration snapshot for the authorization core.

    Required environment variables:
    - COOKIE_ENCRYPTION_KEY: HMAC secret for the approval cookie

    Optional:
    - BASE_URL: Public origin of this gateway (derived from the request if unset)
    - Per-provider credentials (see SUPPORTED_PROVIDERS and from_env)
    - ALLOWED_USERNAMES: Comma-separated logins allowed to use write tools
    - UPSTREAM_TIMEOUT_SECONDS: Timeout for every outbound call
    """

    base_url: str = ""
    cookie_secret: str = field(default="", repr=False)
    providers: Mapping[str, ProviderConfig] = field(default_factory=dict)
    allowed_usernames: frozenset[str] = frozenset()
    upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT
    server_name: str = "MCP Tool Gateway"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "GatewayConfig":
        """Load configuration from environment variables."""
        if env is None:
            env = os.environ

        providers: dict[str, ProviderConfig] = {}

        if env.get("GITHUB_CLIENT_ID"):
            providers["github"] = ProviderConfig(
                client_id=env["GITHUB_CLIENT_ID"],
                client_secret=env.get("GITHUB_CLIENT_SECRET"),
            )

        if env.get("GOOGLE_CLIENT_ID"):
            providers["google"] = ProviderConfig(
                client_id=env["GOOGLE_CLIENT_ID"],
                client_secret=env.get("GOOGLE_CLIENT_SECRET"),
                extra_scopes=_google_gmail_scopes(env),
            )

        if env.get("AUTH0_DOMAIN") and env.get("AUTH0_CLIENT_ID"):
            providers["auth0"] = ProviderConfig(
                client_id=env["AUTH0_CLIENT_ID"],
                client_secret=env.get("AUTH0_CLIENT_SECRET"),
                domain=env["AUTH0_DOMAIN"],
                audience=env.get("AUTH0_AUDIENCE") or None,
            )

        if (
            env.get("KEYCLOAK_DOMAIN")
            and env.get("KEYCLOAK_REALM")
            and env.get("KEYCLOAK_CLIENT_ID")
        ):
            providers["keycloak"] = ProviderConfig(
                client_id=env["KEYCLOAK_CLIENT_ID"],
                client_secret=env.get("KEYCLOAK_CLIENT_SECRET") or None,
                domain=env["KEYCLOAK_DOMAIN"].rstrip("/"),
                realm=env["KEYCLOAK_REALM"],
            )

        if env.get("CUSTOM_OAUTH_URL"):
            providers["custom"] = ProviderConfig(
                client_id=env.get("CUSTOM_OAUTH_CLIENT_ID") or DEFAULT_CUSTOM_CLIENT_ID,
                domain=env["CUSTOM_OAUTH_URL"].rstrip("/"),
            )

        allowed = frozenset(
            name.strip()
            for name in env.get("ALLOWED_USERNAMES", "").split(",")
            if name.strip()
        )

        try:
            timeout = float(
                env.get("UPSTREAM_TIMEOUT_SECONDS", DEFAULT_UPSTREAM_TIMEOUT)
            )
        except ValueError:
            logger.warning("Invalid UPSTREAM_TIMEOUT_SECONDS, using default")
            timeout = DEFAULT_UPSTREAM_TIMEOUT

        return cls(
            base_url=env.get("BASE_URL", "").rstrip("/"),
            cookie_secret=env.get("COOKIE_ENCRYPTION_KEY", ""),
            providers=providers,
            allowed_usernames=allowed,
            upstream_timeout=timeout,
            server_name=env.get("SERVER_NAME", "MCP Tool Gateway"),
        )

    def get_provider(self, provider: str) -> ProviderConfig | None:
        """Config record for a provider, or None if it is not configured."""
        return self.providers.get(provider)

    def is_provider_configured(self, provider: str) -> bool:
        """Check if a provider has its required configuration."""
        return provider in self.providers

    def get_configured_providers(self) -> list[str]:
        """List all configured providers in display order."""
        return [p for p in SUPPORTED_PROVIDERS if p in self.providers]

    def get_callback_url(self, provider: str, origin: str = "") -> str:
        """
        Generate this gateway's callback URL for a provider.

        Args:
            provider: Provider name
            origin: Request origin, used when BASE_URL is not set
        """
        base = self.base_url or origin.rstrip("/")
        return f"{base}/{provider}/callback"

    def validate(self) -> None:
        """Validate settings the provider authorize routes need."""
        if not self.cookie_secret:
            raise ValueError("COOKIE_ENCRYPTION_KEY environment variable is required")


def get_gateway_config() -> GatewayConfig:
    """
    Resolve the configuration snapshot for the current request.

    Not cached: configuration may differ between deployments and tests
    replace it through dependency overrides.
    """
    return GatewayConfig.from_env()
