"""
Registry of upstream provider adapters.

Maps each provider name to its adapter class and builds adapters from
the per-request configuration snapshot.
"""

from gateway.oauth.config import GatewayConfig
from gateway.providers.auth0 import Auth0Adapter
from gateway.providers.base import BaseProviderAdapter
from gateway.providers.custom import CustomOAuthAdapter
from gateway.providers.github import GitHubAdapter
from gateway.providers.google import GoogleAdapter
from gateway.providers.keycloak import KeycloakAdapter


ADAPTERS: dict[str, type[BaseProviderAdapter]] = {
    "github": GitHubAdapter,
    "google": GoogleAdapter,
    "auth0": Auth0Adapter,
    "keycloak": KeycloakAdapter,
    "custom": CustomOAuthAdapter,
}


def get_adapter(provider: str, config: GatewayConfig) -> BaseProviderAdapter | None:
    """
    Build the adapter for a provider.

    Args:
        provider: Provider name from the request path
        config: Configuration snapshot for this request

    Returns:
        Adapter instance, or None if the provider is unknown or unconfigured
    """
    adapter_cls = ADAPTERS.get(provider)
    provider_config = config.get_provider(provider)
    if adapter_cls is None or provider_config is None:
        return None
    return adapter_cls(provider_config, timeout=config.upstream_timeout)


def configured_adapters(config: GatewayConfig) -> list[BaseProviderAdapter]:
    """Adapters for every configured provider, in display order."""
    adapters = []
    for provider in config.get_configured_providers():
        adapter = get_adapter(provider, config)
        if adapter is not None:
            adapters.append(adapter)
    return adapters
