"""
FastAPI dependencies for OAuth endpoints.

Provides dependency injection for the configuration snapshot, provider
validation, the provider adapters and the flow service.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from gateway.core.services import OAuthFlowService
from gateway.oauth.config import (
    GatewayConfig,
    SUPPORTED_PROVIDERS,
    get_gateway_config,
)
from gateway.providers.base import BaseProviderAdapter
from gateway.providers.registry import get_adapter
from gateway.sessions.dependencies import SessionIssuerDep


logger = logging.getLogger(__name__)


GatewayConfigDep = Annotated[GatewayConfig, Depends(get_gateway_config)]


async def validate_provider(provider: str, config: GatewayConfigDep) -> str:
    """
    Validate that the provider is supported and configured.

    Args:
        provider: Provider name from path
        config: Configuration snapshot

    Returns:
        Validated provider name

    Raises:
        HTTPException: 404 if the provider is unknown or not configured
    """
    if provider not in SUPPORTED_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown provider: {provider}. Supported: {SUPPORTED_PROVIDERS}",
        )

    if not config.is_provider_configured(provider):
        logger.warning(f"Request for unconfigured provider: {provider}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Provider '{provider}' is not configured",
        )

    return provider


ValidProvider = Annotated[str, Depends(validate_provider)]


def get_provider_adapter(
    provider: ValidProvider,
    config: GatewayConfigDep,
) -> BaseProviderAdapter:
    """Provide the adapter for the validated provider."""
    adapter = get_adapter(provider, config)
    if adapter is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Provider '{provider}' is not configured",
        )
    return adapter


ProviderAdapterDep = Annotated[BaseProviderAdapter, Depends(get_provider_adapter)]


def get_flow_service(
    request: Request,
    adapter: ProviderAdapterDep,
    config: GatewayConfigDep,
    issuer: SessionIssuerDep,
) -> OAuthFlowService:
    """Provide the flow service bound to the provider's callback URL."""
    redirect_uri = config.get_callback_url(adapter.name, str(request.base_url))
    return OAuthFlowService(adapter, issuer, redirect_uri)


FlowService = Annotated[OAuthFlowService, Depends(get_flow_service)]
