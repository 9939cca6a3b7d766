"""
Provider router endpoints.

Provides the browser-facing surface of the authorization flow:
- GET /authorize - Entry point; auto-redirect or provider selection page
- GET /{provider}/authorize - Approval dialog or redirect upstream
- POST /{provider}/authorize - Approval dialog submission
- GET /{provider}/callback - Upstream redirect target

Every provider owns its callback path, so callbacks are dispatched by
path and never by inspecting the callback payload.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from gateway.core.approval import (
    encode_form_state,
    is_approved,
    parse_form_state,
    record_approval,
)
from gateway.core.domain import AuthorizationRequest
from gateway.core.exceptions import NoProviderConfiguredError
from gateway.oauth.dependencies import FlowService, GatewayConfigDep
from gateway.oauth.pages import render_approval_dialog, render_provider_selection
from gateway.providers.registry import configured_adapters
from gateway.sessions.dependencies import SessionIssuerDep


logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])


def _require_cookie_secret(config: GatewayConfigDep) -> str:
    try:
        config.validate()
    except ValueError as e:
        logger.error(f"Gateway misconfigured: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return config.cookie_secret


@router.get("/authorize")
async def authorize(request: Request, config: GatewayConfigDep):
    """
    Entry point for downstream clients.

    With exactly one configured provider the browser is redirected to that
    provider's /authorize; with several, a selection page is rendered.
    The original query string is forwarded verbatim in both cases.

    Raises:
        MalformedRequestError: Missing client_id (400)
        NoProviderConfiguredError: No provider configured (500)
    """
    auth_request = AuthorizationRequest.from_query(request.query_params)

    adapters = configured_adapters(config)
    if not adapters:
        raise NoProviderConfiguredError(
            "No OAuth providers configured. Please check your environment variables."
        )

    query_string = request.url.query

    if len(adapters) == 1:
        provider = adapters[0].name
        logger.info(
            f"Single provider configured, redirecting to {provider}",
            extra={
                "extra_fields": {
                    "provider": provider,
                    "client_id": auth_request.client_id,
                }
            },
        )
        target = f"/{provider}/authorize"
        if query_string:
            target = f"{target}?{query_string}"
        return RedirectResponse(url=target, status_code=status.HTTP_302_FOUND)

    html = render_provider_selection(
        [(adapter.name, adapter.display_name) for adapter in adapters],
        query_string,
    )
    return HTMLResponse(content=html)


@router.get("/{provider}/authorize")
async def provider_authorize(
    request: Request,
    config: GatewayConfigDep,
    flow: FlowService,
    issuer: SessionIssuerDep,
):
    """
    Provider-specific entry point.

    Unknown clients and unregistered redirect URIs are rejected before the
    user signs in upstream. Clients the browser has already approved go
    straight to the upstream provider; otherwise the approval dialog is
    rendered.
    """
    cookie_secret = _require_cookie_secret(config)
    auth_request = AuthorizationRequest.from_query(request.query_params)
    client, _ = await issuer.validate_authorization_request(auth_request)
    adapter = flow.adapter

    if is_approved(request.cookies, auth_request.client_id, cookie_secret):
        logger.info(
            "Client already approved, skipping dialog",
            extra={
                "extra_fields": {
                    "provider": adapter.name,
                    "client_id": auth_request.client_id,
                }
            },
        )
        return RedirectResponse(
            url=flow.start(auth_request), status_code=status.HTTP_302_FOUND
        )

    html = render_approval_dialog(
        action=f"/{adapter.name}/authorize",
        state=encode_form_state(auth_request),
        client_id=auth_request.client_id,
        client=client,
        server_name=config.server_name,
        server_description=adapter.description,
        logo_url=adapter.logo_url,
    )
    return HTMLResponse(content=html)


@router.post("/{provider}/authorize")
async def approve(
    request: Request,
    config: GatewayConfigDep,
    flow: FlowService,
    issuer: SessionIssuerDep,
    state: Annotated[str | None, Form()] = None,
):
    """
    Handle the approval dialog submission.

    Records the approval in a signed cookie, so the dialog is skipped next
    time, and redirects to the upstream provider.
    """
    cookie_secret = _require_cookie_secret(config)
    auth_request = parse_form_state(state)
    await issuer.validate_authorization_request(auth_request)

    set_cookie = record_approval(request.cookies, auth_request.client_id, cookie_secret)

    logger.info(
        "Client approved by user",
        extra={
            "extra_fields": {
                "provider": flow.adapter.name,
                "client_id": auth_request.client_id,
            }
        },
    )

    return RedirectResponse(
        url=flow.start(auth_request),
        status_code=status.HTTP_302_FOUND,
        headers={"Set-Cookie": set_cookie},
    )


@router.get("/{provider}/callback")
async def callback(request: Request, flow: FlowService):
    """
    Handle the upstream provider's redirect.

    Exchanges the code, resolves the caller's identity and hands it to the
    session issuer, then redirects the browser to the downstream client.

    Raises:
        MalformedRequestError: Bad state or missing code (400)
        UpstreamRejectedError: Upstream said no (502)
        ConnectivityError: Upstream unreachable (504)
    """
    logger.info(
        f"OAuth callback received for provider: {flow.adapter.name}",
        extra={"extra_fields": {"provider": flow.adapter.name}},
    )

    redirect_to = await flow.complete(request.query_params)
    return RedirectResponse(url=redirect_to, status_code=status.HTTP_302_FOUND)
