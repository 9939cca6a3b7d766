"""
Downstream OAuth endpoints.

Provides the surface downstream (MCP) clients talk to after the browser
flow:
- POST /register - Dynamic client registration
- POST /token - Redeem an authorization code for a bearer token
- GET /.well-known/oauth-authorization-server - Server metadata
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import JSONResponse

from gateway.oauth.dependencies import GatewayConfigDep
from gateway.sessions.dependencies import SessionIssuerDep
from gateway.sessions.models import ClientRegistrationRequest


logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    registration: ClientRegistrationRequest,
    issuer: SessionIssuerDep,
):
    """
    Register a downstream client.

    Args:
        registration: RFC 7591 client metadata
        issuer: Session issuer

    Returns:
        Registered client information (secret only for confidential clients)
    """
    client = await issuer.register_client(registration)
    return client.model_dump(exclude_none=True)


@router.post("/token")
async def token(
    issuer: SessionIssuerDep,
    grant_type: Annotated[str, Form()],
    client_id: Annotated[str, Form()],
    code: Annotated[str | None, Form()] = None,
    redirect_uri: Annotated[str | None, Form()] = None,
    code_verifier: Annotated[str | None, Form()] = None,
    client_secret: Annotated[str | None, Form()] = None,
):
    """
    Redeem an authorization code.

    Only the authorization_code grant is supported.

    Returns:
        OAuth token response
    """
    if grant_type != "authorization_code":
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "unsupported_grant_type",
                "error_description": f"Unsupported grant type: {grant_type}",
            },
        )

    if not code:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "invalid_request",
                "error_description": "Missing authorization code",
            },
        )

    issued = await issuer.exchange_code(
        client_id=client_id,
        code=code,
        redirect_uri=redirect_uri,
        code_verifier=code_verifier,
        client_secret=client_secret,
    )

    return {
        "access_token": issued.token,
        "token_type": "bearer",
        "expires_in": issued.expires_in,
        "scope": " ".join(issued.scope),
    }


@router.get("/.well-known/oauth-authorization-server")
async def authorization_server_metadata(request: Request, config: GatewayConfigDep):
    """OAuth 2.0 Authorization Server Metadata (RFC 8414)."""
    base = config.base_url or str(request.base_url).rstrip("/")
    return {
        "issuer": base,
        "authorization_endpoint": f"{base}/authorize",
        "token_endpoint": f"{base}/token",
        "registration_endpoint": f"{base}/register",
        "response_types_supported": ["code"],
        "grant_types_supported": ["authorization_code"],
        "code_challenge_methods_supported": ["S256", "plain"],
        "token_endpoint_auth_methods_supported": [
            "none",
            "client_secret_post",
        ],
    }
