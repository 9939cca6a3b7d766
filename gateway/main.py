"""
FastAPI application for the MCP tool gateway.

This module wires routers and maps domain errors to HTTP responses.
The authorization flow lives in gateway/core, the upstream providers in
gateway/providers and the downstream session issuer in gateway/sessions.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime

# Configure logging FIRST, before other local imports
from gateway.logging_config import setup_global_logging

setup_global_logging()

# Now import other modules (they will use the configured logging)
from fastapi import FastAPI, Request, status  # noqa: E402
from fastapi.responses import JSONResponse, PlainTextResponse  # noqa: E402

from gateway.api import tools  # noqa: E402
from gateway.core.exceptions import (  # noqa: E402
    ConnectivityError,
    InvalidClientError,
    InvalidGrantError,
    MalformedRequestError,
    NoProviderConfiguredError,
    UpstreamRejectedError,
)
from gateway.oauth import router as oauth_router  # noqa: E402
from gateway.oauth.config import get_gateway_config  # noqa: E402
from gateway.sessions import router as sessions_router  # noqa: E402

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Logs which providers are configured at startup. Configuration is still
    resolved per request, so this is informational only.
    """
    config = get_gateway_config()
    providers = config.get_configured_providers()
    if providers:
        logger.info(
            f"Application starting up with providers: {', '.join(providers)}",
            extra={"extra_fields": {"providers": providers}},
        )
    else:
        logger.warning("Application starting up with no OAuth providers configured")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="MCP Tool Gateway",
    description="OAuth 2.1 gateway authenticating MCP clients through upstream identity providers",
    version="1.0.0",
    lifespan=lifespan,
)


# ============================================================================
# Centralized Exception Handlers
# ============================================================================


@app.exception_handler(MalformedRequestError)
async def malformed_request_handler(request: Request, exc: MalformedRequestError):
    """
    Handle malformed authorization requests.

    Missing client id, missing code or undecodable state. The browser gets
    a plain diagnostic and no redirect.
    """
    logger.warning(
        f"Malformed request: {exc.message}",
        extra={"extra_fields": {"provider": exc.provider, "path": request.url.path}},
    )
    return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)


@app.exception_handler(NoProviderConfiguredError)
async def no_provider_handler(request: Request, exc: NoProviderConfiguredError):
    """Handle a deployment with no configured provider."""
    logger.error(exc.message)
    return PlainTextResponse(
        exc.message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


@app.exception_handler(UpstreamRejectedError)
async def upstream_rejected_handler(request: Request, exc: UpstreamRejectedError):
    """
    Handle a provider that answered with an error.

    Covers MissingTokenError as well. The upstream body has already been
    logged by the adapter and is never returned to the caller.
    """
    logger.error(
        f"Upstream rejected request: {exc.message}",
        extra={
            "extra_fields": {
                "provider": exc.provider,
                "status_code": exc.status_code,
            }
        },
    )
    return PlainTextResponse(exc.message, status_code=status.HTTP_502_BAD_GATEWAY)


@app.exception_handler(ConnectivityError)
async def connectivity_error_handler(request: Request, exc: ConnectivityError):
    """Handle an unreachable or timed-out provider."""
    logger.error(
        f"Upstream connectivity failure: {exc.message}",
        extra={"extra_fields": {"provider": exc.provider}},
    )
    return PlainTextResponse(
        f"Connectivity issue while contacting the identity provider: {exc.message}",
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
    )


@app.exception_handler(InvalidClientError)
async def invalid_client_handler(request: Request, exc: InvalidClientError):
    """Handle an unknown client or bad client credentials (OAuth error format)."""
    logger.warning(f"Invalid client: {exc}")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED
        if request.url.path == "/token"
        else status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_client", "error_description": str(exc)},
    )


@app.exception_handler(InvalidGrantError)
async def invalid_grant_handler(request: Request, exc: InvalidGrantError):
    """Handle a bad authorization code or PKCE verifier (OAuth error format)."""
    logger.warning(f"Invalid grant: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_grant", "error_description": str(exc)},
    )


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "mcp-tool-gateway",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(sessions_router.router)
app.include_router(tools.router)
app.include_router(oauth_router.router)


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    port = int(os.getenv("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
