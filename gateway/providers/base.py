"""
Base class for upstream identity provider adapters.

Holds everything the five providers share: authorize URL construction
with PKCE, the form-encoded token exchange, the bearer userinfo fetch,
and the classification of outbound failures. Subclasses supply endpoint
templates, scope, and the mapping of the provider's user payload into a
NormalizedIdentity.
"""

import logging
from typing import Any

import httpx
from authlib.common.urls import add_params_to_uri
from pydantic import ValidationError

from gateway.core.domain import NormalizedIdentity, TokenResponse
from gateway.core.exceptions import (
    ConnectivityError,
    MissingTokenError,
    UpstreamRejectedError,
)
from gateway.oauth.config import DEFAULT_UPSTREAM_TIMEOUT, ProviderConfig


logger = logging.getLogger(__name__)

USER_AGENT = "mcp-tool-gateway/1.0"
# Upstream error bodies are truncated in logs
MAX_LOGGED_BODY = 500


def email_local_part(email: str | None) -> str | None:
    """Return the part of an e-mail address before '@', or None."""
    if not email:
        return None
    local = email.split("@", 1)[0]
    return local or None


class BaseProviderAdapter:
    """
    Shared implementation of the ProviderAdapter port.

    Attributes:
        name: Path segment and identifier (github, google, ...)
        display_name: Human-readable provider name
        description: Shown in the approval dialog
        logo_url: Shown in the approval dialog
        scope: Scopes requested from the upstream provider
        confidential: Whether the client secret is sent to the token endpoint
    """

    name: str = ""
    display_name: str = ""
    description: str = ""
    logo_url: str | None = None
    scope: tuple[str, ...] = ()
    confidential: bool = True

    def __init__(
        self,
        config: ProviderConfig,
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT,
    ):
        self.config = config
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Endpoint templates (overridden per provider)
    # ------------------------------------------------------------------

    @property
    def authorize_endpoint(self) -> str:
        raise NotImplementedError

    @property
    def token_endpoint(self) -> str:
        raise NotImplementedError

    @property
    def userinfo_endpoint(self) -> str:
        raise NotImplementedError

    def scopes(self) -> list[str]:
        """Scopes requested upstream, including configured extras."""
        return [*self.scope, *self.config.extra_scopes]

    def extra_authorize_params(self) -> dict[str, str]:
        """Provider-specific authorize parameters (e.g. audience)."""
        return {}

    def userinfo_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    # ------------------------------------------------------------------
    # ProviderAdapter port
    # ------------------------------------------------------------------

    def build_authorize_url(
        self, redirect_uri: str, state: str, code_challenge: str
    ) -> str:
        """
        Build the upstream authorize URL.

        Args:
            redirect_uri: This gateway's /<provider>/callback URL
            state: Encoded state carrying the original request and verifier
            code_challenge: PKCE S256 challenge

        Returns:
            Absolute upstream authorize URL
        """
        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self.scopes()),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        params.update(self.extra_authorize_params())
        return add_params_to_uri(self.authorize_endpoint, params)

    async def exchange_token(
        self, code: str, code_verifier: str, redirect_uri: str
    ) -> TokenResponse:
        """
        Exchange the authorization code for an access token using PKCE.

        Raises:
            ConnectivityError: On timeout or network failure
            UpstreamRejectedError: On non-2xx or unparseable response
            MissingTokenError: If the response has no access_token
        """
        data = {
            "grant_type": "authorization_code",
            "client_id": self.config.client_id,
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        }
        if self.confidential and self.config.is_confidential:
            data["client_secret"] = self.config.client_secret

        logger.info(
            f"Exchanging authorization code with {self.display_name}",
            extra={"extra_fields": {"provider": self.name}},
        )
        response = await self._send(
            "POST",
            self.token_endpoint,
            operation="access token",
            data=data,
            headers={"Accept": "application/json"},
        )
        payload = self._parse_json(response, "access token")

        if not payload.get("access_token"):
            logger.error(
                f"{self.display_name} token response missing access_token",
                extra={
                    "extra_fields": {
                        "provider": self.name,
                        "endpoint": self.token_endpoint,
                        "error": payload.get("error"),
                    }
                },
            )
            raise MissingTokenError(
                "Missing access token in response", provider=self.name
            )

        try:
            return TokenResponse.model_validate(payload)
        except ValidationError as e:
            raise UpstreamRejectedError(
                "Failed to fetch access token: malformed response",
                provider=self.name,
            ) from e

    async def fetch_user_info(self, access_token: str) -> dict[str, Any]:
        """
        Fetch the authenticated user's profile.

        Raises:
            ConnectivityError: On timeout or network failure
            UpstreamRejectedError: On non-2xx or unparseable response
        """
        headers = self.userinfo_headers()
        headers["Authorization"] = f"Bearer {access_token}"
        response = await self._send(
            "GET",
            self.userinfo_endpoint,
            operation="user info",
            headers=headers,
        )
        return self._parse_json(response, "user info")

    def normalize_identity(
        self, user_info: dict[str, Any], access_token: str
    ) -> NormalizedIdentity:
        raise NotImplementedError

    def malformed_user_info(self, missing_field: str) -> UpstreamRejectedError:
        """Error for a user payload lacking the field the login derives from."""
        logger.error(
            f"{self.display_name} user info missing '{missing_field}'",
            extra={"extra_fields": {"provider": self.name}},
        )
        return UpstreamRejectedError(
            "Failed to fetch user info: malformed response", provider=self.name
        )

    # ------------------------------------------------------------------
    # Outbound HTTP
    # ------------------------------------------------------------------

    async def _send(
        self, method: str, url: str, operation: str, **kwargs: Any
    ) -> httpx.Response:
        """Send one outbound request and classify its failure modes."""
        headers = {"User-Agent": USER_AGENT}
        headers.update(kwargs.pop("headers", {}))

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(
                f"Timed out fetching {operation} from {self.display_name}",
                extra={"extra_fields": {"provider": self.name, "endpoint": url}},
            )
            raise ConnectivityError(
                f"Network connectivity issue: timed out contacting {self.display_name}",
                provider=self.name,
            ) from e
        except httpx.RequestError as e:
            logger.error(
                f"Network error fetching {operation} from {self.display_name}: "
                f"{type(e).__name__}",
                extra={"extra_fields": {"provider": self.name, "endpoint": url}},
            )
            raise ConnectivityError(
                f"Network connectivity issue: could not reach {self.display_name}",
                provider=self.name,
            ) from e

        if not response.is_success:
            logger.error(
                f"{self.display_name} {operation} request failed",
                extra={
                    "extra_fields": {
                        "provider": self.name,
                        "endpoint": url,
                        "status_code": response.status_code,
                        "body": response.text[:MAX_LOGGED_BODY],
                    }
                },
            )
            raise UpstreamRejectedError(
                f"Failed to fetch {operation}: {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
            )

        return response

    def _parse_json(self, response: httpx.Response, operation: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            logger.error(
                f"{self.display_name} {operation} response is not JSON",
                extra={"extra_fields": {"provider": self.name}},
            )
            raise UpstreamRejectedError(
                f"Failed to fetch {operation}: malformed response",
                provider=self.name,
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamRejectedError(
                f"Failed to fetch {operation}: malformed response",
                provider=self.name,
                status_code=response.status_code,
            )
        return payload
