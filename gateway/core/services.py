"""
Core application services and use cases.

This module contains the provider-agnostic authorization-code flow,
independent of HTTP details and of any one upstream provider.
"""

import logging
from typing import Mapping

from gateway.core.domain import AuthorizationRequest
from gateway.core.exceptions import MalformedRequestError
from gateway.core.pkce import generate_pkce_pair
from gateway.core.ports import AuthorizationCompleter, ProviderAdapter
from gateway.core.state import decode_state, encode_state


logger = logging.getLogger(__name__)


class OAuthFlowService:
    """
    Application service for one upstream provider's PKCE flow.

    The callback algorithm is written once here; adapters only differ in
    endpoints and identity normalization.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        completer: AuthorizationCompleter,
        redirect_uri: str,
    ):
        """
        Initialize the flow service.

        Args:
            adapter: Adapter for the upstream provider
            completer: Downstream session issuer
            redirect_uri: This gateway's /<provider>/callback URL
        """
        self.adapter = adapter
        self.completer = completer
        self.redirect_uri = redirect_uri

    def start(self, auth_request: AuthorizationRequest) -> str:
        """
        Build the upstream authorize URL for an authorization request.

        A fresh PKCE pair is generated; the verifier travels inside state
        and only the challenge is sent upstream.

        Args:
            auth_request: The downstream client's original request

        Returns:
            Upstream authorize URL to redirect the browser to
        """
        pkce = generate_pkce_pair()
        state = encode_state(auth_request, pkce.verifier)

        logger.info(
            f"Redirecting to {self.adapter.display_name} for authorization",
            extra={
                "extra_fields": {
                    "provider": self.adapter.name,
                    "client_id": auth_request.client_id,
                }
            },
        )
        return self.adapter.build_authorize_url(
            redirect_uri=self.redirect_uri,
            state=state,
            code_challenge=pkce.challenge,
        )

    async def complete(self, query: Mapping[str, str]) -> str:
        """
        Handle the upstream callback.

        1. Decode state into the original request and PKCE verifier
        2. Require the authorization code
        3. Exchange code + verifier for an access token
        4. Fetch user info with the token
        5. Normalize the identity
        6. Hand it to the session issuer (exactly once)

        Args:
            query: Callback query parameters

        Returns:
            Redirect target for the downstream client

        Raises:
            MalformedRequestError: Bad state or missing code
            UpstreamRejectedError: Token exchange or user info rejected
            MissingTokenError: Token response without access_token
            ConnectivityError: Upstream unreachable or timed out
        """
        auth_request, verifier = decode_state(query.get("state"))

        code = query.get("code")
        if not code:
            logger.warning(
                "Callback without authorization code",
                extra={
                    "extra_fields": {
                        "provider": self.adapter.name,
                        "error": query.get("error"),
                    }
                },
            )
            raise MalformedRequestError(
                "Missing authorization code", provider=self.adapter.name
            )

        token = await self.adapter.exchange_token(
            code=code, code_verifier=verifier, redirect_uri=self.redirect_uri
        )
        user_info = await self.adapter.fetch_user_info(token.access_token)
        identity = self.adapter.normalize_identity(user_info, token.access_token)

        logger.info(
            f"Authenticated {identity.login} via {self.adapter.display_name}",
            extra={
                "extra_fields": {
                    "provider": self.adapter.name,
                    "login": identity.login,
                    "client_id": auth_request.client_id,
                }
            },
        )

        return await self.completer.complete_authorization(
            identity=identity,
            request=auth_request,
            scope=auth_request.scope,
        )
