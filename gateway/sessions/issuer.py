"""
Downstream session/token issuer.

Completes a downstream client's authorization request once the caller's
identity is known: mints a one-time authorization code bound to the
identity and redirects the browser to the client's redirect URI. The
client then redeems the code at /token for a bearer token.
"""

import hmac
import logging
import secrets
from urllib.parse import urlencode, urlparse, urlunparse

from gateway.core.domain import AuthorizationRequest, ClientInfo, NormalizedIdentity
from gateway.core.exceptions import InvalidClientError, InvalidGrantError
from gateway.core.pkce import derive_challenge
from gateway.sessions.models import ClientRegistrationRequest, Grant, IssuedToken
from gateway.sessions.repository import SessionRepository


logger = logging.getLogger(__name__)

CONFIDENTIAL_AUTH_METHODS = ("client_secret_post",)


def _append_query(url: str, params: dict[str, str]) -> str:
    parsed = urlparse(url)
    query = urlencode(params)
    if parsed.query:
        query = f"{parsed.query}&{query}"
    return urlunparse(parsed._replace(query=query))


class SessionIssuer:
    """Service implementing the AuthorizationCompleter port and the client registry."""

    def __init__(self, repository: SessionRepository):
        self.repository = repository

    # ------------------------------------------------------------------
    # Client registry
    # ------------------------------------------------------------------

    async def register_client(self, request: ClientRegistrationRequest) -> ClientInfo:
        """
        Register a downstream client (dynamic client registration).

        Confidential auth methods receive a generated client secret.
        """
        client_secret = None
        if request.token_endpoint_auth_method in CONFIDENTIAL_AUTH_METHODS:
            client_secret = secrets.token_urlsafe(32)

        client = ClientInfo(
            client_id=secrets.token_urlsafe(16),
            client_name=request.client_name,
            client_uri=request.client_uri,
            logo_uri=request.logo_uri,
            redirect_uris=request.redirect_uris,
            token_endpoint_auth_method=request.token_endpoint_auth_method,
            client_secret=client_secret,
        )
        return await self.repository.save_client(client)

    async def lookup_client(self, client_id: str) -> ClientInfo | None:
        return await self.repository.get_client(client_id)

    async def validate_authorization_request(
        self, request: AuthorizationRequest
    ) -> tuple[ClientInfo, str]:
        """
        Check the client and redirect URI of an authorization request.

        A request without redirect_uri falls back to the client's only
        registered redirect.

        Returns:
            The registered client and the redirect URI to use

        Raises:
            InvalidClientError: Unknown client or unregistered redirect URI
        """
        client = await self.repository.get_client(request.client_id)
        if client is None:
            raise InvalidClientError(f"Unknown client: {request.client_id}")

        redirect_uri = request.redirect_uri
        if not redirect_uri and len(client.redirect_uris) == 1:
            redirect_uri = client.redirect_uris[0]
        if redirect_uri not in client.redirect_uris:
            raise InvalidClientError("Redirect URI is not registered for this client")
        return client, redirect_uri

    # ------------------------------------------------------------------
    # Authorization completion
    # ------------------------------------------------------------------

    async def complete_authorization(
        self,
        identity: NormalizedIdentity,
        request: AuthorizationRequest,
        scope: list[str],
    ) -> str:
        """
        Issue a grant for the identity and build the client redirect.

        Args:
            identity: Normalized caller identity
            request: The client's original authorization request
            scope: Scope granted to the client

        Returns:
            Client redirect URI with code and state appended

        Raises:
            InvalidClientError: Unknown client or unregistered redirect URI
        """
        client, redirect_uri = await self.validate_authorization_request(request)

        grant = Grant(
            code=secrets.token_urlsafe(32),
            client_id=client.client_id,
            redirect_uri=redirect_uri,
            scope=scope,
            identity=identity,
            code_challenge=request.code_challenge,
            code_challenge_method=request.code_challenge_method,
        )
        await self.repository.save_grant(grant)

        logger.info(
            f"Issued authorization code for {identity.login}",
            extra={
                "extra_fields": {
                    "client_id": client.client_id,
                    "provider": identity.provider,
                    "login": identity.login,
                }
            },
        )

        params = {"code": grant.code}
        if request.state:
            params["state"] = request.state
        return _append_query(redirect_uri, params)

    # ------------------------------------------------------------------
    # Token endpoint
    # ------------------------------------------------------------------

    async def exchange_code(
        self,
        client_id: str,
        code: str,
        redirect_uri: str | None = None,
        code_verifier: str | None = None,
        client_secret: str | None = None,
    ) -> IssuedToken:
        """
        Redeem an authorization code for a bearer token.

        Raises:
            InvalidClientError: Unknown client or bad client secret
            InvalidGrantError: Unknown, expired, reused or mismatched code,
                or failed PKCE verification
        """
        client = await self.repository.get_client(client_id)
        if client is None:
            raise InvalidClientError(f"Unknown client: {client_id}")

        if client.client_secret and not hmac.compare_digest(
            client.client_secret.encode("utf-8"), (client_secret or "").encode("utf-8")
        ):
            raise InvalidClientError("Invalid client credentials")

        grant = await self.repository.pop_grant(code)
        if grant is None:
            raise InvalidGrantError("Authorization code is invalid or already used")
        if grant.is_expired():
            raise InvalidGrantError("Authorization code has expired")
        if grant.client_id != client_id:
            raise InvalidGrantError("Authorization code was issued to another client")
        if redirect_uri and redirect_uri != grant.redirect_uri:
            raise InvalidGrantError("Redirect URI does not match authorization request")

        if grant.code_challenge:
            self._verify_pkce(grant, code_verifier)

        token = IssuedToken(
            token=secrets.token_urlsafe(32),
            client_id=client_id,
            scope=grant.scope,
            identity=grant.identity,
        )
        await self.repository.save_token(token)

        logger.info(
            f"Issued access token for {grant.identity.login}",
            extra={"extra_fields": {"client_id": client_id}},
        )
        return token

    async def resolve_token(self, token: str) -> IssuedToken | None:
        """Return the unexpired token record for a bearer token, or None."""
        issued = await self.repository.get_token(token)
        if issued is None or issued.is_expired():
            return None
        return issued

    @staticmethod
    def _verify_pkce(grant: Grant, code_verifier: str | None) -> None:
        if not code_verifier:
            raise InvalidGrantError("Missing code_verifier")

        method = (grant.code_challenge_method or "plain").upper()
        if method == "S256":
            try:
                expected = derive_challenge(code_verifier)
            except UnicodeEncodeError as e:
                raise InvalidGrantError("Malformed code_verifier") from e
        elif method == "PLAIN":
            expected = code_verifier
        else:
            raise InvalidGrantError(f"Unsupported code_challenge_method: {method}")

        if not hmac.compare_digest(
            expected.encode("utf-8"), (grant.code_challenge or "").encode("utf-8")
        ):
            raise InvalidGrantError("PKCE verification failed")
