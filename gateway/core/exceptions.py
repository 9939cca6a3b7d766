"""
Domain exceptions for the authorization core.

These exceptions represent the terminal failures of one authorization
attempt and are caught by centralized exception handlers in main.py.
None of them are retried by the gateway: retry is the end user
re-initiating the browser flow.
"""


class OAuthFlowError(Exception):
    """
    Base class for failures of a single authorization attempt.

    Attributes:
        message: Diagnostic text safe to show to the end user
        provider: Name of the upstream provider involved, if any
    """

    def __init__(self, message: str, provider: str | None = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class MalformedRequestError(OAuthFlowError):
    """
    Raised for requests this gateway cannot act on.

    Missing client id, missing authorization code, undecodable state.
    Results in a 400 response with plain diagnostic text and no redirect.
    """

    pass


class NoProviderConfiguredError(OAuthFlowError):
    """
    Raised when no upstream provider passes its configuration checks.

    This is an operator error and results in a 500 response.
    """

    pass


class UpstreamRejectedError(OAuthFlowError):
    """
    Raised when the token exchange or userinfo fetch returns non-2xx,
    or returns a body that cannot be parsed.

    The upstream status and body are logged but never returned to the caller.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider)


class MissingTokenError(UpstreamRejectedError):
    """Raised when a token response parsed but lacked access_token."""

    pass


class ConnectivityError(OAuthFlowError):
    """
    Raised for network-level failures during an outbound call
    (timeout, DNS, connection reset).

    Kept distinct from UpstreamRejectedError so operators can tell
    "provider is unreachable" from "provider said no".
    """

    pass


class InvalidClientError(Exception):
    """Raised by the session issuer for unknown or mismatched clients."""

    pass


class InvalidGrantError(Exception):
    """
    Raised by the session issuer when a grant code is unknown, already
    redeemed, or fails PKCE verification.
    """

    pass
