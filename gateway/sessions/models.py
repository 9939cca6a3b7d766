"""
Session issuer domain models.

A Grant is the one-time authorization code handed to a downstream client
after its user authenticated upstream; an IssuedToken is the bearer token
the client receives for that code.
"""

from datetime import datetime, timedelta, UTC

from pydantic import BaseModel, ConfigDict, Field

from gateway.core.domain import NormalizedIdentity


GRANT_TTL = timedelta(minutes=10)
TOKEN_TTL = timedelta(hours=1)


def _now() -> datetime:
    return datetime.now(UTC)


class Grant(BaseModel):
    """
    One-time authorization code bound to a client and identity.

    Redeemable once, before expires_at.
    """

    code: str = Field(description="Authorization code", repr=False)
    client_id: str = Field(description="Downstream client id")
    redirect_uri: str = Field(description="Redirect URI the code was issued to")
    scope: list[str] = Field(default_factory=list)
    identity: NormalizedIdentity
    code_challenge: str | None = Field(
        default=None, description="Client's PKCE challenge"
    )
    code_challenge_method: str | None = None
    created_at: datetime = Field(default_factory=_now)
    expires_at: datetime = Field(default_factory=lambda: _now() + GRANT_TTL)

    model_config = ConfigDict(frozen=True)

    def is_expired(self) -> bool:
        return _now() >= self.expires_at


class IssuedToken(BaseModel):
    """Bearer token issued to a downstream client."""

    token: str = Field(repr=False)
    client_id: str
    scope: list[str] = Field(default_factory=list)
    identity: NormalizedIdentity
    expires_at: datetime = Field(default_factory=lambda: _now() + TOKEN_TTL)

    model_config = ConfigDict(frozen=True)

    def is_expired(self) -> bool:
        return _now() >= self.expires_at

    @property
    def expires_in(self) -> int:
        return max(0, int((self.expires_at - _now()).total_seconds()))


class ClientRegistrationRequest(BaseModel):
    """Dynamic client registration request (RFC 7591 subset)."""

    redirect_uris: list[str] = Field(min_length=1)
    client_name: str | None = None
    client_uri: str | None = None
    logo_uri: str | None = None
    token_endpoint_auth_method: str = "none"

    model_config = ConfigDict(extra="ignore")
