"""
Core domain models for the authorization core.

These models represent one authorization attempt and the caller identity
it produces. They are independent of any upstream provider and of the
HTTP delivery mechanism.
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from gateway.core.exceptions import MalformedRequestError


class AuthorizationRequest(BaseModel):
    """
    The downstream client's original request to this gateway's /authorize.

    Serialized with camelCase keys (clientId, redirectUri, ...) when it is
    carried through the upstream provider inside the state parameter.
    A request is only trusted with a non-empty client id.
    """

    response_type: str = Field(default="code", description="OAuth response type")
    client_id: str = Field(min_length=1, description="Downstream client identifier")
    redirect_uri: str = Field(default="", description="Client redirect target")
    scope: list[str] = Field(default_factory=list, description="Requested scopes")
    state: str = Field(default="", description="Client's own opaque state")
    code_challenge: str | None = Field(
        default=None, description="Client's PKCE challenge toward this gateway"
    )
    code_challenge_method: str | None = Field(
        default=None, description="Client's PKCE challenge method"
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "AuthorizationRequest":
        """
        Parse the inbound /authorize query parameters.

        Args:
            params: Query parameters of the /authorize request

        Returns:
            Parsed AuthorizationRequest

        Raises:
            MalformedRequestError: If the client id is missing or empty
        """
        try:
            return cls(
                response_type=params.get("response_type") or "code",
                client_id=params.get("client_id") or "",
                redirect_uri=params.get("redirect_uri") or "",
                scope=(params.get("scope") or "").split(),
                state=params.get("state") or "",
                code_challenge=params.get("code_challenge"),
                code_challenge_method=params.get("code_challenge_method"),
            )
        except ValidationError as e:
            raise MalformedRequestError(f"Invalid request: {e.error_count()} invalid field(s)") from e

    def to_state_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys for embedding in state."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PkcePair(BaseModel):
    """PKCE verifier and its S256 challenge."""

    verifier: str = Field(repr=False)
    challenge: str

    model_config = ConfigDict(frozen=True)


class TokenResponse(BaseModel):
    """Upstream token endpoint response."""

    access_token: str
    token_type: str = "bearer"
    scope: str | None = None
    expires_in: int | None = None
    refresh_token: str | None = None

    model_config = ConfigDict(extra="allow")


class NormalizedIdentity(BaseModel):
    """
    Uniform caller identity produced by every provider adapter.

    `login` is the canonical username used for downstream authorization
    decisions and is derived deterministically per provider. Optional
    fields are extensions some providers supply.
    """

    login: str = Field(description="Canonical username")
    name: str = Field(description="Display name")
    email: str | None = Field(default=None, description="E-mail address")
    access_token: str = Field(description="Upstream access token", repr=False)
    provider: str = Field(description="Upstream provider name")

    picture: str | None = None
    verified_email: bool | None = None
    sub: str | None = None
    updated_at: str | None = None
    preferred_username: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    user_id: str | None = None
    scope: str | None = None
    client_id: str | None = None

    model_config = ConfigDict(frozen=True)


class ClientInfo(BaseModel):
    """A downstream client application registered with this gateway."""

    client_id: str
    client_name: str | None = None
    client_uri: str | None = None
    logo_uri: str | None = None
    redirect_uris: list[str] = Field(default_factory=list)
    token_endpoint_auth_method: str = "none"
    client_secret: str | None = Field(default=None, repr=False)

    model_config = ConfigDict(extra="ignore")
