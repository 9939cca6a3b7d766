"""
Codec for the upstream `state` parameter.

The state carries the downstream client's AuthorizationRequest and the
PKCE verifier through the upstream provider and back to /<p>/callback.
It is base64-encoded JSON and is not signed.
"""

import base64
import binascii
import json
import logging

from pydantic import ValidationError

from gateway.core.domain import AuthorizationRequest
from gateway.core.exceptions import MalformedRequestError


logger = logging.getLogger(__name__)

VERIFIER_KEY = "codeVerifier"


def encode_state(auth_request: AuthorizationRequest, verifier: str) -> str:
    """
    Encode an authorization request and PKCE verifier into an opaque state.

    Args:
        auth_request: The downstream client's original request
        verifier: PKCE code verifier for the upstream exchange

    Returns:
        Base64-encoded JSON string
    """
    payload = auth_request.to_state_dict()
    payload[VERIFIER_KEY] = verifier
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_state(value: str | None) -> tuple[AuthorizationRequest, str]:
    """
    Decode a state value produced by encode_state.

    Args:
        value: The state query parameter returned by the upstream provider

    Returns:
        Tuple of (AuthorizationRequest, PKCE verifier)

    Raises:
        MalformedRequestError: If the value is missing, not base64 JSON,
            or does not hold a request with a client id and a verifier
    """
    if not value:
        raise MalformedRequestError("Invalid state: missing")

    try:
        payload = json.loads(base64.b64decode(value, validate=True))
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Undecodable state parameter: {e}")
        raise MalformedRequestError("Invalid state") from e

    if not isinstance(payload, dict):
        raise MalformedRequestError("Invalid state")

    verifier = payload.pop(VERIFIER_KEY, None)
    if not isinstance(verifier, str) or not verifier:
        raise MalformedRequestError("Invalid state: missing code verifier")

    try:
        auth_request = AuthorizationRequest.model_validate(payload)
    except ValidationError as e:
        raise MalformedRequestError("Invalid state") from e

    return auth_request, verifier
