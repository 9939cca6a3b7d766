"""
Signed-cookie store of client applications the browser already approved.

The cookie holds the list of approved client ids and an HMAC-SHA256
signature over that list:

    mcp-approved-clients=<hex signature>.<base64url JSON list>

Any missing, malformed or badly signed cookie means "not yet approved",
never an error. Signatures are compared in constant time.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
from typing import Mapping

from pydantic import ValidationError

from gateway.core.domain import AuthorizationRequest
from gateway.core.exceptions import MalformedRequestError


logger = logging.getLogger(__name__)

COOKIE_NAME = "mcp-approved-clients"
# 30 days
COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def _sign(payload: str, secret_key: str) -> str:
    return hmac.new(
        secret_key.encode("utf-8"),
        msg=payload.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def _approved_clients(cookies: Mapping[str, str], secret_key: str) -> list[str] | None:
    """
    Verify the approval cookie and return its client id list.

    Returns None when the cookie is absent or fails verification.
    """
    value = cookies.get(COOKIE_NAME)
    if not value or not secret_key:
        return None

    signature, sep, encoded = value.partition(".")
    if not sep or not signature or not encoded:
        logger.debug("Approval cookie has invalid format")
        return None

    try:
        payload = base64.urlsafe_b64decode(encoded.encode("ascii")).decode("utf-8")
    except (binascii.Error, ValueError):
        logger.debug("Approval cookie payload is not base64")
        return None

    expected = _sign(payload, secret_key)
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        logger.warning("Approval cookie signature mismatch")
        return None

    try:
        clients = json.loads(payload)
    except ValueError:
        return None

    if not isinstance(clients, list) or not all(isinstance(c, str) for c in clients):
        return None
    return clients


def is_approved(cookies: Mapping[str, str], client_id: str, secret_key: str) -> bool:
    """
    Check whether the browser already approved this client.

    Args:
        cookies: Request cookies
        client_id: Downstream client id being authorized
        secret_key: Server-held cookie signing secret

    Returns:
        True only for a validly signed cookie that lists client_id
    """
    clients = _approved_clients(cookies, secret_key)
    return clients is not None and client_id in clients


def record_approval(cookies: Mapping[str, str], client_id: str, secret_key: str) -> str:
    """
    Record an explicit approval for a client.

    Merges client_id into the clients already approved by a valid cookie
    and signs the result.

    Args:
        cookies: Request cookies (an existing approval cookie is extended)
        client_id: Downstream client id the user approved
        secret_key: Server-held cookie signing secret

    Returns:
        Set-Cookie header value

    Raises:
        ValueError: If no signing secret is configured
    """
    if not secret_key:
        raise ValueError("Cookie signing secret is not configured")

    clients = _approved_clients(cookies, secret_key) or []
    if client_id not in clients:
        clients.append(client_id)

    payload = json.dumps(clients, separators=(",", ":"))
    encoded = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
    value = f"{_sign(payload, secret_key)}.{encoded}"

    return (
        f"{COOKIE_NAME}={value}; HttpOnly; Secure; Path=/; "
        f"SameSite=Lax; Max-Age={COOKIE_MAX_AGE}"
    )


# ============================================================================
# Approval dialog form payload
# ============================================================================


def encode_form_state(auth_request: AuthorizationRequest) -> str:
    """Encode the request for the approval dialog's hidden state field."""
    raw = json.dumps({"oauthReqInfo": auth_request.to_state_dict()})
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def parse_form_state(value: str | None) -> AuthorizationRequest:
    """
    Decode the approval dialog's hidden state field.

    Raises:
        MalformedRequestError: If the field is missing or does not hold
            a request with a client id
    """
    if not value:
        raise MalformedRequestError("Invalid request: missing form state")

    try:
        data = json.loads(base64.b64decode(value, validate=True))
        return AuthorizationRequest.model_validate(data["oauthReqInfo"])
    except (binascii.Error, ValueError, KeyError, TypeError, ValidationError) as e:
        raise MalformedRequestError("Invalid request: bad form state") from e
