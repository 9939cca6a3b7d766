"""
Tests for the signed approval cookie and the approval form payload.
"""

import base64
import json

import pytest

from gateway.core.approval import (
    COOKIE_MAX_AGE,
    COOKIE_NAME,
    encode_form_state,
    is_approved,
    parse_form_state,
    record_approval,
)
from gateway.core.exceptions import MalformedRequestError


SECRET = "approval-secret"


def cookie_jar(set_cookie: str) -> dict[str, str]:
    """Turn a Set-Cookie header value into the request cookie mapping."""
    name, _, value = set_cookie.split(";", 1)[0].partition("=")
    return {name: value}


class TestRecordApproval:
    def test_cookie_attributes(self):
        header = record_approval({}, "client-a", SECRET)

        assert header.startswith(f"{COOKIE_NAME}=")
        assert "HttpOnly" in header
        assert "Secure" in header
        assert "SameSite=Lax" in header
        assert "Path=/" in header
        assert f"Max-Age={COOKIE_MAX_AGE}" in header

    def test_merges_previously_approved_clients(self):
        first = cookie_jar(record_approval({}, "client-a", SECRET))

        second = cookie_jar(record_approval(first, "client-b", SECRET))

        assert is_approved(second, "client-a", SECRET)
        assert is_approved(second, "client-b", SECRET)

    def test_does_not_duplicate_client(self):
        first = cookie_jar(record_approval({}, "client-a", SECRET))
        second = cookie_jar(record_approval(first, "client-a", SECRET))

        encoded = second[COOKIE_NAME].split(".", 1)[1]
        assert json.loads(base64.urlsafe_b64decode(encoded)) == ["client-a"]

    def test_forged_existing_cookie_is_not_merged(self):
        forged = cookie_jar(record_approval({}, "client-evil", "other-secret"))

        result = cookie_jar(record_approval(forged, "client-a", SECRET))

        assert is_approved(result, "client-a", SECRET)
        assert not is_approved(result, "client-evil", SECRET)

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            record_approval({}, "client-a", "")


class TestIsApproved:
    def test_cookie_approves_only_its_client(self):
        cookies = cookie_jar(record_approval({}, "clientA", SECRET))

        assert is_approved(cookies, "clientA", SECRET) is True
        assert is_approved(cookies, "clientB", SECRET) is False

    def test_wrong_secret(self):
        cookies = cookie_jar(record_approval({}, "clientA", SECRET))

        assert is_approved(cookies, "clientA", "another-secret") is False

    def test_no_cookie(self):
        assert is_approved({}, "clientA", SECRET) is False

    def test_empty_secret(self):
        cookies = cookie_jar(record_approval({}, "clientA", SECRET))

        assert is_approved(cookies, "clientA", "") is False

    def test_tampered_payload(self):
        cookies = cookie_jar(record_approval({}, "clientA", SECRET))
        signature = cookies[COOKIE_NAME].split(".", 1)[0]
        payload = base64.urlsafe_b64encode(b'["clientA","clientB"]').decode()

        tampered = {COOKIE_NAME: f"{signature}.{payload}"}

        assert is_approved(tampered, "clientB", SECRET) is False

    @pytest.mark.parametrize(
        "value",
        [
            "garbage",
            ".",
            "abc.",
            ".abc",
            "abc.!!!notbase64",
            "sïgnature.W10=",
        ],
    )
    def test_malformed_cookie_fails_closed(self, value):
        assert is_approved({COOKIE_NAME: value}, "clientA", SECRET) is False


class TestFormState:
    def test_round_trip(self, auth_request):
        assert parse_form_state(encode_form_state(auth_request)) == auth_request

    def test_payload_shape(self, auth_request):
        payload = json.loads(base64.b64decode(encode_form_state(auth_request)))

        assert payload["oauthReqInfo"]["clientId"] == "client-abc"

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "not base64!",
            base64.b64encode(b"{}").decode(),
            base64.b64encode(b'{"oauthReqInfo": {"clientId": ""}}').decode(),
            base64.b64encode(b'{"oauthReqInfo": "x"}').decode(),
        ],
    )
    def test_invalid_form_state(self, value):
        with pytest.raises(MalformedRequestError):
            parse_form_state(value)
