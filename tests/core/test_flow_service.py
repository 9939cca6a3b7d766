"""
Unit tests for the provider-agnostic OAuth flow service.

The upstream provider is mocked with respx; the session issuer is a stub
recording its calls.
"""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from respx import MockRouter

from gateway.core.exceptions import (
    ConnectivityError,
    MalformedRequestError,
    MissingTokenError,
    UpstreamRejectedError,
)
from gateway.core.pkce import derive_challenge
from gateway.core.services import OAuthFlowService
from gateway.core.state import decode_state, encode_state
from gateway.providers.github import GitHubAdapter
from tests.conftest import GITHUB


TOKEN_URL = "https://github.com/login/oauth/access_token"
USER_URL = "https://api.github.com/user"
CALLBACK = "http://testserver/github/callback"


@pytest.fixture
def completer():
    stub = AsyncMock()
    stub.complete_authorization.return_value = (
        "https://client.example.com/callback?code=issued&state=client-state-123"
    )
    return stub


@pytest.fixture
def service(completer):
    return OAuthFlowService(GitHubAdapter(GITHUB, timeout=5.0), completer, CALLBACK)


class TestStart:
    def test_builds_upstream_url(self, service, auth_request):
        url = service.start(auth_request)

        parsed = urlparse(url)
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://github.com/login/oauth/authorize"
        )
        assert params["client_id"] == "gh-client"
        assert params["redirect_uri"] == CALLBACK
        assert params["scope"] == "read:user"
        assert params["response_type"] == "code"
        assert params["code_challenge_method"] == "S256"

    def test_state_carries_request_and_matching_verifier(self, service, auth_request):
        params = parse_qs(urlparse(service.start(auth_request)).query)

        decoded, verifier = decode_state(params["state"][0])

        assert decoded == auth_request
        assert derive_challenge(verifier) == params["code_challenge"][0]

    def test_verifier_not_sent_as_parameter(self, service, auth_request):
        params = parse_qs(urlparse(service.start(auth_request)).query)

        assert "code_verifier" not in params

    def test_fresh_pkce_pair_per_attempt(self, service, auth_request):
        first = parse_qs(urlparse(service.start(auth_request)).query)
        second = parse_qs(urlparse(service.start(auth_request)).query)

        assert first["code_challenge"] != second["code_challenge"]


class TestComplete:
    @pytest.mark.asyncio
    async def test_success(self, service, completer, auth_request, respx_mock: MockRouter):
        token_route = respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                200, json={"access_token": "gho_abc", "token_type": "bearer"}
            )
        )
        user_route = respx_mock.get(USER_URL).mock(
            return_value=httpx.Response(
                200, json={"login": "octocat", "name": "The Octocat", "id": 1}
            )
        )
        state = encode_state(auth_request, "the-verifier")

        result = await service.complete({"code": "upstream-code", "state": state})

        assert result == "https://client.example.com/callback?code=issued&state=client-state-123"
        assert token_route.call_count == 1
        assert user_route.call_count == 1

        form = parse_qs(token_route.calls.last.request.content.decode())
        assert form["code"] == ["upstream-code"]
        assert form["code_verifier"] == ["the-verifier"]
        assert form["redirect_uri"] == [CALLBACK]
        assert form["client_secret"] == ["gh-secret"]
        assert user_route.calls.last.request.headers["Authorization"] == "Bearer gho_abc"

        completer.complete_authorization.assert_awaited_once()
        kwargs = completer.complete_authorization.await_args.kwargs
        assert kwargs["identity"].login == "octocat"
        assert kwargs["identity"].access_token == "gho_abc"
        assert kwargs["request"] == auth_request
        assert kwargs["scope"] == ["read", "write"]

    @pytest.mark.asyncio
    async def test_missing_code_makes_no_upstream_call(
        self, service, completer, auth_request, respx_mock: MockRouter
    ):
        token_route = respx_mock.post(TOKEN_URL)
        user_route = respx_mock.get(USER_URL)
        state = encode_state(auth_request, "v")

        with pytest.raises(MalformedRequestError, match="Missing authorization code"):
            await service.complete({"state": state})

        assert token_route.call_count == 0
        assert user_route.call_count == 0
        completer.complete_authorization.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_state(self, service, completer, respx_mock: MockRouter):
        token_route = respx_mock.post(TOKEN_URL)

        with pytest.raises(MalformedRequestError, match="Invalid state"):
            await service.complete({"code": "c", "state": "bm90LWpzb24="})

        assert token_route.call_count == 0
        completer.complete_authorization.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_failure_skips_userinfo(
        self, service, completer, auth_request, respx_mock: MockRouter
    ):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(401, json={"error": "bad_verification_code"})
        )
        user_route = respx_mock.get(USER_URL)

        with pytest.raises(UpstreamRejectedError) as exc_info:
            await service.complete(
                {"code": "c", "state": encode_state(auth_request, "v")}
            )

        assert exc_info.value.status_code == 401
        assert "bad_verification_code" not in exc_info.value.message
        assert user_route.call_count == 0
        completer.complete_authorization.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_access_token(
        self, service, completer, auth_request, respx_mock: MockRouter
    ):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"error": "incorrect_client_credentials"})
        )
        user_route = respx_mock.get(USER_URL)

        with pytest.raises(MissingTokenError):
            await service.complete(
                {"code": "c", "state": encode_state(auth_request, "v")}
            )

        assert user_route.call_count == 0

    @pytest.mark.asyncio
    async def test_userinfo_failure(
        self, service, completer, auth_request, respx_mock: MockRouter
    ):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "gho_abc"})
        )
        respx_mock.get(USER_URL).mock(return_value=httpx.Response(500, text="boom"))

        with pytest.raises(UpstreamRejectedError, match="Failed to fetch user info"):
            await service.complete(
                {"code": "c", "state": encode_state(auth_request, "v")}
            )

        completer.complete_authorization.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_is_connectivity_failure(
        self, service, completer, auth_request, respx_mock: MockRouter
    ):
        respx_mock.post(TOKEN_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))

        with pytest.raises(ConnectivityError):
            await service.complete(
                {"code": "c", "state": encode_state(auth_request, "v")}
            )

        completer.complete_authorization.assert_not_awaited()
