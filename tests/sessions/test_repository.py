"""
Tests for the in-memory session repository.
"""

from datetime import UTC, datetime, timedelta

import pytest

from gateway.sessions.models import Grant, IssuedToken
from gateway.sessions.repository import InMemorySessionRepository


PAST = datetime.now(UTC) - timedelta(minutes=1)


def make_grant(code: str, identity, expired: bool = False) -> Grant:
    extra = {"expires_at": PAST} if expired else {}
    return Grant(
        code=code,
        client_id="client-a",
        redirect_uri="https://client.example.com/callback",
        identity=identity,
        **extra,
    )


def make_token(value: str, identity, expired: bool = False) -> IssuedToken:
    extra = {"expires_at": PAST} if expired else {}
    return IssuedToken(token=value, client_id="client-a", identity=identity, **extra)


@pytest.fixture
def repository():
    return InMemorySessionRepository()


class TestExpiry:
    @pytest.mark.asyncio
    async def test_unredeemed_expired_grants_are_dropped(self, repository, identity):
        for i in range(100):
            await repository.save_grant(make_grant(f"old-{i}", identity, expired=True))

        await repository.save_grant(make_grant("fresh", identity))

        assert list(repository._grants) == ["fresh"]

    @pytest.mark.asyncio
    async def test_live_grants_are_kept(self, repository, identity):
        await repository.save_grant(make_grant("first", identity))
        await repository.save_grant(make_grant("second", identity))

        assert await repository.pop_grant("first") is not None
        assert await repository.pop_grant("second") is not None

    @pytest.mark.asyncio
    async def test_expired_tokens_are_dropped_on_save(self, repository, identity):
        await repository.save_token(make_token("stale", identity, expired=True))
        await repository.save_grant(make_grant("old", identity, expired=True))

        await repository.save_token(make_token("live", identity))

        assert list(repository._tokens) == ["live"]
        assert repository._grants == {}

    @pytest.mark.asyncio
    async def test_expired_token_is_removed_on_lookup(self, repository, identity):
        await repository.save_token(make_token("stale", identity, expired=True))

        assert await repository.get_token("stale") is None
        assert "stale" not in repository._tokens

    @pytest.mark.asyncio
    async def test_live_token_lookup(self, repository, identity):
        token = make_token("live", identity)
        await repository.save_token(token)

        assert await repository.get_token("live") == token
