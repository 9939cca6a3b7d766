"""
Session repository interface and implementations.

Defines the port (interface) for client, grant and token persistence.
Includes an in-memory implementation for testing and single-instance
deployments.
"""

import logging
from typing import Protocol

from gateway.core.domain import ClientInfo
from gateway.sessions.models import Grant, IssuedToken


logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """
    Protocol defining the session repository interface.

    This is the "port" in hexagonal architecture - it defines what
    operations the issuer needs, without specifying how they're implemented.
    """

    async def save_client(self, client: ClientInfo) -> ClientInfo:
        """Store a registered client."""
        ...

    async def get_client(self, client_id: str) -> ClientInfo | None:
        """Get a registered client by id."""
        ...

    async def save_grant(self, grant: Grant) -> None:
        """Store an authorization code grant."""
        ...

    async def pop_grant(self, code: str) -> Grant | None:
        """
        Remove and return a grant.

        Redemption is single-use: a second call for the same code
        returns None.
        """
        ...

    async def save_token(self, token: IssuedToken) -> None:
        """Store an issued bearer token."""
        ...

    async def get_token(self, token: str) -> IssuedToken | None:
        """Get an issued token by its value."""
        ...


class InMemorySessionRepository(SessionRepository):
    """
    In-memory implementation of SessionRepository.

    Useful for testing and local development.
    Data is lost when the application restarts.
    """

    def __init__(self):
        self._clients: dict[str, ClientInfo] = {}
        self._grants: dict[str, Grant] = {}
        self._tokens: dict[str, IssuedToken] = {}

    async def save_client(self, client: ClientInfo) -> ClientInfo:
        self._clients[client.client_id] = client
        logger.info(f"Registered client: {client.client_id}")
        return client

    async def get_client(self, client_id: str) -> ClientInfo | None:
        return self._clients.get(client_id)

    async def save_grant(self, grant: Grant) -> None:
        self._purge_expired()
        self._grants[grant.code] = grant

    async def pop_grant(self, code: str) -> Grant | None:
        return self._grants.pop(code, None)

    async def save_token(self, token: IssuedToken) -> None:
        self._purge_expired()
        self._tokens[token.token] = token

    async def get_token(self, token: str) -> IssuedToken | None:
        issued = self._tokens.get(token)
        if issued is not None and issued.is_expired():
            del self._tokens[token]
            return None
        return issued

    def _purge_expired(self) -> None:
        """Drop grants and tokens past their expiry."""
        expired_grants = [code for code, grant in self._grants.items() if grant.is_expired()]
        for code in expired_grants:
            del self._grants[code]

        expired_tokens = [value for value, token in self._tokens.items() if token.is_expired()]
        for value in expired_tokens:
            del self._tokens[value]

        if expired_grants or expired_tokens:
            logger.debug(
                f"Purged {len(expired_grants)} expired grants and "
                f"{len(expired_tokens)} expired tokens"
            )


# Singleton instance for dependency injection
_repository: SessionRepository | None = None


def get_session_repository() -> SessionRepository:
    """
    Get the session repository singleton.

    Reset between tests via reset_session_repository.
    """
    global _repository
    if _repository is None:
        logger.info("Using in-memory session repository")
        _repository = InMemorySessionRepository()
    return _repository


def reset_session_repository() -> None:
    """
    Reset the session repository singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _repository
    _repository = None
