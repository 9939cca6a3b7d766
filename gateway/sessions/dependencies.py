"""
FastAPI dependencies for the session issuer.

Provides dependency injection for the issuer and bearer-token validation.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gateway.sessions.issuer import SessionIssuer
from gateway.sessions.models import IssuedToken
from gateway.sessions.repository import SessionRepository, get_session_repository


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_issuer(
    repository: Annotated[SessionRepository, Depends(get_session_repository)],
) -> SessionIssuer:
    """Provide SessionIssuer dependency."""
    return SessionIssuer(repository)


async def get_current_token(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
) -> IssuedToken:
    """
    Dependency to get the bearer token of the current request.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated - no bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    issued = await issuer.resolve_token(credentials.credentials)
    if issued is None:
        logger.warning("Rejected unknown or expired bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": 'Bearer error="invalid_token"'},
        )
    return issued


# Type aliases for cleaner dependency injection
SessionIssuerDep = Annotated[SessionIssuer, Depends(get_session_issuer)]
CurrentToken = Annotated[IssuedToken, Depends(get_current_token)]
