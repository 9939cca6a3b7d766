"""
Tool catalogue API endpoints.

This is a driving adapter that tells an authenticated downstream client
which tools its caller may use. The tools themselves are served by their
own collaborators; only the authorization decision lives here.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from gateway.oauth.dependencies import GatewayConfigDep
from gateway.sessions.dependencies import CurrentToken
from gateway.tools.policy import AllowListPolicy, available_tools


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tools"])


def get_tool_policy(config: GatewayConfigDep) -> AllowListPolicy:
    """Provide the allow-list policy for the current configuration."""
    return AllowListPolicy(config.allowed_usernames)


ToolPolicy = Annotated[AllowListPolicy, Depends(get_tool_policy)]


@router.get("/me")
async def me(token: CurrentToken):
    """
    Identity of the caller behind the bearer token.

    The upstream access token is never returned.
    """
    identity = token.identity
    return {
        "login": identity.login,
        "name": identity.name,
        "email": identity.email,
        "provider": identity.provider,
        "scope": token.scope,
    }


@router.get("/tools")
async def list_tools(token: CurrentToken, policy: ToolPolicy):
    """
    List the tools available to the caller.

    Read tools are listed for every caller; write tools only for
    allow-listed logins. Provider-bound tools only appear when the caller
    authenticated through that provider.
    """
    tools = available_tools(token.identity, policy.is_authorized)

    logger.info(
        f"Listed {len(tools)} tools for {token.identity.login}",
        extra={"extra_fields": {"provider": token.identity.provider}},
    )

    return {
        "status": "success",
        "tools": [
            {
                "name": tool.name,
                "description": tool.description,
                "capability": tool.capability.value,
            }
            for tool in tools
        ],
    }
