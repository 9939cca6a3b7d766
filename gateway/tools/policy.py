"""
Tool catalogue and authorization policy.

The tool implementations (database, repository search, mail, web search)
are external collaborators. This module only knows which capability each
tool needs and decides, from the caller's normalized login, whether the
caller may use it. Write-capable tools are gated behind an allow-list.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from gateway.core.domain import NormalizedIdentity


logger = logging.getLogger(__name__)


class ToolCapability(str, Enum):
    """Capability a tool requires."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class ToolSpec:
    """
    Capability contract of one tool collaborator.

    Attributes:
        name: Tool name as exposed to MCP clients
        description: Short description
        capability: Capability required to call the tool
        providers: Providers whose access token the tool needs (empty = any)
    """

    name: str
    description: str
    capability: ToolCapability
    providers: tuple[str, ...] = ()


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec("listTables", "List database tables and their columns", ToolCapability.READ),
    ToolSpec("queryDatabase", "Run a read-only SQL query", ToolCapability.READ),
    ToolSpec("executeDatabase", "Run a write SQL statement", ToolCapability.WRITE),
    ToolSpec(
        "searchRepositories",
        "Search GitHub repositories",
        ToolCapability.READ,
        providers=("github",),
    ),
    ToolSpec(
        "getRepositoryInfo",
        "Get details about a GitHub repository",
        ToolCapability.READ,
        providers=("github",),
    ),
    ToolSpec(
        "sendEmail",
        "Send an e-mail from the caller's Gmail account",
        ToolCapability.WRITE,
        providers=("google",),
    ),
    ToolSpec(
        "getEmailProfile",
        "Get the caller's Gmail profile",
        ToolCapability.READ,
        providers=("google",),
    ),
    ToolSpec("webSearch", "Search the web", ToolCapability.READ),
    ToolSpec("newsSearch", "Search recent news", ToolCapability.READ),
)


# Predicate handed to each tool collaborator
AuthorizationPredicate = Callable[[str, ToolCapability], bool]


class AllowListPolicy:
    """
    Authorization policy keyed on the normalized login.

    Read capabilities are available to every authenticated caller;
    write capabilities only to logins on the allow-list.
    """

    def __init__(self, allowed_logins: Iterable[str]):
        self.allowed_logins = frozenset(allowed_logins)

    def is_authorized(self, login: str, capability: ToolCapability) -> bool:
        if capability is ToolCapability.READ:
            return True
        return login in self.allowed_logins


def available_tools(
    identity: NormalizedIdentity,
    is_authorized: AuthorizationPredicate,
    tools: Iterable[ToolSpec] = TOOLS,
) -> list[ToolSpec]:
    """
    Tools the caller may use.

    Args:
        identity: Normalized caller identity
        is_authorized: Authorization predicate
        tools: Tool catalogue

    Returns:
        Tools whose capability the caller holds and whose provider
        requirement matches the caller's provider
    """
    result = []
    for tool in tools:
        if tool.providers and identity.provider not in tool.providers:
            continue
        if not is_authorized(identity.login, tool.capability):
            logger.debug(
                f"Tool {tool.name} not available to {identity.login}",
                extra={"extra_fields": {"capability": tool.capability.value}},
            )
            continue
        result.append(tool)
    return result
