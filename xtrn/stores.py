"""
In-memory resolvers for user config values and OAuth tokens.

These are the simplest possible collaborators: dictionaries keyed by
(server name, caller). They suit tests, local development and single-process
deployments that load values at startup. Anything durable implements the
same resolve() coroutine against its own backend.
"""

import logging
from typing import Any, Mapping, Protocol

from xtrn.errors import TokenUnavailable
from xtrn.oauth import Token

logger = logging.getLogger("xtrn.stores")


class ConfigResolver(Protocol):
    """Fetches the user config values a caller supplied for a server."""

    async def resolve(self, server_name: str, caller: str) -> Mapping[str, Any]: ...


class InMemoryConfigStore:
    """
    Per-caller config values layered over server-wide defaults.

    Example:
        store = InMemoryConfigStore(defaults={"search": {"timezone": "UTC"}})
        store.set("search", "alice", {"timezone": "Europe/Berlin"})
    """

    def __init__(self, defaults: Mapping[str, Mapping[str, Any]] | None = None):
        self._defaults: dict[str, dict[str, Any]] = {
            server: dict(values) for server, values in (defaults or {}).items()
        }
        self._values: dict[tuple[str, str], dict[str, Any]] = {}

    def set(self, server_name: str, caller: str, values: Mapping[str, Any]) -> None:
        self._values[(server_name, caller)] = dict(values)

    async def resolve(self, server_name: str, caller: str) -> Mapping[str, Any]:
        merged = dict(self._defaults.get(server_name, {}))
        merged.update(self._values.get((server_name, caller), {}))
        return merged


class InMemoryTokenStore:
    """Tokens keyed by (server name, caller)."""

    def __init__(self) -> None:
        self._tokens: dict[tuple[str, str], Token] = {}

    def put(self, server_name: str, caller: str, token: Token | Mapping[str, Any]) -> None:
        if not isinstance(token, Token):
            token = Token.model_validate(token)
        self._tokens[(server_name, caller)] = token

    def discard(self, server_name: str, caller: str) -> None:
        self._tokens.pop((server_name, caller), None)

    async def resolve(self, server_name: str, caller: str) -> Token:
        try:
            return self._tokens[(server_name, caller)]
        except KeyError:
            logger.debug("No token stored for %s/%s", server_name, caller)
            raise TokenUnavailable(
                f"No token available for caller '{caller}' on server '{server_name}'"
            ) from None
