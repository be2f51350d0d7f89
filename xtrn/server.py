"""
Tool server: configuration, registration and dispatch.

An XTRNServer is declared once and then serves calls:

    server = XTRNServer(
        name="calendar",
        version="1.0.0",
        config=define_config(user_config=[{"key": "timezone", "type": "string"}]),
        config_resolver=store,
    )

    @server.tool(schema=SearchRequest, tags=[ToolTag.MUTATION])
    def search(ctx):
        return ctx.res.json({"query": ctx.req.query, "timezone": ctx.config.timezone})

    response = await server.dispatch("search", {"query": "x"}, caller="alice")

Dispatch pipeline for one call:

    1. resolve the tool by name                      -> UnknownTool
    2. validate the raw request against its schema   -> SchemaValidationError
    3. resolve config values (if user config)        -> ConfigUnavailable / ConfigValueTypeMismatch
    4. resolve token + client (if OAuth)             -> TokenUnavailable / MissingOAuthArtifact
    5. build the context for this server's variant
    6. run the handler                               -> HandlerError

Every failure is an XTRNError scoped to that call; the server stays ready.
Cancelling the calling task while steps 3-4 are awaiting abandons the call
and the handler never runs.

Concurrency: calls share only the CapabilitySet, the context builder and the
registry, all read-only once registration is finished. Register every tool
before serving; freeze() makes late registration an error.
"""

import asyncio
import inspect
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from xtrn.capabilities import CapabilitySet, derive
from xtrn.config import settings
from xtrn.config_spec import ConfigSpec
from xtrn.context import Context, ContextBuilder
from xtrn.errors import (
    ConfigUnavailable,
    HandlerError,
    InvalidSchema,
    MissingOAuthArtifact,
    SchemaValidationError,
    TokenUnavailable,
    XTRNError,
)
from xtrn.oauth import OAuthClient, OAuthCredentials, TokenResolver
from xtrn.registry import ToolDefinition, ToolRegistry
from xtrn.response import JSONToolResponse
from xtrn.stores import ConfigResolver
from xtrn.validation import PydanticValidator, Validator

logger = logging.getLogger("xtrn.server")


class ServerState(str, Enum):
    CONSTRUCTED = "constructed"
    READY = "ready"


class XTRNServer:
    """
    A named, versioned set of tools sharing one ConfigSpec.

    Args:
        name: Server name, also the key used by token and config resolvers
        version: Server version string
        config: A ConfigSpec, or its plain-dict form; None is the open server
        validator: Request validator (defaults to PydanticValidator)
        token_resolver: Supplies caller tokens; required for OAuth servers
        config_resolver: Supplies caller config values for user-config servers
        oauth_credentials: Client id/secret/callback; defaults to XTRN_OAUTH_* settings
    """

    def __init__(
        self,
        name: str,
        version: str,
        config: ConfigSpec | Mapping[str, Any] | None = None,
        *,
        validator: Validator | None = None,
        token_resolver: TokenResolver | None = None,
        config_resolver: ConfigResolver | None = None,
        oauth_credentials: OAuthCredentials | Mapping[str, Any] | None = None,
    ):
        self.state = ServerState.CONSTRUCTED
        self.name = name
        self.version = version

        if config is None:
            config = ConfigSpec()
        elif not isinstance(config, ConfigSpec):
            config = ConfigSpec.model_validate(config)
        self.config = config
        self.capabilities: CapabilitySet = derive(config)

        self.registry = ToolRegistry()
        self.validator: Validator = validator or PydanticValidator()
        self.token_resolver = token_resolver
        self.config_resolver = config_resolver
        self._contexts = ContextBuilder(self.capabilities)
        self._oauth_client = self._resolve_oauth_client(oauth_credentials)

        self.state = ServerState.READY
        logger.info(
            "Server ready",
            extra={
                "event_data": {
                    "server": self.name,
                    "version": self.version,
                    "user_config": list(self.capabilities.config_shape),
                    "oauth": self.capabilities.has_oauth,
                }
            },
        )

    def _resolve_oauth_client(
        self, credentials: OAuthCredentials | Mapping[str, Any] | None
    ) -> OAuthClient | None:
        if not self.capabilities.has_oauth:
            return None
        if credentials is None:
            credentials = OAuthCredentials.from_settings(settings)
        elif not isinstance(credentials, OAuthCredentials):
            credentials = OAuthCredentials.model_validate(credentials)
        if credentials is None:
            # Not fatal: each call will report MissingOAuthArtifact instead.
            logger.warning(
                "OAuth declared but client credentials are not provisioned",
                extra={"event_data": {"server": self.name}},
            )
            return None
        return OAuthClient.combine(self.config.oauth_config, credentials)

    # --- Registration ---

    def register_tool(
        self,
        name: str,
        description: str,
        schema: Any,
        handler: Callable[[Context], Any],
        tags: Iterable[Any] = (),
    ) -> ToolDefinition:
        """
        Register a tool on this server.

        Raises:
            DuplicateToolName: If a tool with this name is already registered
            InvalidTag: If a tag is not a ToolTag
            InvalidSchema: If the validator cannot use the schema
            RegistryFrozen: If the server has been frozen for serving
        """
        try:
            self.validator.json_schema(schema)
        except Exception as e:
            raise InvalidSchema(name, f"{type(e).__name__}: {e}") from e
        definition = ToolDefinition.create(
            name=name,
            description=description,
            schema=schema,
            handler=handler,
            tags=tags,
        )
        return self.registry.register(definition)

    def tool(
        self,
        name: str | None = None,
        *,
        schema: Any,
        description: str | None = None,
        tags: Iterable[Any] = (),
    ) -> Callable[[Callable], Callable]:
        """
        Decorator form of register_tool.

        Name defaults to the function name and description to its docstring:

            @server.tool(schema=SearchRequest)
            def search(ctx):
                \"\"\"Search tool\"\"\"
                return ctx.res.json({"query": ctx.req.query})
        """

        def decorator(func: Callable) -> Callable:
            self.register_tool(
                name=name or func.__name__,
                description=description or (func.__doc__ or "").strip(),
                schema=schema,
                handler=func,
                tags=tags,
            )
            return func

        return decorator

    def freeze(self) -> None:
        """End the registration phase before exposing the server to traffic."""
        self.registry.freeze()

    def describe_tools(self) -> list[dict[str, Any]]:
        """Name, description, input JSON schema and tags of every tool."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": self.validator.json_schema(tool.schema),
                "tags": sorted(tag.value for tag in tool.tags),
            }
            for tool in self.registry.definitions()
        ]

    # --- Dispatch ---

    async def dispatch(
        self,
        tool_name: str,
        raw_input: Any,
        caller: str | None = None,
        *,
        config_values: Mapping[str, Any] | None = None,
    ) -> JSONToolResponse:
        """
        Run one tool call.

        Args:
            tool_name: Registered tool name
            raw_input: Raw request, a mapping or JSON text
            caller: Caller identity, passed to the resolvers. Required on
                OAuth servers; elsewhere defaults to settings.local_caller
            config_values: Explicit user config values; skips the config resolver

        Returns:
            The handler's JSONToolResponse

        Raises:
            XTRNError: Any per-call fault (see module docstring)
            asyncio.CancelledError: If the calling task is cancelled
        """
        if caller is None and not self.capabilities.has_oauth:
            caller = settings.local_caller
        log_data = {
            "request_id": uuid.uuid4().hex[:8],
            "server": self.name,
            "tool": tool_name,
            "caller": caller,
        }

        try:
            tool = self.registry.resolve(tool_name)
            request = self._validate(tool, raw_input)
            ctx = await self._build_context(caller, request, config_values)
        except asyncio.CancelledError:
            logger.info(
                "Tool call cancelled before handler ran",
                extra={"event_data": {**log_data, "decision": "cancelled"}},
            )
            raise
        except XTRNError as e:
            logger.warning(
                "Tool call rejected",
                extra={"event_data": {**log_data, "decision": "rejected", "error": e.kind}},
            )
            raise

        response = await self._invoke(tool, ctx, log_data)
        logger.info(
            "Tool call completed",
            extra={"event_data": {**log_data, "decision": "completed"}},
        )
        return response

    def _validate(self, tool: ToolDefinition, raw_input: Any) -> Any:
        try:
            return self.validator.validate(tool.schema, raw_input)
        except SchemaValidationError as e:
            raise SchemaValidationError(
                f"Invalid request for tool '{tool.name}': {e.message}",
                tool=tool.name,
                errors=e.errors,
            ) from e
        except XTRNError:
            raise
        except Exception as e:
            raise SchemaValidationError(
                f"Invalid request for tool '{tool.name}': {type(e).__name__}: {e}",
                tool=tool.name,
            ) from e

    async def _build_context(
        self, caller: str | None, request: Any, config_values: Mapping[str, Any] | None
    ) -> Context:
        if caller is None:
            raise MissingOAuthArtifact(
                f"Server '{self.name}' uses OAuth and needs a caller identity to resolve a token"
            )

        values = None
        if self.capabilities.has_user_config:
            if config_values is not None:
                values = config_values
            elif self.config_resolver is not None:
                try:
                    values = await self.config_resolver.resolve(self.name, caller)
                except XTRNError:
                    raise
                except Exception as e:
                    raise ConfigUnavailable(
                        f"Config resolution failed: {type(e).__name__}: {e}"
                    ) from e

        token = None
        if self.capabilities.has_oauth:
            if self._oauth_client is None:
                raise MissingOAuthArtifact(
                    f"OAuth client credentials are not provisioned for server '{self.name}'"
                )
            if self.token_resolver is None:
                raise MissingOAuthArtifact(
                    f"No token resolver configured for server '{self.name}'"
                )
            try:
                token = await self.token_resolver.resolve(self.name, caller)
            except XTRNError:
                raise
            except Exception as e:
                raise TokenUnavailable(f"Token resolution failed: {type(e).__name__}: {e}") from e

        return self._contexts.build(request, values, token, self._oauth_client)

    async def _invoke(
        self, tool: ToolDefinition, ctx: Context, log_data: dict[str, Any]
    ) -> JSONToolResponse:
        try:
            result = tool.handler(ctx)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.exception(
                "Tool handler raised",
                extra={"event_data": {**log_data, "decision": "failed"}},
            )
            raise HandlerError(tool.name, f"{type(e).__name__}: {e}") from e

        if not isinstance(result, JSONToolResponse):
            raise HandlerError(
                tool.name,
                f"handler returned {type(result).__name__}, expected a response built with ctx.res",
            )
        return result

    @property
    def ready(self) -> bool:
        return self.state is ServerState.READY

    def __repr__(self) -> str:
        return (
            f"XTRNServer(name='{self.name}', version='{self.version}', "
            f"tools={len(self.registry)}, state={self.state.value})"
        )
