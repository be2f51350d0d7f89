"""
MCP transport for tool servers, built on FastMCP.

build_mcp() exposes an XTRNServer over the Model Context Protocol:

- one FastMCP tool per registered tool, advertising the tool's JSON schema
  and mapping its tags onto MCP tool annotations
- CallerMiddleware, which works out who is calling before every tools/call
- /health and /ready HTTP endpoints for orchestrator probes

Caller identity:

    transport            caller
    -------------------  ------------------------------------------------
    streamable HTTP      `sub` of the Bearer JWT (required, see xtrn.auth)
    stdio / in-memory    settings.local_caller

The tools do no work of their own: each call goes through
XTRNServer.dispatch(), and any XTRNError comes back as an MCP tool error
whose text starts with the error kind, e.g. "UnknownTool: ...".

Running a server:

    from xtrn.transport import serve
    serve(server)   # streamable HTTP on XTRN_HOST:XTRN_PORT, MCP at /mcp
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Sequence

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_http_request
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools.tool import Tool, ToolResult
from mcp.types import CallToolRequestParams, ListToolsRequest, ToolAnnotations
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from xtrn.auth import AuthError, validate_token
from xtrn.config import settings
from xtrn.errors import XTRNError
from xtrn.log import configure_logging
from xtrn.registry import ToolDefinition, ToolTag
from xtrn.server import XTRNServer

logger = logging.getLogger("xtrn.transport")

# Set by CallerMiddleware for the duration of one tools/call.
current_caller: ContextVar[str | None] = ContextVar("xtrn_current_caller", default=None)


class CallerMiddleware(Middleware):
    """
    Resolves the caller identity for every MCP tool request.

    Over HTTP a valid bearer token is mandatory for both tools/list and
    tools/call; a failure rejects the request. Without an HTTP request the
    call comes from a local transport and gets settings.local_caller.
    """

    def _resolve_caller(self, request_id: str) -> str:
        try:
            request = get_http_request()
        except RuntimeError:
            return settings.local_caller

        try:
            identity = validate_token(request.headers.get("authorization"))
        except AuthError as e:
            logger.warning(
                "Authentication failed",
                extra={
                    "event_data": {
                        "request_id": request_id,
                        "decision": "rejected",
                        "reason": e.message,
                    }
                },
            )
            raise
        return identity.subject

    async def on_list_tools(
        self,
        context: MiddlewareContext[ListToolsRequest],
        call_next: CallNext[ListToolsRequest, Sequence[Tool]],
    ) -> Sequence[Tool]:
        request_id = uuid.uuid4().hex[:8]
        try:
            self._resolve_caller(request_id)
        except AuthError:
            raise PermissionError("Authentication required")
        return await call_next(context)

    async def on_call_tool(
        self,
        context: MiddlewareContext[CallToolRequestParams],
        call_next: CallNext[CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        request_id = uuid.uuid4().hex[:8]
        try:
            caller = self._resolve_caller(request_id)
        except AuthError:
            raise ToolError("Authentication required")

        token = current_caller.set(caller)
        try:
            return await call_next(context)
        finally:
            current_caller.reset(token)


class XTRNTool(Tool):
    """A FastMCP tool that forwards calls to XTRNServer.dispatch()."""

    tool_name: str = Field(exclude=True)
    xtrn_server: Any = Field(exclude=True)

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        caller = current_caller.get() or settings.local_caller
        try:
            response = await self.xtrn_server.dispatch(self.tool_name, arguments, caller)
        except XTRNError as e:
            raise ToolError(f"{e.kind}: {e.message}") from e
        return ToolResult(
            content=response.to_json(),
            structured_content=response.structured(),
        )


def tool_annotations(tags: frozenset[ToolTag]) -> ToolAnnotations:
    """Map side-effect tags onto MCP tool annotation hints."""
    return ToolAnnotations(
        readOnlyHint=not ({ToolTag.MUTATION, ToolTag.DESTRUCTIVE} & tags),
        destructiveHint=ToolTag.DESTRUCTIVE in tags,
        idempotentHint=ToolTag.IDEMPOTENT in tags,
        openWorldHint=ToolTag.OPEN_WORLD in tags,
    )


def _to_mcp_tool(server: XTRNServer, definition: ToolDefinition) -> XTRNTool:
    return XTRNTool(
        name=definition.name,
        description=definition.description,
        parameters=server.validator.json_schema(definition.schema),
        tags={tag.value for tag in definition.tags},
        annotations=tool_annotations(definition.tags),
        tool_name=definition.name,
        xtrn_server=server,
    )


def build_mcp(server: XTRNServer, instructions: str | None = None) -> FastMCP:
    """
    Expose a server over MCP.

    Freezes the server's registry: every tool must be registered before the
    server is handed to the transport.
    """
    server.freeze()

    mcp = FastMCP(
        name=server.name,
        version=server.version,
        instructions=instructions,
        middleware=[CallerMiddleware()],
    )
    for definition in server.registry.definitions():
        mcp.add_tool(_to_mcp_tool(server, definition))

    # Plain HTTP endpoints, outside MCP and without authentication, for
    # liveness/readiness probes.

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> Response:
        return JSONResponse({"status": "healthy"})

    @mcp.custom_route("/ready", methods=["GET"])
    async def readiness_check(request: Request) -> Response:
        if not server.ready:
            return JSONResponse(
                {"status": "not_ready", "state": server.state.value},
                status_code=503,
            )
        return JSONResponse(
            {
                "status": "ready",
                "server": server.name,
                "version": server.version,
                "tools": len(server.registry),
            }
        )

    logger.info(
        "MCP transport built",
        extra={
            "event_data": {
                "server": server.name,
                "tools": [d.name for d in server.registry.definitions()],
            }
        },
    )
    return mcp


def serve(server: XTRNServer, instructions: str | None = None) -> None:
    """Run a server over streamable HTTP (blocking)."""
    configure_logging(settings.log_level)
    mcp = build_mcp(server, instructions=instructions)
    logger.info(
        "Starting MCP server on %s:%d (transport=streamable-http)",
        settings.host,
        settings.port,
    )
    mcp.run(
        transport="streamable-http",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )
