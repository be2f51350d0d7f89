"""
Request validation collaborator.

The core treats a tool's schema as opaque and hands it, together with the raw
request, to a Validator. The default PydanticValidator accepts anything
pydantic's TypeAdapter does; in practice a BaseModel subclass:

    class SearchRequest(BaseModel):
        query: str
        limit: int | None = None

    server.register_tool(name="search", schema=SearchRequest, ...)

Handlers then read typed attributes: ctx.req.query, ctx.req.limit.
"""

from functools import lru_cache
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from xtrn.errors import SchemaValidationError


class Validator(Protocol):
    def validate(self, schema: Any, raw_input: Any) -> Any:
        """Parse raw_input against schema or raise SchemaValidationError."""
        ...

    def json_schema(self, schema: Any) -> dict[str, Any]:
        """JSON Schema for schema, used when advertising tools."""
        ...


@lru_cache(maxsize=256)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


class PydanticValidator:
    """Validates requests with pydantic. Raw input may be a mapping or JSON text."""

    def validate(self, schema: Any, raw_input: Any) -> Any:
        adapter = _adapter(schema)
        try:
            if isinstance(raw_input, (str, bytes, bytearray)):
                return adapter.validate_json(raw_input)
            return adapter.validate_python(raw_input)
        except ValidationError as e:
            errors = e.errors(include_url=False, include_context=False)
            raise SchemaValidationError(
                f"Request validation failed: {e.error_count()} error(s)",
                errors=errors,
            ) from e

    def json_schema(self, schema: Any) -> dict[str, Any]:
        return _adapter(schema).json_schema()
