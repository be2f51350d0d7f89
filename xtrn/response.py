"""Response building for tool handlers (ctx.res)."""

import json
from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter

_jsonable = TypeAdapter(Any)


@dataclass(frozen=True)
class JSONToolResponse:
    """
    A handler's result, ready for the transport to serialize.

    `body` is already reduced to JSON-compatible values (dicts, lists,
    strings, numbers, booleans, None), so serialization cannot fail later.
    """

    body: Any
    media_type: str = "application/json"

    def to_json(self) -> str:
        return json.dumps(self.body)

    def structured(self) -> dict[str, Any]:
        """The body as a JSON object; non-object bodies are wrapped as {"result": body}."""
        if isinstance(self.body, dict):
            return self.body
        return {"result": self.body}


class ResponseBuilder:
    """
    The `res` member of every context.

    Usage inside a handler:
        return ctx.res.json({"query": ctx.req.query})
    """

    __slots__ = ()

    def json(self, body: Any) -> JSONToolResponse:
        """
        Build a JSON response.

        Pydantic models, dataclasses, datetimes and the like are converted to
        their JSON form here, inside the handler, so a body that cannot be
        represented as JSON fails the handler rather than the transport.
        """
        return JSONToolResponse(body=_jsonable.dump_python(body, mode="json"))
