"""
Error taxonomy for tool servers.

Every fault the core can raise is an XTRNError. Each one is scoped to the
single operation that raised it (constructing a config, registering a tool,
dispatching one call); none of them leaves the server unusable.

Callers that need a wire-friendly shape use to_dict():

    {"kind": "UnknownTool", "message": "Unknown tool: 'search'"}

Groups:
- Construction faults: DuplicateConfigKey, InvalidConfigKey
- Pre-dispatch faults: ConfigValueTypeMismatch, MissingOAuthArtifact
- Registry faults: DuplicateToolName, InvalidTag, InvalidSchema, UnknownTool,
  RegistryFrozen
- Per-dispatch faults: SchemaValidationError, HandlerError, TokenUnavailable,
  ConfigUnavailable
"""

from typing import Any


class XTRNError(Exception):
    """
    Base class for every structured error raised by the core.

    Attributes:
        kind: Stable error identifier (the class name)
        message: Human-readable description
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


# --- Config spec ---


class DuplicateConfigKey(XTRNError):
    """Two user config fields declare the same key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Duplicate user config key: '{key}'")


class InvalidConfigKey(XTRNError):
    """A user config key cannot be exposed as an attribute of ctx.config."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid user config key: '{key}' is not a valid identifier")


# --- Context construction ---


class ConfigValueTypeMismatch(XTRNError):
    """A resolved config value is missing or has the wrong type."""

    def __init__(self, key: str, expected: str, actual: Any = None, missing: bool = False):
        self.key = key
        self.expected = expected
        if missing:
            message = f"Missing value for config key '{key}' (expected {expected})"
        else:
            message = (
                f"Config key '{key}' expected {expected}, got {type(actual).__name__}"
            )
        super().__init__(message)


class MissingOAuthArtifact(XTRNError):
    """OAuth was declared but the token or the client descriptor is unavailable."""


# --- Registry ---


class DuplicateToolName(XTRNError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool already registered: '{name}'")


class InvalidTag(XTRNError):
    def __init__(self, tag: Any):
        self.tag = tag
        super().__init__(f"Invalid tool tag: {tag!r}")


class InvalidSchema(XTRNError):
    """The validator cannot use a tool's schema."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Invalid schema for tool '{name}': {reason}")


class UnknownTool(XTRNError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: '{name}'")


class RegistryFrozen(XTRNError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot register '{name}': registration is closed")


# --- Dispatch ---


class SchemaValidationError(XTRNError):
    """
    The raw request did not match the tool's schema.

    Attributes:
        tool: Name of the tool whose schema rejected the request (if known)
        errors: Validator-specific error details (list of dicts for pydantic)
    """

    def __init__(self, message: str, tool: str | None = None, errors: list | None = None):
        self.tool = tool
        self.errors = errors or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.tool is not None:
            data["tool"] = self.tool
        return data


class HandlerError(XTRNError):
    """A tool handler raised, or returned something other than a response."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"Tool '{tool}' failed: {message}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["tool"] = self.tool
        return data


class TokenUnavailable(XTRNError):
    """The token-resolution collaborator has no token for this caller."""


class ConfigUnavailable(XTRNError):
    """The config-resolution collaborator failed to produce values for this caller."""
