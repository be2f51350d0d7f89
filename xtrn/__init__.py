"""xtrn - tool servers whose handler contexts are derived from their declared config."""

from xtrn.capabilities import CapabilitySet, derive
from xtrn.config_spec import ConfigField, ConfigSpec, FieldType, OAuthConfig, define_config
from xtrn.context import (
    ConfigContext,
    ConfigOAuthContext,
    Context,
    ContextBuilder,
    OAuthContext,
    PlainContext,
    build_context,
)
from xtrn.errors import (
    ConfigUnavailable,
    ConfigValueTypeMismatch,
    DuplicateConfigKey,
    DuplicateToolName,
    HandlerError,
    InvalidConfigKey,
    InvalidSchema,
    InvalidTag,
    MissingOAuthArtifact,
    RegistryFrozen,
    SchemaValidationError,
    TokenUnavailable,
    UnknownTool,
    XTRNError,
)
from xtrn.oauth import OAuthClient, OAuthCredentials, Token, TokenResolver
from xtrn.registry import ToolDefinition, ToolRegistry, ToolTag
from xtrn.response import JSONToolResponse, ResponseBuilder
from xtrn.server import ServerState, XTRNServer
from xtrn.stores import ConfigResolver, InMemoryConfigStore, InMemoryTokenStore
from xtrn.validation import PydanticValidator, Validator

__version__ = "0.1.0"

__all__ = [
    "CapabilitySet",
    "ConfigContext",
    "ConfigField",
    "ConfigOAuthContext",
    "ConfigResolver",
    "ConfigSpec",
    "ConfigUnavailable",
    "ConfigValueTypeMismatch",
    "Context",
    "ContextBuilder",
    "DuplicateConfigKey",
    "DuplicateToolName",
    "FieldType",
    "HandlerError",
    "InMemoryConfigStore",
    "InMemoryTokenStore",
    "InvalidConfigKey",
    "InvalidSchema",
    "InvalidTag",
    "JSONToolResponse",
    "MissingOAuthArtifact",
    "OAuthClient",
    "OAuthConfig",
    "OAuthContext",
    "OAuthCredentials",
    "PlainContext",
    "PydanticValidator",
    "RegistryFrozen",
    "ResponseBuilder",
    "SchemaValidationError",
    "ServerState",
    "Token",
    "TokenResolver",
    "TokenUnavailable",
    "ToolDefinition",
    "ToolRegistry",
    "ToolTag",
    "UnknownTool",
    "Validator",
    "XTRNError",
    "XTRNServer",
    "build_context",
    "define_config",
    "derive",
]
