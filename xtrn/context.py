"""
Per-invocation execution contexts.

A handler receives exactly the members its server's CapabilitySet grants.
Instead of one context type with optional fields, there are four closed
variants, and each server picks one when it is built:

    has_user_config  has_oauth  variant              members
    ---------------  ---------  -------------------  -------------------------
    no               no         PlainContext         req, res
    yes              no         ConfigContext        req, res, config
    no               yes        OAuthContext         req, res, token, oauth
    yes              yes        ConfigOAuthContext   req, res, config, token, oauth

All variants are slotted frozen dataclasses. A member that was not granted
does not exist on the instance: `ctx.token` on a PlainContext raises
AttributeError, hasattr() is False, and nothing can be attached later.

ctx.config is itself a generated slotted dataclass holding exactly the
declared keys, so `ctx.config.timezone` works and `ctx.config.other` does not.
"""

from dataclasses import dataclass, field, make_dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from xtrn.capabilities import CapabilitySet
from xtrn.config_spec import FieldType
from xtrn.errors import ConfigValueTypeMismatch, MissingOAuthArtifact
from xtrn.oauth import OAuthClient, Token
from xtrn.response import ResponseBuilder

_PYTHON_TYPES: dict[FieldType, type] = {
    FieldType.STRING: str,
    FieldType.NUMBER: float,
    FieldType.BOOLEAN: bool,
}


def _matches(value: Any, field_type: FieldType) -> bool:
    if field_type is FieldType.STRING:
        return isinstance(value, str)
    if field_type is FieldType.NUMBER:
        # bool is an int subclass but never a number here
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class PlainContext:
    req: Any
    res: ResponseBuilder


@dataclass(frozen=True, slots=True)
class ConfigContext(PlainContext):
    config: Any


@dataclass(frozen=True, slots=True)
class OAuthContext(PlainContext):
    token: Token = field(repr=False)
    oauth: OAuthClient = field(repr=False)


@dataclass(frozen=True, slots=True)
class ConfigOAuthContext(PlainContext):
    config: Any
    token: Token = field(repr=False)
    oauth: OAuthClient = field(repr=False)


Context = PlainContext | ConfigContext | OAuthContext | ConfigOAuthContext

_VARIANTS: dict[tuple[bool, bool], type] = {
    (False, False): PlainContext,
    (True, False): ConfigContext,
    (False, True): OAuthContext,
    (True, True): ConfigOAuthContext,
}


def make_user_config_type(shape: Mapping[str, FieldType]) -> type:
    """Generate the closed ctx.config class for a config shape."""
    return make_dataclass(
        "UserConfig",
        [(key, _PYTHON_TYPES[field_type]) for key, field_type in shape.items()],
        frozen=True,
        slots=True,
    )


class ContextBuilder:
    """
    Builds contexts for one server.

    The variant and the config class are fixed at construction from the
    CapabilitySet; build() only checks the per-call artifacts and allocates.
    """

    def __init__(self, capabilities: CapabilitySet):
        self.capabilities = capabilities
        self.context_type: type = _VARIANTS[
            (capabilities.has_user_config, capabilities.has_oauth)
        ]
        self.config_type: type | None = (
            make_user_config_type(capabilities.config_shape)
            if capabilities.has_user_config
            else None
        )

    def build(
        self,
        request: Any,
        config_values: Mapping[str, Any] | None = None,
        token: Token | Mapping[str, Any] | None = None,
        oauth: OAuthClient | Mapping[str, Any] | None = None,
    ) -> Context:
        """
        Assemble the context for one call.

        Artifacts for capabilities the server does not have are ignored.

        Raises:
            ConfigValueTypeMismatch: A declared config key is missing or mistyped
            MissingOAuthArtifact: OAuth is declared but token or descriptor is absent
        """
        members: dict[str, Any] = {"req": request, "res": ResponseBuilder()}
        if self.capabilities.has_user_config:
            members["config"] = self._build_config(config_values or {})
        if self.capabilities.has_oauth:
            members["token"] = self._coerce_token(token)
            members["oauth"] = self._coerce_oauth(oauth)
        return self.context_type(**members)

    def _build_config(self, values: Mapping[str, Any]) -> Any:
        checked = {}
        # Undeclared keys are dropped: the config object stays closed.
        for key, field_type in self.capabilities.config_shape.items():
            if key not in values:
                raise ConfigValueTypeMismatch(key, field_type.value, missing=True)
            value = values[key]
            if not _matches(value, field_type):
                raise ConfigValueTypeMismatch(key, field_type.value, actual=value)
            checked[key] = value
        return self.config_type(**checked)

    @staticmethod
    def _coerce_token(token: Token | Mapping[str, Any] | None) -> Token:
        if token is None:
            raise MissingOAuthArtifact("OAuth token was not supplied")
        if isinstance(token, Token):
            return token
        try:
            return Token.model_validate(token)
        except ValidationError as e:
            raise MissingOAuthArtifact(f"OAuth token is malformed: {e.error_count()} error(s)") from e

    @staticmethod
    def _coerce_oauth(oauth: OAuthClient | Mapping[str, Any] | None) -> OAuthClient:
        if oauth is None:
            raise MissingOAuthArtifact("OAuth client descriptor was not supplied")
        if isinstance(oauth, OAuthClient):
            return oauth
        try:
            return OAuthClient.model_validate(oauth)
        except ValidationError as e:
            raise MissingOAuthArtifact(
                f"OAuth client descriptor is incomplete: {e.error_count()} error(s)"
            ) from e


def build_context(
    capabilities: CapabilitySet,
    request: Any,
    config_values: Mapping[str, Any] | None = None,
    token: Token | Mapping[str, Any] | None = None,
    oauth: OAuthClient | Mapping[str, Any] | None = None,
) -> Context:
    """One-shot form of ContextBuilder(capabilities).build(...)."""
    return ContextBuilder(capabilities).build(request, config_values, token, oauth)
