"""
Capability derivation.

A CapabilitySet is the closed list of context members a server grants its
handlers, computed once from the server's ConfigSpec:

    ConfigSpec                          CapabilitySet
    ----------                          -------------
    user_config=[], oauth_config=None   no config, no token/oauth
    user_config=[timezone:string]       config {timezone: string}
    oauth_config=...                    token + oauth (always together)

There is no partial OAuth state: token and oauth descriptor are granted as a
pair or not at all.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from xtrn.config_spec import ConfigSpec, FieldType, check_user_config


@dataclass(frozen=True)
class CapabilitySet:
    """
    Read-only capabilities shared by every invocation on one server.

    Attributes:
        has_user_config: True when at least one user config field is declared
        config_shape: Declared key -> type mapping, in declaration order
        has_oauth: True when an OAuth block is declared
    """

    has_user_config: bool
    has_oauth: bool
    config_shape: Mapping[str, FieldType] = field(
        default_factory=lambda: MappingProxyType({})
    )


def derive(spec: ConfigSpec) -> CapabilitySet:
    """
    Compute the CapabilitySet implied by a ConfigSpec.

    Pure and deterministic. The returned config_shape is a read-only view, so
    no field can be added or dropped after derivation.

    Raises:
        DuplicateConfigKey: If two user config fields share a key
        InvalidConfigKey: If a key cannot be an attribute name
    """
    check_user_config(spec.user_config)
    shape = MappingProxyType({f.key: f.type for f in spec.user_config})
    return CapabilitySet(
        has_user_config=bool(shape),
        has_oauth=spec.oauth_config is not None,
        config_shape=shape,
    )
