"""
Tool definitions and the per-server tool registry.

Tools are keyed by name, unique within one server. Each carries a set of
tags describing its side effects for external policy and UI:

    read-data     no tags                 (read-only)
    update-data   {MUTATION}
    delete-data   {MUTATION, DESTRUCTIVE}

Tags have no effect on dispatch. They are validated against the closed
ToolTag enumeration at registration time, so a typo is a registration error
rather than a silently ignored label.

The registry follows a single-writer, many-readers discipline: register every
tool, call freeze(), then serve. Lookups never mutate it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from xtrn.errors import DuplicateToolName, InvalidTag, RegistryFrozen, UnknownTool

logger = logging.getLogger("xtrn.registry")


class ToolTag(str, Enum):
    MUTATION = "mutation"
    DESTRUCTIVE = "destructive"
    IDEMPOTENT = "idempotent"
    OPEN_WORLD = "open_world"


def coerce_tag(tag: Any) -> ToolTag:
    """
    Accept a ToolTag, its value ("mutation") or its member name ("MUTATION").

    Raises:
        InvalidTag: For anything outside the enumeration
    """
    if isinstance(tag, ToolTag):
        return tag
    if isinstance(tag, str):
        try:
            return ToolTag(tag)
        except ValueError:
            pass
        if tag in ToolTag.__members__:
            return ToolTag[tag]
    raise InvalidTag(tag)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    schema: Any
    handler: Callable[[Any], Any]
    tags: frozenset[ToolTag] = field(default_factory=frozenset)

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        schema: Any,
        handler: Callable[[Any], Any],
        tags: Iterable[Any] = (),
    ) -> "ToolDefinition":
        """Build a definition, validating tags. A single tag may be passed bare."""
        if isinstance(tags, str):
            tags = (tags,)
        return cls(
            name=name,
            description=description,
            schema=schema,
            handler=handler,
            tags=frozenset(coerce_tag(t) for t in tags),
        )


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False

    def register(self, definition: ToolDefinition) -> ToolDefinition:
        """
        Add a tool.

        Raises:
            RegistryFrozen: If freeze() was already called
            DuplicateToolName: If the name is taken on this registry
            InvalidTag: If a tag is not a ToolTag (re-checked here for
                definitions built without ToolDefinition.create)
        """
        if self._frozen:
            raise RegistryFrozen(definition.name)
        if definition.name in self._tools:
            raise DuplicateToolName(definition.name)
        for tag in definition.tags:
            if not isinstance(tag, ToolTag):
                raise InvalidTag(tag)
        self._tools[definition.name] = definition
        logger.debug("Registered tool %s", definition.name)
        return definition

    def resolve(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def definitions(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
