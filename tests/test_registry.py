"""
Tests for tool registration: tags, unique names, resolution and freezing.
"""

import pytest

from xtrn.errors import (
    DuplicateToolName,
    InvalidTag,
    RegistryFrozen,
    UnknownTool,
)
from xtrn.registry import ToolDefinition, ToolRegistry, ToolTag, coerce_tag


def echo(ctx):
    return ctx.res.json({"query": ctx.req.query})


class TestTags:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (ToolTag.MUTATION, ToolTag.MUTATION),
            ("destructive", ToolTag.DESTRUCTIVE),
            ("OPEN_WORLD", ToolTag.OPEN_WORLD),
        ],
    )
    def test_coerce_accepts_members_values_and_names(self, value, expected):
        assert coerce_tag(value) is expected

    @pytest.mark.parametrize("value", ["InvalidTag", "read-only", 1, None])
    def test_coerce_rejects_anything_else(self, value):
        with pytest.raises(InvalidTag):
            coerce_tag(value)

    def test_definition_with_invalid_tag_is_rejected(self, search_schema):
        with pytest.raises(InvalidTag, match="InvalidTag"):
            ToolDefinition.create("update-data", "Updates data", search_schema, echo, ["InvalidTag"])

    def test_bare_string_is_one_tag(self, search_schema):
        definition = ToolDefinition.create("update-data", "Updates data", search_schema, echo, "mutation")

        assert definition.tags == {ToolTag.MUTATION}

    def test_bare_invalid_string_is_named_whole(self, search_schema):
        with pytest.raises(InvalidTag, match="'bogus'"):
            ToolDefinition.create("update-data", "Updates data", search_schema, echo, "bogus")

    def test_registry_rechecks_raw_definitions(self, search_schema):
        """A definition built directly, bypassing create(), is still validated."""
        definition = ToolDefinition(
            name="delete-data",
            description="Deletes data permanently",
            schema=search_schema,
            handler=echo,
            tags=frozenset({"destructive"}),
        )

        with pytest.raises(InvalidTag):
            ToolRegistry().register(definition)


class TestRegistry:
    def test_register_and_resolve(self, search_schema):
        registry = ToolRegistry()
        definition = ToolDefinition.create(
            "delete-data",
            "Deletes data permanently",
            search_schema,
            echo,
            [ToolTag.MUTATION, ToolTag.DESTRUCTIVE],
        )

        registry.register(definition)

        assert registry.resolve("delete-data") is definition
        assert definition.tags == {ToolTag.MUTATION, ToolTag.DESTRUCTIVE}

    def test_duplicate_name_is_rejected(self, search_schema):
        registry = ToolRegistry()
        registry.register(ToolDefinition.create("search", "Search tool", search_schema, echo))

        with pytest.raises(DuplicateToolName, match="search"):
            registry.register(ToolDefinition.create("search", "Another", search_schema, echo))

    def test_same_name_on_two_registries_is_independent(self, search_schema):
        first, second = ToolRegistry(), ToolRegistry()

        first.register(ToolDefinition.create("search", "Search tool", search_schema, echo))
        second.register(ToolDefinition.create("search", "Search tool", search_schema, echo))

        assert "search" in first and "search" in second

    def test_unknown_tool_leaves_registry_unchanged(self, search_schema):
        registry = ToolRegistry()
        registry.register(ToolDefinition.create("search", "Search tool", search_schema, echo))

        with pytest.raises(UnknownTool, match="missing"):
            registry.resolve("missing")

        assert [d.name for d in registry.definitions()] == ["search"]

    def test_definitions_keep_registration_order(self, search_schema):
        registry = ToolRegistry()
        for name in ("read-data", "update-data", "delete-data"):
            registry.register(ToolDefinition.create(name, name, search_schema, echo))

        assert [d.name for d in registry.definitions()] == ["read-data", "update-data", "delete-data"]
        assert len(registry) == 3

    def test_frozen_registry_rejects_registration(self, search_schema):
        registry = ToolRegistry()
        registry.freeze()

        with pytest.raises(RegistryFrozen):
            registry.register(ToolDefinition.create("search", "Search tool", search_schema, echo))
        assert registry.frozen is True
