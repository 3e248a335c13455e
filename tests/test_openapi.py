"""Tests for schema rendering under OpenAPI 3.0 and 3.1."""

import pytest

from swaggen.openapi import OPENAPI_30, OPENAPI_31, SchemaRenderer, collect_refs, ref
from swaggen.registry import (
    ALIAS,
    ARRAY,
    MAP,
    OBJECT,
    OPAQUE,
    PRIMITIVE,
    FieldDescriptor,
    SchemaRegistry,
    SchemaType,
)
from swaggen.resolver import TypeRef


@pytest.fixture
def registry():
    registry = SchemaRegistry()
    registry.register(SchemaType("string", PRIMITIVE, openapi_type="string", origin="builtin.string"))
    registry.register(SchemaType("int", PRIMITIVE, openapi_type="integer", origin="builtin.int"))
    registry.register(SchemaType("any", PRIMITIVE, openapi_type=None, origin="builtin.any"))
    registry.register(SchemaType("file", PRIMITIVE, openapi_type="file", origin="builtin.file"))
    registry.register(SchemaType("array_string", ARRAY, element="string", origin="array_string"))
    registry.register(SchemaType("map_int", MAP, element="int", origin="map_int"))
    registry.register(SchemaType("ext.Thing", OPAQUE, origin="opaque.ext.Thing", component=False))
    registry.register(
        SchemaType(
            "model.Level",
            ALIAS,
            element="string",
            enum=["r", "w"],
            enum_names=["LevelRead", "LevelWrite"],
            enum_descriptions=["read only", ""],
            origin="model.Level",
            component=True,
        )
    )
    registry.register(
        SchemaType(
            "model.User",
            OBJECT,
            fields=[
                FieldDescriptor("Name", "name", "string", required=True, description="display name"),
                FieldDescriptor("Age", "age", "int", example=5),
                FieldDescriptor("Boss", "boss", "model.User", constraints={"nullable": True}),
                FieldDescriptor("Nick", "nick", "string", constraints={"nullable": True}),
                FieldDescriptor("Level", "level", "model.Level", description="access"),
                FieldDescriptor("Tags", "tags", "array_string", constraints={"enum": ["a", "b"]}),
            ],
            description="A user",
            origin="model.User",
            component=True,
        )
    )
    return registry


@pytest.fixture
def v30(registry):
    return SchemaRenderer(registry)


@pytest.fixture
def v31(registry):
    return SchemaRenderer(registry, openapi31=True)


def prop(renderer, name):
    return renderer.inline(renderer.registry["model.User"])["properties"][name]


class TestVersions:
    def test_version_strings(self, v30, v31):
        assert v30.version == OPENAPI_30 == "3.0.3"
        assert v31.version == OPENAPI_31 == "3.1.0"

    def test_nullable_ref(self, v30, v31):
        assert prop(v30, "boss") == {"allOf": [ref("model.User")], "nullable": True}
        assert prop(v31, "boss") == {"oneOf": [{"type": "null"}, ref("model.User")]}

    def test_nullable_primitive(self, v30, v31):
        assert prop(v30, "nick") == {"type": "string", "nullable": True}
        assert prop(v31, "nick") == {"type": ["string", "null"]}

    def test_example(self, v30, v31):
        assert prop(v30, "age") == {"type": "integer", "example": 5}
        assert prop(v31, "age") == {"type": "integer", "examples": [5]}

    def test_ref_with_siblings(self, v30, v31):
        assert prop(v30, "level") == {"allOf": [ref("model.Level")], "description": "access"}
        assert prop(v31, "level") == {"$ref": "#/components/schemas/model.Level", "description": "access"}

    def test_file(self, v30, v31):
        assert v30.schema("file") == {"type": "string", "format": "binary"}
        assert v31.schema("file") == {"type": "string", "contentMediaType": "application/octet-stream"}


class TestShapes:
    def test_object(self, v30):
        user = v30.inline(v30.registry["model.User"])
        assert user["type"] == "object"
        assert user["required"] == ["name"]
        assert list(user["properties"]) == ["name", "age", "boss", "nick", "level", "tags"]
        assert user["description"] == "A user"
        assert user["properties"]["name"] == {"type": "string", "description": "display name"}

    def test_component_becomes_ref(self, v30):
        assert v30.schema("model.User") == ref("model.User")

    def test_enum_moves_to_items(self, v30):
        assert prop(v30, "tags") == {"type": "array", "items": {"type": "string", "enum": ["a", "b"]}}

    def test_enum_alias(self, v30):
        assert v30.inline(v30.registry["model.Level"]) == {
            "type": "string",
            "enum": ["r", "w"],
            "x-enum-comments": {"LevelRead": "read only"},
            "x-enum-descriptions": ["read only", ""],
            "x-enum-varnames": ["LevelRead", "LevelWrite"],
        }

    def test_enum_without_descriptions(self, registry, v30):
        registry.register(
            SchemaType("model.Kind", ALIAS, element="int", enum=[1, 2], enum_names=["A", "B"],
                       enum_descriptions=["", ""], origin="model.Kind", component=True)
        )
        assert v30.inline(registry["model.Kind"]) == {
            "type": "integer", "enum": [1, 2], "x-enum-varnames": ["A", "B"]
        }

    def test_map(self, v30):
        assert v30.schema("map_int") == {"type": "object", "additionalProperties": {"type": "integer"}}

    def test_opaque_and_any(self, v30):
        assert v30.schema("ext.Thing") == {"type": "object"}
        assert v30.schema("any") == {}


class TestTypeRef:
    def test_plain(self, v30):
        assert v30.type_ref(TypeRef("model.User")) == ref("model.User")

    def test_array(self, v30):
        assert v30.type_ref(TypeRef(items=TypeRef("model.User"))) == {"type": "array", "items": ref("model.User")}

    def test_composition(self, v30):
        target = TypeRef("model.User", [("boss", TypeRef("string"))])
        assert v30.type_ref(target) == {
            "allOf": [ref("model.User"), {"type": "object", "properties": {"boss": {"type": "string"}}}]
        }


class TestCollectRefs:
    def test_nested(self):
        node = {
            "a": {"$ref": "#/components/schemas/model.A"},
            "b": [{"items": {"$ref": "#/components/schemas/model.B"}}],
            "c": {"$ref": "https://example.com/other.json"},
        }
        assert collect_refs(node) == {"model.A", "model.B"}
