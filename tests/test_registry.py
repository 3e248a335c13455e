"""Tests for the schema registry."""

import pytest

from swaggen.errors import ResolutionError
from swaggen.registry import ALIAS, OBJECT, PRIMITIVE, FieldDescriptor, SchemaRegistry, SchemaType


def make(name, origin, fingerprint="", kind=OBJECT, component=True):
    return SchemaType(name, kind, origin=origin, fingerprint=fingerprint, component=component)


class TestRegister:
    def test_first_registration_stored(self):
        registry = SchemaRegistry()
        schema = make("model.User", "example.com/app/model.User")
        assert registry.register(schema) is schema
        assert "model.User" in registry
        assert registry["model.User"] is schema

    def test_same_origin_returns_existing(self):
        registry = SchemaRegistry()
        first = registry.register(make("model.User", "example.com/app/model.User"))
        again = registry.register(make("model.User", "example.com/app/model.User"))
        assert again is first
        assert len(registry) == 1

    def test_identical_shape_shared(self):
        registry = SchemaRegistry()
        first = registry.register(make("model.User", "a/model.User", fingerprint="abc"))
        second = registry.register(make("model.User", "b/model.User", fingerprint="abc"))
        assert second is first

    def test_different_declarations_ambiguous(self):
        registry = SchemaRegistry()
        registry.register(make("model.User", "a/model.User", fingerprint="abc"))
        with pytest.raises(ResolutionError, match="ambiguous canonical name") as info:
            registry.register(make("model.User", "b/model.User", fingerprint="def"))
        assert info.value.reference == "model.User"

    def test_missing_lookup(self):
        with pytest.raises(ResolutionError, match="not registered"):
            SchemaRegistry()["nope.Nope"]
        assert SchemaRegistry().get("nope.Nope") is None


class TestIteration:
    def test_sorted_by_name(self):
        registry = SchemaRegistry()
        for name in ["web.Page", "model.User", "model.Pet"]:
            registry.register(make(name, name))
        assert [s.name for s in registry] == ["model.Pet", "model.User", "web.Page"]

    def test_components_only(self):
        registry = SchemaRegistry()
        registry.register(make("model.User", "model.User"))
        registry.register(make("string", "", kind=PRIMITIVE, component=False))
        registry.register(make("model.Level", "model.Level", kind=ALIAS))
        assert [s.name for s in registry.components()] == ["model.Level", "model.User"]


class TestFieldDescriptor:
    def test_promoted_copy(self):
        original = FieldDescriptor("ID", "id", "int", constraints={"minimum": 1})
        promoted = original.promoted()
        assert promoted.depth == 1
        promoted.constraints["minimum"] = 5
        assert original.constraints == {"minimum": 1}

    def test_field_order(self):
        schema = SchemaType("m.T", OBJECT, fields=[FieldDescriptor("B", "b", "int"), FieldDescriptor("A", "a", "int")])
        assert schema.field_order() == ["b", "a"]
        assert schema.is_object
