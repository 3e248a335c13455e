"""Render registry entries as OpenAPI schema objects.

The only place that knows the difference between 3.0.3 and 3.1.0:

  nullable          nullable: true          type: [T, "null"]
  nullable $ref     allOf + nullable        oneOf with {type: "null"}
  $ref + siblings   wrapped in allOf        kept next to $ref
  example           example: v              examples: [v]
  binary upload     format: binary          contentMediaType
"""

from __future__ import annotations

from typing import Any

from .registry import ALIAS, ARRAY, MAP, OPAQUE, PRIMITIVE, FieldDescriptor, SchemaRegistry, SchemaType
from .resolver import TypeRef

OPENAPI_30 = "3.0.3"
OPENAPI_31 = "3.1.0"

REF_PREFIX = "#/components/schemas/"

# Constraints that describe array items rather than the array
_ITEM_KEYS = ("enum",)


def ref(name: str) -> dict[str, Any]:
    return {"$ref": REF_PREFIX + name}


class SchemaRenderer:
    def __init__(self, registry: SchemaRegistry, openapi31: bool = False) -> None:
        self.registry = registry
        self.openapi31 = openapi31

    @property
    def version(self) -> str:
        return OPENAPI_31 if self.openapi31 else OPENAPI_30

    def schema(self, name: str) -> dict[str, Any]:
        """Reference to ``name``: a ``$ref`` for components, inline otherwise."""
        target = self.registry[name]
        if target.component:
            return ref(name)
        return self.inline(target)

    def inline(self, target: SchemaType) -> dict[str, Any]:
        """The full schema of one registry entry."""
        if target.kind == PRIMITIVE:
            out = self.primitive(target.openapi_type, target.format)
        elif target.kind == ARRAY:
            out = {"type": "array", "items": self.schema(target.element) if target.element else {}}
        elif target.kind == MAP:
            out = {"type": "object", "additionalProperties": self.schema(target.element) if target.element else {}}
        elif target.kind == ALIAS:
            out = self._alias(target)
        elif target.kind == OPAQUE:
            out = {"type": "object"}
        else:
            out = self._object(target)
        if target.description and target.kind != ALIAS:
            out = self.with_siblings(out, {"description": target.description})
        return out

    def primitive(self, openapi_type: str | None, fmt: str = "") -> dict[str, Any]:
        if openapi_type is None:
            return {}
        if openapi_type == "file":
            if self.openapi31:
                return {"type": "string", "contentMediaType": "application/octet-stream"}
            return {"type": "string", "format": "binary"}
        out: dict[str, Any] = {"type": openapi_type}
        if fmt:
            out["format"] = fmt
        return out

    def _alias(self, target: SchemaType) -> dict[str, Any]:
        siblings: dict[str, Any] = {}
        if target.description:
            siblings["description"] = target.description
        if target.enum:
            siblings["enum"] = list(target.enum)
            if any(target.enum_descriptions):
                siblings["x-enum-comments"] = {
                    name: text for name, text in zip(target.enum_names, target.enum_descriptions) if text
                }
                siblings["x-enum-descriptions"] = list(target.enum_descriptions)
            siblings["x-enum-varnames"] = list(target.enum_names)
        base = self.schema(target.element) if target.element else {}
        return self.with_siblings(base, siblings)

    def _object(self, target: SchemaType) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "object"}
        properties = {f.display_name: self.field(f) for f in target.fields}
        required = [f.display_name for f in target.fields if f.required]
        if required:
            out["required"] = required
        out["properties"] = properties
        return out

    def field(self, descriptor: FieldDescriptor) -> dict[str, Any]:
        base = self.schema(descriptor.schema)
        constraints = dict(descriptor.constraints)
        nullable = bool(constraints.pop("nullable", False))
        if "$ref" not in base and base.get("type") == "array":
            item_constraints = {k: constraints.pop(k) for k in _ITEM_KEYS if k in constraints}
            if item_constraints:
                base = dict(base, items=self.with_siblings(base["items"], item_constraints))
        siblings: dict[str, Any] = {}
        if descriptor.description:
            siblings["description"] = descriptor.description
        if descriptor.format:
            siblings["format"] = descriptor.format
        siblings.update(constraints)
        if descriptor.example is not None:
            siblings.update(self.example(descriptor.example))
        siblings.update(descriptor.extensions)
        return self.with_siblings(base, siblings, nullable)

    def example(self, value: Any) -> dict[str, Any]:
        if self.openapi31:
            return {"examples": [value]}
        return {"example": value}

    def with_siblings(self, base: dict[str, Any], siblings: dict[str, Any], nullable: bool = False) -> dict[str, Any]:
        """Attach keywords to a schema, respecting how each version treats ``$ref``."""
        if "$ref" in base:
            if nullable:
                if self.openapi31:
                    return {"oneOf": [{"type": "null"}, base], **siblings}
                return {"allOf": [base], "nullable": True, **siblings}
            if not siblings:
                return base
            if self.openapi31:
                return {**base, **siblings}
            return {"allOf": [base], **siblings}
        out = {**base, **siblings}
        if nullable:
            if not self.openapi31:
                out["nullable"] = True
            elif isinstance(out.get("type"), str):
                out["type"] = [out["type"], "null"]
            elif isinstance(out.get("type"), list) and "null" not in out["type"]:
                out["type"] = out["type"] + ["null"]
        return out

    def type_ref(self, target: TypeRef) -> dict[str, Any]:
        """Schema of an annotation type, expanding ``{field=Type}`` into allOf."""
        if target.items is not None:
            return {"type": "array", "items": self.type_ref(target.items)}
        base = self.schema(target.name) if target.name else {}
        if not target.properties:
            return base
        overlay = {
            "type": "object",
            "properties": {name: self.type_ref(prop) for name, prop in target.properties},
        }
        return {"allOf": [base, overlay]}


def collect_refs(node: Any) -> set[str]:
    """Every component name referenced anywhere below ``node``."""
    found: set[str] = set()
    stack = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, dict):
            target = item.get("$ref")
            if isinstance(target, str) and target.startswith(REF_PREFIX):
                found.add(target[len(REF_PREFIX):])
            stack.extend(item.values())
        elif isinstance(item, list):
            stack.extend(item)
    return found
