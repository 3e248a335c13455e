"""Schema registry: the single owner of every resolved type in one build.

Types are keyed by canonical name. Fields and operations refer to types by
that name only, so many fields can share one SchemaType and the registry
decides what exists.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Iterator

from .errors import ResolutionError

OBJECT = "object"
ARRAY = "array"
MAP = "map"
ALIAS = "alias"
GENERIC = "generic"
PRIMITIVE = "primitive"
OPAQUE = "opaque"


@dataclass(eq=False)
class FieldDescriptor:
    name: str
    display_name: str
    schema: str
    required: bool = False
    description: str = ""
    example: Any = None
    format: str = ""
    constraints: dict[str, Any] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)
    depth: int = 0

    def promoted(self) -> "FieldDescriptor":
        """Copy of this field as seen one embedding level further out."""
        return FieldDescriptor(
            name=self.name,
            display_name=self.display_name,
            schema=self.schema,
            required=self.required,
            description=self.description,
            example=self.example,
            format=self.format,
            constraints=dict(self.constraints),
            extensions=dict(self.extensions),
            depth=self.depth + 1,
        )


@dataclass(eq=False)
class SchemaType:
    """One resolved type.

    ``element`` is the array element, the map value or the aliased type.
    ``base`` and ``args`` describe a generic instantiation.
    """

    name: str
    kind: str
    fields: list[FieldDescriptor] = field(default_factory=list)
    element: str | None = None
    base: str | None = None
    args: tuple[str, ...] = ()
    openapi_type: str | None = None
    format: str = ""
    enum: list[Any] = field(default_factory=list)
    enum_names: list[str] = field(default_factory=list)
    enum_descriptions: list[str] = field(default_factory=list)
    description: str = ""
    origin: str = ""
    fingerprint: str = ""
    component: bool = False

    @property
    def is_object(self) -> bool:
        return self.kind in (OBJECT, GENERIC)

    def field_order(self) -> list[str]:
        return [f.display_name for f in self.fields]


class SchemaRegistry:
    """Canonical name -> SchemaType, with serialized writes."""

    def __init__(self) -> None:
        self._types: dict[str, SchemaType] = {}
        self._lock = threading.RLock()

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[SchemaType]:
        return iter([self._types[name] for name in sorted(self._types)])

    def get(self, name: str) -> SchemaType | None:
        return self._types.get(name)

    def __getitem__(self, name: str) -> SchemaType:
        try:
            return self._types[name]
        except KeyError:
            raise ResolutionError("schema not registered", reference=name) from None

    def register(self, schema: SchemaType) -> SchemaType:
        """Store ``schema`` unless its name is taken.

        Registering the same declaration twice returns the first entry. A
        different declaration under the same name is accepted only when its
        shape is identical.
        """
        with self._lock:
            existing = self._types.get(schema.name)
            if existing is None:
                self._types[schema.name] = schema
                return schema
            if existing.origin == schema.origin:
                return existing
            if existing.fingerprint and existing.fingerprint == schema.fingerprint:
                return existing
            raise ResolutionError(
                f"ambiguous canonical name: {existing.origin or 'builtin'} and {schema.origin or 'builtin'}",
                reference=schema.name,
            )

    def components(self) -> list[SchemaType]:
        return [schema for schema in self if schema.component]
