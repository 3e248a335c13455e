"""Resolve Go type references into registry entries.

Order of resolution for a named reference:
  1. overrides (skip drops the reference, replace redirects it)
  2. aliases, import aliases and dot imports resolve to the declaration
  3. anonymous embedding flattens fields; the shallowest field wins
  4. type arguments give each instantiation its own canonical name
  5. the naming strategy turns field names into display names

Canonical names:
  model.User                    struct User in package model
  web.Response-model_User       web.Response[model.User]
  array_model_User              []model.User
  map_string                    map[string]string
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import DependencyWarning, ParseError, ResolutionError
from .gosource import (
    ArrayType,
    ChanType,
    FieldSpec,
    FuncType,
    Generic,
    GoFile,
    Ident,
    InterfaceType,
    MapType,
    Pointer,
    StructType,
    TypeDecl,
    TypeExpr,
    parse_struct_tag,
    parse_type_expr,
)
from .naming import CAMEL_CASE, apply_strategy, component_token
from .overrides import Override
from .packages import Package, PackageIndex
from .registry import (
    ALIAS,
    ARRAY,
    GENERIC,
    MAP,
    OBJECT,
    OPAQUE,
    PRIMITIVE,
    FieldDescriptor,
    SchemaRegistry,
    SchemaType,
)

logger = logging.getLogger(__name__)

# Go builtin -> (OpenAPI type, format)
GO_PRIMITIVES: dict[str, tuple[str | None, str]] = {
    "bool": ("boolean", ""),
    "string": ("string", ""),
    "int": ("integer", ""),
    "int8": ("integer", ""),
    "int16": ("integer", ""),
    "int32": ("integer", "int32"),
    "int64": ("integer", "int64"),
    "uint": ("integer", ""),
    "uint8": ("integer", ""),
    "uint16": ("integer", ""),
    "uint32": ("integer", "int32"),
    "uint64": ("integer", "int64"),
    "uintptr": ("integer", ""),
    "byte": ("integer", ""),
    "rune": ("integer", "int32"),
    "float32": ("number", "float"),
    "float64": ("number", "double"),
    "complex64": ("number", ""),
    "complex128": ("number", ""),
    "error": ("string", ""),
    "any": (None, ""),
    "[]byte": ("string", "byte"),
}

# Names only valid inside annotations
ANNOTATION_PRIMITIVES: dict[str, tuple[str | None, str]] = {
    "integer": ("integer", ""),
    "number": ("number", ""),
    "boolean": ("boolean", ""),
    "object": ("object", ""),
    "file": ("file", ""),
}

# Full type path -> (OpenAPI type, format)
WELL_KNOWN: dict[str, tuple[str | None, str]] = {
    "time.Time": ("string", "date-time"),
    "time.Duration": ("integer", "int64"),
    "encoding/json.RawMessage": (None, ""),
    "encoding/json.Number": ("number", ""),
    "github.com/google/uuid.UUID": ("string", "uuid"),
    "github.com/gofrs/uuid.UUID": ("string", "uuid"),
    "mime/multipart.FileHeader": ("file", ""),
    "net/url.URL": ("string", "uri"),
}


@dataclass
class Scope:
    """Where a type expression is read: its file, its package, bound type parameters."""

    gofile: GoFile | None = None
    package: Package | None = None
    bindings: dict[str, str] = field(default_factory=dict)


@dataclass
class TypeRef:
    """A resolved annotation type, possibly composed: ``Resp{data=model.User}``."""

    name: str | None = None
    properties: list[tuple[str, "TypeRef"]] = field(default_factory=list)
    items: "TypeRef | None" = None

    def names(self) -> list[str]:
        out = [self.name] if self.name else []
        for _, prop in self.properties:
            out.extend(prop.names())
        if self.items is not None:
            out.extend(self.items.names())
        return out


def split_composition(text: str) -> tuple[str, list[tuple[str, str]]]:
    """Split ``base{a=T1,b=T2}`` into its base and field overrides."""
    depth = 0
    for index, char in enumerate(text):
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        elif char == "{" and depth == 0:
            if not text.endswith("}"):
                raise ResolutionError("unterminated composition", reference=text)
            base, inner = text[:index], text[index + 1:-1]
            return base, [_split_assignment(part, text) for part in _split_top_level(inner)]
    return text, []


def _split_top_level(text: str) -> list[str]:
    parts, depth, start = [], 0, 0
    for index, char in enumerate(text):
        if char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(text[start:index])
            start = index + 1
    parts.append(text[start:])
    return [p.strip() for p in parts if p.strip()]


def _split_assignment(part: str, text: str) -> tuple[str, str]:
    name, sep, value = part.partition("=")
    if not sep or not name.strip() or not value.strip():
        raise ResolutionError("invalid composition field", reference=text)
    return name.strip(), value.strip()


def _json_tag(value: str | None) -> tuple[str, set[str]]:
    if value is None:
        return "", set()
    name, *options = value.split(",")
    return name.strip(), {o.strip() for o in options}


def _exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def _embedded_name(expr: TypeExpr) -> str:
    while isinstance(expr, Pointer):
        expr = expr.elem
    if isinstance(expr, Generic):
        expr = expr.base
    return expr.name if isinstance(expr, Ident) else ""


def _is_bytes(expr: ArrayType) -> bool:
    elem = expr.elem
    return expr.length is None and isinstance(elem, Ident) and elem.package is None and elem.name in ("byte", "uint8")


def _doc_description(decl: TypeDecl) -> str:
    if decl.doc is None:
        return ""
    lines = [line.strip() for line in decl.doc.lines]
    return "\n".join(line for line in lines if line and not line.startswith("@")).strip()


def promote_fields(entries: list[FieldDescriptor]) -> list[FieldDescriptor]:
    """Keep one field per display name: the shallowest, then the first declared."""
    best: dict[str, FieldDescriptor] = {}
    for entry in entries:
        current = best.get(entry.display_name)
        if current is None or entry.depth < current.depth:
            best[entry.display_name] = entry
    return [entry for entry in entries if best[entry.display_name] is entry]


def _field_shape(fields: list[FieldDescriptor]) -> list[tuple[str, str, bool]]:
    return [(f.display_name, f.schema, f.required) for f in fields]


class TypeResolver:
    def __init__(
        self,
        index: PackageIndex,
        registry: SchemaRegistry,
        overrides: dict[str, Override] | None = None,
        naming_strategy: str = CAMEL_CASE,
        required_by_default: bool = False,
        parse_depth: int = 100,
    ) -> None:
        self.index = index
        self.registry = registry
        self.overrides = overrides or {}
        self.naming_strategy = naming_strategy
        self.required_by_default = required_by_default
        self.parse_depth = parse_depth
        self.warnings: list[DependencyWarning] = []
        # origins accepted under a canonical name another declaration holds
        self._shared: set[str] = set()

    # -- scopes ------------------------------------------------------------

    def scope_for(self, gofile: GoFile | None) -> Scope:
        if gofile is None:
            return Scope()
        return Scope(gofile, self.index.package_for(gofile))

    # -- anonymous and builtin types ---------------------------------------

    def primitive(self, name: str) -> str:
        if name in self.registry:
            return name
        if name in GO_PRIMITIVES:
            openapi_type, fmt = GO_PRIMITIVES[name]
        elif name in ANNOTATION_PRIMITIVES:
            openapi_type, fmt = ANNOTATION_PRIMITIVES[name]
        else:
            raise ResolutionError("unknown primitive type", reference=name)
        self.registry.register(SchemaType(name, PRIMITIVE, openapi_type=openapi_type, format=fmt, origin=f"builtin.{name}"))
        return name

    @staticmethod
    def is_primitive_name(name: str) -> bool:
        return name in GO_PRIMITIVES or name in ANNOTATION_PRIMITIVES

    def array_of(self, element: str) -> str:
        canonical = f"array_{component_token(element)}"
        self.registry.register(SchemaType(canonical, ARRAY, element=element, origin=canonical))
        return canonical

    def map_of(self, value: str) -> str:
        canonical = f"map_{component_token(value)}"
        self.registry.register(SchemaType(canonical, MAP, element=value, origin=canonical))
        return canonical

    def placeholder(self, canonical: str, reason: str) -> str:
        if canonical not in self.registry:
            message = f"{canonical}: {reason}, using an opaque object"
            self.warnings.append(DependencyWarning(message))
            logger.warning(message)
        self.registry.register(SchemaType(canonical, OPAQUE, origin=f"opaque.{canonical}", fingerprint="opaque"))
        return canonical

    def well_known(self, import_path: str, name: str) -> str:
        canonical = f"{self.index.package_name(import_path)}.{name}"
        openapi_type, fmt = WELL_KNOWN[f"{import_path}.{name}"]
        self.registry.register(
            SchemaType(canonical, PRIMITIVE, openapi_type=openapi_type, format=fmt, origin=f"{import_path}.{name}")
        )
        return canonical

    def well_known_import(self, qualifier: str, name: str) -> str | None:
        """Import path of a well-known type named through an unimported qualifier."""
        for full in WELL_KNOWN:
            import_path, _, type_name = full.rpartition(".")
            if type_name == name and self.index.package_name(import_path) == qualifier:
                return import_path
        return None

    def _collision(self, kept: SchemaType, origin: str) -> ResolutionError:
        return ResolutionError(f"ambiguous canonical name: {kept.origin} and {origin}", reference=kept.name)

    # -- type expressions --------------------------------------------------

    def resolve_expr(self, expr: TypeExpr, scope: Scope) -> str | None:
        """Canonical name of ``expr``; None when an override skips it."""
        if isinstance(expr, Pointer):
            return self.resolve_expr(expr.elem, scope)
        if isinstance(expr, Ident):
            if expr.package is None:
                if expr.name in scope.bindings:
                    return scope.bindings[expr.name]
                return self.resolve_local(expr.name, (), scope)
            return self.resolve_qualifier(expr.package, expr.name, (), scope)
        if isinstance(expr, Generic):
            args = []
            for arg in expr.args:
                resolved = self.resolve_expr(arg, scope)
                if resolved is None:
                    return None
                args.append(resolved)
            base = expr.base
            if base.package is None:
                return self.resolve_local(base.name, tuple(args), scope)
            return self.resolve_qualifier(base.package, base.name, tuple(args), scope)
        if isinstance(expr, ArrayType):
            if _is_bytes(expr):
                return self.primitive("[]byte")
            element = self.resolve_expr(expr.elem, scope)
            return None if element is None else self.array_of(element)
        if isinstance(expr, MapType):
            value = self.resolve_expr(expr.value, scope)
            return None if value is None else self.map_of(value)
        if isinstance(expr, StructType):
            return self.anonymous_struct(expr, scope)
        if isinstance(expr, InterfaceType):
            return self.primitive("any")
        if isinstance(expr, (FuncType, ChanType)):
            return None
        raise ResolutionError("unsupported type expression", reference=str(expr))

    def _override(self, full: str) -> tuple[bool, str | None]:
        rule = self.overrides.get(full)
        if rule is None:
            return False, None
        if rule.skip:
            return True, None
        return True, self.resolve_replacement(rule.replacement or "")

    def resolve_replacement(self, text: str) -> str:
        """Resolve the target of a replace override: a primitive or a full type path."""
        if self.is_primitive_name(text):
            return self.primitive(text)
        if text.startswith("[]"):
            return self.array_of(self.resolve_replacement(text[2:]))
        import_path, _, name = text.rpartition(".")
        if not import_path or not name:
            raise ResolutionError("override replacement must be a primitive or a full type path", reference=text)
        resolved = self.resolve_qualified(import_path, name, (), use_overrides=False)
        if resolved is None:
            raise ResolutionError("override replacement resolved to nothing", reference=text)
        return resolved

    def resolve_local(self, name: str, args: tuple[str, ...], scope: Scope) -> str | None:
        package = scope.package
        if package is not None:
            handled, result = self._override(f"{package.import_path}.{name}")
            if handled:
                return result
            decl = package.types.get(name)
            if decl is not None:
                return self.resolve_decl(package, decl, args)
        if not args and self.is_primitive_name(name):
            return self.primitive(name)
        if scope.gofile is not None:
            _, dots = self.index.imports_of(scope.gofile)
            for import_path in dots:
                if self.index.lookup(import_path, name) is not None:
                    return self.resolve_qualified(import_path, name, args)
        raise ResolutionError(
            "cannot find type definition",
            reference=name,
            path=scope.gofile.path if scope.gofile else "",
        )

    def resolve_qualifier(self, qualifier: str, name: str, args: tuple[str, ...], scope: Scope) -> str | None:
        import_path = None
        if scope.gofile is not None:
            aliases, _ = self.index.imports_of(scope.gofile)
            import_path = aliases.get(qualifier)
        if import_path is None:
            candidates = self.index.packages_named(qualifier)
            if len(candidates) > 1:
                paths = ", ".join(sorted(p.import_path for p in candidates))
                raise ResolutionError(f"ambiguous package name, matches {paths}", reference=f"{qualifier}.{name}")
            if not candidates:
                import_path = self.well_known_import(qualifier, name)
                if import_path is None:
                    raise ResolutionError(
                        "cannot find package",
                        reference=f"{qualifier}.{name}",
                        path=scope.gofile.path if scope.gofile else "",
                    )
            else:
                import_path = candidates[0].import_path
        return self.resolve_qualified(import_path, name, args)

    def resolve_qualified(
        self, import_path: str, name: str, args: tuple[str, ...], use_overrides: bool = True
    ) -> str | None:
        full = f"{import_path}.{name}"
        if use_overrides:
            handled, result = self._override(full)
            if handled:
                return result
        if full in WELL_KNOWN:
            return self.well_known(import_path, name)
        package = self.index.packages.get(import_path)
        if package is None:
            canonical = f"{self.index.package_name(import_path)}.{name}"
            if args:
                canonical += "".join(f"-{component_token(a)}" for a in args)
            if self.index.is_truncated(import_path):
                return self.placeholder(canonical, f"package {import_path} lies beyond the dependency depth")
            if self.index.is_standard(import_path):
                return self.placeholder(canonical, f"standard library type {full} has no schema")
            raise ResolutionError("cannot find package", reference=full)
        decl = package.types.get(name)
        if decl is None:
            raise ResolutionError("cannot find type definition", reference=full)
        return self.resolve_decl(package, decl, args)

    # -- declarations ------------------------------------------------------

    def resolve_decl(self, package: Package, decl: TypeDecl, args: tuple[str, ...]) -> str | None:
        if decl.is_alias:
            return self.resolve_expr(decl.type, Scope(decl.file, package))
        reference = f"{package.import_path}.{decl.name}"
        if len(args) != len(decl.type_params):
            raise ResolutionError(
                f"expected {len(decl.type_params)} type arguments, got {len(args)}",
                reference=reference,
            )
        canonical = f"{package.name}.{decl.name}"
        origin = reference
        if args:
            canonical += "".join(f"-{component_token(a)}" for a in args)
            origin += f"[{','.join(args)}]"
        existing = self.registry.get(canonical)
        if existing is not None and (existing.origin == origin or origin in self._shared):
            return canonical
        if package.depth > self.parse_depth:
            return self.placeholder(canonical, f"package {package.import_path} lies beyond the dependency depth")

        fingerprint = str(decl.type) + (f"[{','.join(args)}]" if args else "")
        scope = Scope(decl.file, package, dict(zip(decl.type_params, args)))
        description = _doc_description(decl)
        target = decl.type

        if isinstance(target, StructType):
            schema = SchemaType(
                canonical,
                GENERIC if args else OBJECT,
                base=f"{package.name}.{decl.name}" if args else None,
                args=args,
                description=description,
                origin=origin,
                fingerprint=fingerprint,
                component=True,
            )
            kept = self.registry.register(schema)
            if kept is schema:
                schema.fields.extend(self.struct_fields(target, scope, canonical))
            else:
                self._shared.add(origin)
                fields = self.struct_fields(target, scope, canonical)
                if _field_shape(fields) != _field_shape(kept.fields):
                    raise self._collision(kept, origin)
            return canonical

        if isinstance(target, (ArrayType, MapType)) and not (isinstance(target, ArrayType) and _is_bytes(target)):
            schema = SchemaType(
                canonical,
                ARRAY if isinstance(target, ArrayType) else MAP,
                description=description,
                origin=origin,
                fingerprint=fingerprint,
                component=True,
            )
            kept = self.registry.register(schema)
            inner = target.elem if isinstance(target, ArrayType) else target.value
            if kept is schema:
                schema.element = self.resolve_expr(inner, scope) or self.primitive("any")
            else:
                self._shared.add(origin)
                if (self.resolve_expr(inner, scope) or self.primitive("any")) != kept.element:
                    raise self._collision(kept, origin)
            return canonical

        underlying = self.resolve_expr(target, scope)
        if underlying is None:
            return None
        base = self.registry[underlying]
        if base.is_object:
            schema = SchemaType(
                canonical,
                OBJECT,
                fields=base.fields,
                description=description or base.description,
                origin=origin,
                component=True,
            )
        elif base.kind in (ARRAY, MAP) and base.component:
            schema = SchemaType(
                canonical,
                base.kind,
                element=base.element,
                description=description or base.description,
                origin=origin,
                component=True,
            )
        else:
            schema = SchemaType(
                canonical,
                ALIAS,
                element=underlying,
                description=description,
                origin=origin,
            )
            self._attach_enum(schema, package, decl)
        schema.fingerprint = f"{schema.kind}:{underlying}:{schema.enum!r}"
        self.registry.register(schema)
        return canonical

    def _attach_enum(self, schema: SchemaType, package: Package, decl: TypeDecl) -> None:
        consts = [c for c in package.consts_by_type.get(decl.name, []) if c.value is not None]
        if not consts:
            return
        schema.enum = [c.value for c in consts]
        schema.enum_names = [c.name for c in consts]
        schema.enum_descriptions = [c.description for c in consts]
        schema.component = True

    def anonymous_struct(self, struct: StructType, scope: Scope) -> str:
        package_path = scope.package.import_path if scope.package else ""
        seed = f"{package_path}|{struct}|{sorted(scope.bindings.items())}"
        canonical = "struct_" + hashlib.sha1(seed.encode("utf-8")).hexdigest()[:12]
        schema = SchemaType(canonical, OBJECT, origin=canonical, fingerprint=canonical)
        if self.registry.register(schema) is schema:
            schema.fields.extend(self.struct_fields(struct, scope, canonical))
        return canonical

    # -- fields ------------------------------------------------------------

    def struct_fields(self, struct: StructType, scope: Scope, owner: str) -> list[FieldDescriptor]:
        entries: list[FieldDescriptor] = []
        for spec in struct.fields:
            tags = parse_struct_tag(spec.tag)
            if tags.get("swaggerignore", "").lower() == "true":
                continue
            json_name, json_opts = _json_tag(tags.get("json"))
            if json_name == "-" and not json_opts:
                continue
            if spec.embedded:
                entries.extend(self._embedded_fields(spec, tags, json_name, json_opts, scope, owner))
                continue
            for name in spec.names:
                if not _exported(name):
                    continue
                descriptor = self.field_descriptor(name, spec, tags, json_name, json_opts, scope, owner)
                if descriptor is not None:
                    entries.append(descriptor)
        return promote_fields(entries)

    def _embedded_fields(
        self,
        spec: FieldSpec,
        tags: dict[str, str],
        json_name: str,
        json_opts: set[str],
        scope: Scope,
        owner: str,
    ) -> list[FieldDescriptor]:
        type_name = _embedded_name(spec.type)
        if json_name:
            descriptor = self.field_descriptor(type_name, spec, tags, json_name, json_opts, scope, owner)
            return [descriptor] if descriptor is not None else []
        target_name = self.resolve_expr(spec.type, scope)
        if target_name is None:
            return []
        target = self.registry[target_name]
        if target.is_object:
            return [f.promoted() for f in target.fields]
        if not _exported(type_name):
            return []
        descriptor = self.field_descriptor(type_name, spec, tags, json_name, json_opts, scope, owner)
        return [descriptor] if descriptor is not None else []

    def field_descriptor(
        self,
        name: str,
        spec: FieldSpec,
        tags: dict[str, str],
        json_name: str,
        json_opts: set[str],
        scope: Scope,
        owner: str,
    ) -> FieldDescriptor | None:
        reference = f"{owner}.{name}"
        if "swaggertype" in tags:
            schema = self.swagger_type(tags["swaggertype"], reference)
        else:
            if isinstance(spec.type, (FuncType, ChanType)):
                return None
            schema = self.resolve_expr(spec.type, scope)
            if schema is None:
                return None
        if "string" in json_opts and self.primitive_kind(schema) in ("integer", "number", "boolean"):
            schema = self.primitive("string")
        descriptor = FieldDescriptor(
            name=name,
            display_name=json_name or apply_strategy(self.naming_strategy, name),
            schema=schema,
            description=spec.description,
        )
        descriptor.required = self._required(tags, json_opts)
        self._apply_tags(descriptor, tags, reference)
        return descriptor

    def _required(self, tags: dict[str, str], json_opts: set[str]) -> bool:
        rules = set()
        for key in ("binding", "validate"):
            rules.update(r.strip() for r in tags.get(key, "").split(","))
        if "required" in rules:
            return True
        if "optional" in rules or "omitempty" in rules or "omitempty" in json_opts:
            return False
        return self.required_by_default

    def swagger_type(self, text: str, reference: str) -> str:
        """Schema forced by a ``swaggertype`` struct tag."""
        parts = [p.strip() for p in text.split(",") if p.strip()]
        try:
            if len(parts) == 1:
                return self.primitive(parts[0])
            if len(parts) == 2 and parts[0] == "primitive":
                return self.primitive(parts[1])
            if len(parts) == 2 and parts[0] == "array":
                return self.array_of(self.primitive(parts[1]))
            if len(parts) == 2 and parts[0] == "object":
                return self.map_of(self.primitive(parts[1]))
        except ResolutionError:
            pass
        raise ResolutionError(f"invalid swaggertype {text!r}", reference=reference)

    def primitive_kind(self, name: str) -> str:
        """OpenAPI type a schema ends up as, following aliases."""
        schema = self.registry[name]
        seen = set()
        while schema.kind == ALIAS and schema.element and schema.name not in seen:
            seen.add(schema.name)
            schema = self.registry[schema.element]
        if schema.kind == PRIMITIVE:
            return schema.openapi_type or "any"
        if schema.kind == ARRAY:
            return "array"
        return "object"

    def typed_value(self, text: str, kind: str, reference: str) -> Any:
        """Convert a tag or attribute string to the value type of ``kind``."""
        text = text.strip()
        try:
            if kind == "integer":
                return int(text)
            if kind == "number":
                return float(text)
        except ValueError:
            raise ResolutionError(f"invalid {kind} value {text!r}", reference=reference) from None
        if kind == "boolean":
            if text.lower() not in ("true", "false"):
                raise ResolutionError(f"invalid boolean value {text!r}", reference=reference)
            return text.lower() == "true"
        return text

    def element_kind(self, name: str) -> str:
        schema = self.registry[name]
        while schema.kind == ALIAS and schema.element:
            schema = self.registry[schema.element]
        if schema.kind == ARRAY and schema.element:
            return self.primitive_kind(schema.element)
        return self.primitive_kind(name)

    def _apply_tags(self, descriptor: FieldDescriptor, tags: dict[str, str], reference: str) -> None:
        kind = self.primitive_kind(descriptor.schema)
        item_kind = self.element_kind(descriptor.schema)
        constraints = descriptor.constraints
        for key in ("minimum", "maximum"):
            if key in tags:
                constraints[key] = self.typed_value(tags[key], "number", reference)
                if float(constraints[key]).is_integer():
                    constraints[key] = int(constraints[key])
        for key in ("minLength", "maxLength"):
            if key in tags:
                constraints[key] = self.typed_value(tags[key], "integer", reference)
        if "enums" in tags:
            constraints["enum"] = [self.typed_value(v, item_kind, reference) for v in tags["enums"].split(",")]
        if "default" in tags:
            constraints["default"] = self.typed_value(tags["default"], kind, reference)
        if tags.get("readonly", "").lower() == "true":
            constraints["readOnly"] = True
        if "format" in tags:
            descriptor.format = tags["format"]
        if "example" in tags:
            if kind == "array":
                descriptor.example = [self.typed_value(v, item_kind, reference) for v in tags["example"].split(",")]
            else:
                descriptor.example = self.typed_value(tags["example"], kind, reference)
        for item in filter(None, (e.strip() for e in tags.get("extensions", "").split(","))):
            key, _, value = item.partition("=")
            if key == "x-nullable":
                constraints["nullable"] = True
            elif key.startswith("!x-"):
                descriptor.extensions[key[1:]] = False
            elif key.startswith("x-"):
                descriptor.extensions[key] = value if value else True
        self._apply_validate(descriptor, tags.get("validate", "") + "," + tags.get("binding", ""), kind, item_kind, reference)

    def _apply_validate(self, descriptor: FieldDescriptor, rules: str, kind: str, item_kind: str, reference: str) -> None:
        bounds = {
            "string": ("minLength", "maxLength"),
            "array": ("minItems", "maxItems"),
            "integer": ("minimum", "maximum"),
            "number": ("minimum", "maximum"),
        }.get(kind)
        for rule in filter(None, (r.strip() for r in rules.split(","))):
            key, _, value = rule.partition("=")
            if key == "oneof" and value:
                enum_kind = item_kind if kind == "array" else kind
                descriptor.constraints.setdefault(
                    "enum", [self.typed_value(v, enum_kind, reference) for v in value.split()]
                )
            elif bounds and key in ("min", "gte") and value:
                descriptor.constraints.setdefault(bounds[0], self._bound(value, kind, reference))
            elif bounds and key in ("max", "lte") and value:
                descriptor.constraints.setdefault(bounds[1], self._bound(value, kind, reference))

    def _bound(self, value: str, kind: str, reference: str) -> int | float:
        number = self.typed_value(value, "integer" if kind in ("string", "array") else "number", reference)
        if isinstance(number, float) and number.is_integer():
            return int(number)
        return number

    # -- annotation references ---------------------------------------------

    def resolve_text(self, text: str, gofile: GoFile | None) -> str | None:
        """Resolve a plain type written in an annotation, e.g. ``[]model.User``."""
        try:
            expr = parse_type_expr(text)
        except ParseError as exc:
            raise ResolutionError(
                f"invalid type: {exc.message}", reference=text, path=gofile.path if gofile else ""
            ) from None
        return self.resolve_expr(expr, self.scope_for(gofile))

    def resolve_ref(self, text: str, gofile: GoFile | None) -> TypeRef:
        """Resolve an annotation type that may carry ``{field=Type}`` overrides."""
        base, assignments = split_composition(text.strip())
        ref = TypeRef(self.resolve_text(base, gofile))
        for name, value in assignments:
            ref.properties.append((name, self.resolve_ref(value, gofile)))
        return ref
