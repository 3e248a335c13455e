"""Assemble general info, operations and resolved schemas into one document.

The assembler is the last step that may fail: it resolves every type named
by an operation, checks that each ``$ref`` in the rendered payload has a
component behind it, and freezes the result for the emitters.
"""

from __future__ import annotations

import copy
import http
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .annotations import HTTP_METHODS, GeneralInfo, OperationRecord, ParamRecord, ResponseRecord, TagGroup
from .config import DEFAULT_COLLECTION_FORMAT, to_valid_collection_format
from .errors import ParseError, ResolutionError
from .gosource import GoFile
from .openapi import SchemaRenderer, collect_refs
from .registry import SchemaRegistry
from .resolver import ANNOTATION_PRIMITIVES, GO_PRIMITIVES, TypeRef, TypeResolver

logger = logging.getLogger(__name__)

DEFAULT_MIME = "application/json"
FORM_MIMES = ("multipart/form-data", "application/x-www-form-urlencoded")

# collection format -> (style, explode); tsv has no OpenAPI 3 style
COLLECTION_STYLES: dict[str, tuple[str, bool]] = {
    "csv": ("form", False),
    "multi": ("form", True),
    "ssv": ("spaceDelimited", False),
    "pipes": ("pipeDelimited", False),
}

# Param attribute -> schema keyword
_PARAM_CONSTRAINTS = {
    "minimum": "minimum",
    "maximum": "maximum",
    "minlength": "minLength",
    "maxlength": "maxLength",
    "default": "default",
}


@dataclass
class OperationEntry:
    method: str
    path: str
    summary: str = ""
    description: str = ""
    operation_id: str = ""
    tags: list[str] = field(default_factory=list)
    accept: list[str] = field(default_factory=list)
    produce: list[str] = field(default_factory=list)
    parameters: list[dict[str, Any]] = field(default_factory=list)
    request_body: dict[str, Any] | None = None
    responses: dict[str, dict[str, Any]] = field(default_factory=dict)
    security: list[dict[str, list[str]]] | None = None
    deprecated: bool = False
    extensions: dict[str, Any] = field(default_factory=dict)
    schemas: set[str] = field(default_factory=set)

    @property
    def key(self) -> tuple[str, str]:
        return self.path, self.method

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.tags:
            out["tags"] = list(self.tags)
        if self.summary:
            out["summary"] = self.summary
        if self.description:
            out["description"] = self.description
        if self.operation_id:
            out["operationId"] = self.operation_id
        if self.parameters:
            out["parameters"] = self.parameters
        if self.request_body is not None:
            out["requestBody"] = self.request_body
        out["responses"] = self.responses
        if self.security is not None:
            out["security"] = self.security
        if self.deprecated:
            out["deprecated"] = True
        out.update(self.extensions)
        return out


@dataclass
class SpecDocument:
    info: dict[str, Any]
    tags: list[TagGroup]
    operations: dict[tuple[str, str], OperationEntry]
    registry: SchemaRegistry
    openapi31: bool = False
    general: GeneralInfo = field(default_factory=GeneralInfo)
    payload: Mapping[str, Any] = field(default_factory=dict)

    @property
    def frozen(self) -> bool:
        return isinstance(self.payload, MappingProxyType)

    def freeze(self) -> Mapping[str, Any]:
        if not self.frozen:
            self.payload = MappingProxyType(dict(self.payload))
        return self.payload

    def to_dict(self) -> dict[str, Any]:
        """A private, mutable copy of the rendered document."""
        return copy.deepcopy(dict(self.payload))


def status_text(code: str) -> str:
    if not code.isdigit():
        return ""
    try:
        return http.HTTPStatus(int(code)).phrase
    except ValueError:
        return ""


def _method_order(key: tuple[str, str]) -> tuple[str, int]:
    path, method = key
    return path, HTTP_METHODS.index(method)


class Assembler:
    """Build a SpecDocument from parsed annotations and a type resolver."""

    def __init__(self, resolver: TypeResolver, openapi31: bool = False, collection_format: str = DEFAULT_COLLECTION_FORMAT) -> None:
        self.resolver = resolver
        self.registry = resolver.registry
        self.renderer = SchemaRenderer(resolver.registry, openapi31)
        self.openapi31 = openapi31
        self.collection_format = to_valid_collection_format(collection_format) or DEFAULT_COLLECTION_FORMAT

    # -- top level ---------------------------------------------------------

    def assemble(self, general: GeneralInfo, operations: list[tuple[OperationRecord, GoFile]]) -> SpecDocument:
        if general.collection_format:
            self.collection_format = to_valid_collection_format(general.collection_format)
        entries: dict[tuple[str, str], OperationEntry] = {}
        operation_ids: dict[str, str] = {}
        for record, gofile in operations:
            if record.operation_id:
                previous = operation_ids.get(record.operation_id)
                if previous is not None:
                    raise ParseError(
                        f"duplicated @ID {record.operation_id!r}, already used by {previous}",
                        record.path,
                        record.line,
                        record.func_name,
                    )
                operation_ids[record.operation_id] = record.func_name
            for route in record.routes:
                entry = self.operation(record, route.path, route.method, gofile, general)
                entry.deprecated = entry.deprecated or route.deprecated
                if entry.key in entries:
                    raise ParseError(
                        f"route {route.method.upper()} {route.path} is declared multiple times",
                        record.path,
                        record.line,
                        record.func_name,
                    )
                entries[entry.key] = entry

        ordered = {key: entries[key] for key in sorted(entries, key=_method_order)}
        document = SpecDocument(
            info=self.info(general),
            tags=list(general.tags),
            operations=ordered,
            registry=self.registry,
            openapi31=self.openapi31,
            general=general,
        )
        document.payload = self.render(document)
        self.check_closure(document)
        logger.info(
            "assembled %d operations and %d schemas (OpenAPI %s)",
            len(ordered),
            len(document.payload.get("components", {}).get("schemas", {})),
            self.renderer.version,
        )
        return document

    def info(self, general: GeneralInfo) -> dict[str, Any]:
        info: dict[str, Any] = {}
        if general.title:
            info["title"] = general.title
        if general.description:
            info["description"] = general.description
        if general.terms_of_service:
            info["termsOfService"] = general.terms_of_service
        if general.contact:
            info["contact"] = dict(general.contact)
        if general.license:
            info["license"] = dict(general.license)
        if general.version:
            info["version"] = general.version
        return info

    def servers(self, general: GeneralInfo) -> list[dict[str, str]]:
        if not general.host and not general.base_path:
            return []
        if not general.host:
            return [{"url": general.base_path}]
        schemes = general.schemes or [""]
        return [
            {"url": f"{scheme}://{general.host}{general.base_path}" if scheme else f"//{general.host}{general.base_path}"}
            for scheme in schemes
        ]

    def render(self, document: SpecDocument) -> dict[str, Any]:
        general = document.general
        payload: dict[str, Any] = {"openapi": self.renderer.version, "info": document.info}
        if general.external_docs:
            payload["externalDocs"] = dict(general.external_docs)
        servers = self.servers(general)
        if servers:
            payload["servers"] = servers
        paths: dict[str, dict[str, Any]] = {}
        for (path, method), entry in document.operations.items():
            paths.setdefault(path, {})[method] = entry.as_dict()
        payload["paths"] = paths
        components: dict[str, Any] = {}
        schemas = self.reachable_components(paths)
        if schemas:
            components["schemas"] = schemas
        if general.security_schemes:
            components["securitySchemes"] = {
                name: general.security_schemes[name] for name in sorted(general.security_schemes)
            }
        if components:
            payload["components"] = components
        if general.security:
            payload["security"] = general.security
        if document.tags:
            payload["tags"] = [self.tag(tag) for tag in document.tags]
        payload.update(general.extensions)
        return payload

    def reachable_components(self, root: Any) -> dict[str, Any]:
        """Render every component referenced from ``root``, directly or not."""
        rendered: dict[str, Any] = {}
        pending = sorted(collect_refs(root))
        while pending:
            name = pending.pop()
            if name in rendered:
                continue
            rendered[name] = self.renderer.inline(self.registry[name])
            pending.extend(sorted(collect_refs(rendered[name]) - rendered.keys()))
        return {name: rendered[name] for name in sorted(rendered)}

    @staticmethod
    def tag(tag: TagGroup) -> dict[str, Any]:
        out: dict[str, Any] = {"name": tag.name}
        if tag.description:
            out["description"] = tag.description
        if tag.docs_url:
            out["externalDocs"] = {"url": tag.docs_url}
            if tag.docs_description:
                out["externalDocs"]["description"] = tag.docs_description
        return out

    def check_closure(self, document: SpecDocument) -> None:
        """Every ``$ref`` must point at a rendered component."""
        components = document.payload.get("components", {}).get("schemas", {})
        for name in sorted(collect_refs(document.payload)):
            if name not in components:
                raise ResolutionError("unresolved schema reference", reference=name)
        for entry in document.operations.values():
            for name in sorted(entry.schemas):
                if name not in self.registry:
                    raise ResolutionError(
                        f"operation {entry.method.upper()} {entry.path} references an unknown schema",
                        reference=name,
                    )

    # -- operations --------------------------------------------------------

    def operation(
        self, record: OperationRecord, path: str, method: str, gofile: GoFile, general: GeneralInfo
    ) -> OperationEntry:
        entry = OperationEntry(
            method=method,
            path=path,
            summary=record.summary,
            description=record.description,
            operation_id=record.operation_id,
            tags=list(record.tags),
            accept=record.accept or general.accept or [DEFAULT_MIME],
            produce=record.produce or general.produce or [DEFAULT_MIME],
            security=list(record.security) if record.security else None,
            deprecated=record.deprecated,
            extensions=dict(record.extensions),
        )
        try:
            self._parameters(entry, record.params, gofile)
            self._responses(entry, record.responses, gofile)
        except ResolutionError as exc:
            if not exc.declaration:
                exc.declaration = record.func_name
            if not exc.path:
                exc.path = record.path
            raise
        return entry

    def _resolve(self, entry: OperationEntry, text: str, gofile: GoFile) -> str | None:
        name = self.resolver.resolve_text(text, gofile)
        if name is not None:
            entry.schemas.add(name)
        return name

    def _resolve_ref(self, entry: OperationEntry, text: str, gofile: GoFile) -> TypeRef:
        target = self.resolver.resolve_ref(text, gofile)
        entry.schemas.update(target.names())
        return target

    def _parameters(self, entry: OperationEntry, params: list[ParamRecord], gofile: GoFile) -> None:
        form: list[tuple[str, dict[str, Any], bool, str]] = []
        for param in params:
            if param.location == "body":
                target = self._resolve_ref(entry, param.type_text, gofile)
                if target.name is None and not target.properties:
                    continue
                schema = self.renderer.type_ref(target)
                body: dict[str, Any] = {}
                if param.description:
                    body["description"] = param.description
                body["content"] = {mime: {"schema": schema} for mime in entry.accept}
                if param.required:
                    body["required"] = True
                entry.request_body = body
                continue

            name = self._resolve(entry, param.type_text, gofile)
            if name is None:
                continue
            target = self.registry[name]
            if target.is_object and param.location in ("query", "formData"):
                for descriptor in target.fields:
                    schema = self.renderer.field(descriptor)
                    if param.location == "formData":
                        form.append((descriptor.display_name, schema, descriptor.required, descriptor.description))
                    else:
                        entry.parameters.append(
                            self._parameter(descriptor.display_name, "query", descriptor.required, descriptor.description, schema, {})
                        )
                continue

            schema = self._param_schema(name, param)
            if param.location == "formData":
                form.append((param.name, schema, param.required, param.description))
            else:
                entry.parameters.append(
                    self._parameter(param.name, param.location, param.required, param.description, schema, param.attributes)
                )

        if form:
            entry.request_body = self._form_body(entry, form)

    def _parameter(
        self,
        name: str,
        location: str,
        required: bool,
        description: str,
        schema: dict[str, Any],
        attributes: dict[str, str],
    ) -> dict[str, Any]:
        out: dict[str, Any] = {"name": name, "in": location}
        if description:
            out["description"] = description
        if required or location == "path":
            out["required"] = True
        out["schema"] = schema
        if schema.get("type") == "array" and location in ("query", "cookie", "header", "path"):
            fmt = to_valid_collection_format(attributes.get("collectionformat", "")) or self.collection_format
            if location == "query":
                if fmt in COLLECTION_STYLES:
                    out["style"], out["explode"] = COLLECTION_STYLES[fmt]
                else:
                    out["x-collectionFormat"] = fmt
        return out

    def _param_schema(self, name: str, param: ParamRecord) -> dict[str, Any]:
        kind = self.resolver.primitive_kind(name)
        item_kind = self.resolver.element_kind(name)
        reference = f"param {param.name}"
        attributes = param.attributes
        siblings: dict[str, Any] = {}
        items: dict[str, Any] = {}
        if "enums" in attributes:
            values = [self.resolver.typed_value(v, item_kind, reference) for v in attributes["enums"].split(",")]
            (items if kind == "array" else siblings)["enum"] = values
        for attribute, keyword in _PARAM_CONSTRAINTS.items():
            if attribute not in attributes:
                continue
            value_kind = kind if attribute == "default" else ("integer" if "length" in attribute else "number")
            value = self.resolver.typed_value(attributes[attribute], value_kind, reference)
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            siblings[keyword] = value
        if "format" in attributes:
            siblings["format"] = attributes["format"]
        if "example" in attributes:
            siblings.update(self.renderer.example(self.resolver.typed_value(attributes["example"], kind, reference)))
        schema = self.renderer.schema(name)
        if items and "$ref" not in schema and schema.get("type") == "array":
            schema = dict(schema, items=self.renderer.with_siblings(schema["items"], items))
        if param.description and "$ref" in schema:
            siblings.setdefault("description", param.description)
        return self.renderer.with_siblings(schema, siblings)

    def _form_body(self, entry: OperationEntry, form: list[tuple[str, dict[str, Any], bool, str]]) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "object"}
        required = [name for name, _, is_required, _ in form if is_required]
        if required:
            schema["required"] = required
        properties = {}
        for name, prop, _, description in form:
            if description and "$ref" not in prop and "description" not in prop:
                prop = dict(prop, description=description)
            properties[name] = prop
        schema["properties"] = properties
        mimes = [mime for mime in entry.accept if mime in FORM_MIMES]
        if not mimes:
            has_file = any(
                prop.get("format") == "binary" or "contentMediaType" in prop
                or prop.get("items", {}).get("format") == "binary"
                for _, prop, _, _ in form
            )
            mimes = [FORM_MIMES[0] if has_file else FORM_MIMES[1]]
        return {"content": {mime: {"schema": schema} for mime in mimes}}

    def _header_schema(self, type_name: str) -> dict[str, Any]:
        openapi_type, fmt = GO_PRIMITIVES.get(type_name) or ANNOTATION_PRIMITIVES.get(type_name) or (type_name, "")
        return self.renderer.primitive(openapi_type, fmt)

    def _responses(self, entry: OperationEntry, responses: list[ResponseRecord], gofile: GoFile) -> None:
        for response in responses:
            out: dict[str, Any] = {"description": response.description or status_text(response.code)}
            if response.headers:
                out["headers"] = {
                    name: {
                        **({"description": header["description"]} if header.get("description") else {}),
                        "schema": self._header_schema(header.get("type") or "string"),
                    }
                    for name, header in response.headers.items()
                }
            if response.kind:
                target = self._resolve_ref(entry, response.type_text, gofile)
                if target.name is not None or target.properties:
                    if response.kind == "array":
                        target = TypeRef(items=target)
                    schema = self.renderer.type_ref(target)
                    out["content"] = {mime: {"schema": schema} for mime in entry.produce}
            if response.code in entry.responses:
                logger.debug("response %s of %s %s declared twice, keeping the last", response.code, entry.method, entry.path)
            entry.responses[response.code] = out
