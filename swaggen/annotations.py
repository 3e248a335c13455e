"""Extract annotation records from Go comment blocks.

A block is a run of ``//`` lines. Inside a block:
  - a line starting with ``@keyword`` opens a field
  - following lines without a keyword extend the open field
  - a blank comment line or the end of the block closes it

Records produced:
  - GeneralInfo  from every block of the main-info file
  - OperationRecord  from func doc comments carrying ``@Router``

Examples:
  // @Param   id    path  int  true  "Account ID"  minimum(1)
  // @Success 200   {object}  web.Response[model.User]  "ok"
  // @Router  /accounts/{id} [get]
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import to_valid_collection_format
from .errors import ParseError
from .gosource import CommentGroup, FuncDecl, GoFile

logger = logging.getLogger(__name__)

MIME_ALIASES: dict[str, str] = {
    "json": "application/json",
    "xml": "text/xml",
    "plain": "text/plain",
    "html": "text/html",
    "mpfd": "multipart/form-data",
    "x-www-form-urlencoded": "application/x-www-form-urlencoded",
    "json-api": "application/vnd.api+json",
    "json-stream": "application/x-json-stream",
    "octet-stream": "application/octet-stream",
    "png": "image/png",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "event-stream": "text/event-stream",
}

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
PARAM_LOCATIONS = ("query", "path", "header", "body", "formData", "cookie")
SCHEMES = ("http", "https", "ws", "wss")
RESPONSE_KINDS = ("object", "array", "string", "integer", "number", "boolean", "file", "primitive")

_CODE_SAMPLE_LANGS = {
    ".go": "Go",
    ".py": "Python",
    ".js": "JavaScript",
    ".ts": "TypeScript",
    ".sh": "Shell",
    ".curl": "cURL",
    ".java": "Java",
    ".rb": "Ruby",
    ".php": "PHP",
}

_PARAM_RE = re.compile(
    r'^(?P<name>\S+)\s+(?P<location>\w+)\s+(?P<type>\S+)\s+(?P<required>\w+)'
    r'(?:\s+"(?P<description>(?:[^"\\]|\\.)*)")?(?P<rest>.*)$',
    re.DOTALL,
)
_ATTRIBUTE_RE = re.compile(r"(\w+)\(((?:[^()]|\([^()]*\))*)\)")
_ROUTER_RE = re.compile(r"^(/\S*)\s+\[(\w+)\]\s*$")
_SECURITY_SCOPES_RE = re.compile(r"^([\w-]+)(?:\[([^\]]*)\])?$")


# ---------------------------------------------------------------------------
# Block state machine
# ---------------------------------------------------------------------------


@dataclass
class AnnotationField:
    tag: str
    value: str
    line: int

    @property
    def key(self) -> str:
        return self.tag.lower()


def parse_block(lines: list[str], first_line: int = 0) -> list[AnnotationField]:
    """Split one comment block into tagged fields."""
    fields: list[AnnotationField] = []
    current: AnnotationField | None = None
    for offset, raw in enumerate(lines):
        line = raw.strip()
        if not line:
            current = None
            continue
        if line.startswith("@"):
            parts = line.split(None, 1)
            current = AnnotationField(parts[0], parts[1].strip() if len(parts) > 1 else "", first_line + offset)
            fields.append(current)
        elif current is not None:
            current.value = f"{current.value}\n{line}" if current.value else line
    return fields


def group_fields(group: CommentGroup | None) -> list[AnnotationField]:
    if group is None:
        return []
    return parse_block(group.lines, group.line)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class TagGroup:
    name: str
    description: str = ""
    docs_url: str = ""
    docs_description: str = ""


@dataclass
class GeneralInfo:
    title: str = ""
    version: str = ""
    description: str = ""
    terms_of_service: str = ""
    contact: dict[str, str] = field(default_factory=dict)
    license: dict[str, str] = field(default_factory=dict)
    host: str = ""
    base_path: str = ""
    schemes: list[str] = field(default_factory=list)
    accept: list[str] = field(default_factory=list)
    produce: list[str] = field(default_factory=list)
    tags: list[TagGroup] = field(default_factory=list)
    security_schemes: dict[str, dict[str, Any]] = field(default_factory=dict)
    security: list[dict[str, list[str]]] = field(default_factory=list)
    external_docs: dict[str, str] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)
    collection_format: str = ""


@dataclass
class ParamRecord:
    name: str
    location: str
    type_text: str
    required: bool
    description: str = ""
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class ResponseRecord:
    code: str
    kind: str = ""
    type_text: str = ""
    description: str = ""
    headers: dict[str, dict[str, str]] = field(default_factory=dict)


@dataclass
class RouteRecord:
    path: str
    method: str
    deprecated: bool = False


@dataclass
class OperationRecord:
    func_name: str
    path: str
    line: int
    routes: list[RouteRecord] = field(default_factory=list)
    summary: str = ""
    description: str = ""
    operation_id: str = ""
    tags: list[str] = field(default_factory=list)
    accept: list[str] = field(default_factory=list)
    produce: list[str] = field(default_factory=list)
    params: list[ParamRecord] = field(default_factory=list)
    responses: list[ResponseRecord] = field(default_factory=list)
    security: list[dict[str, list[str]]] = field(default_factory=list)
    deprecated: bool = False
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass
class FileAnnotations:
    path: str
    general: GeneralInfo | None = None
    operations: list[OperationRecord] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)


@dataclass
class AssetDirs:
    """Directories holding markdown descriptions and code samples."""

    markdown: str = ""
    code_examples: str = ""

    def markdown_text(self, name: str) -> str:
        if not self.markdown:
            raise ParseError(f"markdown file {name} requested but no markdown directory configured")
        path = Path(self.markdown) / name
        if not path.is_file():
            raise ParseError(f"markdown file {path} not found")
        return path.read_text(encoding="utf-8").strip()

    def code_samples(self, *names: str) -> Any:
        if not self.code_examples:
            raise ParseError("code examples requested but no code example directory configured")
        directory = Path(self.code_examples)
        candidates = sorted(directory.iterdir()) if directory.is_dir() else []
        for name in filter(None, names):
            for path in candidates:
                if path.is_file() and path.stem == name:
                    text = path.read_text(encoding="utf-8")
                    if path.suffix == ".json":
                        try:
                            return json.loads(text)
                        except json.JSONDecodeError as exc:
                            raise ParseError(f"invalid code sample JSON in {path}: {exc}") from exc
                    lang = _CODE_SAMPLE_LANGS.get(path.suffix, path.suffix.lstrip(".").capitalize())
                    return [{"lang": lang, "source": text}]
        raise ParseError(f"no code example file for {' / '.join(filter(None, names))} in {directory}")


# ---------------------------------------------------------------------------
# Small value parsers
# ---------------------------------------------------------------------------


def split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_mime_types(value: str) -> list[str]:
    """Expand mime aliases such as ``json`` or ``mpfd``."""
    mimes = []
    for item in split_csv(value):
        if item in MIME_ALIASES:
            mimes.append(MIME_ALIASES[item])
        elif "/" in item:
            mimes.append(item)
        else:
            raise ParseError(f"{item} accept type can't be accepted")
    return mimes


def parse_extension_value(key: str, value: str) -> Any:
    if not value:
        raise ParseError(f"annotation {key} needs a value")
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ParseError(f"annotation {key} need a valid json value: {exc}") from exc


def parse_security(value: str) -> list[dict[str, list[str]]]:
    """``A || B`` gives alternatives, ``A && B`` joins schemes in one requirement."""
    if not value:
        raise ParseError("@Security needs a scheme name")
    requirements = []
    for alternative in value.split("||"):
        requirement: dict[str, list[str]] = {}
        for part in alternative.split("&&"):
            match = _SECURITY_SCOPES_RE.match(part.strip())
            if match is None:
                raise ParseError(f"invalid security requirement {part.strip()!r}")
            requirement[match.group(1)] = split_csv(match.group(2) or "")
        requirements.append(requirement)
    return requirements


def parse_param(value: str) -> ParamRecord:
    match = _PARAM_RE.match(value.strip())
    if match is None:
        raise ParseError(f"missing required param comment parameters {value!r}")
    location = match.group("location")
    if location not in PARAM_LOCATIONS:
        raise ParseError(f"unknown param location {location!r} for {match.group('name')}")
    required = match.group("required").lower()
    if required not in ("true", "false"):
        raise ParseError(f"required flag must be true or false, got {match.group('required')!r}")
    attributes = {
        key.lower(): attr.strip()
        for key, attr in _ATTRIBUTE_RE.findall(match.group("rest") or "")
    }
    description = (match.group("description") or "").replace('\\"', '"')
    return ParamRecord(
        name=match.group("name"),
        location=location,
        type_text=match.group("type"),
        required=required == "true",
        description=description,
        attributes=attributes,
    )


def _take_type(text: str) -> tuple[str, str]:
    """Split a leading type expression (brackets may hold spaces) from the rest."""
    depth = 0
    for index, char in enumerate(text):
        if char in "[{(":
            depth += 1
        elif char in "]})":
            depth -= 1
        elif char.isspace() and depth == 0:
            return text[:index], text[index:].strip()
        elif char == '"' and depth == 0:
            return text[:index].strip(), text[index:].strip()
    return text, ""


def _unquote_description(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1].replace('\\"', '"')
    return text


def _parse_codes(text: str) -> list[str]:
    codes = []
    for code in split_csv(text):
        if code.lower() == "default":
            codes.append("default")
        elif code.isdigit():
            codes.append(code)
        else:
            raise ParseError(f"invalid response code {code!r}")
    return codes


def parse_response(value: str) -> list[ResponseRecord]:
    """``200,201 {object} model.User "desc"`` or ``204 "No Content"``."""
    value = value.strip()
    if not value:
        raise ParseError("response annotation needs a status code")
    head, *tail = value.split(None, 1)
    codes = _parse_codes(head)
    rest = tail[0].strip() if tail else ""
    kind = type_text = ""
    if rest.startswith("{"):
        close = rest.find("}")
        if close < 0:
            raise ParseError(f"unterminated schema kind in {value!r}")
        kind = rest[1:close].strip()
        if kind not in RESPONSE_KINDS:
            raise ParseError(f"unknown schema kind {{{kind}}} in {value!r}")
        rest = rest[close + 1:].strip()
        if not rest or rest.startswith('"'):
            raise ParseError(f"missing type after {{{kind}}} in {value!r}")
        type_text, rest = _take_type(rest)
    description = _unquote_description(rest)
    return [ResponseRecord(code, kind, type_text, description) for code in codes]


def parse_header(value: str) -> tuple[list[str], str, str, str]:
    """``200,400 {string} Token "desc"`` returns codes, kind, name, description."""
    parts = value.strip().split(None, 3)
    if len(parts) < 3 or not parts[1].startswith("{") or not parts[1].endswith("}"):
        raise ParseError(f"invalid @Header {value!r}")
    codes = ["all"] if parts[0].lower() == "all" else _parse_codes(parts[0])
    description = _unquote_description(parts[3]) if len(parts) > 3 else ""
    return codes, parts[1][1:-1], parts[2], description


def parse_router(value: str) -> RouteRecord:
    match = _ROUTER_RE.match(value.strip())
    if match is None:
        raise ParseError(f"can not parse router comment {value!r}")
    method = match.group(2).lower()
    if method not in HTTP_METHODS:
        raise ParseError(f"invalid method {match.group(2)!r} in router comment")
    return RouteRecord(match.group(1), method)


def match_tags(tag_filter: str, tags: list[str]) -> bool:
    """Apply a ``"admin,!internal"`` style filter to an operation's tags.

    An excluded tag always wins. A filter made only of exclusions keeps
    every operation that is not excluded.
    """
    entries = split_csv(tag_filter)
    if not entries:
        return True
    include = {e for e in entries if not e.startswith("!")}
    exclude = {e[1:] for e in entries if e.startswith("!")}
    if any(tag in exclude for tag in tags):
        return False
    if any(tag in include for tag in tags):
        return True
    return not include


def match_extension(extension: str, extensions: dict[str, Any]) -> bool:
    """Keep operations carrying the requested ``x-`` extension."""
    if not extension:
        return True
    key = extension if extension.startswith("x-") else f"x-{extension}"
    return key in extensions


# ---------------------------------------------------------------------------
# General info
# ---------------------------------------------------------------------------

_SECURITY_ATTRIBUTES = {"@in", "@name", "@tokenurl", "@authorizationurl", "@description", "@scheme", "@bearerformat"}


def _security_scheme(kind: str, name: str) -> dict[str, Any]:
    if kind == "apikey":
        return {"type": "apiKey"}
    if kind == "basic":
        return {"type": "http", "scheme": "basic"}
    if kind == "bearer":
        return {"type": "http", "scheme": "bearer"}
    flows = {
        "application": "clientCredentials",
        "implicit": "implicit",
        "password": "password",
        "accesscode": "authorizationCode",
    }
    if kind.startswith("oauth2.") and kind[len("oauth2."):] in flows:
        return {"type": "oauth2", "_flow": flows[kind[len("oauth2."):]], "_scopes": {}}
    raise ParseError(f"unsupported security definition {kind!r} for {name}")


def _finish_security(scheme: dict[str, Any], name: str) -> dict[str, Any]:
    if scheme["type"] == "apiKey":
        if not scheme.get("in") or not scheme.get("name"):
            raise ParseError(f"security definition {name} needs @in and @name")
        if scheme["in"] not in ("header", "query", "cookie"):
            raise ParseError(f"security definition {name} has invalid @in {scheme['in']!r}")
        return scheme
    if scheme["type"] != "oauth2":
        return scheme
    flow_name = scheme.pop("_flow")
    flow: dict[str, Any] = {}
    if "_authorizationUrl" in scheme:
        flow["authorizationUrl"] = scheme.pop("_authorizationUrl")
    if "_tokenUrl" in scheme:
        flow["tokenUrl"] = scheme.pop("_tokenUrl")
    if flow_name in ("implicit", "authorizationCode") and "authorizationUrl" not in flow:
        raise ParseError(f"security definition {name} needs @authorizationUrl")
    if flow_name != "implicit" and "tokenUrl" not in flow:
        raise ParseError(f"security definition {name} needs @tokenUrl")
    flow["scopes"] = scheme.pop("_scopes")
    scheme["flows"] = {flow_name: flow}
    return scheme


def parse_general_info(gofile: GoFile, assets: AssetDirs) -> GeneralInfo:
    """Read the general API info from every comment block of the main file."""
    info = GeneralInfo()
    fields: list[AnnotationField] = []
    for group in gofile.comment_groups:
        group_items = group_fields(group)
        if not _has_router(group_items):
            fields.extend(group_items)

    security_name = ""
    security: dict[str, Any] | None = None

    def close_security() -> None:
        nonlocal security, security_name
        if security is not None:
            info.security_schemes[security_name] = _finish_security(security, security_name)
        security, security_name = None, ""

    for item in fields:
        key, value = item.key, item.value
        try:
            if security is not None and (key in _SECURITY_ATTRIBUTES or key.startswith("@scope.")):
                _apply_security_attribute(security, key, value)
                continue
            close_security()
            if key.startswith("@securitydefinitions."):
                if not value:
                    raise ParseError(f"{item.tag} needs a name")
                security_name = value.split()[0]
                security = _security_scheme(key[len("@securitydefinitions."):], security_name)
            elif key == "@title":
                info.title = value
            elif key == "@version":
                info.version = value
            elif key == "@description":
                info.description = f"{info.description}\n{value}" if info.description else value
            elif key == "@description.markdown":
                info.description = assets.markdown_text("api.md")
            elif key == "@termsofservice":
                info.terms_of_service = value
            elif key.startswith("@contact."):
                info.contact[key[len("@contact."):]] = value
            elif key.startswith("@license."):
                info.license[key[len("@license."):]] = value
            elif key == "@host":
                info.host = value
            elif key == "@basepath":
                info.base_path = value
            elif key == "@schemes":
                schemes = value.split()
                invalid = [s for s in schemes if s not in SCHEMES]
                if invalid:
                    raise ParseError(f"invalid schemes {', '.join(invalid)}")
                info.schemes = schemes
            elif key == "@accept":
                info.accept = parse_mime_types(value)
            elif key == "@produce":
                info.produce = parse_mime_types(value)
            elif key == "@tag.name":
                info.tags.append(TagGroup(value))
            elif key.startswith("@tag."):
                _apply_tag_attribute(info, key, value, assets)
            elif key == "@security":
                info.security.extend(parse_security(value))
            elif key.startswith("@externaldocs."):
                info.external_docs[key[len("@externaldocs."):]] = value
            elif key == "@query.collection.format":
                if to_valid_collection_format(value) != value:
                    raise ParseError(f"invalid collection format {value!r}")
                info.collection_format = value
            elif key.startswith("@x-"):
                info.extensions[item.tag[1:]] = parse_extension_value(item.tag, value)
        except ParseError as exc:
            raise ParseError(exc.message, gofile.path, item.line, "general info") from None
    try:
        close_security()
    except ParseError as exc:
        raise ParseError(exc.message, gofile.path, 0, "general info") from None
    return info


def _apply_security_attribute(scheme: dict[str, Any], key: str, value: str) -> None:
    if key == "@in":
        scheme["in"] = value
    elif key == "@name":
        scheme["name"] = value
    elif key == "@description":
        scheme["description"] = value
    elif key == "@bearerformat":
        scheme["bearerFormat"] = value
    elif key == "@scheme":
        scheme["scheme"] = value
    elif key == "@tokenurl":
        scheme["_tokenUrl"] = value
    elif key == "@authorizationurl":
        scheme["_authorizationUrl"] = value
    elif key.startswith("@scope."):
        if "_scopes" not in scheme:
            raise ParseError(f"{key} only applies to oauth2 definitions")
        scheme["_scopes"][key[len("@scope."):]] = value


def _apply_tag_attribute(info: GeneralInfo, key: str, value: str, assets: AssetDirs) -> None:
    if not info.tags:
        raise ParseError(f"{key} found before @tag.name")
    tag = info.tags[-1]
    if key == "@tag.description":
        tag.description = value
    elif key == "@tag.description.markdown":
        tag.description = assets.markdown_text(f"{tag.name}.md")
    elif key == "@tag.docs.url":
        tag.docs_url = value
    elif key == "@tag.docs.description":
        tag.docs_description = value


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def _has_router(fields: list[AnnotationField]) -> bool:
    return any(f.key in ("@router", "@deprecatedrouter") for f in fields)


def parse_operation(func: FuncDecl, path: str, assets: AssetDirs) -> OperationRecord | None:
    """Build the operation record of one func; None when it has no route."""
    fields = group_fields(func.doc)
    if not _has_router(fields):
        return None
    record = OperationRecord(func.qualified_name, path, func.line)
    pending_headers: list[tuple[list[str], str, str, str]] = []
    wants_code_samples = False
    for item in fields:
        key, value = item.key, item.value
        try:
            if key == "@summary":
                record.summary = value
            elif key == "@description":
                record.description = f"{record.description}\n{value}" if record.description else value
            elif key == "@description.markdown":
                if not value:
                    raise ParseError("@Description.markdown needs a file name")
                record.description = assets.markdown_text(f"{value}.md")
            elif key == "@id":
                if not value:
                    raise ParseError("@ID needs a value")
                record.operation_id = value
            elif key == "@tags":
                record.tags.extend(split_csv(value))
            elif key == "@accept":
                record.accept.extend(parse_mime_types(value))
            elif key == "@produce":
                record.produce.extend(parse_mime_types(value))
            elif key == "@param":
                record.params.append(parse_param(value))
            elif key in ("@success", "@failure", "@response"):
                record.responses.extend(parse_response(value))
            elif key == "@header":
                pending_headers.append(parse_header(value))
            elif key == "@router":
                record.routes.append(parse_router(value))
            elif key == "@deprecatedrouter":
                route = parse_router(value)
                route.deprecated = True
                record.routes.append(route)
            elif key == "@deprecated":
                record.deprecated = True
            elif key == "@security":
                record.security.extend(parse_security(value))
            elif key == "@x-codesamples" and value.strip() == "file":
                wants_code_samples = True
            elif key.startswith("@x-"):
                record.extensions[item.tag[1:]] = parse_extension_value(item.tag, value)
        except ParseError as exc:
            raise ParseError(exc.message, path, item.line, func.qualified_name) from None

    for codes, kind, name, description in pending_headers:
        targets = [r for r in record.responses if codes == ["all"] or r.code in codes]
        for response in targets:
            response.headers[name] = {"type": kind, "description": description}

    if wants_code_samples:
        try:
            record.extensions["x-codeSamples"] = assets.code_samples(record.operation_id, record.summary)
        except ParseError as exc:
            raise ParseError(exc.message, path, func.line, func.qualified_name) from None
    return record


def parse_file_annotations(gofile: GoFile, is_main: bool, assets: AssetDirs) -> FileAnnotations:
    """Collect general info (main file only) and every operation of one file.

    Parse errors are collected per declaration so one bad comment does not
    hide the operations around it.
    """
    result = FileAnnotations(gofile.path)
    if is_main:
        try:
            result.general = parse_general_info(gofile, assets)
        except ParseError as exc:
            result.errors.append(exc)
    for func in gofile.funcs:
        try:
            record = parse_operation(func, gofile.path, assets)
        except ParseError as exc:
            result.errors.append(exc)
            continue
        if record is not None:
            result.operations.append(record)
    return result
