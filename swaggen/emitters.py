"""Render the assembled document and write the requested artifacts.

Every requested kind is rendered in memory before the first file is
written, so a failing renderer leaves the output directory untouched.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import jinja2
import yaml

from .assembler import SpecDocument
from .config import OUTPUT_GO, OUTPUT_JSON, OUTPUT_TYPES, OUTPUT_YAML, TemplateConfig
from .errors import ConfigurationError
from .naming import sanitize_package_name

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_INSTANCE = "swagger"

FILE_NAMES = {
    OUTPUT_JSON: "swagger.json",
    OUTPUT_YAML: "swagger.yaml",
    OUTPUT_GO: "docs.go",
}

# Info keys replaced by template actions in docs.go
_INFO_ACTIONS = (
    ("title", "Title", ""),
    ("description", "Description", "escape "),
    ("version", "Version", ""),
)
_SENTINEL = "@@swaggen:{}@@"


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data: Any) -> bool:
        return True


def render_json(document: SpecDocument) -> str:
    return json.dumps(document.to_dict(), indent=4, ensure_ascii=False)


def render_yaml(document: SpecDocument) -> str:
    return yaml.dump(
        document.to_dict(),
        Dumper=_NoAliasDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def go_string(value: Any) -> str:
    """A Go interpreted string literal."""
    return json.dumps("" if value is None else str(value), ensure_ascii=False)


def escape_backticks(text: str) -> str:
    """Make ``text`` safe inside a Go raw string literal."""
    return text.replace("`", "` + \"`\" + `")


def template_document(document: SpecDocument, template: TemplateConfig) -> str:
    """The JSON document with info values swapped for template actions."""
    payload = document.to_dict()
    info = payload.setdefault("info", {})
    for key, _, _ in _INFO_ACTIONS:
        info[key] = _SENTINEL.format(key)
    text = json.dumps(payload, indent=4, ensure_ascii=False)
    for key, field_name, function in _INFO_ACTIONS:
        action = f"{template.left}{function}.{field_name}{template.right}"
        text = text.replace(json.dumps(_SENTINEL.format(key)), json.dumps(action, ensure_ascii=False))
    return escape_backticks(text)


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["go_string"] = go_string
    return env


def render_go(
    document: SpecDocument,
    package: str,
    template: TemplateConfig | None = None,
    instance_name: str = "",
    generated_time: str = "",
) -> str:
    """Render docs.go, which registers the document with the swag runtime."""
    template = template or TemplateConfig()
    general = document.general
    instance = instance_name or DEFAULT_INSTANCE
    context = {
        "package": package,
        "generated_time": generated_time,
        "doc": template_document(document, template),
        "instance_suffix": "" if instance == DEFAULT_INSTANCE else instance,
        "instance_name": instance,
        "version": general.version,
        "host": general.host,
        "base_path": general.base_path,
        "schemes": list(general.schemes),
        "title": general.title,
        "description": general.description,
        "left_delim": template.left,
        "right_delim": template.right,
    }
    return _environment().get_template("docs.go.j2").render(**context)


class Emitter:
    def __init__(
        self,
        output_dir: str | Path,
        output_types: list[str],
        template: TemplateConfig | None = None,
        package_name: str = "",
        instance_name: str = "",
        generated_time: bool = False,
    ) -> None:
        if not output_types:
            raise ConfigurationError("no output types requested")
        unknown = [t for t in output_types if t not in OUTPUT_TYPES]
        if unknown:
            raise ConfigurationError(f"unknown output types: {', '.join(unknown)}")
        self.output_dir = Path(output_dir)
        self.output_types = list(dict.fromkeys(output_types))
        self.template = template or TemplateConfig()
        self.package_name = package_name or sanitize_package_name(self.output_dir.resolve().name)
        self.instance_name = instance_name
        self.generated_time = generated_time

    def file_name(self, kind: str) -> str:
        name = FILE_NAMES[kind]
        return f"{self.instance_name}_{name}" if self.instance_name else name

    def render(self, document: SpecDocument) -> dict[Path, str]:
        """Every requested artifact, keyed by its target path."""
        document.freeze()
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f %Z") if self.generated_time else ""
        artifacts: dict[Path, str] = {}
        for kind in self.output_types:
            if kind == OUTPUT_JSON:
                text = render_json(document)
            elif kind == OUTPUT_YAML:
                text = render_yaml(document)
            else:
                text = render_go(document, self.package_name, self.template, self.instance_name, stamp)
            artifacts[self.output_dir / self.file_name(kind)] = text
        return artifacts

    def write(self, document: SpecDocument) -> list[Path]:
        artifacts = self.render(document)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        for path, text in artifacts.items():
            path.write_text(text, encoding="utf-8")
            logger.info("create %s at %s", path.name, path)
        return list(artifacts)
