"""Tests for artifact rendering and writing."""

import json

import pytest
import yaml

from swaggen.annotations import GeneralInfo
from swaggen.assembler import SpecDocument
from swaggen.config import TemplateConfig
from swaggen.emitters import Emitter, escape_backticks, render_go, render_json, render_yaml, template_document
from swaggen.errors import ConfigurationError
from swaggen.registry import SchemaRegistry


def make_document(summary="List pets"):
    general = GeneralInfo(
        title="Café API",
        version="1.0",
        description="Pets and owners",
        host="localhost:8080",
        base_path="/api",
        schemes=["http", "https"],
    )
    info = {"title": general.title, "description": general.description, "version": general.version}
    shared = {"$ref": "#/components/schemas/model.Pet"}
    payload = {
        "openapi": "3.0.3",
        "info": info,
        "paths": {
            "/pets": {
                "get": {
                    "summary": summary,
                    "responses": {"200": {"description": "OK", "content": {"application/json": {"schema": shared}}}},
                },
                "post": {
                    "requestBody": {"content": {"application/json": {"schema": shared}}},
                    "responses": {"201": {"description": "Created"}},
                },
            }
        },
        "components": {"schemas": {"model.Pet": {"type": "object"}}},
    }
    return SpecDocument(info=info, tags=[], operations={}, registry=SchemaRegistry(), general=general, payload=payload)


class TestJsonYaml:
    def test_json(self):
        document = make_document()
        text = render_json(document)
        assert json.loads(text) == document.to_dict()
        assert text.startswith('{\n    "openapi": "3.0.3"')
        assert not text.endswith("\n")
        assert "Café" in text

    def test_yaml_keeps_order_without_anchors(self):
        document = make_document()
        text = render_yaml(document)
        assert yaml.safe_load(text) == document.to_dict()
        assert text.startswith("openapi: 3.0.3\ninfo:")
        assert "&id" not in text and "*id" not in text
        assert "Café" in text

    def test_frozen_document_renders(self):
        document = make_document()
        document.freeze()
        assert json.loads(render_json(document))["info"]["title"] == "Café API"


class TestGoTemplate:
    def test_info_actions(self):
        text = template_document(make_document(), TemplateConfig())
        assert '"title": "{{.Title}}"' in text
        assert '"description": "{{escape .Description}}"' in text
        assert '"version": "{{.Version}}"' in text

    def test_custom_delimiters(self):
        text = template_document(make_document(), TemplateConfig("[[", "]]"))
        assert '"title": "[[.Title]]"' in text
        assert "{{" not in text

    def test_backticks_escaped(self):
        text = template_document(make_document(summary="use `id`"), TemplateConfig())
        assert 'use ` + "`" + `id` + "`" + `' in text

    def test_escape_backticks(self):
        assert escape_backticks("a`b") == 'a` + "`" + `b'

    def test_docs_go(self):
        text = render_go(make_document(), "docs")
        assert text.startswith("// Package docs Code generated by swaggen. DO NOT EDIT\npackage docs\n")
        assert 'import "github.com/nguyennm96/swaggo-v3"' in text
        assert "var SwaggerInfo = &swaggo.Spec{" in text
        assert "swag." not in text
        assert "const docTemplate = `{" in text
        assert 'Version:          "1.0",' in text
        assert 'Host:             "localhost:8080",' in text
        assert 'Schemes:          []string{"http", "https"},' in text
        assert 'Title:            "Café API",' in text
        assert 'InfoInstanceName: "swagger",' in text
        assert 'LeftDelim:        "{{",' in text
        assert "swaggo.Register(SwaggerInfo.InstanceName(), SwaggerInfo)" in text

    def test_instance_name(self):
        text = render_go(make_document(), "docs", instance_name="v2")
        assert "const docTemplatev2 = `" in text
        assert 'InfoInstanceName: "v2",' in text
        assert "SwaggerTemplate:  docTemplatev2," in text

    def test_generated_time(self):
        text = render_go(make_document(), "docs", generated_time="2024-01-01 00:00:00 UTC")
        assert text.startswith("// Package docs Code generated by swaggen at 2024-01-01 00:00:00 UTC. DO NOT EDIT")


class TestEmitter:
    def test_file_names(self, tmp_path):
        emitter = Emitter(tmp_path, ["go", "json", "yaml"])
        assert [emitter.file_name(k) for k in ("go", "json", "yaml")] == ["docs.go", "swagger.json", "swagger.yaml"]
        prefixed = Emitter(tmp_path, ["json"], instance_name="v2")
        assert prefixed.file_name("json") == "v2_swagger.json"

    def test_unknown_type(self, tmp_path):
        with pytest.raises(ConfigurationError, match="unknown output types"):
            Emitter(tmp_path, ["json", "toml"])

    def test_no_types(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Emitter(tmp_path, [])

    def test_package_name_from_directory(self, tmp_path):
        assert Emitter(tmp_path / "api-docs", ["go"]).package_name == "api_docs"
        assert Emitter(tmp_path / "api-docs", ["go"], package_name="swagger").package_name == "swagger"

    def test_render_freezes(self, tmp_path):
        document = make_document()
        Emitter(tmp_path, ["json"]).render(document)
        assert document.frozen

    def test_only_go_depends_on_delimiters(self, tmp_path):
        default = Emitter(tmp_path, ["go", "json", "yaml"]).render(make_document())
        custom = Emitter(tmp_path, ["go", "json", "yaml"], template=TemplateConfig("[[", "]]")).render(make_document())
        assert default[tmp_path / "swagger.json"] == custom[tmp_path / "swagger.json"]
        assert default[tmp_path / "swagger.yaml"] == custom[tmp_path / "swagger.yaml"]
        assert default[tmp_path / "docs.go"] != custom[tmp_path / "docs.go"]

    def test_write(self, tmp_path):
        out = tmp_path / "docs"
        written = Emitter(out, ["json", "yaml"]).write(make_document())
        assert written == [out / "swagger.json", out / "swagger.yaml"]
        assert json.loads((out / "swagger.json").read_text(encoding="utf-8"))["openapi"] == "3.0.3"
        assert not (out / "docs.go").exists()

    def test_generated_time_flag(self, tmp_path):
        artifacts = Emitter(tmp_path, ["go"], generated_time=True).render(make_document())
        assert "Code generated by swaggen at " in artifacts[tmp_path / "docs.go"]
