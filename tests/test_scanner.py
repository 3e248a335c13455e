"""Tests for source enumeration and dependency traversal."""

from pathlib import Path

import pytest

from swaggen.errors import ConfigurationError, DependencyWarning
from swaggen.scanner import (
    SourceScanner,
    escape_module_path,
    is_standard_package,
    parse_go_list_output,
    parse_go_mod,
)


def write(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def no_go_list(directory, timeout):
    return None


@pytest.fixture
def app(tmp_path):
    root = tmp_path / "app"
    write(root, "go.mod", "module example.com/app\n\ngo 1.21\n")
    write(root, "main.go", 'package main\n\nimport (\n\t"fmt"\n\t"example.com/lib/a"\n)\n\nfunc main() {}\n')
    write(root, "main_test.go", "package main\n")
    write(root, "README.md", "docs\n")
    write(root, "handlers/h.go", "package handlers\n")
    write(root, "testdata/t.go", "package testdata\n")
    write(root, ".git/g.go", "package git\n")
    write(root, "_old/o.go", "package old\n")
    write(root, "docs/docs.go", "package docs\n")
    write(root, "legacy/l.go", "package legacy\n")
    write(root, "vendor/example.com/lib/a/a.go", 'package a\n\nimport "example.com/lib/b"\n')
    write(root, "vendor/example.com/lib/b/b.go", 'package b\n\nimport "example.com/lib/internal/z"\n')
    write(root, "vendor/example.com/lib/internal/z/z.go", "package z\n")
    return root


def rel_paths(result, root):
    return [source.path.relative_to(root.resolve()).as_posix() for source in result.files]


class TestWalk:
    def test_skip_rules(self, app, config_for):
        result = SourceScanner(config_for(app)).scan()
        assert rel_paths(result, app) == ["main.go", "handlers/h.go", "legacy/l.go"]

    def test_import_paths_from_module(self, app, config_for):
        result = SourceScanner(config_for(app)).scan()
        assert [s.import_path for s in result.files] == [
            "example.com/app",
            "example.com/app/handlers",
            "example.com/app/legacy",
        ]

    def test_exclude(self, app, config_for):
        result = SourceScanner(config_for(app, excludes=f"{app / 'legacy'}")).scan()
        assert "legacy/l.go" not in rel_paths(result, app)

    def test_exclude_glob(self, app, config_for):
        result = SourceScanner(config_for(app, excludes="handlers/*")).scan()
        assert "handlers/h.go" not in rel_paths(result, app)

    def test_parse_vendor(self, app, config_for):
        result = SourceScanner(config_for(app, parse_vendor=True)).scan()
        assert "vendor/example.com/lib/a/a.go" in rel_paths(result, app)
        vendored = next(s for s in result.files if s.path.name == "a.go")
        assert vendored.import_path == "example.com/lib/a"

    def test_missing_search_dir(self, tmp_path, config_for):
        with pytest.raises(ConfigurationError):
            SourceScanner(config_for(tmp_path / "missing")).scan()

    def test_multiple_roots_deduplicated(self, app, config_for):
        config = config_for(app, search_dir=f"{app},{app / 'handlers'}")
        result = SourceScanner(config).scan()
        assert rel_paths(result, app).count("handlers/h.go") == 1


class TestDependencies:
    def test_follows_vendored_imports(self, app, config_for):
        config = config_for(app, parse_dependency=True)
        result = SourceScanner(config, go_list=no_go_list).scan()
        depths = result.package_depths
        assert depths["example.com/lib/a"] == 1
        assert depths["example.com/lib/b"] == 2
        assert "fmt" not in depths

    def test_internal_skipped_by_default(self, app, config_for):
        config = config_for(app, parse_dependency=True)
        result = SourceScanner(config, go_list=no_go_list).scan()
        assert "example.com/lib/internal/z" not in result.package_depths

    def test_internal_opt_in(self, app, config_for):
        config = config_for(app, parse_dependency=True, parse_internal=True)
        result = SourceScanner(config, go_list=no_go_list).scan()
        assert result.package_depths["example.com/lib/internal/z"] == 3

    def test_depth_truncation(self, app, config_for):
        config = config_for(app, parse_dependency=True, parse_depth=1)
        result = SourceScanner(config, go_list=no_go_list).scan()
        assert "example.com/lib/b" not in result.package_depths
        assert result.truncated == {"example.com/lib/b"}
        assert any("depth 1 exceeded" in str(w) for w in result.warnings)
        assert all(isinstance(w, DependencyWarning) for w in result.warnings)

    def test_go_list_used_for_unvendored(self, app, tmp_path, config_for):
        other = tmp_path / "other"
        write(other, "o.go", "package other\n")
        write(app, "handlers/h.go", 'package handlers\n\nimport "github.com/x/other"\n')
        calls = []

        def fake_go_list(directory, timeout):
            calls.append((directory, timeout))
            return {"github.com/x/other": other}

        config = config_for(app, parse_dependency=True, go_list_timeout=5.0)
        result = SourceScanner(config, go_list=fake_go_list).scan()
        assert result.package_depths["github.com/x/other"] == 1
        assert calls == [(app.resolve(), 5.0)]

    def test_go_list_failure_warns(self, app, config_for):
        write(app, "handlers/h.go", 'package handlers\n\nimport "github.com/x/missing"\n')
        config = config_for(app, parse_dependency=True)
        result = SourceScanner(config, go_list=no_go_list).scan()
        assert "github.com/x/missing" not in result.package_depths
        assert any("go list failed" in str(w) for w in result.warnings)

    def test_go_list_disabled(self, app, config_for):
        write(app, "handlers/h.go", 'package handlers\n\nimport "github.com/x/missing"\n')

        def unexpected(directory, timeout):
            raise AssertionError("go list should not run")

        config = config_for(app, parse_dependency=True, parse_go_list=False)
        SourceScanner(config, go_list=unexpected).scan()


class TestHelpers:
    def test_go_mod(self):
        info = parse_go_mod(
            "module example.com/app // main\n\nrequire github.com/a/b v1.2.0\n\n"
            "require (\n\tgithub.com/c/d v0.1.0 // indirect\n)\n"
        )
        assert info.path == "example.com/app"
        assert info.requires == {"github.com/a/b": "v1.2.0", "github.com/c/d": "v0.1.0"}

    def test_go_list_stream(self):
        output = (
            '{"ImportPath": "fmt", "Standard": true, "Dir": "/go/src/fmt"}\n'
            '{"ImportPath": "github.com/a/b", "Dir": "/mod/b"}\n'
        )
        assert parse_go_list_output(output) == {"github.com/a/b": Path("/mod/b")}

    def test_escape_module_path(self):
        assert escape_module_path("github.com/BurntSushi/toml") == "github.com/!burnt!sushi/toml"

    def test_standard_packages(self):
        assert is_standard_package("net/http")
        assert not is_standard_package("github.com/a/b")
