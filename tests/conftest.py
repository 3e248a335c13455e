"""Shared fixtures: Go fixture trees copied to a temp dir and in-memory packages."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import pytest

from swaggen.config import Config
from swaggen.gosource import GoFile, parse_file
from swaggen.packages import PackageIndex
from swaggen.registry import SchemaRegistry
from swaggen.resolver import TypeResolver
from swaggen.scanner import SourceFile

TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture
def petstore(tmp_path: Path) -> Path:
    """A writable copy of the petstore Go module."""
    root = tmp_path / "petstore"
    shutil.copytree(TESTDATA / "petstore", root)
    return root


def make_config(root: Path, **overrides: Any) -> Config:
    """Config pointing at ``root`` with outputs under ``root/docs``."""
    values: dict[str, Any] = {
        "search_dir": str(root),
        "output_dir": str(root / "docs"),
        "overrides_file": str(root / ".swaggo"),
    }
    values.update(overrides)
    return Config(**values)


def make_index(files: dict[str, tuple[str, str]], truncated: set[str] | None = None) -> tuple[PackageIndex, dict[str, GoFile]]:
    """Build a package index from ``{path: (import_path, source)}``."""
    sources = []
    parsed: dict[str, GoFile] = {}
    for path, (import_path, text) in files.items():
        source = SourceFile(Path(path), import_path, Path(path).parent, 0)
        sources.append(source)
        parsed[str(source.path)] = parse_file(text, str(source.path))
    by_path = {path: parsed[str(Path(path))] for path in files}
    return PackageIndex(sources, parsed, truncated), by_path


def make_resolver(files: dict[str, tuple[str, str]], **kwargs: Any) -> tuple[TypeResolver, dict[str, GoFile]]:
    truncated = kwargs.pop("truncated", None)
    index, gofiles = make_index(files, truncated)
    return TypeResolver(index, SchemaRegistry(), **kwargs), gofiles


@pytest.fixture
def config_for():
    return make_config


@pytest.fixture
def resolver_for():
    return make_resolver
