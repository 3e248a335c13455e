"""Index of parsed Go packages.

Groups parsed files by import path and answers the lookups the resolver
needs: which package a file belongs to, what an import alias points at,
and which declaration a name refers to.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from .gosource import ConstSpec, GoFile, Ident, TypeDecl
from .scanner import SourceFile, is_standard_package


@dataclass(eq=False)
class Package:
    import_path: str
    name: str
    directory: Path
    depth: int = 0
    files: list[GoFile] = field(default_factory=list)
    types: dict[str, TypeDecl] = field(default_factory=dict)
    consts_by_type: dict[str, list[ConstSpec]] = field(default_factory=dict)

    def add_file(self, gofile: GoFile) -> None:
        self.files.append(gofile)
        for decl in gofile.types:
            self.types.setdefault(decl.name, decl)
        for const in gofile.consts:
            if isinstance(const.type, Ident) and const.type.package is None:
                self.consts_by_type.setdefault(const.type.name, []).append(const)


def guess_package_name(import_path: str) -> str:
    """Package name of an import path that was not parsed."""
    parts = import_path.rstrip("/").split("/")
    name = parts[-1]
    if re.fullmatch(r"v\d+", name) and len(parts) > 1:
        name = parts[-2]
    if name.startswith("go-"):
        name = name[3:]
    name = name.split(".")[0]
    return re.sub(r"[^A-Za-z0-9_]", "_", name)


class PackageIndex:
    def __init__(self, sources: list[SourceFile], parsed: dict[str, GoFile], truncated: set[str] | None = None) -> None:
        self.packages: dict[str, Package] = {}
        self._by_file: dict[str, Package] = {}
        self._imports: dict[str, tuple[dict[str, str], list[str]]] = {}
        self.truncated = set(truncated or ())
        for source in sources:
            gofile = parsed.get(str(source.path))
            if gofile is None:
                continue
            package = self.packages.get(source.import_path)
            if package is None:
                package = Package(source.import_path, gofile.package, source.package_dir, source.depth)
                self.packages[source.import_path] = package
            package.add_file(gofile)
            self._by_file[gofile.path] = package

    def package_for(self, gofile: GoFile) -> Package:
        return self._by_file[gofile.path]

    def package_name(self, import_path: str) -> str:
        package = self.packages.get(import_path)
        return package.name if package else guess_package_name(import_path)

    def imports_of(self, gofile: GoFile) -> tuple[dict[str, str], list[str]]:
        """Qualifier -> import path for a file, plus its dot imports."""
        cached = self._imports.get(gofile.path)
        if cached is not None:
            return cached
        aliases: dict[str, str] = {}
        dots: list[str] = []
        for spec in gofile.imports:
            if spec.alias == "_":
                continue
            if spec.alias == ".":
                dots.append(spec.path)
                continue
            aliases[spec.alias or self.package_name(spec.path)] = spec.path
        self._imports[gofile.path] = (aliases, dots)
        return aliases, dots

    def packages_named(self, name: str) -> list[Package]:
        return [p for p in self.packages.values() if p.name == name]

    def lookup(self, import_path: str, name: str) -> TypeDecl | None:
        package = self.packages.get(import_path)
        return package.types.get(name) if package else None

    def is_truncated(self, import_path: str) -> bool:
        return import_path in self.truncated

    def is_standard(self, import_path: str) -> bool:
        return is_standard_package(import_path) and import_path not in self.packages
