"""Enumerate the Go source files a build reads.

Scanned roots come from the configured search directories. With
dependency parsing enabled the scanner follows imports breadth-first,
locating each imported package in the main module, ``vendor/``, the output
of ``go list`` or the module cache, and stops at the configured depth.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import os
import subprocess
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

from .config import Config
from .errors import ConfigurationError, DependencyWarning, ParseError
from .gosource import parse_imports

logger = logging.getLogger(__name__)

GO_LIST_COMMAND = ("go", "list", "-deps", "-json", "./...")

# Directories never descended into besides hidden and underscore-prefixed ones
_SKIP_DIRS = {"testdata", "node_modules"}


@dataclass
class SourceFile:
    path: Path
    import_path: str
    package_dir: Path
    depth: int = 0


@dataclass
class ModuleInfo:
    root: Path | None = None
    path: str = ""
    requires: dict[str, str] = field(default_factory=dict)


@dataclass
class ScanResult:
    files: list[SourceFile] = field(default_factory=list)
    module: ModuleInfo = field(default_factory=ModuleInfo)
    truncated: set[str] = field(default_factory=set)
    warnings: list[DependencyWarning] = field(default_factory=list)

    @property
    def package_depths(self) -> dict[str, int]:
        depths: dict[str, int] = {}
        for source in self.files:
            depths.setdefault(source.import_path, source.depth)
        return depths


def read_text(path: Path) -> str:
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


def is_go_source(name: str) -> bool:
    return name.endswith(".go") and not name.endswith("_test.go")


def is_standard_package(import_path: str) -> bool:
    """Standard library import paths have no dot in their first element."""
    return "." not in import_path.split("/", 1)[0]


def find_module(start: Path) -> ModuleInfo:
    """Locate the nearest go.mod at or above ``start`` and read it."""
    current = start.resolve()
    for directory in (current, *current.parents):
        gomod = directory / "go.mod"
        if gomod.is_file():
            return parse_go_mod(read_text(gomod), directory)
    return ModuleInfo()


def parse_go_mod(text: str, root: Path | None = None) -> ModuleInfo:
    """Read the module path and required versions from go.mod text."""
    info = ModuleInfo(root=root)
    in_require = False
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if line.startswith("module "):
            info.path = line[len("module "):].strip().strip('"')
        elif line.startswith("require ("):
            in_require = True
        elif in_require and line == ")":
            in_require = False
        elif in_require or line.startswith("require "):
            parts = line.removeprefix("require ").split()
            if len(parts) >= 2:
                info.requires[parts[0].strip('"')] = parts[1]
    return info


def escape_module_path(path: str) -> str:
    """Module cache escaping: upper-case letters become ``!`` + lower case."""
    return "".join(f"!{c.lower()}" if c.isupper() else c for c in path)


def module_cache_dirs() -> list[Path]:
    dirs = []
    if os.environ.get("GOMODCACHE"):
        dirs.append(Path(os.environ["GOMODCACHE"]))
    for gopath in filter(None, os.environ.get("GOPATH", "").split(os.pathsep)):
        dirs.append(Path(gopath) / "pkg" / "mod")
    dirs.append(Path.home() / "go" / "pkg" / "mod")
    return dirs


def run_go_list(directory: Path, timeout: float) -> dict[str, Path] | None:
    """Map import paths to directories with ``go list``; None when it cannot run."""
    try:
        proc = subprocess.run(
            GO_LIST_COMMAND,
            cwd=str(directory),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning("go list timed out after %ss in %s", timeout, directory)
        return None
    except OSError as exc:
        logger.warning("go list unavailable: %s", exc)
        return None
    if proc.returncode != 0:
        logger.warning("go list exited with %d: %s", proc.returncode, proc.stderr.strip()[:500])
        return None
    return parse_go_list_output(proc.stdout)


def parse_go_list_output(output: str) -> dict[str, Path]:
    """Decode the stream of JSON objects printed by ``go list -json``."""
    decoder = json.JSONDecoder()
    packages: dict[str, Path] = {}
    pos = 0
    while True:
        while pos < len(output) and output[pos].isspace():
            pos += 1
        if pos >= len(output):
            return packages
        entry, pos = decoder.raw_decode(output, pos)
        if entry.get("Standard") or not entry.get("Dir"):
            continue
        packages[entry["ImportPath"]] = Path(entry["Dir"])


class DependencyLocator:
    """Find the directory holding an imported package."""

    def __init__(self, module: ModuleInfo, config: Config, start: Path, go_list=run_go_list) -> None:
        self.module = module
        self.config = config
        self.start = start
        self._go_list = go_list
        self._listed: dict[str, Path] | None = None
        self._listing_done = False
        self.warnings: list[DependencyWarning] = []

    def _warn(self, message: str) -> None:
        self.warnings.append(DependencyWarning(message))
        logger.warning(message)

    def _listed_packages(self) -> dict[str, Path]:
        if not self._listing_done:
            self._listing_done = True
            if self.config.parse_go_list:
                cwd = self.module.root or self.start
                self._listed = self._go_list(cwd, self.config.go_list_timeout)
                if self._listed is None:
                    self._warn("package listing via go list failed, falling back to module cache walk")
        return self._listed or {}

    def locate(self, import_path: str) -> Path | None:
        module = self.module
        if module.root and module.path:
            if import_path == module.path:
                return module.root
            if import_path.startswith(module.path + "/"):
                candidate = module.root / import_path[len(module.path) + 1:]
                return candidate if candidate.is_dir() else None
            vendored = module.root / "vendor" / import_path
            if vendored.is_dir():
                return vendored
        listed = self._listed_packages()
        if import_path in listed:
            return listed[import_path]
        return self._from_module_cache(import_path)

    def _from_module_cache(self, import_path: str) -> Path | None:
        best = ""
        for mod_path in self.module.requires:
            if import_path == mod_path or import_path.startswith(mod_path + "/"):
                if len(mod_path) > len(best):
                    best = mod_path
        if not best:
            return None
        version = self.module.requires[best]
        rest = import_path[len(best):].lstrip("/")
        for cache in module_cache_dirs():
            candidate = cache / f"{escape_module_path(best)}@{version}" / rest
            if candidate.is_dir():
                return candidate
        return None


class SourceScanner:
    """Produce the ordered, de-duplicated set of files for one build."""

    def __init__(self, config: Config, go_list=run_go_list) -> None:
        self.config = config
        self.roots = [root.resolve() for root in config.search_dirs]
        self.module = find_module(self.roots[0]) if self.roots else ModuleInfo()
        self.output_dir = Path(config.output_dir).resolve()
        self._excludes = config.exclude_list
        self._go_list = go_list

    # -- filtering ---------------------------------------------------------

    def _excluded(self, path: Path, root: Path) -> bool:
        try:
            rel = path.relative_to(root).as_posix()
        except ValueError:
            rel = path.as_posix()
        for pattern in self._excludes:
            cleaned = pattern.rstrip("/")
            for base in (Path.cwd(), root):
                candidate = (base / cleaned).resolve()
                if path == candidate or candidate in path.parents:
                    return True
            if fnmatch.fnmatch(rel, cleaned) or fnmatch.fnmatch(path.name, cleaned):
                return True
        return False

    def _skip_dir(self, path: Path, root: Path) -> bool:
        name = path.name
        if name.startswith(".") or name.startswith("_") or name in _SKIP_DIRS:
            return True
        if name == "vendor" and not self.config.parse_vendor:
            return True
        if path == self.output_dir:
            return True
        return self._excluded(path, root)

    # -- import paths ------------------------------------------------------

    def import_path_for(self, directory: Path, root: Path) -> str:
        module = self.module
        if module.root and module.path:
            try:
                rel = directory.relative_to(module.root).as_posix()
            except ValueError:
                rel = None
            if rel is not None:
                if rel.startswith("vendor/"):
                    return rel[len("vendor/"):]
                return module.path if rel == "." else f"{module.path}/{rel}"
        rel = directory.relative_to(root).as_posix()
        return root.name if rel == "." else rel

    # -- walking -----------------------------------------------------------

    def walk_root(self, root: Path) -> list[SourceFile]:
        files: list[SourceFile] = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            dirnames[:] = sorted(d for d in dirnames if not self._skip_dir(current / d, root))
            import_path = None
            for name in sorted(filenames):
                path = current / name
                if not is_go_source(name) or self._excluded(path, root):
                    continue
                if import_path is None:
                    import_path = self.import_path_for(current, root)
                files.append(SourceFile(path, import_path, current, 0))
        return files

    def package_files(self, directory: Path, import_path: str, depth: int) -> list[SourceFile]:
        return [
            SourceFile(directory / name, import_path, directory, depth)
            for name in sorted(os.listdir(directory))
            if is_go_source(name) and (directory / name).is_file()
        ]

    def scan(self) -> ScanResult:
        result = ScanResult(module=self.module)
        seen: set[Path] = set()

        def add(source: SourceFile) -> bool:
            key = source.path.resolve()
            if key in seen:
                return False
            seen.add(key)
            result.files.append(source)
            return True

        for root in self.roots:
            if not root.is_dir():
                raise ConfigurationError(f"search directory {root} does not exist")
            for source in self.walk_root(root):
                add(source)

        if self.config.parse_dependency:
            self._follow_dependencies(result, add)
        logger.debug("scanned %d files", len(result.files))
        return result

    def _follow_dependencies(self, result: ScanResult, add) -> None:
        start = self.roots[0]
        locator = DependencyLocator(self.module, self.config, start, self._go_list)
        known = {source.import_path for source in result.files}
        queue: deque[tuple[SourceFile, int]] = deque((source, 0) for source in list(result.files))
        while queue:
            source, depth = queue.popleft()
            try:
                imports = parse_imports(read_text(source.path), str(source.path))
            except ParseError as exc:
                logger.debug("skipping imports of %s: %s", source.path, exc)
                continue
            for spec in imports:
                import_path = spec.path
                if import_path in known or import_path in result.truncated:
                    continue
                if is_standard_package(import_path) and not import_path.startswith(self.module.path or "\0"):
                    continue
                if not self.config.parse_internal and "internal" in import_path.split("/"):
                    logger.debug("skipping internal package %s", import_path)
                    known.add(import_path)
                    continue
                if depth + 1 > self.config.parse_depth:
                    result.truncated.add(import_path)
                    continue
                directory = locator.locate(import_path)
                known.add(import_path)
                if directory is None:
                    logger.debug("cannot locate package %s", import_path)
                    continue
                for dep in self.package_files(directory, import_path, depth + 1):
                    if add(dep):
                        queue.append((dep, depth + 1))
        if result.truncated:
            message = (
                f"dependency depth {self.config.parse_depth} exceeded, "
                f"{len(result.truncated)} packages not parsed: {', '.join(sorted(result.truncated)[:5])}"
            )
            result.warnings.append(DependencyWarning(message))
            logger.warning(message)
        result.warnings.extend(locator.warnings)
