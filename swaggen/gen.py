"""Build orchestration: scan, parse, resolve, assemble, emit.

Each call to ``Builder.build`` owns a fresh registry and package index, so
builds running side by side in one process never share state.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .annotations import (
    AssetDirs,
    FileAnnotations,
    GeneralInfo,
    OperationRecord,
    match_extension,
    match_tags,
    parse_file_annotations,
)
from .assembler import Assembler, SpecDocument
from .config import Config
from .emitters import Emitter
from .errors import DependencyWarning, ParseError
from .gosource import GoFile, parse_file
from .overrides import load_overrides
from .packages import PackageIndex
from .registry import SchemaRegistry
from .resolver import TypeResolver
from .scanner import SourceFile, SourceScanner, read_text, run_go_list

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    document: SpecDocument
    artifacts: list[Path] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    warnings: list[DependencyWarning] = field(default_factory=list)


@dataclass
class _Parsed:
    source: SourceFile
    gofile: GoFile | None = None
    notes: FileAnnotations | None = None
    error: ParseError | None = None


class Builder:
    def __init__(self, go_list=run_go_list, max_workers: int | None = None) -> None:
        self._go_list = go_list
        self._max_workers = max_workers or os.cpu_count() or 1

    def build(self, config: Config, write: bool = True) -> BuildResult:
        """Run the whole pipeline; nothing is written unless every step succeeds."""
        config.validate()
        logger.info("Generate swagger docs....")
        overrides = load_overrides(config.overrides_file)

        scan = SourceScanner(config, go_list=self._go_list).scan()
        main_path = config.main_file_path.resolve()
        logger.info("Generate general API Info, search dir:%s", config.search_dir)
        assets = AssetDirs(config.markdown_files_dir, config.code_example_files_dir)
        parsed = self.parse(scan.files, main_path, assets)

        errors: list[ParseError] = []
        gofiles: dict[str, GoFile] = {}
        general: GeneralInfo | None = None
        operations: list[tuple[OperationRecord, GoFile]] = []
        for item in parsed:
            if item.error is not None:
                errors.append(item.error)
                continue
            gofiles[item.gofile.path] = item.gofile
            if item.notes is None:
                continue
            errors.extend(item.notes.errors)
            if item.notes.general is not None:
                general = item.notes.general
            operations.extend((record, item.gofile) for record in item.notes.operations)

        for error in errors:
            logger.warning("parse error: %s", error)
        if errors and config.strict:
            raise errors[0]

        kept = [
            (record, gofile)
            for record, gofile in operations
            if match_tags(config.tags, record.tags) and match_extension(config.parse_extension, record.extensions)
        ]
        if len(kept) != len(operations):
            logger.info("filters dropped %d of %d operations", len(operations) - len(kept), len(operations))

        index = PackageIndex(scan.files, gofiles, scan.truncated)
        resolver = TypeResolver(
            index,
            SchemaRegistry(),
            overrides,
            naming_strategy=config.prop_naming_strategy,
            required_by_default=config.required_by_default,
            parse_depth=config.parse_depth,
        )
        assembler = Assembler(resolver, openapi31=config.openapi31, collection_format=config.collection_format)
        document = assembler.assemble(general or GeneralInfo(), kept)

        result = BuildResult(document, errors=errors, warnings=scan.warnings + resolver.warnings)
        if write:
            emitter = Emitter(
                config.output_dir,
                [t.strip() for t in config.output_types if t.strip()],
                template=config.template,
                package_name=config.package_name,
                instance_name=config.instance_name,
                generated_time=config.generated_time,
            )
            result.artifacts = emitter.write(document)
        else:
            document.freeze()
        return result

    def parse(self, sources: list[SourceFile], main_path: Path, assets: AssetDirs) -> list[_Parsed]:
        """Parse every file on a worker pool, keeping scan order."""
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = [
                pool.submit(self._parse_one, source, source.path.resolve() == main_path, assets)
                for source in sources
            ]
            return [future.result() for future in futures]

    @staticmethod
    def _parse_one(source: SourceFile, is_main: bool, assets: AssetDirs) -> _Parsed:
        item = _Parsed(source)
        try:
            item.gofile = parse_file(read_text(source.path), str(source.path))
        except ParseError as exc:
            item.error = exc
            return item
        if source.depth == 0:
            item.notes = parse_file_annotations(item.gofile, is_main, assets)
        return item
