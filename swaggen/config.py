"""Build configuration.

Mirrors the flags of ``swaggen init``. ``Config.validate`` performs every
pre-flight check so a build never touches the file system with a broken
configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError
from .naming import CAMEL_CASE, STRATEGIES, is_valid_strategy

DEFAULT_OVERRIDES_FILE = ".swaggo"
DEFAULT_PARSE_DEPTH = 100
DEFAULT_GO_LIST_TIMEOUT = 30.0

OUTPUT_GO = "go"
OUTPUT_JSON = "json"
OUTPUT_YAML = "yaml"
OUTPUT_TYPES = (OUTPUT_GO, OUTPUT_JSON, OUTPUT_YAML)

COLLECTION_FORMATS = ("csv", "multi", "pipes", "tsv", "ssv")
DEFAULT_COLLECTION_FORMAT = "csv"


def to_valid_collection_format(value: str) -> str:
    """Return the format when it is supported, an empty string otherwise."""
    value = value.strip()
    return value if value in COLLECTION_FORMATS else ""


def split_list(value: str | None) -> list[str]:
    """Split a comma separated flag value, dropping empty entries."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True)
class TemplateConfig:
    """Delimiters written around template actions in docs.go."""

    left: str = "{{"
    right: str = "}}"

    def __post_init__(self) -> None:
        if bool(self.left) != bool(self.right):
            raise ConfigurationError("both template delimiters must be set together")
        if self.left == self.right:
            raise ConfigurationError("template delimiters must be different")


def parse_template_delims(value: str | None) -> TemplateConfig:
    """Parse a ``left,right`` delimiter flag."""
    if value is None or value == "":
        return TemplateConfig()
    delims = value.split(",")
    if len(delims) != 2:
        raise ConfigurationError("exactly two template delimiters must be provided, comma separated")
    if delims[0] == delims[1]:
        raise ConfigurationError("template delimiters must be different")
    left, right = delims[0].strip(), delims[1].strip()
    if not left or not right:
        raise ConfigurationError("both template delimiters must be set together")
    return TemplateConfig(left, right)


@dataclass
class Config:
    """Settings for one build.

    Attributes:
        search_dir: Comma separated roots; the first one holds main_api_file
        excludes: Comma separated paths or glob patterns to skip
        main_api_file: File holding the general API info, relative to the first root
        output_types: Subset of go, json, yaml
        parse_depth: Maximum number of package hops followed from the scanned tree
        tags: Tag filter, entries prefixed with ``!`` exclude
        openapi31: Render OpenAPI 3.1 instead of 3.0
        strict: Treat annotation parse errors as fatal
    """

    search_dir: str = "./"
    excludes: str = ""
    main_api_file: str = "main.go"
    prop_naming_strategy: str = CAMEL_CASE
    output_dir: str = "./docs"
    output_types: list[str] = field(default_factory=lambda: list(OUTPUT_TYPES))
    parse_vendor: bool = False
    parse_dependency: bool = False
    parse_internal: bool = False
    markdown_files_dir: str = ""
    code_example_files_dir: str = ""
    generated_time: bool = False
    required_by_default: bool = False
    parse_depth: int = DEFAULT_PARSE_DEPTH
    instance_name: str = ""
    overrides_file: str = DEFAULT_OVERRIDES_FILE
    parse_go_list: bool = True
    go_list_timeout: float = DEFAULT_GO_LIST_TIMEOUT
    tags: str = ""
    parse_extension: str = ""
    left_template_delim: str = "{{"
    right_template_delim: str = "}}"
    package_name: str = ""
    openapi31: bool = False
    collection_format: str = "csv"
    strict: bool = False

    @property
    def search_dirs(self) -> list[Path]:
        return [Path(d) for d in split_list(self.search_dir)]

    @property
    def exclude_list(self) -> list[str]:
        return split_list(self.excludes)

    @property
    def template(self) -> TemplateConfig:
        return TemplateConfig(self.left_template_delim, self.right_template_delim)

    @property
    def main_file_path(self) -> Path:
        dirs = self.search_dirs
        root = dirs[0] if dirs else Path(".")
        return root / self.main_api_file

    def validate(self) -> None:
        """Raise ConfigurationError on the first invalid setting."""
        if not is_valid_strategy(self.prop_naming_strategy):
            raise ConfigurationError(
                f"not supported {self.prop_naming_strategy} propertyStrategy, "
                f"expected one of {', '.join(STRATEGIES)}"
            )
        if not to_valid_collection_format(self.collection_format):
            raise ConfigurationError(f"not supported {self.collection_format} collectionFormat")
        TemplateConfig(self.left_template_delim, self.right_template_delim)
        types = [t.strip() for t in self.output_types if t.strip()]
        if not types:
            raise ConfigurationError("no output types specified")
        unknown = [t for t in types if t not in OUTPUT_TYPES]
        if unknown:
            raise ConfigurationError(f"unknown output types: {', '.join(unknown)}")
        if not self.search_dirs:
            raise ConfigurationError("no search directories specified")
        if self.parse_depth < 0:
            raise ConfigurationError("parse depth must not be negative")
        if not self.main_file_path.is_file():
            raise ConfigurationError(f"cannot find general info file {self.main_file_path}")
