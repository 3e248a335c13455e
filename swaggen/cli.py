"""
Command line interface.

Usage:
    swaggen init
    swaggen init -g cmd/api/main.go -d ./,../shared -o ./docs --ot json,yaml
    swaggen init --v3.1 --td "[[,]]" -t "admin,!internal"
"""

from __future__ import annotations

import logging
import sys

import click

from . import __version__
from .config import (
    COLLECTION_FORMATS,
    DEFAULT_GO_LIST_TIMEOUT,
    DEFAULT_OVERRIDES_FILE,
    DEFAULT_PARSE_DEPTH,
    Config,
    parse_template_delims,
    split_list,
)
from .errors import SwaggenError
from .gen import Builder
from .naming import STRATEGIES

logger = logging.getLogger(__name__)


def setup_logging(quiet: bool) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    root = logging.getLogger("swaggen")
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING if quiet else logging.INFO)
    root.propagate = False


@click.group()
@click.version_option(version=__version__)
def cli():
    """Generate OpenAPI documents from Go annotations."""


@cli.command()
@click.option("--generalInfo", "-g", "general_info", default="main.go", show_default=True,
              help="Go file path in which the general API info is written.")
@click.option("--dir", "-d", "search_dir", default="./", show_default=True,
              help="Directories to parse, comma separated; the general info file must be in the first one.")
@click.option("--exclude", "excludes", default="", help="Exclude directories and files when searching, comma separated.")
@click.option("--propertyStrategy", "-p", "strategy", type=click.Choice(STRATEGIES), default=STRATEGIES[0],
              show_default=True, help="Property naming strategy.")
@click.option("--output", "-o", "output_dir", default="./docs", show_default=True,
              help="Output directory for docs.go, swagger.json and swagger.yaml.")
@click.option("--outputTypes", "--ot", "output_types", default="go,json,yaml", show_default=True,
              help="Output types of generated files, comma separated.")
@click.option("--parseVendor", "parse_vendor", is_flag=True, help="Parse go files in the vendor folder.")
@click.option("--parseDependency", "--pd", "parse_dependency", is_flag=True,
              help="Parse go files inside dependency folders.")
@click.option("--parseInternal", "parse_internal", is_flag=True, help="Parse go files in internal packages.")
@click.option("--markdownFiles", "--md", "markdown_dir", default="",
              help="Parse folder containing markdown files to use as description.")
@click.option("--codeExampleFiles", "--cef", "code_example_dir", default="",
              help="Parse folder containing code example files to use for the x-codeSamples extension.")
@click.option("--generatedTime", "generated_time", is_flag=True, help="Generate timestamp at the top of docs.go.")
@click.option("--requiredByDefault", "required_by_default", is_flag=True,
              help="Set validation required for all fields by default.")
@click.option("--parseDepth", "parse_depth", type=int, default=DEFAULT_PARSE_DEPTH, show_default=True,
              help="Dependency parse depth.")
@click.option("--instanceName", "instance_name", default="", help="Set the instance name of the swagger document.")
@click.option("--overridesFile", "overrides_file", default=DEFAULT_OVERRIDES_FILE, show_default=True,
              help="File to read global type overrides from.")
@click.option("--parseGoList/--no-parseGoList", "parse_go_list", default=True, show_default=True,
              help="Parse dependencies via 'go list'.")
@click.option("--goListTimeout", "go_list_timeout", type=float, default=DEFAULT_GO_LIST_TIMEOUT, show_default=True,
              help="Seconds to wait for 'go list' before falling back.")
@click.option("--tags", "-t", "tags", default="",
              help="Only include operations with these tags, comma separated; prefix with ! to exclude.")
@click.option("--parseExtension", "parse_extension", default="",
              help="Only include operations carrying this x- extension.")
@click.option("--templateDelims", "--td", "template_delims", default="",
              help="Custom template delimiters for docs.go, comma separated, e.g. \"[[,]]\".")
@click.option("--packageName", "package_name", default="",
              help="Package name of docs.go; defaults to the output directory name.")
@click.option("--collectionFormat", "--cf", "collection_format", type=click.Choice(COLLECTION_FORMATS),
              default="csv", show_default=True, help="Default collection format of array query parameters.")
@click.option("--v3.1", "openapi31", is_flag=True, help="Generate an OpenAPI 3.1 document.")
@click.option("--strict", is_flag=True, help="Treat annotation parse errors as fatal.")
@click.option("--quiet", "-q", is_flag=True, help="Make the logger quiet.")
def init(
    general_info: str,
    search_dir: str,
    excludes: str,
    strategy: str,
    output_dir: str,
    output_types: str,
    parse_vendor: bool,
    parse_dependency: bool,
    parse_internal: bool,
    markdown_dir: str,
    code_example_dir: str,
    generated_time: bool,
    required_by_default: bool,
    parse_depth: int,
    instance_name: str,
    overrides_file: str,
    parse_go_list: bool,
    go_list_timeout: float,
    tags: str,
    parse_extension: str,
    template_delims: str,
    package_name: str,
    collection_format: str,
    openapi31: bool,
    strict: bool,
    quiet: bool,
):
    """Create docs.go, swagger.json and swagger.yaml."""
    setup_logging(quiet)
    try:
        delims = parse_template_delims(template_delims)
        config = Config(
            search_dir=search_dir,
            excludes=excludes,
            main_api_file=general_info,
            prop_naming_strategy=strategy,
            output_dir=output_dir,
            output_types=split_list(output_types),
            parse_vendor=parse_vendor,
            parse_dependency=parse_dependency,
            parse_internal=parse_internal,
            markdown_files_dir=markdown_dir,
            code_example_files_dir=code_example_dir,
            generated_time=generated_time,
            required_by_default=required_by_default,
            parse_depth=parse_depth,
            instance_name=instance_name,
            overrides_file=overrides_file,
            parse_go_list=parse_go_list,
            go_list_timeout=go_list_timeout,
            tags=tags,
            parse_extension=parse_extension,
            left_template_delim=delims.left,
            right_template_delim=delims.right,
            package_name=package_name,
            openapi31=openapi31,
            collection_format=collection_format,
            strict=strict,
        )
        result = Builder().build(config)
    except SwaggenError as exc:
        raise click.ClickException(str(exc)) from exc
    for path in result.artifacts:
        logger.debug("wrote %s", path)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
