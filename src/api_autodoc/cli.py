"""CLI entry point for api-autodoc."""

import json
import logging
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from api_autodoc.config import GeneratorOptions, load_options
from api_autodoc.document.assembler import generate_document
from api_autodoc.schema.registry import build_registry
from api_autodoc.sources import FileSystemSourceLoader


class _NoAliasDumper(yaml.SafeDumper):
    """Shared fragments (security, responses) are written out in full."""

    def ignore_aliases(self, data):
        return True


def _yaml(data: dict) -> str:
    return yaml.dump(data, Dumper=_NoAliasDumper, sort_keys=False, allow_unicode=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _load_options(config: Path | None, **overrides) -> GeneratorOptions:
    try:
        return load_options(config, **overrides)
    except (yaml.YAMLError, ValidationError) as e:
        raise click.ClickException(f"Invalid config {config}: {e}") from e


def _load_routes(routes_path: Path) -> list:
    """Read a route dump: a list of entries, or ``{root: [...]}``."""
    try:
        data = yaml.safe_load(routes_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise click.ClickException(f"Invalid routes file {routes_path}: {e}") from e
    if isinstance(data, dict):
        data = data.get("root")
    if not isinstance(data, list):
        raise click.ClickException(f"Routes file {routes_path} must contain a list of routes.")
    return data


def _dump(document: dict, output: Path, fmt: str) -> str:
    if fmt == "auto":
        fmt = "json" if output.suffix.lower() == ".json" else "yaml"
    if fmt == "json":
        return json.dumps(document, indent=2, ensure_ascii=False)
    return _yaml(document)


@click.group()
def main():
    """API Autodoc: generate OpenAPI documents from routes and annotated sources."""
    pass


@main.command()
@click.argument("routes_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--root", required=True, type=click.Path(exists=True, file_okay=False, path_type=Path), help="Application root directory.")
@click.option("-c", "--config", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML/JSON options file.")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the OpenAPI document.")
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "yaml", "json"]), help="Output format.")
@click.option("--title", default=None, help="Document title (overrides config).")
@click.option("--api-version", default=None, help="Document version (overrides config).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def generate(routes_path: Path, root: Path, config: Path | None, output: Path, fmt: str, title: str | None, api_version: str | None, verbose: bool):
    """Generate an OpenAPI document from a route dump and the application sources."""
    _configure_logging(verbose)
    options = _load_options(config, title=title, version=api_version)
    routes = _load_routes(routes_path)
    click.echo(f"Found {len(routes)} routes in {routes_path}.")

    loader = FileSystemSourceLoader(root)
    try:
        document = generate_document(routes, loader, options)
    except OSError as e:
        raise click.ClickException(f"Cannot read source file: {e}") from e

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(_dump(document, output, fmt), encoding="utf-8")
    click.echo(f"Documented {len(document['paths'])} paths and {len(document['components']['schemas'])} schemas.")
    click.echo(f"OpenAPI document saved to {output}")


@main.command()
@click.option("--root", required=True, type=click.Path(exists=True, file_okay=False, path_type=Path), help="Application root directory.")
@click.option("-c", "--config", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML/JSON options file.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file (defaults to stdout).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def schemas(root: Path, config: Path | None, output: Path | None, verbose: bool):
    """Print the schema catalog discovered in the models and interfaces."""
    _configure_logging(verbose)
    options = _load_options(config)
    loader = FileSystemSourceLoader(root)
    registry = build_registry(
        loader.list_sources("interfaces"),
        loader.list_sources("models"),
        snake=options.snake_case,
    )
    text = _yaml({"schemas": registry.to_openapi()})
    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Schemas saved to {output}")
