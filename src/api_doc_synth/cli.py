"""CLI entry point for api-doc-synth."""

from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from api_doc_synth.config import GeneratorOptions, load_options
from api_doc_synth.generator.context import GenerationContext
from api_doc_synth.generator.openapi import OpenApiGenerator
from api_doc_synth.generator.registry import build_registry
from api_doc_synth.generator.writer import ENV_VAR, load_document, to_json, to_yaml, write_document
from api_doc_synth.parser.base import Diagnostic, RouteRecord
from api_doc_synth.parser.detect import load_route_table

LEVEL_COLORS = {"error": "red", "warning": "yellow", "debug": "bright_black"}


def _options(config_path: Path, **overrides) -> GeneratorOptions:
    try:
        return load_options(config_path, **overrides)
    except (ValueError, ValidationError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid config {config_path}: {e}")


def _routes(routes_path: Path) -> list[RouteRecord]:
    try:
        return load_route_table(routes_path)
    except (ValueError, ValidationError) as e:
        raise click.ClickException(f"Invalid route table {routes_path}: {e}")


def _print_diagnostics(diagnostics: list[Diagnostic], debug: bool) -> None:
    for diagnostic in diagnostics:
        if diagnostic.level == "debug" and not debug:
            continue
        click.secho(diagnostic.message, fg=LEVEL_COLORS.get(diagnostic.level), err=True)


@click.group()
def main():
    """api-doc-synth: generate OpenAPI documents from application sources."""
    pass


@main.command()
@click.argument("routes_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", "config_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Generator options (YAML or JSON).")
@click.option("-o", "--output", default=None, type=click.Path(file_okay=False, path_type=Path), help="Output directory (default: project root).")
@click.option("--format", "fmt", default=None, type=click.Choice(["both", "json", "yaml"]), help="Which files to write.")
@click.option("--debug", is_flag=True, help="Print resolution traces.")
def generate(routes_path: Path, config_path: Path, output: Path | None, fmt: str | None, debug: bool):
    """Generate openapi.yml / openapi.json from a route table dump."""
    options = _options(config_path, output_file_extensions=fmt, debug=debug or None)
    routes = _routes(routes_path)
    click.echo(f"Found {len(routes)} routes in {routes_path}.")

    result = OpenApiGenerator(options).generate(routes)
    _print_diagnostics(result.diagnostics, options.debug)
    if result.routes_processed == 0:
        raise click.ClickException("No routes were processed.")

    written = write_document(result.document, output or options.root, options.output_file_extensions)
    for path in written:
        click.echo(f"  Created {path}")
    click.echo(f"Documented {len(result.document['paths'])} paths from {result.routes_processed} routes.")


@main.command()
@click.argument("routes_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", "config_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Generator options (YAML or JSON).")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of YAML.")
@click.option("--env", default="", envvar=ENV_VAR, help="Environment name; the production environment prints the written file.")
def show(routes_path: Path, config_path: Path, as_json: bool, env: str):
    """Print the document without writing files."""
    options = _options(config_path)
    routes = _routes(routes_path)
    try:
        document = load_document(routes, options, env=env, fmt="json" if as_json else "yaml")
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(to_json(document) if as_json else to_yaml(document))


@main.command()
@click.option("-c", "--config", "config_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Generator options (YAML or JSON).")
@click.option("--debug", is_flag=True, help="Print discovery traces.")
def schemas(config_path: Path, debug: bool):
    """List the schemas discovered in the project."""
    options = _options(config_path, debug=debug or None)
    context = GenerationContext(options)
    context.load_custom_paths()
    registry = build_registry(context)
    _print_diagnostics(context.diagnostics, options.debug)

    click.echo(f"Found {len(registry)} schemas:")
    for name, schema in registry.items():
        click.echo(f"  {name}: {schema.get('description', '')}")
