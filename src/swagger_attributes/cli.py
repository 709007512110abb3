"""CLI entry point for swagger-attributes."""

import logging
from pathlib import Path

import click

from swagger_attributes.config import FORMATS, ConfigError, load_config
from swagger_attributes.document import SwaggerGenerator
from swagger_attributes.importing import import_string
from swagger_attributes.viewer import VIEWERS, render_viewer


@click.group()
def main():
    """Swagger Attributes — generate OpenAPI 3.0 documents from annotated route handlers."""
    pass


@main.command()
@click.option("--app", "app_path", required=True, help="Route source as 'module:attr' (route table, iterable or callable).")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file path. Defaults to the configured output_file.")
@click.option("--format", "fmt", default=None, type=click.Choice(FORMATS, case_sensitive=False), help="Output format.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML configuration file.")
@click.option("-v", "--verbose", is_flag=True, help="Log resolution details.")
def generate(app_path: str, output: Path | None, fmt: str | None, config_path: Path | None, verbose: bool):
    """Scan routes for annotations and write the OpenAPI document."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    click.echo("Scanning routes for OpenAPI annotations...")
    try:
        config = load_config(config_path)
        fmt = (fmt or config.format).lower()
        source = import_string(app_path)
        final_path = SwaggerGenerator(config).generate(source, output, fmt)
    except Exception as e:
        click.echo(f"Error generating documentation: {e}", err=True)
        raise SystemExit(1)

    click.echo("Documentation has been generated successfully.")
    click.echo(f"Output file: {final_path}")
    click.echo(f"Format: {fmt.upper()}")


@main.command()
@click.option("--viewer", default=None, type=click.Choice(list(VIEWERS)), help="Viewer page to render. Defaults to the configured viewer.")
@click.option("--doc-url", required=True, help="URL the page loads the document from.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output HTML file. Defaults to <ui_route>/index.html.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML configuration file.")
def ui(viewer: str | None, doc_url: str, output: Path | None, config_path: Path | None):
    """Write a Swagger UI or ReDoc page pointing at the generated document."""
    try:
        config = load_config(config_path)
        if not config.enable_ui:
            raise click.ClickException("The documentation viewer is disabled (enable_ui: false).")
        page = render_viewer(viewer or config.viewer, config.title, doc_url)
    except (ConfigError, ValueError) as e:
        raise click.ClickException(str(e))

    output = output or Path(config.ui_route) / "index.html"
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(page, encoding="utf-8")
    click.echo(f"Viewer page saved to {output}")
