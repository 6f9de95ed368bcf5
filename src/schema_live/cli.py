"""
Command-line interface for schema_live.

Provides build, relationships and fields commands that derive the model
configuration from a live database or a catalog snapshot.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from schema_live import __version__
from schema_live.builder import Builder
from schema_live.config import DEFAULT_CONNECTION, Settings, load_settings
from schema_live.models import ModelConfiguration, SchemaCatalog

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def source_options(func):
    """Options shared by every command that needs a schema."""
    options = [
        click.option(
            "--config",
            "config_path",
            type=click.Path(exists=True, path_type=Path),
            default=None,
            help="YAML settings file",
        ),
        click.option(
            "--connection",
            type=str,
            default=DEFAULT_CONNECTION,
            show_default=True,
            help="Connection name from the settings file",
        ),
        click.option(
            "--url",
            type=str,
            default=None,
            help="SQLAlchemy database URL (overrides the settings file)",
        ),
        click.option(
            "--catalog",
            "catalog_path",
            type=click.Path(exists=True, path_type=Path),
            default=None,
            help="YAML/JSON catalog snapshot to build from instead of a database",
        ),
        click.option(
            "--models",
            type=str,
            default=None,
            help="Python module holding the model classes (e.g. myapp.models)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_catalog(settings: Settings, connection: str, url: Optional[str], catalog_path: Optional[Path]) -> SchemaCatalog:
    if catalog_path:
        catalog = SchemaCatalog.load(catalog_path)
        catalog.connection = catalog.connection or connection
        return catalog

    url = url or settings.connection_url(connection)
    if not url:
        console.print(f"[red]Error: No database URL for connection '{connection}'. Use --url, --catalog or --config[/red]")
        sys.exit(1)

    from schema_live.metadata import SqlAlchemyCatalogReader

    with SqlAlchemyCatalogReader(
        url=url,
        schema=settings.schema,
        connection_name=connection,
        primary_index_name=settings.primary_index_name,
    ) as reader:
        return reader.read()


def _build(
    config_path: Optional[Path],
    connection: str,
    url: Optional[str],
    catalog_path: Optional[Path],
    models: Optional[str],
) -> ModelConfiguration:
    settings = load_settings(config_path)
    if models:
        settings.model_namespace = models

    catalog = _load_catalog(settings, connection, url, catalog_path)
    return Builder.from_settings(catalog, settings).build()


@click.group()
@click.version_option(version=__version__, prog_name="schema_live")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    Schema Live - Model configuration from database schemas

    Derives field rules, casts and relationships from tables, indexes,
    foreign keys and column comments.
    """
    setup_logging(verbose)


@cli.command()
@source_options
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    show_default=True,
    help="Output format",
)
def build(
    config_path: Optional[Path],
    connection: str,
    url: Optional[str],
    catalog_path: Optional[Path],
    models: Optional[str],
    output_format: str,
) -> None:
    """
    Build the model configuration and print it.

    Examples:

        # From a live database
        schema_live build --url sqlite:///app.db --models myapp.models

        # From a catalog snapshot, as JSON
        schema_live build --catalog samples/blog_catalog.yaml --format json

        # From a named connection in a settings file
        schema_live build --config schema_live.yaml --connection reporting
    """
    configuration = _build(config_path, connection, url, catalog_path, models)
    data = configuration.to_dict()

    if output_format == "json":
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))


@cli.command()
@source_options
@click.option("--table", "table_name", type=str, default=None, help="Only show this table")
def relationships(
    config_path: Optional[Path],
    connection: str,
    url: Optional[str],
    catalog_path: Optional[Path],
    models: Optional[str],
    table_name: Optional[str],
) -> None:
    """Show the inferred relationships."""
    configuration = _build(config_path, connection, url, catalog_path, models)

    rel_table = Table(title="Relationships")
    rel_table.add_column("Table", style="cyan")
    rel_table.add_column("Name", style="green")
    rel_table.add_column("Kind", style="yellow")
    rel_table.add_column("Target", style="magenta")
    rel_table.add_column("Params", style="blue")

    count = 0
    for table, edge in configuration.edges():
        if table_name and table != table_name:
            continue
        rel_table.add_row(
            table,
            edge.name,
            edge.kind.value,
            edge.target_class or "-",
            ", ".join(str(p) for p in edge.params),
        )
        count += 1

    if count:
        console.print(rel_table)
    else:
        console.print("[yellow]No relationships inferred.[/yellow]")


@cli.command()
@source_options
@click.option("--table", "table_name", type=str, required=True, help="Table to show")
def fields(
    config_path: Optional[Path],
    connection: str,
    url: Optional[str],
    catalog_path: Optional[Path],
    models: Optional[str],
    table_name: str,
) -> None:
    """Show the derived field metadata of a table."""
    configuration = _build(config_path, connection, url, catalog_path, models)

    if table_name not in configuration.fields:
        console.print(f"[red]Error: Unknown table '{table_name}'[/red]")
        sys.exit(1)

    field_config = configuration.fields[table_name]

    fields_table = Table(title=f"Fields of {table_name}")
    fields_table.add_column("Column", style="cyan")
    fields_table.add_column("Default", style="green")
    fields_table.add_column("Cast", style="yellow")
    fields_table.add_column("Rules", style="magenta")
    fields_table.add_column("Flags", style="blue")

    for column in field_config.fillable:
        flags = []
        if column in field_config.guarded:
            flags.append("guarded")
        if column in field_config.hidden:
            flags.append("hidden")
        default = field_config.attributes.get(column)
        fields_table.add_row(
            column,
            "-" if default is None else str(default),
            field_config.casts.get(column, "-"),
            "|".join(field_config.rules.get(column, [])) or "-",
            ", ".join(flags) or "-",
        )

    console.print(fields_table)


if __name__ == "__main__":
    cli()
