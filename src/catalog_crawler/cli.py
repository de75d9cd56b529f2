"""
Command-line interface for catalog_crawler.

Provides info-levels, crawl and lint commands over a YAML catalog
description, a SQLite database or an Oracle connection.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from catalog_crawler import __version__
from catalog_crawler.catalog import Catalog
from catalog_crawler.config import load_crawler_options, load_linter_configs
from catalog_crawler.crawler import SchemaCrawler
from catalog_crawler.errors import CatalogCrawlerError
from catalog_crawler.info_level import InfoLevel, SchemaInfoLevelBuilder, SchemaInfoRetrieval
from catalog_crawler.lint import Linters, LintSeverity
from catalog_crawler.metadata import (
    MemoryMetadataProvider,
    MetadataProvider,
    OracleMetadataProvider,
    SqliteMetadataProvider,
)
from catalog_crawler.options import LoadOptions, SchemaCrawlerOptions

console = Console()
log_console = Console(stderr=True)

SEVERITY_STYLES = {
    LintSeverity.LOW: "blue",
    LintSeverity.MEDIUM: "yellow",
    LintSeverity.HIGH: "red",
    LintSeverity.CRITICAL: "bold red",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=log_console, rich_tracebacks=True)],
    )


def source_options(f):
    """Options that select where metadata comes from."""
    f = click.option(
        "--oracle_conn",
        type=str,
        default=None,
        help="Oracle connection string (user/pwd@host:port/service)",
    )(f)
    f = click.option(
        "--sqlite",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="SQLite database file",
    )(f)
    f = click.option(
        "--catalog_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="YAML catalog description",
    )(f)
    f = click.option(
        "--options",
        "options_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="YAML file with info level, limit, grep and filter options",
    )(f)
    f = click.option(
        "--info_level",
        type=click.Choice([level.value for level in InfoLevel if level != InfoLevel.UNKNOWN]),
        default=None,
        help="Schema info level (overrides the options file)",
    )(f)
    return f


def open_provider(
    catalog_file: Optional[Path],
    sqlite: Optional[Path],
    oracle_conn: Optional[str],
) -> MetadataProvider:
    chosen = [s for s in (catalog_file, sqlite, oracle_conn) if s]
    if len(chosen) != 1:
        raise click.UsageError("Specify exactly one of --catalog_file, --sqlite or --oracle_conn")

    if catalog_file:
        return MemoryMetadataProvider.from_yaml(catalog_file)
    if sqlite:
        return SqliteMetadataProvider(sqlite)
    return OracleMetadataProvider(oracle_conn)


def build_options(options_file: Optional[Path], info_level: Optional[str]) -> SchemaCrawlerOptions:
    options = load_crawler_options(options_file) if options_file else SchemaCrawlerOptions()
    if info_level:
        options.load_options = LoadOptions(
            schema_info_level=SchemaInfoLevelBuilder().with_info_level(info_level).to_options()
        )
    return options


def crawl_with_progress(provider: MetadataProvider, options: SchemaCrawlerOptions) -> Catalog:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Crawling catalog metadata...", total=None)
        catalog = SchemaCrawler(provider, options).crawl()
        progress.update(task, completed=True)
    return catalog


@click.group()
@click.version_option(version=__version__, prog_name="catalog_crawler")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    Catalog Crawler - Database Catalog Metadata Crawler and Schema Linter

    Crawl database metadata into a catalog, narrow it with inclusion rules,
    and lint the schema design.
    """
    setup_logging(verbose)


@cli.command("info-levels")
def info_levels() -> None:
    """
    Show which metadata each schema info level retrieves.

    Example:

        catalog_crawler info-levels
    """
    levels = [level for level in InfoLevel if level != InfoLevel.UNKNOWN]

    table = Table(title="Schema Info Levels")
    table.add_column("Retrieval", style="cyan")
    for level in levels:
        table.add_column(level.value, justify="center")

    for retrieval in SchemaInfoRetrieval:
        table.add_row(
            retrieval.value,
            *["[green]yes[/green]" if retrieval in level.retrievals() else "-" for level in levels],
        )

    console.print(table)


@cli.command()
@source_options
@click.option("--json", "as_json", is_flag=True, help="Print the catalog as JSON")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the catalog JSON to a file",
)
def crawl(
    oracle_conn: Optional[str],
    sqlite: Optional[Path],
    catalog_file: Optional[Path],
    options_file: Optional[Path],
    info_level: Optional[str],
    as_json: bool,
    output: Optional[Path],
) -> None:
    """
    Crawl a database catalog and summarize it.

    Examples:

        # Summarize a SQLite database
        catalog_crawler crawl --sqlite books.db

        # Dump a limited catalog as JSON
        catalog_crawler crawl --catalog_file catalog.yaml \\
            --options limits.yaml --json
    """
    try:
        options = build_options(options_file, info_level)
        with open_provider(catalog_file, sqlite, oracle_conn) as provider:
            if as_json:
                catalog = SchemaCrawler(provider, options).crawl()
            else:
                catalog = crawl_with_progress(provider, options)
    except CatalogCrawlerError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    data = catalog.to_dict()
    if output:
        with open(output, "w") as f:
            json.dump(data, f, indent=2, default=str)
        console.print(f"[green]Catalog written to: {output}[/green]")

    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return

    console.print("[bold blue]Catalog Crawler[/bold blue]")
    console.print(str(catalog.database_info))
    console.print(str(catalog.driver_info))

    summary = Table(title="Catalog Summary")
    summary.add_column("Object", style="cyan")
    summary.add_column("Count", style="green", justify="right")
    summary.add_row("Schemas", str(len(catalog.get_schemas())))
    summary.add_row("Tables", str(len(catalog.get_tables())))
    summary.add_row("Routines", str(len(catalog.get_routines())))
    summary.add_row("Sequences", str(len(catalog.get_sequences())))
    summary.add_row("Synonyms", str(len(catalog.get_synonyms())))
    summary.add_row("Column data types", str(len(catalog.get_column_data_types())))
    console.print(summary)

    tables_table = Table(title="Tables")
    tables_table.add_column("Table", style="cyan")
    tables_table.add_column("Type", style="magenta")
    tables_table.add_column("Columns", style="green", justify="right")
    tables_table.add_column("PK", style="yellow")
    tables_table.add_column("Parents", style="blue")

    for table in catalog.get_tables():
        pk_cols = table.primary_key.column_names if table.primary_key else []
        tables_table.add_row(
            table.full_name,
            table.table_type,
            str(len(table.columns)),
            ", ".join(pk_cols) if pk_cols else "-",
            ", ".join(k.dotted() for k in table.referenced_table_keys) or "-",
        )

    console.print(tables_table)


@cli.command()
@source_options
@click.option(
    "--linter_configs",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with linter configurations",
)
@click.option(
    "--run_all",
    is_flag=True,
    help="Also run linters missing from the linter configurations",
)
@click.option("--json", "as_json", is_flag=True, help="Print lints as JSON")
def lint(
    oracle_conn: Optional[str],
    sqlite: Optional[Path],
    catalog_file: Optional[Path],
    options_file: Optional[Path],
    info_level: Optional[str],
    linter_configs: Optional[Path],
    run_all: bool,
    as_json: bool,
) -> None:
    """
    Lint the schema design of a database catalog.

    Without --linter_configs every built-in linter runs with its defaults.
    Exits with status 1 when a linter reports more lints than its threshold.

    Examples:

        catalog_crawler lint --sqlite books.db

        catalog_crawler lint --oracle_conn "user/pwd@host:1521/SID" \\
            --linter_configs linters.yaml
    """
    try:
        options = build_options(options_file, info_level)
        configs = load_linter_configs(linter_configs) if linter_configs else []
        linters = Linters(configs, run_all_linters=run_all or linter_configs is None)
        with open_provider(catalog_file, sqlite, oracle_conn) as provider:
            catalog = SchemaCrawler(provider, options).crawl()
            collector = linters.lint(catalog, provider.connection)
    except CatalogCrawlerError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(collector.to_dict(), indent=2, default=str))
    elif len(collector) == 0:
        console.print("[green]No lints found.[/green]")
    else:
        lint_table = Table(title=f"Lints ({len(collector)})")
        lint_table.add_column("Object", style="cyan")
        lint_table.add_column("Severity")
        lint_table.add_column("Message", style="green")
        lint_table.add_column("Value", style="yellow")

        for found in collector:
            style = SEVERITY_STYLES[found.severity]
            lint_table.add_row(
                found.object_name,
                f"[{style}]{found.severity.value}[/{style}]",
                found.message,
                found.value_as_string,
            )

        console.print(lint_table)

    exceeded = linters.exceeded_thresholds()
    if exceeded:
        for linter in exceeded:
            console.print(
                f"[red]Linter {linter.linter_id} reported {linter.lint_count} lints "
                f"(threshold {linter.threshold})[/red]"
            )
        sys.exit(1)


if __name__ == "__main__":
    cli()
