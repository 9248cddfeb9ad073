"""
SpryDB CLI - run statements through the driver from a shell

Usage:
    sprydb --help
    sprydb engines
    sprydb --engine sqlite --database app.db query "SELECT * FROM users"
    sprydb --engine sqlite --database app.db query "SELECT * FROM users WHERE id = :id" -p id=5
    sprydb --engine mysql --host db:3306 --user app --database app query "SHOW TABLES" --json

Connection options fall back to SPRYDB_DEFAULT_* environment variables.
"""

import json
from typing import Dict, Tuple

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from sprydb import __version__
from sprydb.adapters.factory import list_adapters
from sprydb.core.config import ConnectionConfig, get_settings
from sprydb.errors import ConnectionError
from sprydb.logging_config import configure_logging
from sprydb.registry import ConnectionRegistry
from sprydb.result import OutputShape

console = Console()
err_console = Console(stderr=True)


def parse_params(pairs: Tuple[str, ...]) -> Dict[str, str]:
    """Turn ``name=value`` pairs into a bind parameter dict."""
    params = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Expected name=value, got {pair!r}", param_hint="--param")
        params[name] = value
    return params


@click.group()
@click.option("--engine", envvar="SPRYDB_DEFAULT_ENGINE", default="sqlite", show_default=True,
              help="Engine kind (see `sprydb engines`)")
@click.option("--host", envvar="SPRYDB_DEFAULT_HOST", default="localhost", help="Server host (host[:port[:protocol]])")
@click.option("--user", envvar="SPRYDB_DEFAULT_USER", default="", help="Database user")
@click.option("--password", envvar="SPRYDB_DEFAULT_PASSWORD", default="", help="Database password")
@click.option("--database", envvar="SPRYDB_DEFAULT_DATABASE", default="", help="Database name or SQLite file")
@click.option("--log-level", default=None, help="Log level (default from SPRYDB_LOG_LEVEL)")
@click.version_option(version=__version__, prog_name="sprydb")
@click.pass_context
def cli(ctx, engine, host, user, password, database, log_level):
    """SpryDB - engine-agnostic database access from the command line."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["config"] = ConnectionConfig(
        engine=engine,
        host=host,
        user=user,
        password=password,
        database=database,
    )


@cli.command()
def engines():
    """List registered engine kinds."""
    table = Table(title="Engines", show_header=True)
    table.add_column("Engine", style="cyan")
    for engine in sorted(list_adapters()):
        table.add_row(engine)
    console.print(table)


@cli.command()
@click.argument("sql")
@click.option("-p", "--param", "params", multiple=True, help="Bind parameter as name=value (repeatable)")
@click.option("--prefix", default=None, help="Table prefix substituted for the prefix macro")
@click.option("--json", "output_json", is_flag=True, help="Output rows as JSON")
@click.pass_context
def query(ctx, sql, params, prefix, output_json):
    """Execute SQL and print the resulting rows."""
    registry = ConnectionRegistry(settings=ctx.obj["settings"])

    try:
        driver = registry.get("default", ctx.obj["config"])
    except ConnectionError as e:
        err_console.print(f"[bold red]Error {e.code.value}[/bold red]")
        err_console.print(f"[red]{e.message}[/red]")
        ctx.exit(1)

    try:
        if prefix is not None:
            driver.table_prefix(prefix)

        result = driver.query(sql, parse_params(params))
        if result is None:
            error = driver.last_error()
            err_console.print(f"[bold red]Error {error.code.value}[/bold red]")
            err_console.print(f"[red]{error.message}[/red]")
            ctx.exit(1)

        elapsed = driver.queries()[-1].execution_time

        if output_json:
            rows = result.all(OutputShape.ASSOC)
            click.echo(json.dumps(rows, indent=2, default=str))
            return

        if not result.columns:
            console.print(f"[green]✓[/green] {result.row_count()} rows affected [dim]({elapsed:.5f}s)[/dim]")
            return

        table = Table(show_header=True)
        for column in result.columns:
            table.add_column(str(column))

        for values in result.all(OutputShape.ARRAY):
            table.add_row(*["NULL" if v is None else str(v) for v in values])

        console.print(table)
        console.print(f"[dim]{result.num_rows} rows in {elapsed:.5f}s[/dim]")
    finally:
        registry.close_all()


@cli.command("config")
@click.pass_context
def config_show(ctx):
    """Show the effective settings."""
    settings = ctx.obj["settings"]
    console.print(Syntax(json.dumps(settings.model_dump(), indent=2), "json"))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
