#!/usr/bin/env python3
"""XAPI Export Tool - Entry point."""
import logging
from pathlib import Path

import click
from colorama import Fore, Style, init

from config import app_config
from xapi_export import __version__
from xapi_export.api import Bindings
from xapi_export.cli.runner import ExportRunner
from xapi_export.errors import XapiError

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}XAPI Export Tool{Fore.CYAN}                     ║")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Read-only API data to CSV / XLSX{Fore.CYAN}     ║")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    click.echo()


def _fail(error: XapiError):
    if not error.is_failure:
        click.echo(f"{Fore.YELLOW}{error.message}")
        return
    click.echo(f"{Fore.RED}❌ Execution terminated, reason: {error.message}")
    raise click.exceptions.Exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, default=app_config.debug, help="Enable debug logging")
def cli(debug):
    """XAPI Export Tool - Export read-only API data to flat files."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--spec-file",
    type=click.Path(exists=True, path_type=Path),
    help="Compile from a local swagger.yaml / swagger.json instead of the server",
)
def refresh(spec_file):
    """Regenerate endpoint definitions from the OpenAPI specification."""
    print_banner()

    try:
        ExportRunner(spec_file=spec_file).refresh_definitions()
    except XapiError as e:
        _fail(e)


@cli.command()
@click.option("--disabled", is_flag=True, help="Show disabled endpoints and the reason")
@click.option("--spec-file", type=click.Path(exists=True, path_type=Path), help="Local specification file")
def endpoints(disabled, spec_file):
    """List available endpoints."""
    try:
        ExportRunner(spec_file=spec_file).list_endpoints(show_disabled=disabled)
    except XapiError as e:
        _fail(e)


@cli.command()
@click.argument("endpoint")
@click.option("--from", "date_from", type=click.DateTime(formats=["%Y-%m-%d"]), help="Start date (YYYY-MM-DD)")
@click.option("--to", "date_to", type=click.DateTime(formats=["%Y-%m-%d"]), help="End date (YYYY-MM-DD)")
@click.option("--top", default=1000, type=click.IntRange(min=0), show_default=True, help="Maximum rows to fetch")
@click.option("--skip", default=0, type=click.IntRange(min=0), show_default=True, help="Rows to skip")
@click.option("--queuedn", default=None, help="Queue / extension DN")
@click.option(
    "--format", "fmt",
    default="csv",
    type=click.Choice(["csv", "xlsx", "json"]),
    show_default=True,
    help="Export format",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output file path")
@click.option("--no-preview", is_flag=True, help="Do not print sample rows")
@click.option("--spec-file", type=click.Path(exists=True, path_type=Path), help="Local specification file")
def export(endpoint, date_from, date_to, top, skip, queuedn, fmt, output, no_preview, spec_file):
    """Fetch ENDPOINT and export it as a flat table."""
    print_banner()

    try:
        bindings = Bindings(
            date_from=date_from,
            date_to=date_to,
            top=top,
            skip=skip,
            queuedn=queuedn,
        )
        ExportRunner(spec_file=spec_file).export(
            endpoint,
            bindings,
            fmt=fmt,
            output=output,
            preview=not no_preview,
        )
    except XapiError as e:
        _fail(e)


if __name__ == "__main__":
    cli()
