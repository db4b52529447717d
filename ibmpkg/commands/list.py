"""List command implementation."""

import sys

import click

from ibmpkg import IbmPkgError, format_error, load_registry, setup_logging
from ibmpkg.commands.utils import resolve_registry


@click.command(name="list")
@click.option("--registry", "-r", help="Path to installed.xml")
@click.option(
    "--verbose", "-v", is_flag=True, help="Show product name and repository"
)
@click.pass_context
def list_packages(ctx, registry: str | None, verbose: bool):
    """List packages installed according to the registry."""
    setup_logging(ctx.obj.get("debug", False))
    try:
        scan = load_registry(resolve_registry(registry))
    except IbmPkgError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    if not scan.records:
        click.echo("No packages installed.")

    for record in scan.records:
        if verbose:
            click.echo(f"• {record.package_id}")
            click.echo(f"  Version: {record.version}")
            click.echo(f"  Path: {record.install_path}")
            click.echo(f"  Product: {record.product_name}")
            click.echo(f"  Repository: {record.repository_url}")
            click.echo("")
        else:
            click.echo(f"{record.package_id} {record.version} {record.install_path}")

    for issue in scan.issues:
        click.echo(f"⚠️  Skipped malformed entry: {issue}", err=True)
