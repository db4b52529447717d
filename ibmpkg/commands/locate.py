"""Locate command implementation."""

import sys

import click

from ibmpkg import (
    IbmPkgError,
    InstallerToolNotFound,
    format_error,
    format_suggestion,
    locate_installer_tool,
    setup_logging,
)
from ibmpkg.commands.utils import resolve_registry


@click.command()
@click.option("--registry", "-r", help="Path to installed.xml")
@click.option("--imcl-path", help="Explicit imcl path (printed unchanged)")
@click.pass_context
def locate(ctx, registry: str | None, imcl_path: str | None):
    """Print the path of the imcl tool."""
    setup_logging(ctx.obj.get("debug", False))
    try:
        click.echo(locate_installer_tool(resolve_registry(registry), imcl_path))
    except InstallerToolNotFound as e:
        click.echo(format_suggestion(str(e), "pass --imcl-path"), err=True)
        sys.exit(1)
    except IbmPkgError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
