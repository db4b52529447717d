"""CLI command definitions for ibmpkg."""

import click

from ibmpkg.commands.apply import apply
from ibmpkg.commands.check import check
from ibmpkg.commands.list import list_packages
from ibmpkg.commands.locate import locate


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.pass_context
def cli(ctx, debug):
    """Reconcile IBM Installation Manager packages with a desired state."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(list_packages, name="list")
cli.add_command(locate)
cli.add_command(check)
cli.add_command(apply)

__all__ = ["cli"]


if __name__ == "__main__":
    cli()
