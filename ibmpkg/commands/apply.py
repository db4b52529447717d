"""Apply command implementation."""

import logging
import sys

import click

from ibmpkg import (
    IbmPkgError,
    PackageProvider,
    format_error,
    render_plan,
    setup_logging,
)
from ibmpkg.commands.utils import load_desired_state, resolve_registry, select_packages
from ibmpkg.provider import STATUS_DRY_RUN, STATUS_FAILED, STATUS_UNCHANGED

_logging = logging.getLogger(__name__)


@click.command()
@click.option("--config", "-c", "config_path", help="Desired-state YAML file")
@click.option("--registry", "-r", help="Path to installed.xml")
@click.option("--package", "-p", help="Apply a specific package")
@click.option("--dry-run", is_flag=True, help="Show what would change without changing it")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def apply(
    ctx,
    config_path: str | None,
    registry: str | None,
    package: str | None,
    dry_run: bool,
    yes: bool,
):
    """Install or uninstall packages until they match the desired state."""
    setup_logging(ctx.obj.get("debug", False))
    try:
        config = load_desired_state(config_path)
        specs = select_packages(config, package)
        provider = PackageProvider(
            resolve_registry(registry, config), imcl_path=config.imcl_path
        )
        fetched = provider.prefetch(specs)
    except IbmPkgError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    click.echo(render_plan(specs, fetched))

    if not fetched.pending:
        click.echo("\nNothing to do.")
        return

    if not dry_run and not yes:
        click.echo("")
        click.secho(
            "  ⚠️  Processes running from a target directory will be killed.",
            fg="yellow",
        )
        if not click.confirm("\nContinue?", default=False):
            click.echo("Aborted.")
            return

    failures = 0
    for spec in specs:
        result = provider.apply(spec, fetched.results[spec.name], dry_run=dry_run)
        if result.status == STATUS_UNCHANGED:
            continue
        if result.status == STATUS_DRY_RUN:
            click.echo(f"[DRY-RUN] Would {result.action.value} {result.name}")
            continue
        if result.status == STATUS_FAILED:
            failures += 1
            click.echo(f"❌ {result.name}: {result.action.value} failed: {result.output}", err=True)
            continue

        click.echo(f"✅ {result.name}: {result.action.value} succeeded")
        if result.killed:
            click.echo(f"   killed PID(s): {' '.join(str(p) for p in result.killed)}")
        for warning in result.warnings:
            click.echo(f"   ⚠️  {warning}", err=True)
        _logging.debug(f"imcl output for {result.name}: {result.output}")

    if failures:
        click.echo(f"\n{failures} package(s) failed.", err=True)
        sys.exit(1)
