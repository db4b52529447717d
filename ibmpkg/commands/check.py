"""Check command implementation."""

import sys

import click

from ibmpkg import Action, IbmPkgError, format_error, prefetch, setup_logging
from ibmpkg.commands.utils import load_desired_state, resolve_registry, select_packages

EXIT_CHANGES_PENDING = 2


@click.command()
@click.option("--config", "-c", "config_path", help="Desired-state YAML file")
@click.option("--registry", "-r", help="Path to installed.xml")
@click.option("--package", "-p", help="Check a specific package")
@click.option("--quiet", "-q", is_flag=True, help="Show only packages needing changes")
@click.pass_context
def check(ctx, config_path: str | None, registry: str | None, package: str | None, quiet: bool):
    """Compare desired packages with the registry without changing anything."""
    setup_logging(ctx.obj.get("debug", False))
    try:
        config = load_desired_state(config_path)
        specs = select_packages(config, package)
        fetched = prefetch(specs, resolve_registry(registry, config))
    except IbmPkgError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    for issue in fetched.scan.issues:
        click.echo(f"⚠️  Skipped malformed registry entry: {issue}", err=True)

    for spec in specs:
        result = fetched.results[spec.name]
        if result.required_action == Action.NONE:
            if not quiet:
                installed = result.matched_record.version if result.matched_record else "-"
                click.echo(f"✅ {spec.name}: {result.current_state.value} ({installed})")
            continue
        click.echo(
            f"🔄 {spec.name}: {result.current_state.value} → {result.required_action.value}"
        )
        for record in result.lower_records:
            click.echo(f"   older version installed: {record.version}")

    pending = fetched.pending
    if pending:
        click.echo(f"\n{len(pending)} package(s) need changes.")
        sys.exit(EXIT_CHANGES_PENDING)
    click.echo("\nAll packages are in their desired state.")
