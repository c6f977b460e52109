"""Schema migration commands for Canteen CLI."""
import json
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import click

from canteen.config import MigrationConfig
from canteen.errors import MigrationError
from canteen.migrations import (
    ConfigVersionStore,
    MigrationRegistry,
    MigrationRunner,
    UpgradeStatus,
)

from .common import echo_error, echo_normal, echo_quiet, echo_verbose, get_config

STATUS_COLORS = {
    UpgradeStatus.CURRENT: "green",
    UpgradeStatus.PENDING: "yellow",
    UpgradeStatus.UNREACHABLE: "red",
    UpgradeStatus.AHEAD: "magenta",
}


@click.group()
def migrate_group():
    """Schema migration commands."""
    pass


@contextmanager
def open_runner(ctx: click.Context) -> Iterator[Tuple[MigrationRunner, MigrationConfig]]:
    """Build a runner from the CLI config and close the database afterwards."""
    config = get_config(ctx)
    try:
        registry = MigrationRegistry(config.package)
        registry.discover()
        db = config.connect()
    except (MigrationError, ValueError) as e:
        echo_error(str(e))
        sys.exit(1)

    try:
        store = ConfigVersionStore(db, variable_name=config.variable)
        yield MigrationRunner(db, registry=registry, version_store=store), config
    finally:
        db.close()


@migrate_group.command('status')
@click.option('--target', type=int, default=None,
              help='Version the site expects (default: latest available)')
@click.pass_context
def status(ctx, target: Optional[int]) -> None:
    """Show the schema version and pending upgrades.

    Exits with status 1 when no upgrade path reaches the target.

    Examples:
        canteen-migrate status
        canteen-migrate status --target 102
    """
    verbosity = ctx.obj.get('verbosity', 1)

    with open_runner(ctx) as (runner, config):
        target = target if target is not None else config.target
        try:
            current = runner.get_current_version()
            state = runner.check(target)
            pending = runner.plan(target)
            resolved = target if target is not None else runner.registry.get_latest_version()
        except MigrationError as e:
            echo_error(str(e))
            sys.exit(1)

    echo_normal(f"Schema version: {current}", verbosity)
    echo_normal(f"Target version: {resolved}", verbosity)
    echo_quiet(click.style(state.value, fg=STATUS_COLORS[state]), verbosity)

    for unit in pending:
        echo_normal(f"  pending  v{unit.source_version} -> v{unit.target_version}  {unit.description}",
                    verbosity)

    if state == UpgradeStatus.UNREACHABLE:
        sys.exit(1)


@migrate_group.command('upgrade')
@click.option('--target', type=int, default=None,
              help='Stop once this version is reached (default: latest available)')
@click.option('--dry-run', is_flag=True, default=False,
              help='Show what would be applied without changing the database')
@click.option('--json-output', is_flag=True, help='Output as JSON')
@click.pass_context
def upgrade(ctx, target: Optional[int], dry_run: bool, json_output: bool) -> None:
    """Apply pending upgrades in order.

    Prints the resulting schema version last; with --quiet only the bare
    version number is printed.

    Args:
        --target: Version to stop at
        --dry-run: List the upgrades without running them
        --json-output: Output the records and final version as JSON (for scripts)

    Examples:
        canteen-migrate upgrade
        canteen-migrate upgrade --target 101
        canteen-migrate upgrade --dry-run
        canteen-migrate upgrade --json-output
    """
    verbosity = ctx.obj.get('verbosity', 1)

    with open_runner(ctx) as (runner, config):
        target = target if target is not None else config.target
        try:
            if not dry_run:
                runner.version_store.ensure_table()
            records = runner.upgrade(target=target, dry_run=dry_run)
            final = runner.get_current_version()
        except MigrationError as e:
            echo_error(str(e))
            sys.exit(1)

    if json_output:
        output = {
            "version": final,
            "records": [record.to_dict() for record in records],
        }
        click.echo(json.dumps(output, indent=2))
        return

    if not records:
        echo_normal(click.style("Nothing to apply", fg="green"), verbosity)

    for record in records:
        if record.dry_run:
            line = f"  would apply  v{record.source_version} -> v{record.target_version}  {record.description}"
            echo_normal(click.style(line, fg="cyan"), verbosity)
        else:
            line = f"✓ v{record.source_version} -> v{record.target_version}  {record.description}"
            echo_normal(click.style(line, fg="green"), verbosity)
            echo_verbose(f"    {record.duration_ms} ms", verbosity)

    echo_quiet(str(final), verbosity)


@migrate_group.command('list')
@click.pass_context
def list_migrations(ctx) -> None:
    """List the registered upgrade chain."""
    verbosity = ctx.obj.get('verbosity', 1)

    with open_runner(ctx) as (runner, _):
        try:
            current = runner.get_current_version()
        except MigrationError as e:
            echo_error(str(e))
            sys.exit(1)
        units = runner.registry.get_all_migrations()

    if not units:
        echo_quiet("No migrations registered", verbosity)
        return

    for unit in units:
        marker = "*" if unit.source_version >= current else " "
        echo_quiet(f"{marker} v{unit.source_version} -> v{unit.target_version}  {unit.description}",
                   verbosity)
    echo_verbose("(* = not yet applied)", verbosity)
