"""Canteen CLI - Schema migrations for the Canteen site database

This module provides the command line entry point:
- migrate.py: status, upgrade, list
- common.py: shared utilities
"""
from pathlib import Path

import click

from canteen import __version__

from .common import (
    VERBOSITY_NORMAL,
    VERBOSITY_QUIET,
    VERBOSITY_VERBOSE,
    configure_logging,
)
from .migrate import migrate_group


@click.group()
@click.version_option(version=__version__, prog_name="canteen-migrate")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              envvar='CANTEEN_CONFIG',
              help='YAML config file (default: ./canteen.yaml)')
@click.option('--database', 'database_path', type=click.Path(dir_okay=False), default=None,
              help='SQLite database file, overrides the configured database')
@click.option('--verbose', '-v', is_flag=True, default=False,
              help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, default=False,
              help='Suppress non-essential output')
@click.pass_context
def cli(ctx, config_path, database_path, verbose, quiet):
    """Canteen schema migrations

    Upgrades the site database one version at a time until it is current.

    \b
    Commands:
        status     Show the schema version and pending upgrades
        upgrade    Apply pending upgrades
        list       List the registered upgrade chain

    \b
    Examples:
        canteen-migrate status
        canteen-migrate --database site.sqlite upgrade --dry-run
        canteen-migrate -q upgrade
    """
    ctx.ensure_object(dict)

    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    if quiet:
        ctx.obj['verbosity'] = VERBOSITY_QUIET
    elif verbose:
        ctx.obj['verbosity'] = VERBOSITY_VERBOSE
    else:
        ctx.obj['verbosity'] = VERBOSITY_NORMAL

    configure_logging(ctx.obj['verbosity'])

    ctx.obj['config_path'] = Path(config_path) if config_path else None
    ctx.obj['database_path'] = Path(database_path) if database_path else None


cli.add_command(migrate_group.commands['status'])
cli.add_command(migrate_group.commands['upgrade'])
cli.add_command(migrate_group.commands['list'])


def main():
    """Entry point for the CLI."""
    cli()


__all__ = [
    'cli',
    'main',
]
