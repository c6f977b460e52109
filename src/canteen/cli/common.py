"""Shared utilities for Canteen CLI commands."""
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from canteen.config import MigrationConfig, load_config
from canteen.errors import ConfigError

# Verbosity levels
VERBOSITY_QUIET = 0
VERBOSITY_NORMAL = 1
VERBOSITY_VERBOSE = 2


def should_print(verbosity: int, message_level: int) -> bool:
    """Determine if a message should be printed based on verbosity settings.

    Args:
        verbosity: Current verbosity level (0=quiet, 1=normal, 2=verbose).
        message_level: Minimum verbosity level required for this message.

    Returns:
        True if the message should be printed, False otherwise.
    """
    return verbosity >= message_level


def echo_verbose(message: str, verbosity: int) -> None:
    """Print a message only in verbose mode.

    Args:
        message: The message to print.
        verbosity: Current verbosity level.
    """
    if should_print(verbosity, VERBOSITY_VERBOSE):
        click.echo(message, err=False)


def echo_normal(message: str, verbosity: int) -> None:
    """Print a message in normal and verbose modes.

    Args:
        message: The message to print.
        verbosity: Current verbosity level.
    """
    if should_print(verbosity, VERBOSITY_NORMAL):
        click.echo(message, err=False)


def echo_quiet(message: str, verbosity: int) -> None:
    """Print a message that is always shown, even in quiet mode.

    Used for results scripts read, such as the final schema version.

    Args:
        message: The message to print.
        verbosity: Current verbosity level (ignored; always prints).
    """
    click.echo(message, err=False)


def echo_error(message: str) -> None:
    """Print an error message in red to stderr.

    Args:
        message: Error text, printed after an "Error:" prefix.
    """
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def configure_logging(verbosity: int) -> None:
    """Route canteen library logs to stderr.

    Args:
        verbosity: Current verbosity level. Verbose mode logs at DEBUG
            (every executed statement); other modes log warnings and errors.
    """
    level = logging.DEBUG if verbosity >= VERBOSITY_VERBOSE else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("canteen").setLevel(level)


def get_config(ctx: click.Context) -> MigrationConfig:
    """Load the config for this invocation, applying --database.

    Priority for the file: --config flag > CANTEEN_CONFIG env var > ./canteen.yaml.
    A --database path switches the driver to sqlite.

    Args:
        ctx: Click context holding config_path and database_path.

    Returns:
        The resolved MigrationConfig.

    Exits with status 1 if the configuration is invalid.
    """
    try:
        config = load_config(ctx.obj.get('config_path'))
    except ConfigError as e:
        echo_error(str(e))
        sys.exit(1)

    database_path: Optional[Path] = ctx.obj.get('database_path')
    if database_path:
        config.database.driver = "sqlite"
        config.database.path = Path(database_path)
    return config
