"""
Canteen - Schema migrations for the Canteen site database

Each upgrade takes the database from one schema version to the next.
The runner walks the chain until the site is current.
"""

__version__ = "1.4.0"

from .database import Database, connect_mysql, connect_sqlite
from .errors import (
    ConfigError,
    MigrationError,
    MigrationFailure,
    StatementExecutionError,
    VersionMismatchError,
)
from .migrations import MigrationRegistry, MigrationRunner, MigrationUnit, UpgradeStatus

__all__ = [
    "__version__",
    "ConfigError",
    "Database",
    "MigrationError",
    "MigrationFailure",
    "MigrationRegistry",
    "MigrationRunner",
    "MigrationUnit",
    "StatementExecutionError",
    "UpgradeStatus",
    "VersionMismatchError",
    "connect_mysql",
    "connect_sqlite",
]
