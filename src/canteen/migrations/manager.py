"""
Schema version tracking for Canteen.

The schema version lives in exactly one place: the row of the site ``config``
table named after the version variable (``dbVersion`` by default). This module
reads and writes that row and describes applied migrations.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from canteen.database import Database

logger = logging.getLogger(__name__)

# Sites that predate version tracking have no dbVersion row and are at v1
BASELINE_VERSION = 1

DEFAULT_VARIABLE = "dbVersion"


@dataclass
class MigrationRecord:
    """An applied (or planned, for dry runs) migration."""
    source_version: int
    target_version: int
    description: str
    applied_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source_version": self.source_version,
            "target_version": self.target_version,
            "description": self.description,
            "applied_at": self.applied_at.isoformat() if self.applied_at else None,
            "duration_ms": self.duration_ms,
            "dry_run": self.dry_run,
        }


class ConfigVersionStore:
    """
    Config Version Store - Schema version kept in the site config table

    Pattern: One config row (name, value, value_type='integer')
    Lifetime: Persistent across application restarts

    Example:
        store = ConfigVersionStore(db)
        store.ensure_table()
        if store.get_schema_version() == 100:
            store.set_schema_version(101)
    """

    def __init__(self,
                 db: Database,
                 variable_name: str = DEFAULT_VARIABLE,
                 baseline: int = BASELINE_VERSION):
        """
        Initialize the store.

        Args:
            db: Database handle (borrowed, never closed here)
            variable_name: Config name holding the version (default: dbVersion)
            baseline: Version reported when the row does not exist
        """
        self.db = db
        self.variable_name = variable_name
        self.baseline = baseline

    def ensure_table(self) -> None:
        """Create the config table in its pre-versioning shape if missing."""
        if self.db.table_exists("config"):
            return

        logger.info("Creating missing config table")
        if self.db.dialect == "sqlite":
            self.db.execute("""
                CREATE TABLE IF NOT EXISTS config (
                    config_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name VARCHAR(64) NOT NULL UNIQUE,
                    value VARCHAR(255) NOT NULL,
                    value_type VARCHAR(16) NOT NULL DEFAULT 'string'
                )
            """)
        else:
            self.db.execute("""
                CREATE TABLE IF NOT EXISTS `config` (
                  `config_id` int(10) unsigned NOT NULL AUTO_INCREMENT,
                  `name` varchar(64) NOT NULL,
                  `value` varchar(255) NOT NULL,
                  `value_type` set('string','boolean','integer','path') NOT NULL DEFAULT 'string',
                  PRIMARY KEY (`config_id`),
                  UNIQUE KEY `name` (`name`)
                ) ENGINE=MyISAM DEFAULT CHARSET=latin1 AUTO_INCREMENT=1
            """)

    def get_schema_version(self) -> int:
        """
        Get the current schema version.

        Returns:
            Stored version, or the baseline if the table or row is missing
        """
        if not self.db.table_exists("config"):
            return self.baseline

        p = self.db.placeholder
        rows = self.db.query(
            f"SELECT value FROM config WHERE name = {p}",
            (self.variable_name,)
        )
        if not rows:
            return self.baseline
        return int(rows[0][0])

    def set_schema_version(self, version: int) -> None:
        """
        Persist a new schema version.

        Args:
            version: New schema version (must be >= 0)

        Raises:
            ValueError: If version is negative
        """
        if version < 0:
            raise ValueError(f"Schema version must be >= 0, got {version}")

        p = self.db.placeholder
        cursor = self.db.execute(
            f"UPDATE config SET value = {p} WHERE name = {p}",
            (str(version), self.variable_name)
        )
        if cursor.rowcount == 0 and not self._row_exists():
            self.db.execute(
                f"INSERT INTO config (name, value, value_type) VALUES ({p}, {p}, {p})",
                (self.variable_name, str(version), "integer")
            )

    def _row_exists(self) -> bool:
        # MySQL reports 0 affected rows when the value is unchanged
        p = self.db.placeholder
        rows = self.db.query(
            f"SELECT COUNT(*) FROM config WHERE name = {p}",
            (self.variable_name,)
        )
        return rows[0][0] > 0
