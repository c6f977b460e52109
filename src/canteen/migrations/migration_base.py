"""
Migration Unit Base Class

Base class for Canteen schema upgrades. Every upgrade is a pure description:
the version it upgrades from, the version it produces, and a method that
returns the statements to run. Nothing executes when the module is imported.

Pattern:
- Each unit is keyed by its source version
- statements() produces the SQL, apply() runs it through the handle
- Units are forward-only; a reversal is a separate unit
- Units are applied in source-version order
"""

import logging
from typing import List, Optional

from canteen.database import Database
from canteen.errors import MigrationFailure, StatementExecutionError

logger = logging.getLogger(__name__)


class MigrationUnit:
    """
    Base class for database upgrades.

    Subclasses define:
    - source_version: Schema version the unit upgrades from
    - target_version: Schema version after the unit (greater than source)
    - description: Human-readable description of the change
    - statements(): Ordered list of SQL statements to execute

    Example:
        class AddPageCache(MigrationUnit):
            source_version = 100
            target_version = 101
            description = "Add page-specific caching"

            def statements(self) -> List[str]:
                return ["ALTER TABLE pages ADD cache INTEGER NOT NULL DEFAULT 0"]
    """

    # Subclasses must define these
    source_version: int
    target_version: int
    description: str

    def __init__(self):
        """Initialize the unit and validate required attributes."""
        for attr in ("source_version", "target_version"):
            value = getattr(self, attr, None)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(
                    f"{self.__class__.__name__} must define '{attr}' as an integer"
                )
        if not isinstance(getattr(self, "description", None), str):
            raise ValueError(
                f"{self.__class__.__name__} must define 'description' as a string"
            )
        if self.source_version < 0:
            raise ValueError(
                f"Source version must be >= 0, got {self.source_version}"
            )
        if self.target_version <= self.source_version:
            raise ValueError(
                f"Target version must be greater than source version "
                f"({self.source_version}), got {self.target_version}"
            )

    def statements(self) -> List[str]:
        """
        Produce the statements for this upgrade, in execution order.

        Returns:
            List of SQL statements
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement statements()"
        )

    def validate(self, db: Database) -> None:
        """
        Optional check before the unit runs.

        Override to verify preconditions against the database.

        Raises:
            MigrationFailure: If the unit must not run.
        """
        pass

    def apply(self, db: Database) -> int:
        """
        Execute the upgrade against the database.

        The caller is responsible for checking the stored schema version and
        for recording the returned version.

        Args:
            db: Database handle to execute against

        Returns:
            The schema version the database is now at

        Raises:
            MigrationFailure: If any statement is rejected
        """
        self.validate(db)

        statement: Optional[str] = None
        try:
            for statement in self.statements():
                db.execute(statement)
        except StatementExecutionError as e:
            raise MigrationFailure(
                self.source_version,
                self.target_version,
                str(e),
                statement=statement
            ) from e

        return self.target_version

    def __repr__(self) -> str:
        """String representation for logging."""
        return (
            f"<Migration v{self.source_version} -> v{self.target_version}: "
            f"{self.description}>"
        )

    def __eq__(self, other) -> bool:
        """Compare units by source version."""
        if not isinstance(other, MigrationUnit):
            return False
        return self.source_version == other.source_version

    def __lt__(self, other) -> bool:
        """Order units by source version."""
        if not isinstance(other, MigrationUnit):
            return NotImplemented
        return self.source_version < other.source_version

    def __hash__(self) -> int:
        """Hash by source version for use in sets/dicts."""
        return hash(self.source_version)
