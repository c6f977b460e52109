"""
Migration Runner for Canteen

Drives the upgrade chain: reads the stored schema version, picks the unit
whose source version matches, applies it, records the version it returns, and
repeats until the target is reached or no unit applies.

Guarantees:
- Sequential, single-threaded execution in source-version order
- A unit never runs against a version other than its source version
- Statements and the version bump share one transaction
- No retries; the first failure propagates to the caller
"""

import logging
import time
from datetime import datetime
from enum import Enum
from typing import List, Optional

from canteen.database import Database
from canteen.errors import MigrationError, VersionMismatchError

from .manager import ConfigVersionStore, MigrationRecord
from .migration_base import MigrationUnit
from .registry import MigrationRegistry

logger = logging.getLogger(__name__)


class UpgradeStatus(Enum):
    """Result of comparing the stored version with a target."""
    CURRENT = "current"          # at the target
    PENDING = "pending"          # behind, and a unit starts at the stored version
    UNREACHABLE = "unreachable"  # behind, but no unit starts at the stored version
    AHEAD = "ahead"              # past the target


class MigrationRunner:
    """
    Migration Runner - Applies registered units against one database

    Pattern: Explicit handle, registry and version store; nothing global
    Lifetime: Created for one migration session

    Example:
        db = connect_sqlite(Path("canteen.sqlite"))
        runner = MigrationRunner(db)
        for record in runner.upgrade():
            print(f"v{record.source_version} -> v{record.target_version}")
    """

    def __init__(self,
                 db: Database,
                 registry: Optional[MigrationRegistry] = None,
                 version_store: Optional[ConfigVersionStore] = None):
        """
        Initialize the runner.

        Args:
            db: Database handle (borrowed, never closed here)
            registry: Registry of units (default: discover canteen.upgrades)
            version_store: Where the version lives (default: config table row)
        """
        self.db = db
        self.registry = registry if registry is not None else MigrationRegistry()
        self.version_store = version_store if version_store is not None else ConfigVersionStore(db)

    def get_current_version(self) -> int:
        """Get the stored schema version."""
        return self.version_store.get_schema_version()

    def set_current_version(self, version: int) -> None:
        """
        Persist a new schema version.

        Raises:
            ValueError: If the version is negative or lower than the stored one
        """
        current = self.get_current_version()
        if version < current:
            raise ValueError(
                f"Schema version cannot decrease: v{current} -> v{version}"
            )
        self.version_store.set_schema_version(version)

    def _resolve_target(self, target: Optional[int]) -> int:
        return self.registry.get_latest_version() if target is None else target

    def plan(self, target: Optional[int] = None) -> List[MigrationUnit]:
        """
        List the units upgrade() would apply, without touching the database.

        Args:
            target: Version to stop at (default: latest)
        """
        return self.registry.get_pending_migrations(
            self.get_current_version(),
            self._resolve_target(target)
        )

    def check(self, target: Optional[int] = None) -> UpgradeStatus:
        """
        Compare the stored version with a target.

        Args:
            target: Version the site expects (default: latest)
        """
        target = self._resolve_target(target)
        version = self.get_current_version()

        if version == target:
            return UpgradeStatus.CURRENT
        if version > target:
            return UpgradeStatus.AHEAD
        if self.registry.get_migration(version) is None:
            return UpgradeStatus.UNREACHABLE
        return UpgradeStatus.PENDING

    def apply(self, unit: MigrationUnit) -> MigrationRecord:
        """
        Apply a single unit.

        Args:
            unit: Unit to apply; its source version must match the stored version

        Returns:
            Record of the applied unit

        Raises:
            VersionMismatchError: If the stored version differs (nothing executes)
            MigrationFailure: If a statement fails (version is not advanced)
        """
        current = self.get_current_version()
        if current != unit.source_version:
            raise VersionMismatchError(unit.source_version, current)

        logger.info(f"Applying {unit}")
        started = time.perf_counter()

        try:
            with self.db.transaction():
                new_version = unit.apply(self.db)
                self.set_current_version(new_version)
        except MigrationError as e:
            logger.error(f"{unit} failed, schema left at v{current}: {e}")
            raise

        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(f"Schema now at v{new_version} ({duration_ms} ms)")

        return MigrationRecord(
            source_version=unit.source_version,
            target_version=new_version,
            description=unit.description,
            applied_at=datetime.now(),
            duration_ms=duration_ms
        )

    def upgrade(self,
                target: Optional[int] = None,
                dry_run: bool = False) -> List[MigrationRecord]:
        """
        Apply units until the target version is reached or no unit applies.

        Args:
            target: Version to stop at (default: latest)
            dry_run: Only report what would be applied

        Returns:
            Records for each applied (or, in dry-run mode, planned) unit

        Raises:
            MigrationFailure: If a unit fails; earlier units stay applied
        """
        target = self._resolve_target(target)
        pending = self.plan(target)

        if dry_run:
            return [
                MigrationRecord(
                    source_version=unit.source_version,
                    target_version=unit.target_version,
                    description=unit.description,
                    dry_run=True
                )
                for unit in pending
            ]

        records = [self.apply(unit) for unit in pending]

        final = self.get_current_version()
        if final < target:
            logger.warning(
                f"Stopped at v{final}: no migration upgrades from v{final} towards v{target}"
            )
        return records
