"""
Migration Registry for Canteen

Discovers and registers available database upgrades.

Features:
- Auto-discovery of units from the upgrades package
- Chain validation (no duplicate sources, no broken links)
- Ordered sequencing by source version
- Query available and pending units
"""

import importlib
import inspect
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .migration_base import MigrationUnit

logger = logging.getLogger(__name__)


class MigrationRegistry:
    """
    Migration Registry - Discovers and manages available upgrades

    Pattern: Auto-discovery from an upgrades package with chain validation
    Lifetime: Created on-demand for migration operations

    Features:
    - Discovers units from the canteen.upgrades package
    - Validates that units form one unbroken chain
    - Provides ordered list of units
    - Follows the chain from a stored version to find pending units
    - Supports manual registration for testing

    Example:
        registry = MigrationRegistry()
        registry.discover()
        for unit in registry.get_pending_migrations(current_version=100):
            print(f"Apply {unit}")
    """

    def __init__(self, versions_package: Optional[str] = "canteen.upgrades"):
        """
        Initialize Migration Registry.

        Args:
            versions_package: Python package containing upgrade modules
                              (default: "canteen.upgrades"). None disables
                              discovery, leaving manual registration only.
        """
        self.versions_package = versions_package
        self._migrations: Dict[int, MigrationUnit] = {}
        self._discovered = versions_package is None

    def discover(self) -> None:
        """
        Discover and register all units from the upgrades package.

        Scans the package for public modules, imports them, and registers
        every MigrationUnit subclass defined there.

        Raises:
            ValueError: If a unit cannot be instantiated or the chain is invalid
        """
        if self._discovered:
            return

        try:
            package = importlib.import_module(self.versions_package)
        except ImportError:
            logger.warning(f"Upgrades package '{self.versions_package}' not found")
            self._discovered = True
            return

        package_path = Path(package.__file__).parent

        for module_file in sorted(package_path.glob("*.py")):
            # Skip __init__.py and private helpers
            if module_file.name.startswith("_"):
                continue

            module_name = f"{self.versions_package}.{module_file.stem}"
            module = importlib.import_module(module_name)

            for name, obj in inspect.getmembers(module, inspect.isclass):
                if (issubclass(obj, MigrationUnit) and
                        obj is not MigrationUnit and
                        obj.__module__ == module_name):
                    try:
                        unit = obj()
                    except ValueError as e:
                        raise ValueError(
                            f"Failed to instantiate migration {name} in {module_name}: {e}"
                        ) from e
                    self.register(unit)

        self._validate_sequence()
        self._discovered = True
        logger.debug(f"Discovered {len(self._migrations)} migrations in '{self.versions_package}'")

    def register(self, unit: MigrationUnit) -> None:
        """
        Manually register a unit.

        Args:
            unit: Migration unit to register

        Raises:
            ValueError: If a unit with the same source version is registered
        """
        if unit.source_version in self._migrations:
            existing = self._migrations[unit.source_version]
            raise ValueError(
                f"Duplicate migration source version {unit.source_version}: "
                f"{unit} conflicts with {existing}"
            )

        self._migrations[unit.source_version] = unit

    def _validate_sequence(self) -> None:
        """
        Validate that the registered units form one chain.

        Sorted by source version, each unit's target must be the next
        unit's source.

        Raises:
            ValueError: If the chain is broken
        """
        units = [self._migrations[v] for v in sorted(self._migrations)]

        for current, following in zip(units, units[1:]):
            if current.target_version != following.source_version:
                raise ValueError(
                    f"Migration chain broken: {current} ends at v{current.target_version} "
                    f"but the next migration starts at v{following.source_version}"
                )

    def _ensure_discovered(self) -> None:
        if not self._discovered:
            self.discover()

    def get_migration(self, source_version: int) -> Optional[MigrationUnit]:
        """
        Get the unit that upgrades from a version.

        Returns:
            Migration unit or None if not found
        """
        self._ensure_discovered()
        return self._migrations.get(source_version)

    def get_all_migrations(self) -> List[MigrationUnit]:
        """Get all registered units in source-version order."""
        self._ensure_discovered()
        return [self._migrations[v] for v in sorted(self._migrations)]

    def get_pending_migrations(self,
                               current_version: int,
                               target_version: Optional[int] = None) -> List[MigrationUnit]:
        """
        Get the units that need to be applied.

        Follows the chain from current_version, stopping when no unit starts
        at the reached version or when target_version has been reached.

        Args:
            current_version: Current schema version from the database
            target_version: Stop once this version is reached (default: latest)

        Returns:
            List of pending units in the order to apply
        """
        self._ensure_discovered()

        pending = []
        version = current_version
        while target_version is None or version < target_version:
            unit = self._migrations.get(version)
            if unit is None:
                break
            pending.append(unit)
            version = unit.target_version

        return pending

    def get_latest_version(self) -> int:
        """
        Get the version the last unit in the chain produces.

        Returns:
            Latest schema version, or 0 if no units
        """
        self._ensure_discovered()

        if not self._migrations:
            return 0

        return max(unit.target_version for unit in self._migrations.values())

    def has_migrations(self) -> bool:
        """Check if any units are registered."""
        self._ensure_discovered()
        return len(self._migrations) > 0

    def get_migration_count(self) -> int:
        """Get total number of registered units."""
        self._ensure_discovered()
        return len(self._migrations)

    def clear(self) -> None:
        """
        Clear all registered units.

        Useful for testing or resetting the registry.
        """
        self._migrations.clear()
        self._discovered = self.versions_package is None

    def __repr__(self) -> str:
        """String representation for debugging."""
        count = len(self._migrations)
        latest = max((u.target_version for u in self._migrations.values()), default=0)
        return f"<MigrationRegistry: {count} migrations, latest v{latest}>"
