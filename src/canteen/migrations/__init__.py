"""
Canteen Migration System

Applies forward-only schema upgrades to the Canteen site database.

Key Features:
- Schema version tracked in the site config table (dbVersion)
- Upgrades discovered from the canteen.upgrades package
- Chain validation (each upgrade starts where the previous one ends)
- Dry-run support
- Version bump committed together with the upgrade's statements
"""

from .manager import ConfigVersionStore, MigrationRecord
from .migration_base import MigrationUnit
from .registry import MigrationRegistry
from .runner import MigrationRunner, UpgradeStatus

__all__ = [
    "ConfigVersionStore",
    "MigrationRecord",
    "MigrationRegistry",
    "MigrationRunner",
    "MigrationUnit",
    "UpgradeStatus",
]
