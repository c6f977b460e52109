"""
Upgrade v1 -> v100: Track the database version in config

Sites installed before version tracking have no version setting. This upgrade
changes no schema; recording its target version creates the config row
(value_type 'integer') under whichever variable name the version store uses.
"""

from typing import List

from canteen.migrations.migration_base import MigrationUnit


class Migration(MigrationUnit):
    """Start tracking the schema version in config."""

    source_version = 1
    target_version = 100
    description = "Add a dbVersion config to the database"

    def statements(self) -> List[str]:
        return []
