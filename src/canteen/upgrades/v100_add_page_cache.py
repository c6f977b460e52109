"""
Upgrade v100 -> v101: Add page-specific caching

Adds the cache flag to pages, placed after the privilege column.
"""

from typing import List

from canteen.migrations.migration_base import MigrationUnit


class Migration(MigrationUnit):
    """
    Add the cache column to the pages table.

    cache is a 1-bit flag (0 = render every request, 1 = cacheable),
    NOT NULL with a default of 0 so existing pages stay uncached.
    """

    source_version = 100
    target_version = 101
    description = "Add page-specific caching"

    def statements(self) -> List[str]:
        return [
            "ALTER TABLE pages ADD cache TINYINT(1) UNSIGNED NOT NULL DEFAULT '0' AFTER privilege"
        ]
