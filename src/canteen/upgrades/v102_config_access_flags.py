"""
Upgrade v102 -> v103: Per-setting access flags

Adds the page value type and an access bitmask to config rows, then sets
the flags for the built-in settings.
"""

from typing import List

from canteen.migrations.migration_base import MigrationUnit

# Setting access bits
CLIENT = 1
RENDER = 2
WRITE = 4
DELETE = 8

SETTING_ACCESS = [
    ("siteIndex", CLIENT),
    ("siteTitle", WRITE | RENDER),
    ("clientEnabled", WRITE | CLIENT),
    ("dbVersion", 0),
    ("templatePath", WRITE),
    ("contentPath", WRITE),
]


class Migration(MigrationUnit):
    """Add config access flags."""

    source_version = 102
    target_version = 103
    description = "Add access flags and the page value type to config"

    def statements(self) -> List[str]:
        statements = [
            "ALTER TABLE `config` CHANGE `value_type` `value_type` "
            "SET('string', 'path', 'boolean', 'integer', 'page') "
            "CHARACTER SET latin1 COLLATE latin1_swedish_ci NOT NULL DEFAULT 'string'",
            "ALTER TABLE `config` ADD `access` TINYINT(1) UNSIGNED NOT NULL DEFAULT '0'",
        ]
        for name, access in SETTING_ACCESS:
            statements.append(
                f"UPDATE `config` SET `access` = {access} WHERE `name` = '{name}'"
            )
        return statements
