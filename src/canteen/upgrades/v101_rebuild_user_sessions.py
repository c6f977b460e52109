"""
Upgrade v101 -> v102: Rebuild the users_sessions table

Sessions are disposable, so the table is emptied before its keys change:
- ip_address grows to 45 characters for IPv6 (including IPv4 tunneling)
- the unused updated column is dropped
- user_id matches the users table type and is no longer unique
- session_id becomes the primary key
"""

from typing import List

from canteen.database import Database
from canteen.errors import MigrationFailure, StatementExecutionError
from canteen.migrations.migration_base import MigrationUnit

SESSIONS_TABLE = "users_sessions"


class Migration(MigrationUnit):
    """Rework users_sessions keys and column types."""

    source_version = 101
    target_version = 102
    description = "Rebuild users_sessions for IPv6 addresses and per-session keys"

    def apply(self, db: Database) -> int:
        # Emptied through the handle so the dialect picks TRUNCATE or DELETE
        try:
            db.truncate(SESSIONS_TABLE)
        except StatementExecutionError as e:
            raise MigrationFailure(
                self.source_version,
                self.target_version,
                str(e),
                statement=e.statement
            ) from e
        return super().apply(db)

    def statements(self) -> List[str]:
        return [
            "ALTER TABLE `users_sessions` CHANGE `ip_address` `ip_address` VARCHAR(45) "
            "CHARACTER SET latin1 COLLATE latin1_swedish_ci NOT NULL",
            "ALTER TABLE `users_sessions` DROP `updated`",
            "ALTER TABLE `users_sessions` CHANGE `user_id` `user_id` INT(10) UNSIGNED NOT NULL",
            "ALTER TABLE `users_sessions` ADD INDEX (`user_id`)",
            "ALTER TABLE `users_sessions` DROP PRIMARY KEY",
            "ALTER TABLE `users_sessions` ADD PRIMARY KEY (`session_id`)",
        ]
