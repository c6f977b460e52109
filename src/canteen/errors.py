"""
Exceptions raised by the Canteen migration system.

Hierarchy:
- MigrationError: base for everything below
- StatementExecutionError: the database rejected a statement
- MigrationFailure: a migration unit could not be applied
- VersionMismatchError: stored schema version differs from what a unit expects
- ConfigError: the migration configuration is unusable
"""

from typing import Optional


class MigrationError(Exception):
    """Base exception for migration-related errors"""
    pass


class StatementExecutionError(MigrationError):
    """Raised when the database rejects a statement"""

    def __init__(self, statement: str, message: str):
        self.statement = statement
        super().__init__(f"{message} (statement: {statement})")


class MigrationFailure(MigrationError):
    """Raised when a migration unit fails; the schema version is left untouched"""

    def __init__(self,
                 source_version: int,
                 target_version: int,
                 message: str,
                 statement: Optional[str] = None):
        self.source_version = source_version
        self.target_version = target_version
        self.statement = statement
        super().__init__(
            f"Migration v{source_version} -> v{target_version} failed: {message}"
        )


class VersionMismatchError(MigrationError):
    """Raised when a unit is applied against the wrong schema version"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Schema version mismatch: expected v{expected}, database is at v{actual}"
        )


class ConfigError(MigrationError):
    """Raised when the migration configuration is invalid"""
    pass
