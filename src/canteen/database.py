"""
Database handle for Canteen migrations.

Wraps a DB-API 2.0 connection so that migration units and the runner share a
single, explicitly passed handle instead of reaching for a site-wide global.

Supported drivers:
- sqlite: standard library sqlite3 (default, used for local sites and tests)
- mysql: PyMySQL, installed with the ``mysql`` extra

Driver errors are converted to StatementExecutionError so callers never have
to know which driver is underneath.
"""

import logging
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence, Tuple, Type

from .errors import ConfigError, StatementExecutionError

logger = logging.getLogger(__name__)

SUPPORTED_DRIVERS = ("sqlite", "mysql")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Database:
    """
    Database - Thin statement executor over a DB-API connection

    Pattern: Borrowed handle, the caller owns the connection lifetime
    Lifetime: One per process (or per test)

    Example:
        db = connect_sqlite(Path("canteen.sqlite"))
        db.execute("ALTER TABLE pages ADD cache INTEGER NOT NULL DEFAULT 0")
        with db.transaction():
            db.execute("UPDATE config SET value = ? WHERE name = ?", ("101", "dbVersion"))
    """

    def __init__(self,
                 connection: Any,
                 dialect: str = "sqlite",
                 driver_error: Type[Exception] = sqlite3.Error):
        """
        Initialize the handle.

        Args:
            connection: Open DB-API connection
            dialect: "sqlite" or "mysql", selects dialect-specific SQL
            driver_error: Base exception class raised by the driver
        """
        if dialect not in SUPPORTED_DRIVERS:
            raise ConfigError(f"Unsupported database dialect: {dialect}")

        self._conn = connection
        self.dialect = dialect
        self._driver_error = driver_error
        self._in_transaction = False

    @property
    def placeholder(self) -> str:
        """Parameter marker for the driver's paramstyle."""
        return "?" if self.dialect == "sqlite" else "%s"

    def execute(self, statement: str, params: Sequence[Any] = ()) -> Any:
        """
        Execute a single statement.

        Args:
            statement: SQL statement
            params: Bound parameters, using ``placeholder`` markers

        Returns:
            The driver cursor

        Raises:
            StatementExecutionError: If the database rejects the statement
        """
        logger.debug(f"Executing: {statement}")
        cursor = self._conn.cursor()
        try:
            if params:
                cursor.execute(statement, tuple(params))
            else:
                cursor.execute(statement)
        except self._driver_error as e:
            raise StatementExecutionError(statement, str(e)) from e
        return cursor

    def query(self, statement: str, params: Sequence[Any] = ()) -> List[Tuple[Any, ...]]:
        """Execute a statement and fetch all rows."""
        cursor = self.execute(statement, params)
        try:
            return [tuple(row) for row in cursor.fetchall()]
        except self._driver_error as e:
            raise StatementExecutionError(statement, str(e)) from e

    def truncate(self, table: str) -> None:
        """Remove every row from a table."""
        _check_identifier(table)
        if self.dialect == "sqlite":
            # SQLite has no TRUNCATE; an unqualified DELETE uses the truncate optimization
            self.execute(f"DELETE FROM {table}")
        else:
            self.execute(f"TRUNCATE TABLE `{table}`")

    def table_exists(self, table: str) -> bool:
        """Check whether a table exists in the current database."""
        _check_identifier(table)
        if self.dialect == "sqlite":
            rows = self.query(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (table,)
            )
        else:
            rows = self.query("SHOW TABLES LIKE %s", (table,))
        return len(rows) > 0

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Run the enclosed statements as one transaction.

        Commits on success and rolls back on any exception. Nested use joins the
        outer transaction. MySQL commits DDL implicitly, so only SQLite gets
        all-or-nothing schema changes.
        """
        if self._in_transaction:
            yield self
            return

        self._begin()
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()
        finally:
            self._in_transaction = False

    def _begin(self) -> None:
        if self.dialect == "sqlite":
            if not getattr(self._conn, "in_transaction", False):
                self.execute("BEGIN")
        elif hasattr(self._conn, "begin"):
            self._conn.begin()

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def __repr__(self) -> str:
        return f"<Database dialect={self.dialect}>"


def _check_identifier(name: str) -> None:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid table name: {name!r}")


def connect_sqlite(db_path: Path) -> Database:
    """
    Open a SQLite database in autocommit mode.

    Args:
        db_path: Path to the SQLite file (or ":memory:")

    Raises:
        ConfigError: If the file cannot be created or opened
    """
    try:
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        # isolation_level=None leaves transaction control to Database.transaction()
        conn = sqlite3.connect(
            str(db_path),
            isolation_level=None,
            timeout=30.0
        )
    except (sqlite3.Error, OSError) as e:
        raise ConfigError(f"Cannot open SQLite database {db_path}: {e}") from e
    return Database(conn, dialect="sqlite", driver_error=sqlite3.Error)


def connect_mysql(host: str = "localhost",
                  port: int = 3306,
                  user: str = "canteen",
                  password: str = "",
                  name: Optional[str] = "canteen") -> Database:
    """
    Open a MySQL database through PyMySQL.

    Raises:
        ConfigError: If PyMySQL is not installed or the server refuses the connection
    """
    try:
        import pymysql
    except ImportError as e:
        raise ConfigError(
            "The mysql driver requires PyMySQL: pip install canteen-migrations[mysql]"
        ) from e

    try:
        conn = pymysql.connect(
            host=host,
            port=int(port),
            user=user,
            password=password,
            database=name,
            autocommit=True
        )
    except (pymysql.MySQLError, OSError) as e:
        raise ConfigError(f"Cannot connect to MySQL at {host}:{port}: {e}") from e
    return Database(conn, dialect="mysql", driver_error=pymysql.MySQLError)
