"""Pytest fixtures for Canteen migration tests"""
import sys
from contextlib import contextmanager
from typing import List, Optional

import pytest

from canteen.database import connect_sqlite
from canteen.errors import StatementExecutionError
from canteen.migrations import MigrationRegistry, MigrationUnit


class RecordingCursor:
    """Cursor stand-in returned by RecordingDatabase.execute()."""
    rowcount = 1

    def fetchall(self):
        return []


class RecordingDatabase:
    """
    Database double that records statements instead of running them.

    Statements containing ``fail_on`` raise StatementExecutionError, the same
    way a real driver error surfaces through Database.execute().
    """

    dialect = "mysql"
    placeholder = "%s"

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.executed: List[str] = []
        self.commits = 0
        self.rollbacks = 0

    def execute(self, statement, params=()):
        if self.fail_on and self.fail_on in statement:
            raise StatementExecutionError(statement, "simulated failure")
        self.executed.append(statement)
        return RecordingCursor()

    def query(self, statement, params=()):
        self.execute(statement, params)
        return []

    def truncate(self, table):
        self.execute(f"TRUNCATE TABLE `{table}`")

    @contextmanager
    def transaction(self):
        try:
            yield self
        except BaseException:
            self.rollbacks += 1
            raise
        else:
            self.commits += 1

    def close(self):
        pass


class MemoryVersionStore:
    """Version store double holding the schema version in memory."""

    def __init__(self, version: int = 1):
        self.version = version
        self.writes: List[int] = []

    def ensure_table(self):
        pass

    def get_schema_version(self) -> int:
        return self.version

    def set_schema_version(self, version: int) -> None:
        if version < 0:
            raise ValueError(f"Schema version must be >= 0, got {version}")
        self.version = version
        self.writes.append(version)


class CreateWidgets(MigrationUnit):
    """SQLite-compatible unit: v1 -> v2"""
    source_version = 1
    target_version = 2
    description = "Create widgets table"

    def statements(self):
        return ["CREATE TABLE widgets (id INTEGER PRIMARY KEY, name TEXT NOT NULL)"]


class AddWidgetColor(MigrationUnit):
    """SQLite-compatible unit: v2 -> v5"""
    source_version = 2
    target_version = 5
    description = "Add color to widgets"

    def statements(self):
        return ["ALTER TABLE widgets ADD COLUMN color TEXT NOT NULL DEFAULT 'red'"]


class BrokenWidgetIndex(MigrationUnit):
    """Unit whose second statement fails: v5 -> v6"""
    source_version = 5
    target_version = 6
    description = "Add an index on a missing column"

    def statements(self):
        return [
            "ALTER TABLE widgets ADD COLUMN size INTEGER NOT NULL DEFAULT 0",
            "CREATE INDEX idx_widgets_weight ON widgets(weight)",
        ]


@pytest.fixture
def sqlite_db(tmp_path):
    """Fresh SQLite database handle."""
    db = connect_sqlite(tmp_path / "canteen.sqlite")
    yield db
    db.close()


@pytest.fixture
def recording_db():
    """Statement-recording database double."""
    return RecordingDatabase()


@pytest.fixture
def widget_registry():
    """Registry with the SQLite-compatible widget chain (v1 -> v2 -> v5)."""
    registry = MigrationRegistry(versions_package=None)
    registry.register(CreateWidgets())
    registry.register(AddWidgetColor())
    return registry


@pytest.fixture
def upgrades_package(tmp_path, monkeypatch):
    """Importable package on sys.path holding the widget chain as modules."""
    package = tmp_path / "pkgroot" / "widget_upgrades"
    package.mkdir(parents=True)
    (package / "__init__.py").write_text('"""Widget upgrades."""\n')
    (package / "v001_create_widgets.py").write_text(
        "from canteen.migrations.migration_base import MigrationUnit\n"
        "\n"
        "\n"
        "class Migration(MigrationUnit):\n"
        "    source_version = 1\n"
        "    target_version = 2\n"
        "    description = 'Create widgets table'\n"
        "\n"
        "    def statements(self):\n"
        "        return ['CREATE TABLE widgets (id INTEGER PRIMARY KEY, name TEXT NOT NULL)']\n"
    )
    (package / "v002_add_widget_color.py").write_text(
        "from canteen.migrations.migration_base import MigrationUnit\n"
        "\n"
        "\n"
        "class Migration(MigrationUnit):\n"
        "    source_version = 2\n"
        "    target_version = 5\n"
        "    description = 'Add color to widgets'\n"
        "\n"
        "    def statements(self):\n"
        "        return [\"ALTER TABLE widgets ADD COLUMN color TEXT NOT NULL DEFAULT 'red'\"]\n"
    )
    monkeypatch.syspath_prepend(str(tmp_path / "pkgroot"))
    for name in [m for m in sys.modules if m.split(".")[0] == "widget_upgrades"]:
        monkeypatch.delitem(sys.modules, name)
    return "widget_upgrades"
