"""Tests for Canteen CLI

Uses Click's test runner for command testing.
"""

import json
import sys
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from canteen.cli import cli
from canteen.database import connect_sqlite
from canteen.migrations import ConfigVersionStore


@pytest.fixture
def site(tmp_path):
    """Paths for an isolated site: missing config file plus a SQLite database."""
    return {
        "config": tmp_path / "absent.yaml",
        "database": tmp_path / "site.sqlite",
    }


def invoke(site, *args):
    runner = CliRunner()
    return runner.invoke(
        cli,
        ["--config", str(site["config"]), "--database", str(site["database"]), *args],
    )


def stored_version(site):
    db = connect_sqlite(site["database"])
    try:
        return ConfigVersionStore(db).get_schema_version()
    finally:
        db.close()


def write_widget_config(site, package):
    site["config"] = site["database"].parent / "canteen.yaml"
    site["config"].write_text(f"migrations:\n  package: {package}\n")


class TestCLIStatus:
    """Tests for 'canteen-migrate status'."""

    def test_status_fresh_database(self, site):
        result = invoke(site, "status")

        assert result.exit_code == 0
        assert "Schema version: 1" in result.output
        assert "Target version: 103" in result.output
        assert "pending" in result.output
        assert "v100 -> v101" in result.output

    def test_status_quiet(self, site):
        result = invoke(site, "-q", "status")

        assert result.exit_code == 0
        assert result.output.strip() == "pending"

    def test_status_unreachable(self, site, upgrades_package):
        write_widget_config(site, upgrades_package)
        invoke(site, "upgrade")

        result = invoke(site, "status", "--target", "9")

        assert result.exit_code == 1
        assert "unreachable" in result.output


class TestCLIUpgrade:
    """Tests for 'canteen-migrate upgrade'."""

    def test_upgrade_to_target(self, site):
        result = invoke(site, "upgrade", "--target", "100")

        assert result.exit_code == 0
        assert "v1 -> v100" in result.output
        assert result.output.strip().splitlines()[-1] == "100"
        assert stored_version(site) == 100

    def test_upgrade_quiet_prints_version(self, site):
        result = invoke(site, "-q", "upgrade", "--target", "100")

        assert result.exit_code == 0
        assert result.output.strip() == "100"

    def test_upgrade_dry_run(self, site):
        result = invoke(site, "upgrade", "--dry-run")

        assert result.exit_code == 0
        assert "would apply" in result.output
        assert "v102 -> v103" in result.output
        assert stored_version(site) == 1

    def test_upgrade_failure_keeps_version(self, site):
        invoke(site, "upgrade", "--target", "100")

        # pages does not exist in this database, so v100 -> v101 is rejected
        result = invoke(site, "upgrade")

        assert result.exit_code == 1
        assert "Error" in result.output
        assert stored_version(site) == 100

    def test_upgrade_nothing_to_apply(self, site, upgrades_package):
        write_widget_config(site, upgrades_package)
        invoke(site, "upgrade")

        result = invoke(site, "upgrade")

        assert result.exit_code == 0
        assert "Nothing to apply" in result.output
        assert result.output.strip().splitlines()[-1] == "5"

    def test_upgrade_custom_package(self, site, upgrades_package):
        write_widget_config(site, upgrades_package)

        result = invoke(site, "upgrade")

        assert result.exit_code == 0
        assert stored_version(site) == 5

        db = connect_sqlite(site["database"])
        try:
            assert db.table_exists("widgets")
        finally:
            db.close()


class TestCLIList:
    """Tests for 'canteen-migrate list'."""

    def test_list_chain(self, site):
        result = invoke(site, "list")

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if line]
        assert len(lines) == 4
        assert lines[0].startswith("* v1 -> v100")

    def test_list_marks_applied(self, site):
        invoke(site, "upgrade", "--target", "100")

        result = invoke(site, "list")

        lines = [line for line in result.output.splitlines() if line]
        assert lines[0].startswith("  v1 -> v100")
        assert lines[1].startswith("* v100 -> v101")


class TestCLIOptions:
    """Global option handling."""

    def test_verbose_and_quiet_exclusive(self, site):
        result = invoke(site, "-v", "-q", "status")

        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_invalid_config(self, site):
        site["config"] = site["database"].parent / "canteen.yaml"
        site["config"].write_text("database:\n  driver: oracle\n")

        result = invoke(site, "status")

        assert result.exit_code == 1
        assert "Unknown database driver" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "canteen-migrate" in result.output


class TestCLIConnectErrors:
    """Connection failures end with an error message, not a traceback."""

    def test_sqlite_path_not_openable(self, site, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        site["database"] = blocker / "sub" / "site.sqlite"

        result = invoke(site, "status")

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Cannot open SQLite database" in result.output

    def test_mysql_unreachable(self, tmp_path):
        config = tmp_path / "canteen.yaml"
        config.write_text("database:\n  driver: mysql\n  port: 1\n")

        fake = MagicMock()
        fake.MySQLError = type("MySQLError", (Exception,), {})
        fake.connect.side_effect = fake.MySQLError(2003, "Can't connect to MySQL server")

        with patch.dict(sys.modules, {"pymysql": fake}):
            result = CliRunner().invoke(cli, ["--config", str(config), "status"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Cannot connect to MySQL at localhost:1" in result.output


class TestCLIJsonOutput:
    """'canteen-migrate upgrade --json-output'."""

    def test_upgrade_json(self, site, upgrades_package):
        write_widget_config(site, upgrades_package)

        result = invoke(site, "upgrade", "--json-output")

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["version"] == 5
        assert [(r["source_version"], r["target_version"]) for r in output["records"]] == [
            (1, 2), (2, 5)
        ]
        assert output["records"][0]["dry_run"] is False
        assert output["records"][0]["applied_at"] is not None

    def test_dry_run_json(self, site):
        result = invoke(site, "upgrade", "--dry-run", "--json-output")

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["version"] == 1
        assert len(output["records"]) == 4
        assert all(r["dry_run"] and r["applied_at"] is None for r in output["records"])
