"""
Migration configuration.

Settings come from a YAML file (default: ./canteen.yaml, or CANTEEN_CONFIG).
A missing file means defaults: a local SQLite database and the bundled
upgrade chain.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .database import SUPPORTED_DRIVERS, Database, connect_mysql, connect_sqlite
from .errors import ConfigError
from .migrations.manager import DEFAULT_VARIABLE

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("canteen.yaml")
DEFAULT_SQLITE_PATH = Path("canteen.sqlite")
CONFIG_ENV_VAR = "CANTEEN_CONFIG"


@dataclass
class DatabaseConfig:
    """Connection settings."""
    driver: str = "sqlite"
    path: Path = DEFAULT_SQLITE_PATH
    host: str = "localhost"
    port: int = 3306
    user: str = "canteen"
    password: str = ""
    name: Optional[str] = "canteen"


@dataclass
class MigrationConfig:
    """Everything needed to run the upgrade chain."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    variable: str = DEFAULT_VARIABLE
    package: str = "canteen.upgrades"
    target: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """
        Build a config from parsed YAML.

        Raises:
            ConfigError: If a section or value has the wrong shape
        """
        db_data = data.get("database") or {}
        mig_data = data.get("migrations") or {}
        if not isinstance(db_data, dict) or not isinstance(mig_data, dict):
            raise ConfigError("'database' and 'migrations' must be mappings")

        driver = db_data.get("driver", "sqlite")
        if driver not in SUPPORTED_DRIVERS:
            raise ConfigError(
                f"Unknown database driver '{driver}' (expected one of {', '.join(SUPPORTED_DRIVERS)})"
            )

        target = mig_data.get("target")
        try:
            database = DatabaseConfig(
                driver=driver,
                path=Path(db_data.get("path", DEFAULT_SQLITE_PATH)),
                host=str(db_data.get("host", "localhost")),
                port=int(db_data.get("port", 3306)),
                user=str(db_data.get("user", "canteen")),
                password=str(db_data.get("password", "")),
                name=db_data.get("name", "canteen"),
            )
            target = int(target) if target is not None else None
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

        return cls(
            database=database,
            variable=str(mig_data.get("variable", DEFAULT_VARIABLE)),
            package=str(mig_data.get("package", "canteen.upgrades")),
            target=target,
        )

    def connect(self) -> Database:
        """Open the configured database."""
        db = self.database
        if db.driver == "mysql":
            return connect_mysql(
                host=db.host,
                port=db.port,
                user=db.user,
                password=db.password,
                name=db.name,
            )
        return connect_sqlite(db.path)


def get_config_path(cli_path: Optional[Path] = None) -> Path:
    """Get the config file path.

    Priority: --config flag > CANTEEN_CONFIG env var > ./canteen.yaml.

    Args:
        cli_path: Value from --config CLI option, if provided.
    """
    if cli_path:
        return Path(cli_path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: Optional[Path] = None) -> MigrationConfig:
    """
    Load configuration from YAML.

    Args:
        path: Config file; missing files yield the defaults

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values
    """
    config_path = get_config_path(path)
    if not config_path.exists():
        logger.debug(f"No config at {config_path}, using defaults")
        return MigrationConfig()

    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    return MigrationConfig.from_dict(data)
