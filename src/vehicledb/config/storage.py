"""Where the vehicle store lives and how its transactions are isolated."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_choice, optional_env_var

APP_DIR_NAME: Final[str] = "vehicledb"
DEFAULT_DB_FILENAME: Final[str] = "vehicledb.db"

DEFAULT_ISOLATION_LEVEL: Final[str] = "SERIALIZABLE"
ISOLATION_LEVELS: Final[frozenset[str]] = frozenset(
    {
        "AUTOCOMMIT",
        "READ COMMITTED",
        "READ UNCOMMITTED",
        "REPEATABLE READ",
        "SERIALIZABLE",
    }
)


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Directory and file name of the default SQLite store."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, create_dir: bool = True) -> Path:
        directory = self.resolve_data_dir()
        if create_dir:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    isolation_level: str = DEFAULT_ISOLATION_LEVEL


def _platform_data_home() -> Path:
    if sys.platform == "win32":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    """``VEHICLEDB_DATA_DIR`` / ``VEHICLEDB_DB_FILENAME``, else the platform data home."""

    override = optional_env_var("VEHICLEDB_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(
        data_dir=data_dir.expanduser().resolve(),
        database_filename=optional_env_var("VEHICLEDB_DB_FILENAME") or DEFAULT_DB_FILENAME,
    )


def get_isolation_level() -> str:
    return env_choice("VEHICLEDB_ISOLATION_LEVEL", DEFAULT_ISOLATION_LEVEL, ISOLATION_LEVELS)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise the SQLite file from the storage config."""

    uri = optional_env_var("DATABASE_URI")
    if uri is None:
        uri = (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri, isolation_level=get_isolation_level())
