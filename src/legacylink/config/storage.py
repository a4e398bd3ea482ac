"""Database location helpers for the current-system and legacy databases."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import require_env_vars

APP_DIR_NAME: Final[str] = "legacylink"
DEFAULT_DB_FILENAME: Final[str] = "legacylink.db"
LEGACY_DATABASE_URI_VAR: Final[str] = "LEGACY_DATABASE_URI"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("LEGACYLINK_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_uri() -> str:
    """Return the current-system database URI, respecting ``DATABASE_URI``."""

    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return env_uri
    return get_storage_config().database_uri()


def get_legacy_database_uri() -> str:
    """Return the legacy database URI; there is no sensible default for it."""

    return require_env_vars((LEGACY_DATABASE_URI_VAR,))[LEGACY_DATABASE_URI_VAR]


def get_database_config() -> DatabaseConfig:
    return DatabaseConfig(uri=get_database_uri())
