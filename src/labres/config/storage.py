"""Location of the local SQLite database used by the ``sqlite`` backend and identity links."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "labres"
DEFAULT_DB_FILENAME: Final[str] = "labres.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory plus an optional ``DATABASE_URI`` that bypasses it entirely."""

    data_dir: Path
    database_uri_override: str | None = None

    @property
    def database_path(self) -> Path:
        return self.data_dir / DEFAULT_DB_FILENAME

    def database_uri(self) -> str:
        if self.database_uri_override:
            return self.database_uri_override
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{self.database_path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _xdg_data_home() -> Path:
    base = os.getenv("XDG_DATA_HOME")
    return Path(base) if base else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("LABRES_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _xdg_data_home() / APP_DIR_NAME
    return StorageConfig(
        data_dir=data_dir.expanduser().resolve(),
        database_uri_override=os.getenv("DATABASE_URI") or None,
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())
