"""Configuration for refvault.

Loads settings from environment variables with sensible defaults. A
BackupStoreConfig is resolved once and then passed around by value.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

DEFAULT_BASE_DIR = "./localdb/default"
DEFAULT_BACKUP_COUNT = 3
DEFAULT_BACKUPS_DIR_NAME = "backups"

LOG_LEVEL = os.environ.get("REFVAULT_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@dataclass(frozen=True)
class BackupStoreConfig:
    """Generational backup store configuration."""
    file_name: str
    base_dir: Path = field(default_factory=lambda: Path(DEFAULT_BASE_DIR))
    backup_count: int = DEFAULT_BACKUP_COUNT
    backups_dir_name: str = DEFAULT_BACKUPS_DIR_NAME

    def __post_init__(self) -> None:
        # extension separator is checked when paths are derived, not here
        if not self.file_name:
            raise ValueError("file_name must be a non-empty string")
        if not self.backups_dir_name:
            raise ValueError("backups_dir_name must be a non-empty string")
        if self.backup_count < 0:
            raise ValueError(f"backup_count must be >= 0, got {self.backup_count}")
        object.__setattr__(self, "base_dir", Path(self.base_dir))

    @classmethod
    def from_env(cls, file_name: str, **overrides: Any) -> "BackupStoreConfig":
        settings: dict[str, Any] = {
            "base_dir": Path(os.getenv("REFVAULT_BASE_DIR", DEFAULT_BASE_DIR)),
            "backup_count": int(os.getenv("REFVAULT_BACKUP_COUNT", str(DEFAULT_BACKUP_COUNT))),
            "backups_dir_name": os.getenv("REFVAULT_BACKUPS_DIR", DEFAULT_BACKUPS_DIR_NAME),
        }
        settings.update(overrides)
        return cls(file_name=file_name, **settings)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
