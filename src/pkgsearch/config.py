"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DB_ENV_VAR = "PKGSEARCH_DB"


def _get_default_db_path() -> Path:
    """Get the default database path, honouring the PKGSEARCH_DB override."""
    override = os.environ.get(DB_ENV_VAR)
    if override:
        return Path(override)
    return Path("data/pkgsearch.db")


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    default_limit: int = 10
    max_limit: int = 100
    # Seconds between scheduled refreshes; 0 disables the background loop.
    refresh_interval: float = 300.0
    max_path_segments: int = 64

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
