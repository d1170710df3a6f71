"""Wiring of the record store, refresh coordinator and searcher."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from pkgsearch.config import AppConfig
from pkgsearch.index.documents import DocumentBuilder
from pkgsearch.index.indexer import RefreshCoordinator, RefreshStats
from pkgsearch.index.search import Searcher
from pkgsearch.index.storage import SQLitePackageStore
from pkgsearch.models import PackageRecord, SearchPage

LOGGER = logging.getLogger(__name__)


class SearchService:
    """Single entry point used by the CLI and the web app."""

    def __init__(self, store: SQLitePackageStore, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.store = store
        self.builder = DocumentBuilder(max_path_segments=self.config.max_path_segments)
        self.coordinator = RefreshCoordinator(store, self.builder)
        self.searcher = Searcher(self.coordinator)

    @classmethod
    def from_config(cls, config: AppConfig, base_dir: Path | None = None) -> "SearchService":
        db_path = config.resolve_db_path(base_dir)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(SQLitePackageStore(db_path), config)

    def insert(self, record: PackageRecord) -> str:
        """Validate and store ``record``; it becomes searchable after the next refresh."""
        self.builder.validate(record)
        status = self.store.upsert_record(record)
        LOGGER.debug("%s %s@%s", status, record.package_path, record.version)
        return status

    def refresh(self) -> RefreshStats:
        return self.coordinator.refresh()

    def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        offset: int = 0,
        cancel: threading.Event | None = None,
    ) -> SearchPage:
        if limit is None:
            limit = self.config.default_limit
        return self.searcher.search(query, limit=limit, offset=offset, cancel=cancel)

    def start(self) -> None:
        if self.config.refresh_interval > 0:
            self.coordinator.start(self.config.refresh_interval)

    def close(self) -> None:
        self.coordinator.stop()
        self.store.close()
