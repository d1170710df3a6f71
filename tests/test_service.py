"""Tests for SearchService wiring."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from pkgsearch.config import AppConfig
from pkgsearch.errors import InvalidRecord
from pkgsearch.models import PackageRecord
from pkgsearch.service import SearchService


@pytest.fixture
def service(tmp_path: Path):
    svc = SearchService.from_config(AppConfig(db_path=tmp_path / "db" / "pkg.db", refresh_interval=0))
    yield svc
    svc.close()


def record(package_path: str, version: str = "v1.0.0", synopsis: str = "", popularity: int = 0) -> PackageRecord:
    return PackageRecord(
        package_path=package_path,
        module_path="example.com/mod",
        version=version,
        name=package_path.rsplit("/", 1)[-1],
        synopsis=synopsis,
        num_imported_by=popularity,
    )


class TestSearchService:
    def test_from_config_creates_parent(self, tmp_path: Path) -> None:
        svc = SearchService.from_config(AppConfig(db_path=Path("nested/pkg.db")), tmp_path)
        try:
            assert (tmp_path / "nested").is_dir()
            assert svc.store.db_path == tmp_path / "nested" / "pkg.db"
        finally:
            svc.close()

    def test_insert_visible_after_refresh(self, service: SearchService) -> None:
        assert service.insert(record("example.com/mod/retry", synopsis="Retry with backoff")) == "inserted"

        assert service.search("backoff").total == 0
        service.refresh()
        assert service.search("backoff").total == 1

    def test_insert_rejects_invalid(self, service: SearchService) -> None:
        with pytest.raises(InvalidRecord):
            service.insert(record("", version="v1.0.0"))
        with pytest.raises(InvalidRecord):
            service.insert(record("a/b", version="head"))
        assert service.store.count() == 0

    def test_newer_version_supersedes(self, service: SearchService) -> None:
        service.insert(record("example.com/mod/cache", synopsis="in-memory cache"))
        service.insert(record("example.com/mod/cache", version="v1.1.0", synopsis="distributed cache"))
        service.refresh()

        page = service.search("cache")
        assert page.total == 1
        assert page.results[0].version == "v1.1.0"
        assert service.search("distributed").total == 1
        assert service.search("in-memory").total == 0

    def test_default_limit_from_config(self, tmp_path: Path) -> None:
        svc = SearchService.from_config(AppConfig(db_path=tmp_path / "pkg.db", default_limit=2))
        try:
            for i in range(5):
                svc.insert(record(f"example.com/mod/p{i}", synopsis="widget"))
            svc.refresh()
            page = svc.search("widget")
            assert len(page.results) == 2
            assert page.total == 5
        finally:
            svc.close()

    def test_start_respects_interval(self, service: SearchService) -> None:
        with patch.object(service.coordinator, "start") as mock_start:
            service.start()
            mock_start.assert_not_called()

        service.config.refresh_interval = 5
        with patch.object(service.coordinator, "start") as mock_start:
            service.start()
            mock_start.assert_called_once_with(5)
