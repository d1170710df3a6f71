"""Tests for the FastAPI web application."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from pkgsearch.config import AppConfig
from pkgsearch.errors import RefreshFailed
from pkgsearch.models import PackageRecord
from pkgsearch.service import SearchService
from pkgsearch.web import app as web_module
from pkgsearch.web.app import app, get_service


client = TestClient(app)


@pytest.fixture
def service(tmp_path: Path):
    svc = SearchService.from_config(AppConfig(db_path=tmp_path / "web.db", refresh_interval=0))
    svc.insert(
        PackageRecord(
            package_path="net/http",
            module_path="std",
            version="v1.0.0",
            name="http",
            synopsis="HTTP client and server",
            licenses=("BSD-3-Clause",),
            num_imported_by=500,
        )
    )
    svc.insert(
        PackageRecord(
            package_path="net/http/httptest",
            module_path="std",
            version="v1.0.0",
            name="httptest",
            synopsis="HTTP testing utilities",
            num_imported_by=10,
        )
    )
    svc.refresh()
    app.dependency_overrides[get_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()
    svc.close()


class TestSearchEndpoint:
    """Tests for POST /search endpoint."""

    def test_search_empty_query(self, service: SearchService) -> None:
        response = client.post("/search", json={"query": "   "})
        assert response.status_code == 400
        assert "Empty query" in response.json()["detail"]

    def test_search_success(self, service: SearchService) -> None:
        response = client.post("/search", json={"query": "http", "limit": 10})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [r["package_path"] for r in body["results"]] == ["net/http", "net/http/httptest"]
        assert body["results"][0]["num_results"] == 2
        assert body["results"][0]["licenses"] == ["BSD-3-Clause"]

    def test_search_pagination(self, service: SearchService) -> None:
        response = client.post("/search", json={"query": "http", "limit": 1, "offset": 1})

        body = response.json()
        assert body["total"] == 2
        assert [r["package_path"] for r in body["results"]] == ["net/http/httptest"]

    def test_search_zero_limit(self, service: SearchService) -> None:
        response = client.post("/search", json={"query": "http", "limit": 0})
        assert response.status_code == 400
        assert "limit cannot be 0" in response.json()["detail"]

    def test_search_limit_capped(self, service: SearchService) -> None:
        service.config.max_limit = 1
        response = client.post("/search", json={"query": "http", "limit": 50})
        assert len(response.json()["results"]) == 1
        assert response.json()["limit"] == 1


class TestPackagesEndpoint:
    def test_insert_then_refresh(self, service: SearchService) -> None:
        response = client.post(
            "/packages",
            json={
                "package_path": "encoding/json",
                "module_path": "std",
                "version": "v1.0.0",
                "synopsis": "JSON encoding",
                "commit_time": "2019-06-01T00:00:00Z",
            },
        )
        assert response.status_code == 200
        assert response.json() == {"status": "inserted", "package_path": "encoding/json"}

        assert client.post("/search", json={"query": "json"}).json()["total"] == 0
        assert client.post("/refresh").status_code == 200
        assert client.post("/search", json={"query": "json"}).json()["total"] == 1

    def test_insert_invalid_version(self, service: SearchService) -> None:
        response = client.post(
            "/packages",
            json={"package_path": "a/b", "module_path": "a", "version": "latest"},
        )
        assert response.status_code == 400
        assert "invalid version" in response.json()["detail"]


class TestRefreshEndpoint:
    def test_refresh_success(self, service: SearchService) -> None:
        response = client.post("/refresh")

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["generation"] == 2
        assert stats["indexed"] == 2

    def test_refresh_failure(self, service: SearchService) -> None:
        with patch.object(service, "refresh", side_effect=RefreshFailed("store offline")):
            response = client.post("/refresh")

        assert response.status_code == 503
        assert "store offline" in response.json()["detail"]
        # The previous snapshot keeps serving.
        assert client.post("/search", json={"query": "http"}).json()["total"] == 2


class TestStatsEndpoint:
    def test_stats(self, service: SearchService) -> None:
        body = client.get("/stats").json()

        assert body["generation"] == 1
        assert body["documents"] == 2
        assert body["stored_records"] == 2
        assert body["last_refresh"]["indexed"] == 2


class TestGetService:
    def test_builds_and_refreshes_once(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(web_module, "_service", None)
        monkeypatch.setattr(app.state, "config", AppConfig(db_path=tmp_path / "lazy.db", refresh_interval=0), raising=False)

        first = get_service()
        try:
            assert get_service() is first
            assert first.coordinator.current.generation == 1
        finally:
            first.close()
            web_module._service = None

    def test_initial_refresh_failure_is_not_fatal(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(web_module, "_service", None)
        fake = MagicMock()
        fake.refresh.side_effect = RefreshFailed("boom")
        with patch.object(web_module.SearchService, "from_config", return_value=fake):
            assert get_service() is fake
        fake.start.assert_called_once()
        web_module._service = None
