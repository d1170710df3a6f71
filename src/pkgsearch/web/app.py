"""FastAPI application exposing the package search API."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from pkgsearch.config import AppConfig
from pkgsearch.errors import InvalidArgument, InvalidRecord, QueryCancelled, RefreshFailed
from pkgsearch.models import PackageRecord
from pkgsearch.service import SearchService

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="pkgsearch", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: SearchService | None = None
_service_lock = threading.Lock()


class SearchPayload(BaseModel):
    query: str
    limit: int = 10
    offset: int = 0


class PackagePayload(BaseModel):
    package_path: str
    module_path: str
    version: str
    name: str = ""
    synopsis: str = ""
    readme: str = ""
    licenses: List[str] = []
    commit_time: datetime | None = None
    num_imported_by: int = 0


def get_service() -> SearchService:
    """Return the process-wide service, building and indexing it on first use."""
    global _service
    with _service_lock:
        if _service is None:
            config = getattr(app.state, "config", None) or AppConfig()
            service = SearchService.from_config(config, Path.cwd())
            try:
                service.refresh()
            except RefreshFailed as exc:
                LOGGER.error("Initial refresh failed, starting with an empty index: %s", exc)
            service.start()
            _service = service
        return _service


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    global _service
    with _service_lock:
        if _service is not None:
            _service.close()
            _service = None


@app.post("/search")
async def search_packages(
    payload: SearchPayload, service: SearchService = Depends(get_service)
) -> dict[str, Any]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    limit = min(payload.limit, service.config.max_limit)
    cancel = threading.Event()
    try:
        page = await asyncio.to_thread(
            service.search, query, limit=limit, offset=payload.offset, cancel=cancel
        )
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except QueryCancelled as exc:
        raise HTTPException(status_code=499, detail="Query cancelled") from exc
    except asyncio.CancelledError:
        # Client went away; stop the worker thread at its next checkpoint.
        cancel.set()
        raise

    return {
        "results": [asdict(result) for result in page.results],
        "total": page.total,
        "limit": page.limit,
        "offset": page.offset,
    }


@app.post("/packages")
async def insert_package(
    payload: PackagePayload, service: SearchService = Depends(get_service)
) -> dict[str, Any]:
    record = PackageRecord.from_dict(payload.model_dump())
    try:
        status = await asyncio.to_thread(service.insert, record)
    except InvalidRecord as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": status, "package_path": record.package_path.strip("/")}


@app.post("/refresh")
async def refresh_index(service: SearchService = Depends(get_service)) -> dict[str, Any]:
    try:
        stats = await asyncio.to_thread(service.refresh)
    except RefreshFailed as exc:
        LOGGER.error("Refresh failed: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"status": "ok", "stats": asdict(stats)}


@app.get("/stats")
async def index_stats(service: SearchService = Depends(get_service)) -> dict[str, Any]:
    snapshot = service.coordinator.current
    return {
        "generation": snapshot.generation,
        "documents": len(snapshot),
        "stored_records": service.store.count(),
        "last_refresh": asdict(service.coordinator.last_stats),
    }
