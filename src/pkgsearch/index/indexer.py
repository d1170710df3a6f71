"""Snapshot rebuild and publication."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from pkgsearch.errors import InvalidRecord, RefreshFailed
from pkgsearch.index.documents import DocumentBuilder
from pkgsearch.index.snapshot import SearchIndex
from pkgsearch.models import PackageRecord

LOGGER = logging.getLogger(__name__)


class RecordSource(Protocol):
    def iter_records(self) -> Iterable[PackageRecord]:  # pragma: no cover - interface definition
        ...


@dataclass(slots=True)
class RefreshStats:
    indexed: int = 0
    replaced: int = 0
    skipped: int = 0
    generation: int = 0
    duration: float = 0.0
    coalesced: bool = False
    skipped_paths: list[str] = field(default_factory=list)

    def increment(self, status: str, package_path: str) -> None:
        if status == "inserted":
            self.indexed += 1
        elif status == "updated":
            self.replaced += 1
        else:
            self.skipped += 1
            self.skipped_paths.append(package_path)


class RefreshCoordinator:
    """Owns the current snapshot and rebuilds it from the record source.

    Readers take :attr:`current` once and keep using that object; a rebuild
    fills a private :class:`SearchIndex` and publishes it with one reference
    assignment. Old snapshots are reclaimed once no query references them.
    """

    def __init__(self, source: RecordSource, builder: DocumentBuilder | None = None) -> None:
        self.source = source
        self.builder = builder or DocumentBuilder()
        self._current = SearchIndex(generation=0).freeze()
        self._build_lock = threading.Lock()
        self._ticket_lock = threading.Lock()
        self._tickets = itertools.count(1)
        self._issued = 0
        self._covered = 0
        self._last_stats = RefreshStats()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def current(self) -> SearchIndex:
        return self._current

    @property
    def last_stats(self) -> RefreshStats:
        return self._last_stats

    def refresh(self) -> RefreshStats:
        """Rebuild the index from every source record and publish it.

        Calls are serialized. A call whose request was already covered by a
        rebuild that started after it was made returns that rebuild's stats
        with ``coalesced`` set instead of building again.

        Raises:
            RefreshFailed: if the source scan fails. The published snapshot
                is left untouched.
        """
        with self._ticket_lock:
            ticket = next(self._tickets)
            self._issued = ticket

        with self._build_lock:
            if self._covered >= ticket:
                LOGGER.debug("Refresh request %d coalesced into generation %d", ticket, self._current.generation)
                stats = self._last_stats
                return RefreshStats(
                    indexed=stats.indexed,
                    replaced=stats.replaced,
                    skipped=stats.skipped,
                    generation=stats.generation,
                    duration=stats.duration,
                    coalesced=True,
                    skipped_paths=list(stats.skipped_paths),
                )

            with self._ticket_lock:
                covers = self._issued

            generation = self._current.generation + 1
            started = time.perf_counter()
            try:
                index, stats = self._build(generation)
            except Exception as exc:
                LOGGER.error("Refresh to generation %d failed: %s", generation, exc)
                raise RefreshFailed(f"rebuild of generation {generation} failed: {exc}") from exc

            stats.duration = time.perf_counter() - started
            # Single reference swap; readers see the old or the new index, never a mix.
            self._current = index.freeze()
            self._covered = covers
            self._last_stats = stats

        LOGGER.info(
            "Published generation %d: %d documents, %d skipped in %.2fs",
            stats.generation,
            len(index),
            stats.skipped,
            stats.duration,
        )
        return stats

    def _build(self, generation: int) -> tuple[SearchIndex, RefreshStats]:
        index = SearchIndex(generation=generation)
        stats = RefreshStats(generation=generation)
        for record in self.source.iter_records():
            try:
                document = self.builder.build(record)
            except InvalidRecord as exc:
                LOGGER.warning("Skipping %s: %s", record.package_path or "<empty path>", exc)
                stats.increment("skipped", record.package_path)
                continue
            stats.increment(index.insert(document), record.package_path)
        return index, stats

    def start(self, interval: float) -> None:
        """Refresh every ``interval`` seconds on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, args=(interval,), name="pkgsearch-refresh", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self, interval: float) -> None:
        while not self._stop.wait(interval):
            try:
                self.refresh()
            except RefreshFailed as exc:
                LOGGER.warning("Scheduled refresh failed, serving generation %d: %s", self._current.generation, exc)
