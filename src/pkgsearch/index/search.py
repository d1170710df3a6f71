"""Ranked, paginated search over the published snapshot."""

from __future__ import annotations

import logging
import threading
from typing import List, Protocol

import numpy as np

from pkgsearch.errors import InvalidArgument, QueryCancelled
from pkgsearch.index.snapshot import SearchIndex
from pkgsearch.models import SearchPage, SearchResult

LOGGER = logging.getLogger(__name__)

RANK_FLOOR = 1e-10


class SnapshotProvider(Protocol):
    @property
    def current(self) -> SearchIndex:  # pragma: no cover - interface definition
        ...


def compute_ranks(scores: np.ndarray, popularity: np.ndarray) -> np.ndarray:
    """Combine text relevance and import count: ``score * log(e + popularity)``.

    ``log(e + P)`` is at least 1 and grows slowly, so popularity only reorders
    documents of similar relevance.
    """
    return scores * np.log(np.e + popularity)


class Searcher:
    """High-level API to query whichever snapshot is currently published."""

    def __init__(self, snapshots: SnapshotProvider) -> None:
        self.snapshots = snapshots

    def search(
        self,
        query: str,
        *,
        limit: int = 10,
        offset: int = 0,
        cancel: threading.Event | None = None,
    ) -> SearchPage:
        if limit == 0:
            raise InvalidArgument("cannot search: limit cannot be 0")
        if limit < 0:
            raise InvalidArgument(f"cannot search: limit cannot be negative ({limit})")
        if offset < 0:
            raise InvalidArgument(f"cannot search: offset cannot be negative ({offset})")

        # Hold this snapshot for the whole query even if a new one is published.
        snapshot = self.snapshots.current
        matches = snapshot.query(query, cancel=cancel)
        if not matches:
            return SearchPage(results=[], total=0, limit=limit, offset=offset)

        scores = np.fromiter((score for _, score in matches), dtype="float64", count=len(matches))
        popularity = np.fromiter(
            (doc.popularity for doc, _ in matches), dtype="float64", count=len(matches)
        )
        ranks = compute_ranks(scores, popularity)
        keep = np.flatnonzero(ranks > RANK_FLOOR)

        if cancel is not None and cancel.is_set():
            raise QueryCancelled(query)

        ordered = sorted(keep.tolist(), key=lambda i: (-ranks[i], matches[i][0].package_path))
        total = len(ordered)

        results: List[SearchResult] = []
        for idx in ordered[offset : offset + limit]:
            doc = matches[idx][0]
            results.append(
                SearchResult(
                    name=doc.name,
                    package_path=doc.package_path,
                    module_path=doc.module_path,
                    version=doc.version,
                    synopsis=doc.synopsis,
                    licenses=list(doc.licenses),
                    commit_time=doc.commit_time,
                    num_imported_by=doc.popularity,
                    rank=float(ranks[idx]),
                    num_results=total,
                )
            )

        LOGGER.debug(
            "Search %r on generation %d: %d matches, returning %d",
            query,
            snapshot.generation,
            total,
            len(results),
        )
        return SearchPage(results=results, total=total, limit=limit, offset=offset)
