"""In-memory inverted index over search documents."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Dict, List, Tuple

from pkgsearch.errors import QueryCancelled
from pkgsearch.models import SearchDocument
from pkgsearch.utils.text import tokenize

LOGGER = logging.getLogger(__name__)

SCORE_FLOOR = 1e-10


class SearchIndex:
    """Maps tokens to the documents containing them and their field weight.

    An index is filled through :meth:`insert` while it is private to its
    builder, then :meth:`freeze` makes it read-only so it can be published
    as a snapshot and shared by any number of readers without locking.
    """

    def __init__(self, generation: int = 0) -> None:
        self.generation = generation
        self._documents: Dict[str, SearchDocument] = {}
        self._postings: Dict[str, Dict[str, float]] = defaultdict(dict)
        self._frozen = False

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, package_path: object) -> bool:
        return package_path in self._documents

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "SearchIndex":
        self._frozen = True
        # Readers must not create empty postings lists on lookup.
        self._postings = dict(self._postings)
        return self

    def get(self, package_path: str) -> SearchDocument | None:
        return self._documents.get(package_path)

    def insert(self, document: SearchDocument) -> str:
        """Insert ``document`` or replace the one stored for its package path.

        Returns "inserted" or "updated".
        """
        if self._frozen:
            raise RuntimeError("cannot insert into a published snapshot")

        status = "inserted"
        previous = self._documents.get(document.package_path)
        if previous is not None:
            self._remove_postings(previous)
            status = "updated"

        for token, weight in document.weighted_terms():
            self._postings[token][document.package_path] = weight
        self._documents[document.package_path] = document
        return status

    def _remove_postings(self, document: SearchDocument) -> None:
        for token, _ in document.weighted_terms():
            postings = self._postings.get(token)
            if postings is None:
                continue
            postings.pop(document.package_path, None)
            if not postings:
                del self._postings[token]

    def query(
        self, terms: str, *, cancel: threading.Event | None = None
    ) -> List[Tuple[SearchDocument, float]]:
        """Return every document matching all tokens of ``terms`` with its score.

        The score is the mean field weight of the query tokens in the
        document. Results are unordered.
        """
        tokens = tokenize(terms)
        if not tokens:
            return []

        # Intersect starting from the rarest token.
        postings = []
        for token in tokens:
            if cancel is not None and cancel.is_set():
                raise QueryCancelled(terms)
            entry = self._postings.get(token)
            if not entry:
                return []
            postings.append(entry)
        postings.sort(key=len)

        matches: List[Tuple[SearchDocument, float]] = []
        for position, path in enumerate(postings[0]):
            if cancel is not None and position % 1024 == 0 and cancel.is_set():
                raise QueryCancelled(terms)
            total = 0.0
            for entry in postings:
                weight = entry.get(path)
                if weight is None:
                    break
                total += weight
            else:
                score = total / len(postings)
                if score > SCORE_FLOOR:
                    matches.append((self._documents[path], score))

        LOGGER.debug("Query %r matched %d documents", terms, len(matches))
        return matches
