"""Core pkgsearch data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Tuple

HIGH_WEIGHT = 1.0
MID_WEIGHT = 0.4
LOW_WEIGHT = 0.2


def _parse_commit_time(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True, slots=True)
class PackageRecord:
    """One validated package at one version, as read from the source store."""

    package_path: str
    module_path: str
    version: str
    name: str = ""
    synopsis: str = ""
    readme: str = ""
    licenses: Tuple[str, ...] = ()
    commit_time: datetime | None = None
    num_imported_by: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PackageRecord":
        """Build a record from a JSON-like mapping.

        Missing optional fields fall back to empty values; ``commit_time`` is
        parsed from ISO-8601.
        """
        licenses = data.get("licenses") or ()
        if isinstance(licenses, str):
            licenses = (licenses,)
        return cls(
            package_path=str(data.get("package_path") or ""),
            module_path=str(data.get("module_path") or ""),
            version=str(data.get("version") or ""),
            name=str(data.get("name") or ""),
            synopsis=str(data.get("synopsis") or ""),
            readme=str(data.get("readme") or ""),
            licenses=tuple(licenses),
            commit_time=_parse_commit_time(data.get("commit_time")),
            num_imported_by=int(data.get("num_imported_by") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_path": self.package_path,
            "module_path": self.module_path,
            "version": self.version,
            "name": self.name,
            "synopsis": self.synopsis,
            "readme": self.readme,
            "licenses": list(self.licenses),
            "commit_time": self.commit_time.isoformat() if self.commit_time else None,
            "num_imported_by": self.num_imported_by,
        }


@dataclass(frozen=True, slots=True)
class SearchDocument:
    """Weighted token sets for the latest version of one package path.

    The three token sets are disjoint: a token lives only in the highest
    field it was found in.
    """

    package_path: str
    module_path: str
    version: str
    name: str
    synopsis: str
    high_tokens: frozenset[str]
    mid_tokens: frozenset[str]
    low_tokens: frozenset[str]
    popularity: int = 0
    licenses: Tuple[str, ...] = ()
    commit_time: datetime | None = None

    def weighted_terms(self) -> Iterator[tuple[str, float]]:
        for token in self.high_tokens:
            yield token, HIGH_WEIGHT
        for token in self.mid_tokens:
            yield token, MID_WEIGHT
        for token in self.low_tokens:
            yield token, LOW_WEIGHT


@dataclass(slots=True)
class SearchResult:
    name: str
    package_path: str
    module_path: str
    version: str
    synopsis: str
    licenses: List[str]
    commit_time: datetime | None
    num_imported_by: int
    rank: float
    # Size of the whole match set for the query, not just this page.
    num_results: int


@dataclass(slots=True)
class SearchPage:
    """One page of ranked results."""

    results: List[SearchResult] = field(default_factory=list)
    total: int = 0
    limit: int = 10
    offset: int = 0
