"""Turn package records into weighted search documents."""

from __future__ import annotations

from typing import List

from pkgsearch.errors import InvalidRecord
from pkgsearch.models import PackageRecord, SearchDocument
from pkgsearch.utils.text import tokenize
from pkgsearch.utils.versions import is_valid_version


def generate_sub_paths(package_path: str) -> List[str]:
    """Return every contiguous run of segments in ``package_path``.

    For ``a/b/c`` that is ``a, a/b, a/b/c, b, b/c, c``. The result is sorted
    and holds no duplicates or empty strings.
    """
    parts = package_path.strip("/").split("/")
    sub_paths = set()
    for i in range(len(parts)):
        for j in range(i + 1, len(parts) + 1):
            sub_paths.add("/".join(parts[i:j]).strip("/"))
    sub_paths.discard("")
    return sorted(sub_paths)


class DocumentBuilder:
    """Builds a :class:`SearchDocument` out of a :class:`PackageRecord`."""

    def __init__(self, *, max_path_segments: int = 64) -> None:
        self.max_path_segments = max_path_segments

    def validate(self, record: PackageRecord) -> None:
        path = record.package_path.strip("/")
        if not path:
            raise InvalidRecord("package path is empty")
        if path.count("/") + 1 > self.max_path_segments:
            raise InvalidRecord(
                f"{record.package_path}: more than {self.max_path_segments} path segments"
            )
        if not is_valid_version(record.version):
            raise InvalidRecord(f"{record.package_path}: invalid version {record.version!r}")
        if record.num_imported_by < 0:
            raise InvalidRecord(f"{record.package_path}: negative import count")

    def build(self, record: PackageRecord) -> SearchDocument:
        self.validate(record)

        high = {sub_path.casefold() for sub_path in generate_sub_paths(record.package_path)}
        high.update(tokenize(record.name))
        mid = set(tokenize(record.synopsis)) - high
        low = set(tokenize(record.readme)) - high - mid

        return SearchDocument(
            package_path=record.package_path.strip("/"),
            module_path=record.module_path,
            version=record.version,
            name=record.name,
            synopsis=record.synopsis,
            high_tokens=frozenset(high),
            mid_tokens=frozenset(mid),
            low_tokens=frozenset(low),
            popularity=record.num_imported_by,
            licenses=tuple(record.licenses),
            commit_time=record.commit_time,
        )
