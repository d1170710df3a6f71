"""Utility helpers for reading package record feeds."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator

from pkgsearch.models import PackageRecord

LOGGER = logging.getLogger(__name__)

RECORD_SUFFIXES = (".jsonl", ".ndjson")


def iter_record_files(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield JSON Lines files from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_record_files(
                sorted(child for child in item.rglob("*") if child.suffix.lower() in RECORD_SUFFIXES)
            )
        elif item.is_file() and item.suffix.lower() in RECORD_SUFFIXES:
            yield item


def load_records(path: Path) -> Iterator[PackageRecord]:
    """Yield one record per non-blank line of a JSON Lines file.

    Lines that are not valid JSON objects are logged and skipped.
    """
    with path.open("r", encoding="utf-8") as handle:
        for lineno, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                record = PackageRecord.from_dict(data)
            except (TypeError, ValueError) as exc:
                LOGGER.warning("%s:%d: skipping malformed record: %s", path, lineno, exc)
                continue
            yield record
