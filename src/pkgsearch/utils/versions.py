"""Semantic version parsing used to validate and order package versions."""

from __future__ import annotations

import re
from typing import Tuple

_SEMVER = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

VersionKey = Tuple[int, int, int, int, Tuple[Tuple[int, int, str], ...]]


def is_valid_version(version: str) -> bool:
    return bool(version) and _SEMVER.match(version) is not None


def version_key(version: str) -> VersionKey:
    """Return a sortable key for ``version``.

    Releases sort after their pre-releases; pre-release identifiers compare
    numerically when numeric and lexically otherwise, numeric ones first.
    Build metadata is ignored.

    Raises:
        ValueError: if ``version`` is not a semantic version.
    """
    match = _SEMVER.match(version or "")
    if match is None:
        raise ValueError(f"not a semantic version: {version!r}")

    pre = match.group("pre")
    if pre is None:
        return (int(match["major"]), int(match["minor"]), int(match["patch"]), 1, ())

    identifiers = []
    for part in pre.split("."):
        if part.isdigit():
            identifiers.append((0, int(part), ""))
        else:
            identifiers.append((1, 0, part))
    return (int(match["major"]), int(match["minor"]), int(match["patch"]), 0, tuple(identifiers))
