"""Exceptions raised by the search engine."""

from __future__ import annotations


class PackageSearchError(Exception):
    """Base class for pkgsearch errors."""


class InvalidRecord(PackageSearchError):
    """A package record cannot be turned into a search document."""


class InvalidArgument(PackageSearchError):
    """A caller passed an unusable argument to the query interface."""


class RefreshFailed(PackageSearchError):
    """Rebuilding the search index failed; the previous snapshot stays published."""


class QueryCancelled(PackageSearchError):
    """A running query was cancelled by its caller."""
