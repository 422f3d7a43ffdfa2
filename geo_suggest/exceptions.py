"""Exceptions raised by the suggestion core and its plumbing."""

from __future__ import annotations


class GeoSuggestError(Exception):
    """Base class for all geo_suggest errors."""


class CatalogNotReady(GeoSuggestError):
    """No place index has been published yet, or the loaded catalog is empty."""

    def __init__(self, detail: str = "Place catalog is not loaded"):
        super().__init__(detail)
        self.detail = detail


class CatalogLoadError(GeoSuggestError):
    """The catalog source could not be read."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Failed to load catalog from {source}: {reason}")
        self.source = source
        self.reason = reason


class RateLimitExceeded(GeoSuggestError):
    def __init__(self, retry_after: int):
        super().__init__(f"Rate limit exceeded. Try again in {retry_after} seconds.")
        self.retry_after = retry_after
