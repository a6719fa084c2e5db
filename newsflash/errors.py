"""Error taxonomy shared by the fetch, extraction and refresh layers."""

from __future__ import annotations

from typing import Mapping


class NewsflashError(Exception):
    """Base class for all application errors."""


class FetchError(NewsflashError):
    """Transport level failure while retrieving a URL."""


class HttpStatusError(FetchError):
    """Server answered with a non-success status code."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"HTTP {status} for {url}")
        self.status = status
        self.url = url


class FetchTimeoutError(FetchError, TimeoutError):
    """Request did not complete within the configured timeout."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s: {url}")
        self.url = url
        self.timeout = timeout


class SourceFetchError(NewsflashError):
    """A single source could not be fetched."""

    def __init__(self, source_id: str, cause: BaseException) -> None:
        super().__init__(f"{source_id}: {cause}")
        self.source_id = source_id
        self.cause = cause


class ExtractionError(NewsflashError):
    """The document of a source could not be parsed as a whole."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


class RefreshError(NewsflashError):
    """Aggregate failure of a refresh cycle."""

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures)) or "unknown"
        super().__init__(f"Refresh failed for source(s): {names}")


class LookupFailure(NewsflashError):
    """Enrichment lookup produced no usable result."""


__all__ = [
    "ExtractionError",
    "FetchError",
    "FetchTimeoutError",
    "HttpStatusError",
    "LookupFailure",
    "NewsflashError",
    "RefreshError",
    "SourceFetchError",
]
