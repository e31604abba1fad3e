"""Error taxonomy for catalog building and lookup.

Only SourceUnavailable and SnippetNotFound are raised to callers.
EntryParseError and ExtractionError describe non-fatal problems: adapters
raise them internally and the catalog builder records them as build issues
instead of aborting the build.
"""

from __future__ import annotations

from enum import Enum


class CatalogError(Exception):
    """Base class for catalog errors."""

    code = "catalog_error"
    retryable = False


class UnavailableReason(str, Enum):
    """Why the primary source could not be read."""

    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    TIMEOUT = "timeout"


class SourceUnavailable(CatalogError):
    """The primary source could not be opened or queried.

    Fatal for the build that hit it. The previous catalog, if any, keeps
    being served.
    """

    code = "source_unavailable"

    def __init__(self, source: str, reason: UnavailableReason, detail: str = "") -> None:
        self.source = source
        self.reason = reason
        self.detail = detail
        message = f"Source {source!r} unavailable ({reason.value})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.reason is not UnavailableReason.MALFORMED


class EntryParseError(CatalogError):
    """One snippet definition could not be parsed. The entry is skipped."""

    code = "entry_parse_error"

    def __init__(self, location: str, detail: str) -> None:
        self.location = location
        self.detail = detail
        super().__init__(f"{location}: {detail}")


class ExtractionError(CatalogError):
    """One bundle could not be extracted. The bundle is skipped."""

    code = "extraction_error"

    def __init__(self, location: str, detail: str) -> None:
        self.location = location
        self.detail = detail
        super().__init__(f"{location}: {detail}")


class SnippetNotFound(CatalogError):
    """No snippet with the requested identifier exists in the catalog."""

    code = "not_found"

    def __init__(self, snippet_id: str) -> None:
        self.snippet_id = snippet_id
        super().__init__(f"Snippet not found: {snippet_id}")
