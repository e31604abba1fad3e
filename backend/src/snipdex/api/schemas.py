"""Pydantic schemas for API responses.

Every endpoint answers with one envelope: ``{"status": "ok", "data": ...}``
or ``{"status": "error", "error": {"code", "message", "retryable"}}``.
Field names are camelCase on the wire.
"""

from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from snipdex.catalog.models import BuildReport, Catalog, Snippet
from snipdex.errors import CatalogError

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model that serializes with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Envelopes
# =============================================================================


class ErrorDetail(CamelModel):
    """Machine-readable error descriptor."""

    code: str
    message: str
    retryable: bool = False

    @classmethod
    def from_error(cls, error: CatalogError) -> "ErrorDetail":
        return cls(code=error.code, message=str(error), retryable=error.retryable)


class OkResponse(CamelModel, Generic[DataT]):
    """Successful result."""

    status: Literal["ok"] = "ok"
    data: DataT


class ErrorResponse(CamelModel):
    """Failed result."""

    status: Literal["error"] = "error"
    error: ErrorDetail


# =============================================================================
# Catalog
# =============================================================================


class SnippetOut(CamelModel):
    """One snippet with display metadata and preferences."""

    id: str
    name: str
    keyword: str
    content: str
    category: str
    auto_expand: bool
    source: str
    language: str
    language_color: str
    is_favorite: bool = False
    last_used: datetime | None = None

    @classmethod
    def from_snippet(cls, snippet: Snippet) -> "SnippetOut":
        return cls(
            id=snippet.id,
            name=snippet.name,
            keyword=snippet.keyword,
            content=snippet.content,
            category=snippet.category,
            auto_expand=snippet.auto_expand,
            source=snippet.source,
            language=snippet.language,
            language_color=snippet.language_color,
            is_favorite=snippet.is_favorite,
            last_used=snippet.last_used,
        )


class CategoryOut(CamelModel):
    """A category with its snippets in display order."""

    name: str
    icon: str
    count: int
    snippets: list[SnippetOut]


class CatalogOut(CamelModel):
    """The whole catalog in transport shape."""

    categories: dict[str, CategoryOut]
    snippets: list[SnippetOut]
    total_count: int
    last_updated: datetime

    @classmethod
    def from_catalog(cls, catalog: Catalog, snippets: list[Snippet]) -> "CatalogOut":
        """Build the payload from a catalog and its (overlaid) snippets."""
        by_id = {s.id: SnippetOut.from_snippet(s) for s in snippets}
        categories = {
            name: CategoryOut(
                name=category.name,
                icon=category.icon,
                count=category.count,
                snippets=[by_id[sid] for sid in category.snippet_ids if sid in by_id],
            )
            for name, category in catalog.categories.items()
        }
        return cls(
            categories=categories,
            snippets=list(by_id.values()),
            total_count=catalog.total_count,
            last_updated=catalog.last_updated,
        )


class BuildIssueOut(CamelModel):
    kind: str
    source: str
    location: str
    message: str


class BuildReportOut(CamelModel):
    """Summary of non-fatal problems from the last build."""

    counts: dict[str, int]
    records_by_source: dict[str, int]
    issues: list[BuildIssueOut]

    @classmethod
    def from_report(cls, report: BuildReport) -> "BuildReportOut":
        return cls(
            counts=report.counts,
            records_by_source=dict(report.records_by_source),
            issues=[
                BuildIssueOut(
                    kind=issue.kind.value,
                    source=issue.source,
                    location=issue.location,
                    message=issue.message,
                )
                for issue in report.issues
            ],
        )


class CatalogData(CamelModel):
    """Catalog response payload.

    ``error`` is set when the latest rebuild failed and ``catalog`` is the
    last catalog that was built successfully.
    """

    catalog: CatalogOut
    report: BuildReportOut
    from_cache: bool
    error: ErrorDetail | None = None


class InvalidateData(CamelModel):
    """Acknowledgement for an invalidation request."""

    state: str


# =============================================================================
# Search
# =============================================================================


class SearchHit(CamelModel):
    snippet: SnippetOut
    score: int


class SearchData(CamelModel):
    """Ranked search results."""

    query: str
    results: list[SearchHit]
    total: int


class HealthData(CamelModel):
    cache: str
