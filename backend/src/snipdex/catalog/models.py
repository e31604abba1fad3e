"""Data models for the snippet catalog."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class RawRecord:
    """One snippet record as enumerated by a source adapter."""

    category: str
    name: str
    keyword: str
    content: str
    auto_expand: bool = True
    uid: str | None = None  # Source-supplied identifier, if the source has one
    location: str = ""  # File path or row reference, for error reporting


@dataclass(frozen=True)
class Snippet:
    """A catalog entry.

    Immutable once built. is_favorite and last_used belong to the preference
    store and are overlaid per read with with_preferences(); the copy held
    by the catalog always has the defaults.
    """

    id: str
    name: str
    keyword: str
    content: str
    category: str
    auto_expand: bool
    source: str  # Provenance tag: relational, directory, archive
    language: str = "plaintext"
    language_color: str = "#666666"
    is_favorite: bool = False
    last_used: datetime | None = None

    def with_preferences(self, is_favorite: bool, last_used: datetime | None) -> "Snippet":
        """Return a copy carrying the given preference state."""
        if is_favorite == self.is_favorite and last_used == self.last_used:
            return self
        return replace(self, is_favorite=is_favorite, last_used=last_used)


@dataclass(frozen=True)
class Category:
    """A named group of snippets, ordered by snippet display name."""

    name: str
    icon: str
    snippet_ids: tuple[str, ...]

    @property
    def count(self) -> int:
        return len(self.snippet_ids)


@dataclass(frozen=True)
class Catalog:
    """One immutable snapshot of every snippet and category.

    Snippet iteration order is catalog order: categories in the order they
    were merged, and within each category by display name. The builder is
    the only code that constructs catalogs; it guarantees that every id a
    category references is present in ``snippets`` and that no snippet is
    outside a category.
    """

    snippets: Mapping[str, Snippet]
    categories: Mapping[str, Category]
    last_updated: datetime

    def __post_init__(self):
        # Read-only views so a published catalog cannot be edited in place
        object.__setattr__(self, "snippets", MappingProxyType(dict(self.snippets)))
        object.__setattr__(self, "categories", MappingProxyType(dict(self.categories)))

    @property
    def total_count(self) -> int:
        return len(self.snippets)

    def snippet_list(self) -> list[Snippet]:
        """All snippets in catalog order."""
        return list(self.snippets.values())

    def get(self, snippet_id: str) -> Snippet | None:
        return self.snippets.get(snippet_id)

    def category_snippets(self, name: str) -> list[Snippet]:
        category = self.categories.get(name)
        if category is None:
            return []
        return [self.snippets[sid] for sid in category.snippet_ids]


class IssueKind(str, Enum):
    """Kinds of non-fatal build problems."""

    ENTRY_PARSE = "entry_parse_error"
    EXTRACTION = "extraction_error"
    SOURCE_TIMEOUT = "source_timeout"


@dataclass(frozen=True)
class BuildIssue:
    """A non-fatal problem encountered while building a catalog."""

    kind: IssueKind
    source: str
    location: str
    message: str


@dataclass
class BuildReport:
    """Non-fatal issues and per-source record counts from one build."""

    issues: list[BuildIssue] = field(default_factory=list)
    records_by_source: dict[str, int] = field(default_factory=dict)

    def add(self, kind: IssueKind, source: str, location: str, message: str) -> None:
        self.issues.append(BuildIssue(kind, source, location, message))

    def extend(self, issues: list[BuildIssue]) -> None:
        self.issues.extend(issues)

    @property
    def counts(self) -> dict[str, int]:
        """Number of issues per kind."""
        counts: dict[str, int] = {}
        for issue in self.issues:
            counts[issue.kind.value] = counts.get(issue.kind.value, 0) + 1
        return counts

    @property
    def ok(self) -> bool:
        return not self.issues
