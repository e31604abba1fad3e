"""Catalog construction from snippet sources.

The builder runs every source adapter once, merges their records into a
single Catalog and collects non-fatal problems into a BuildReport.

Merge precedence:
1. Primary sources run first and own every category they produce.
2. Supplementary sources run in registration order. A category from a
   supplementary source is only added if no earlier source produced a
   category with the same name; otherwise that source's records for the
   category are dropped.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from snipdex.catalog.icons import category_icon
from snipdex.catalog.models import (
    BuildReport,
    Catalog,
    Category,
    IssueKind,
    RawRecord,
    Snippet,
)
from snipdex.classify.language import LanguageClassifier
from snipdex.errors import CatalogError, SourceUnavailable, UnavailableReason
from snipdex.sources.base import SourceAdapter, SourceBatch

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_snippet_id(source: str, record: RawRecord) -> str:
    """Deterministic identifier for records whose source supplies none."""
    key = "\x00".join((record.category, record.name, record.keyword, record.location))
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]
    return f"{source}-{digest}"


@dataclass(frozen=True)
class BuildOutcome:
    """A freshly built catalog together with its build report."""

    catalog: Catalog
    report: BuildReport


class CatalogBuilder:
    """Merges source adapter output into an immutable Catalog."""

    def __init__(
        self,
        sources: Sequence[SourceAdapter],
        classifier: LanguageClassifier | None = None,
        timeout: float | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        """Initialize the builder.

        Args:
            sources: Adapters in precedence order among their kind. Primary
                adapters always run before supplementary ones.
            classifier: Language classifier for snippet display metadata.
            timeout: Upper bound in seconds on each adapter's I/O. None
                disables the bound.
            clock: Source of the catalog's last_updated timestamp.
        """
        primary = [s for s in sources if s.is_primary]
        supplementary = [s for s in sources if not s.is_primary]
        self._sources: list[SourceAdapter] = primary + supplementary
        self._classifier = classifier or LanguageClassifier()
        self._timeout = timeout
        self._clock = clock

    @property
    def sources(self) -> list[SourceAdapter]:
        return list(self._sources)

    async def build(self) -> BuildOutcome:
        """Run every source and merge the results.

        Sources run one after another, primary first, so a failing primary
        source stops the build before any supplementary I/O happens.

        Returns:
            BuildOutcome with the catalog and any non-fatal issues.

        Raises:
            SourceUnavailable: If a primary source fails or times out.
        """
        report = BuildReport()
        grouped: dict[str, list[Snippet]] = {}
        seen_ids: set[str] = set()

        for source in self._sources:
            batch = await self._run(source, report)
            if batch is None:
                continue
            report.extend(batch.issues)
            accepted = self._merge(source, batch, grouped, seen_ids, report)
            report.records_by_source[source.name] = (
                report.records_by_source.get(source.name, 0) + accepted
            )

        catalog = self._assemble(grouped)
        logger.info(
            f"Built catalog: {catalog.total_count} snippet(s) in "
            f"{len(catalog.categories)} categor{'y' if len(catalog.categories) == 1 else 'ies'}, "
            f"{len(report.issues)} issue(s)"
        )
        return BuildOutcome(catalog=catalog, report=report)

    async def _run(self, source: SourceAdapter, report: BuildReport) -> SourceBatch | None:
        """Load one source, applying the timeout and failure policy."""
        try:
            if self._timeout is None:
                return await source.load()
            return await asyncio.wait_for(source.load(), timeout=self._timeout)
        except asyncio.TimeoutError:
            detail = f"no response within {self._timeout:g}s"
            if source.is_primary:
                logger.error(f"Primary source {source.name!r} timed out")
                raise SourceUnavailable(source.name, UnavailableReason.TIMEOUT, detail) from None
            logger.warning(f"Supplementary source {source.name!r} timed out; skipping")
            report.add(IssueKind.SOURCE_TIMEOUT, source.name, "", detail)
            return None
        except SourceUnavailable:
            if source.is_primary:
                raise
            logger.warning(f"Supplementary source {source.name!r} unavailable; skipping")
            return None
        except CatalogError as e:
            if source.is_primary:
                raise
            logger.warning(f"Supplementary source {source.name!r} failed: {e}")
            report.add(IssueKind.EXTRACTION, source.name, "", str(e))
            return None

    def _merge(
        self,
        source: SourceAdapter,
        batch: SourceBatch,
        grouped: dict[str, list[Snippet]],
        seen_ids: set[str],
        report: BuildReport,
    ) -> int:
        """Fold one batch into grouped. Returns the number of records accepted."""
        # Categories owned by earlier sources; this batch may not add to them
        taken = set(grouped)
        accepted = 0
        shadowed: set[str] = set()

        for record in batch.records:
            if record.category in taken:
                shadowed.add(record.category)
                continue

            snippet_id = record.uid or derive_snippet_id(source.name, record)
            if snippet_id in seen_ids:
                report.add(
                    IssueKind.ENTRY_PARSE,
                    source.name,
                    record.location,
                    f"duplicate snippet id {snippet_id!r}",
                )
                continue
            seen_ids.add(snippet_id)

            snippet = self._to_snippet(snippet_id, source, record)
            grouped.setdefault(record.category, []).append(snippet)
            accepted += 1

        if shadowed:
            logger.debug(
                f"Source {source.name!r}: categories already provided by an earlier "
                f"source were skipped: {sorted(shadowed)}"
            )
        return accepted

    def _to_snippet(self, snippet_id: str, source: SourceAdapter, record: RawRecord) -> Snippet:
        language = self._classifier.classify(
            record.content, record.category, record.name, record.keyword
        )
        return Snippet(
            id=snippet_id,
            name=record.name,
            keyword=record.keyword,
            content=record.content,
            category=record.category,
            auto_expand=record.auto_expand,
            source=source.name,
            language=language,
            language_color=self._classifier.color(language),
        )

    def _assemble(self, grouped: dict[str, list[Snippet]]) -> Catalog:
        snippets: dict[str, Snippet] = {}
        categories: dict[str, Category] = {}
        for name, members in grouped.items():
            members.sort(key=lambda s: (s.name.lower(), s.name, s.id))
            categories[name] = Category(
                name=name,
                icon=category_icon(name),
                snippet_ids=tuple(s.id for s in members),
            )
            for snippet in members:
                snippets[snippet.id] = snippet
        return Catalog(snippets=snippets, categories=categories, last_updated=self._clock())
