"""Catalog service: the single entry point for reading snippets."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

from snipdex.cache.manager import CacheManager, LoadResult
from snipdex.catalog.builder import CatalogBuilder
from snipdex.catalog.models import Catalog, Snippet
from snipdex.classify.language import LanguageClassifier
from snipdex.config import Config
from snipdex.constants.sources import DEFAULT_SNIPPETS_DB
from snipdex.errors import SnippetNotFound
from snipdex.preferences import PreferenceProvider, apply_preferences
from snipdex.search.engine import ScoredSnippet, ScoringWeights, SearchEngine
from snipdex.sources import ArchiveSource, DirectorySource, RelationalSource, SourceAdapter

logger = logging.getLogger(__name__)


def build_sources(settings: Config) -> list[SourceAdapter]:
    """Create the source adapters described by settings.

    The relational store is registered when configured. The built-in default
    location counts as configured only if the file exists there; an
    explicitly configured path that is missing is reported as unavailable
    on every build.
    """
    sources: list[SourceAdapter] = []

    db_path = settings.snippets_db_path
    if db_path is not None:
        is_default = settings.sources.snippets_db == DEFAULT_SNIPPETS_DB
        if is_default and not db_path.exists():
            logger.info(f"No snippet database at default location {db_path}; skipping")
        else:
            sources.append(RelationalSource(db_path))

    if settings.snippets_dir is not None:
        sources.append(DirectorySource(settings.snippets_dir))

    archive_dirs = settings.archive_dirs
    if archive_dirs:
        sources.append(ArchiveSource(archive_dirs))

    logger.info(f"Snippet sources: {', '.join(repr(s) for s in sources) or 'none'}")
    return sources


class CatalogService:
    """Composes the cache, search engine and preference overlay.

    One instance per process. All reads go through load(); search and
    lookup work on the snapshot that load() returns.
    """

    def __init__(
        self,
        cache: CacheManager,
        engine: SearchEngine | None = None,
        preferences: PreferenceProvider | None = None,
    ) -> None:
        self.cache = cache
        self.engine = engine or SearchEngine()
        self.preferences = preferences
        self._watch_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Config,
        preferences: PreferenceProvider | None = None,
        sources: list[SourceAdapter] | None = None,
    ) -> "CatalogService":
        """Wire a service from configuration.

        Args:
            settings: Application settings.
            preferences: Optional preference provider.
            sources: Adapters to use instead of the configured ones.

        Returns:
            A ready CatalogService. Nothing is loaded until first use.
        """
        builder = CatalogBuilder(
            sources if sources is not None else build_sources(settings),
            classifier=LanguageClassifier(),
            timeout=settings.sources.adapter_timeout_seconds,
        )
        cache = CacheManager(builder, ttl_seconds=settings.cache.ttl_seconds)
        engine = SearchEngine(ScoringWeights.from_config(settings.search))
        return cls(cache, engine, preferences)

    # =========================================================================
    # Reads
    # =========================================================================

    async def load(self) -> LoadResult:
        """Current catalog, build report and any error from this load."""
        return await self.cache.load()

    async def snippets(self) -> list[Snippet]:
        """All snippets in catalog order, with preferences applied."""
        catalog = await self._require_catalog()
        return self.overlay(catalog.snippet_list())

    async def search(self, query: str, limit: int | None = None) -> list[ScoredSnippet]:
        """Rank snippets against a query.

        Args:
            query: Raw query. Empty returns every snippet in catalog order.
            limit: Maximum number of results, or None for all.

        Returns:
            Ranked results with preferences applied.

        Raises:
            SourceUnavailable: If no catalog has ever been built.
        """
        snippets = await self.snippets()
        return self.engine.rank(snippets, query, limit=limit)

    async def get_by_id(self, snippet_id: str) -> Snippet:
        """Look up one snippet.

        Raises:
            SnippetNotFound: If no snippet has this id.
            SourceUnavailable: If no catalog has ever been built.
        """
        catalog = await self._require_catalog()
        snippet = catalog.get(snippet_id)
        if snippet is None:
            raise SnippetNotFound(snippet_id)
        return self.overlay([snippet])[0]

    def overlay(self, snippets: list[Snippet]) -> list[Snippet]:
        return apply_preferences(snippets, self.preferences)

    async def _require_catalog(self) -> Catalog:
        result = await self.cache.load()
        if result.catalog is None:
            assert result.error is not None
            raise result.error
        return result.catalog

    # =========================================================================
    # Invalidation
    # =========================================================================

    def invalidate(self) -> None:
        """Mark the catalog stale. The next read rebuilds it."""
        self.cache.invalidate()

    def start_watching(self, feed: AsyncIterator[Any]) -> asyncio.Task[None]:
        """Feed change events into the cache until stop_watching()."""
        if self._watch_task is not None and not self._watch_task.done():
            raise RuntimeError("Already watching a change feed")
        self._watch_task = asyncio.create_task(self.cache.watch(feed))
        return self._watch_task

    async def stop_watching(self) -> None:
        task, self._watch_task = self._watch_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
