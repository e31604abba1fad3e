"""Catalog cache with TTL staleness and single-flight rebuilds.

States::

    EMPTY -> LOADING -> VALID -> (TTL expiry | invalidate | change) -> STALE
    STALE -> LOADING -> VALID ...

Only one build runs at a time. load() calls that arrive while a build is in
flight await that same build and receive its result. A failed build leaves
the previous entry in place; the failure is returned to every caller that
waited on that build, and the cache stays stale so the next load() retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from snipdex.catalog.builder import BuildOutcome, CatalogBuilder
from snipdex.catalog.models import BuildReport, Catalog
from snipdex.constants.cache import DEFAULT_CACHE_TTL_SECONDS
from snipdex.errors import CatalogError, SourceUnavailable

logger = logging.getLogger(__name__)


class CacheState(Enum):
    """Lifecycle state of the catalog cache."""

    EMPTY = "empty"
    LOADING = "loading"
    VALID = "valid"
    STALE = "stale"


@dataclass(frozen=True)
class CacheEntry:
    """The published catalog and its validity window."""

    catalog: Catalog
    report: BuildReport
    built_at: float  # Monotonic clock reading
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.built_at >= self.ttl_seconds


@dataclass(frozen=True)
class LoadResult:
    """Outcome of one load() call.

    ``catalog`` is None only if no build has ever succeeded. ``error`` is
    set when this call's rebuild failed; ``catalog`` is then the last good
    catalog, if any.
    """

    catalog: Catalog | None
    report: BuildReport = field(default_factory=BuildReport)
    error: CatalogError | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class CacheManager:
    """Owns the published catalog entry.

    The cache is the only holder of mutable catalog state. Readers get an
    immutable Catalog from load() and never see a partially built one.
    """

    def __init__(
        self,
        builder: CatalogBuilder,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            builder: Builds a fresh catalog on a miss.
            ttl_seconds: How long a built catalog stays valid.
            clock: Monotonic time source, in seconds.
        """
        self._builder = builder
        self._ttl = ttl_seconds
        self._clock = clock
        self._entry: CacheEntry | None = None
        self._task: asyncio.Task[BuildOutcome] | None = None
        self._stale = False
        # Bumped by every invalidation; a build that started under an older
        # generation publishes already stale.
        self._generation = 0
        self.builds = 0

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def state(self) -> CacheState:
        if self._task is not None:
            return CacheState.LOADING
        if self._entry is None:
            return CacheState.EMPTY
        if self._stale or self._entry.is_expired(self._clock()):
            return CacheState.STALE
        return CacheState.VALID

    async def load(self) -> LoadResult:
        """Return the current catalog, rebuilding it if needed.

        Returns:
            LoadResult. On a failed rebuild, ``error`` holds the
            SourceUnavailable and ``catalog`` the previous catalog (or None).
        """
        state = self.state
        if state is CacheState.VALID:
            assert self._entry is not None
            return LoadResult(self._entry.catalog, self._entry.report, from_cache=True)

        if self._task is None:
            self._task = asyncio.create_task(self._rebuild())
            self._task.add_done_callback(_consume_exception)
        else:
            logger.debug("Catalog build already in progress; joining it")

        try:
            # shield: one caller being cancelled must not cancel the shared build
            outcome = await asyncio.shield(self._task)
        except SourceUnavailable as e:
            previous = self._entry
            if previous is None:
                return LoadResult(None, BuildReport(), error=e)
            return LoadResult(previous.catalog, previous.report, error=e, from_cache=True)

        return LoadResult(outcome.catalog, outcome.report)

    async def _rebuild(self) -> BuildOutcome:
        generation = self._generation
        self.builds += 1
        try:
            outcome = await self._builder.build()
        except SourceUnavailable as e:
            if self._entry is not None:
                logger.warning(f"Catalog rebuild failed, serving previous catalog: {e}")
            else:
                logger.error(f"Catalog build failed with no previous catalog: {e}")
            raise
        finally:
            self._task = None

        self._entry = CacheEntry(
            catalog=outcome.catalog,
            report=outcome.report,
            built_at=self._clock(),
            ttl_seconds=self._ttl,
        )
        self._stale = generation != self._generation
        return outcome

    def invalidate(self) -> None:
        """Force the next load() to rebuild, regardless of remaining TTL.

        Never starts a build by itself.
        """
        self._generation += 1
        self._stale = True
        logger.debug("Catalog cache invalidated")

    def notify_changed(self, event: Any = None) -> None:
        """Intake for "source changed" notifications."""
        logger.info(f"Snippet source changed{f': {event}' if event else ''}; cache marked stale")
        self.invalidate()

    async def watch(self, feed: AsyncIterator[Any]) -> None:
        """Consume a change feed until it ends or this task is cancelled."""
        async for event in feed:
            self.notify_changed(event)


def _consume_exception(task: asyncio.Task[Any]) -> None:
    # Keeps asyncio from logging "exception was never retrieved" when every
    # waiter was cancelled before the build failed.
    if not task.cancelled():
        task.exception()
