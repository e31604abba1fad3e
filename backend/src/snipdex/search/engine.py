"""Deterministic weighted-substring search over a catalog snapshot."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from snipdex.catalog.models import Catalog, Snippet
from snipdex.config import SearchConfig
from snipdex.constants.search import DEFAULT_WEIGHTS, RECENT_DAY, RECENT_HOUR, RECENT_WEEK


@dataclass(frozen=True)
class ScoringWeights:
    """Relevance weights. Defaults mirror DEFAULT_WEIGHTS."""

    keyword_exact: int = DEFAULT_WEIGHTS["keyword_exact"]
    keyword_contains: int = DEFAULT_WEIGHTS["keyword_contains"]
    name_exact: int = DEFAULT_WEIGHTS["name_exact"]
    name_prefix: int = DEFAULT_WEIGHTS["name_prefix"]
    name_contains: int = DEFAULT_WEIGHTS["name_contains"]
    content_contains: int = DEFAULT_WEIGHTS["content_contains"]
    category_contains: int = DEFAULT_WEIGHTS["category_contains"]
    favorite_boost: int = DEFAULT_WEIGHTS["favorite_boost"]
    recent_hour_boost: int = DEFAULT_WEIGHTS["recent_hour_boost"]
    recent_day_boost: int = DEFAULT_WEIGHTS["recent_day_boost"]
    recent_week_boost: int = DEFAULT_WEIGHTS["recent_week_boost"]

    @classmethod
    def from_config(cls, config: SearchConfig) -> "ScoringWeights":
        return cls(**{name: getattr(config, name) for name in DEFAULT_WEIGHTS})


@dataclass(frozen=True)
class ScoredSnippet:
    """A search hit and its relevance score."""

    snippet: Snippet
    score: int


class SearchEngine:
    """Ranks snippets against a query.

    Stateless apart from its weights: every call works only on the
    snapshot it is given.
    """

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()

    def search(
        self,
        catalog: Catalog,
        query: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[ScoredSnippet]:
        """Search a catalog snapshot. See rank()."""
        return self.rank(catalog.snippet_list(), query, limit=limit, now=now)

    def rank(
        self,
        snippets: Sequence[Snippet],
        query: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[ScoredSnippet]:
        """Filter and order snippets by relevance.

        An empty (or whitespace) query returns every snippet in the given
        order, unscored. Otherwise a snippet matches when the lowercased
        query occurs in its keyword, name, content or category. Matches are
        sorted by descending score; equal scores keep their input order.

        Args:
            snippets: Candidates in catalog order.
            query: Raw query text.
            limit: Maximum results, applied after sorting.
            now: Reference time for recency boosts. Defaults to the current
                UTC time.

        Returns:
            Ranked results.
        """
        term = (query or "").strip().lower()
        if limit is not None and limit < 0:
            limit = 0

        if not term:
            results = [ScoredSnippet(s, 0) for s in snippets]
            return results if limit is None else results[:limit]

        if now is None:
            now = datetime.now(timezone.utc)

        results = []
        for snippet in snippets:
            if not self.matches(snippet, term):
                continue
            results.append(ScoredSnippet(snippet, self.score(snippet, term, now)))

        # sort() is stable, so ties keep catalog order
        results.sort(key=lambda r: -r.score)
        return results if limit is None else results[:limit]

    @staticmethod
    def matches(snippet: Snippet, term: str) -> bool:
        return (
            term in snippet.keyword.lower()
            or term in snippet.name.lower()
            or term in snippet.content.lower()
            or term in snippet.category.lower()
        )

    def score(self, snippet: Snippet, term: str, now: datetime) -> int:
        """Relevance of one snippet for an already-normalized term.

        Only the strongest tier of each field contributes.
        """
        w = self.weights
        score = 0

        keyword = snippet.keyword.lower()
        if keyword == term:
            score += w.keyword_exact
        elif term in keyword:
            score += w.keyword_contains

        name = snippet.name.lower()
        if name == term:
            score += w.name_exact
        elif name.startswith(term):
            score += w.name_prefix
        elif term in name:
            score += w.name_contains

        if term in snippet.content.lower():
            score += w.content_contains

        if term in snippet.category.lower():
            score += w.category_contains

        if snippet.is_favorite:
            score += w.favorite_boost

        score += self._recency_boost(snippet.last_used, now)
        return score

    def _recency_boost(self, last_used: datetime | None, now: datetime) -> int:
        if last_used is None:
            return 0
        if last_used.tzinfo is None:
            last_used = last_used.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        age = now - last_used
        if age < RECENT_HOUR:
            return self.weights.recent_hour_boost
        if age < RECENT_DAY:
            return self.weights.recent_day_boost
        if age < RECENT_WEEK:
            return self.weights.recent_week_boost
        return 0
