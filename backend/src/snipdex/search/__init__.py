"""Snippet search and ranking."""

from snipdex.search.engine import ScoredSnippet, ScoringWeights, SearchEngine
