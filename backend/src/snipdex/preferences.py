"""Per-user snippet preferences: favorites and last-used times.

Preferences are not part of the catalog. They are merged into Snippet
copies at read time, keyed by snippet id.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from snipdex.catalog.models import Snippet


@runtime_checkable
class PreferenceProvider(Protocol):
    """Read side of the preference store."""

    def favorites(self) -> set[str]: ...

    def last_used(self) -> dict[str, datetime]: ...


class StaticPreferences:
    """In-memory PreferenceProvider."""

    def __init__(
        self,
        favorites: Iterable[str] = (),
        last_used: Mapping[str, datetime] | None = None,
    ) -> None:
        self._favorites = set(favorites)
        self._last_used = dict(last_used or {})

    def favorites(self) -> set[str]:
        return set(self._favorites)

    def last_used(self) -> dict[str, datetime]:
        return dict(self._last_used)

    def toggle_favorite(self, snippet_id: str) -> bool:
        """Flip a snippet's favorite flag. Returns the new value."""
        if snippet_id in self._favorites:
            self._favorites.discard(snippet_id)
            return False
        self._favorites.add(snippet_id)
        return True

    def mark_used(self, snippet_id: str, when: datetime | None = None) -> None:
        self._last_used[snippet_id] = when or datetime.now(timezone.utc)


def apply_preferences(
    snippets: Iterable[Snippet], preferences: PreferenceProvider | None
) -> list[Snippet]:
    """Return snippets with favorite and last-used fields filled in.

    Order is preserved. Snippets without preferences are returned as is.
    """
    if preferences is None:
        return list(snippets)

    favorites = preferences.favorites()
    last_used = preferences.last_used()
    if not favorites and not last_used:
        return list(snippets)

    merged = []
    for snippet in snippets:
        is_favorite = snippet.id in favorites
        used = last_used.get(snippet.id)
        if is_favorite or used is not None:
            snippet = snippet.with_preferences(is_favorite, used)
        merged.append(snippet)
    return merged
