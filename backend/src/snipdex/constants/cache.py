"""Catalog cache and change-notification configuration.

The catalog is rebuilt from its sources at most once per TTL window. A
"source changed" notification or an explicit invalidation marks the cache
stale immediately, and the next load() rebuilds.
"""

# =============================================================================
# Time-to-live
# =============================================================================
# How long a built catalog is served before the next load() rebuilds it.
# Snippet collections change rarely, so one minute keeps repeated searches
# cheap while still picking up edits made outside the watcher's view.

DEFAULT_CACHE_TTL_SECONDS = 60.0

# =============================================================================
# Change Feed
# =============================================================================
# Editors and sync tools touch several files per save. Filesystem events are
# collapsed into one change notification after this quiet period.

DEFAULT_WATCH_DEBOUNCE_SECONDS = 0.5
