"""Catalog caching."""

from snipdex.cache.manager import CacheEntry, CacheState, CacheManager, LoadResult
