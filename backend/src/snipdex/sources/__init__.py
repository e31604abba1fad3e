"""Snippet source adapters.

All adapters are read-only. The relational store is the primary source;
the directory and bundle sources are supplementary.
"""

from snipdex.sources.base import SourceAdapter, SourceBatch
from snipdex.sources.directory import DirectorySource
from snipdex.sources.relational import RelationalSource
from snipdex.sources.archive import ArchiveSource

__all__ = [
    "SourceAdapter",
    "SourceBatch",
    "DirectorySource",
    "RelationalSource",
    "ArchiveSource",
]
