"""Configuration constants.

Re-exports all constants for convenient importing:
    from snipdex.constants import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_WEIGHTS
"""

from snipdex.constants.cache import *  # noqa: F403
from snipdex.constants.search import *  # noqa: F403
from snipdex.constants.sources import *  # noqa: F403
