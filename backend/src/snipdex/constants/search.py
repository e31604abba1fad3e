"""Search and relevance-scoring configuration.

Search is a deterministic substring match over keyword, name, content and
category. Each matching field contributes the weight of its strongest tier,
and preference signals (favorite, recent use) add boosts on top.
"""

from datetime import timedelta

# =============================================================================
# Result Limits
# =============================================================================

DEFAULT_RESULT_LIMIT = 50

# =============================================================================
# Relevance Weights
# =============================================================================
# Empirical weights. Within one field only the highest tier counts, so a
# keyword that equals the query scores 100, not 150. All of these can be
# tuned in the [search] section of config.ini.

DEFAULT_WEIGHTS: dict[str, int] = {
    "keyword_exact": 100,
    "keyword_contains": 50,
    "name_exact": 80,
    "name_prefix": 40,
    "name_contains": 20,
    "content_contains": 10,
    "category_contains": 5,
    "favorite_boost": 25,
    "recent_hour_boost": 20,
    "recent_day_boost": 10,
    "recent_week_boost": 5,
}

# =============================================================================
# Recency Windows
# =============================================================================
# Boost tiers for the last-used timestamp. Checked in order; first hit wins.

RECENT_HOUR = timedelta(hours=1)
RECENT_DAY = timedelta(hours=24)
RECENT_WEEK = timedelta(days=7)
