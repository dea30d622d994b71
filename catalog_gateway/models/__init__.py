"""SQLAlchemy ORM models.

Models represent database tables:
- api_cache_rawg_lists: cached list/search responses (TTL cache)
- game_stats: first-party aggregate ratings (read-only here)
"""

from catalog_gateway.models.api_cache import ApiCacheEntry
from catalog_gateway.models.game_stat import GameStat

__all__ = ["ApiCacheEntry", "GameStat"]
