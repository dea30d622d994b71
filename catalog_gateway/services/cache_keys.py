"""Cache key normalization and freshness.

Two requests that differ only in query parameter order must share a cache
row, so keys are built from the parameters sorted by name:

    /games?genres=4&ordering=-metacritic&page_size=20
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from catalog_gateway.stores.cache import CacheEntry


def normalize_cache_key(
    path: str,
    params: Mapping[str, object] | Iterable[tuple[str, object]],
) -> str:
    """Build a canonical cache key from a path and its query parameters.

    Args:
        path: Logical resource path (e.g. "/games").
        params: Mapping or (key, value) pairs; repeated keys are allowed and
            keep their relative order.

    Returns:
        "<path>?k1=v1&k2=v2" with keys in lexicographic order. An empty
        parameter set yields "<path>?".
    """
    pairs = params.items() if isinstance(params, Mapping) else params
    ordered = sorted(((str(k), str(v)) for k, v in pairs), key=lambda kv: kv[0])
    return f"{path}?" + "&".join(f"{k}={v}" for k, v in ordered)


def is_fresh(entry: CacheEntry, ttl: timedelta, now: datetime) -> bool:
    """True while the entry is younger than ttl."""
    return now - entry.created_at < ttl
