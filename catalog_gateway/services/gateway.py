"""Catalog gateway: orchestrates cache, RAWG, enrichment and ranking.

Flow per request:
- Single item: RAWG fetch -> point enrichment (never cached)
- List: list policy -> cache key -> cache lookup -> (fresh hit: serve)
  -> RAWG fetch with tag fallback -> batched enrichment -> cache write
- Search: validation -> cache key -> cache lookup -> (fresh hit: serve)
  -> RAWG search -> relevance ranking -> batched enrichment -> cache write

Degradation rules:
- Cache read failure = miss; cache write failure = logged, response unchanged
- Rating failure = null ratings
- Only UpstreamError and QueryValidationError change the status code

The gateway keeps no per-request state on the instance, so one instance
serves all concurrent requests. Two concurrent misses for one key both fetch
and both upsert; the last write wins.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Any

from catalog_gateway.services.cache_keys import is_fresh, normalize_cache_key
from catalog_gateway.services.ratings import (
    PostgresRatingStore,
    RatingStore,
    enrich_item,
    enrich_items,
)
from catalog_gateway.services.rawg_client import RawgClient, UpstreamError, get_rawg_client
from catalog_gateway.services.relevance import rank_by_relevance
from catalog_gateway.settings import Settings, get_settings
from catalog_gateway.stores.cache import (
    CacheEntry,
    PostgresResponseCache,
    RedisResponseCache,
    ResponseCacheStore,
)

logger = logging.getLogger("uvicorn.error")

CACHE_HIT = "HIT"
CACHE_MISS = "MISS"

LIST_CACHE_PATH = "/games"
SEARCH_CACHE_PATH = "/games/search"


class QueryValidationError(ValueError):
    """Required request input is missing or unusable."""


@dataclass
class GatewayResult:
    """Response body plus the diagnostics routes turn into headers."""

    body: dict[str, Any]
    cache_status: str | None = None
    tag_mode: str | None = None


class CatalogGateway:
    """Stateless request handler in front of RAWG."""

    def __init__(
        self,
        settings: Settings,
        client: RawgClient,
        cache: ResponseCacheStore,
        ratings: RatingStore,
    ):
        self.settings = settings
        self.client = client
        self.cache = cache
        self.ratings = ratings
        self.ttl = timedelta(seconds=settings.cache_ttl_seconds)

    # ============================================================
    # Items
    # ============================================================

    async def get_item(self, game_id: int) -> GatewayResult:
        """Fetch one game and attach its rating."""
        data = await self.client.get_game(game_id)
        return GatewayResult(body=await enrich_item(data, self.ratings))

    async def get_items(self, raw_ids: list[str]) -> GatewayResult:
        """Fetch several games by id with bounded concurrency.

        A game that fails upstream maps to None instead of failing the batch.

        Args:
            raw_ids: Ids as sent by the client; blanks and duplicates are dropped.

        Returns:
            {"ok": True, "games": {"<id>": game | None}}

        Raises:
            QueryValidationError: If no numeric id remains.
        """
        ids = list(dict.fromkeys(i.strip() for i in raw_ids if i.strip()))
        numeric = [i for i in ids if i.isdecimal()]
        if not numeric:
            raise QueryValidationError("No valid game IDs provided")
        if len(numeric) > self.settings.max_batch_ids:
            raise QueryValidationError(
                f"Too many game IDs: {len(numeric)} > {self.settings.max_batch_ids}"
            )

        semaphore = asyncio.Semaphore(self.settings.batch_concurrency)

        async def fetch(game_id: str) -> dict[str, Any] | None:
            async with semaphore:
                try:
                    return await self.client.get_game(int(game_id))
                except UpstreamError as e:
                    logger.warning(f"Batch fetch failed for game {game_id}: {e}")
                    return None

        fetched = await asyncio.gather(*(fetch(i) for i in numeric))
        found = [game for game in fetched if game is not None]
        enriched = iter(await enrich_items(found, self.ratings))

        games: dict[str, Any] = {i: None for i in ids}
        for game_id, game in zip(numeric, fetched):
            if game is not None:
                games[game_id] = next(enriched)

        logger.info(f"Batch fetched {len(found)}/{len(ids)} games")
        return GatewayResult(body={"ok": True, "games": games})

    # ============================================================
    # Search
    # ============================================================

    async def search(self, query: str | None, page_size: object = None) -> GatewayResult:
        """Search RAWG and rank results by name relevance.

        Raises:
            QueryValidationError: If the query is missing or blank.
            UpstreamError: If RAWG fails (cache misses only).
        """
        query = (query or "").strip()
        if not query:
            raise QueryValidationError("Query parameter is required")

        size = self.client.clamp_page_size(page_size)
        cache_key = normalize_cache_key(SEARCH_CACHE_PATH, {"query": query, "page_size": size})

        cached = await self._read_cache(cache_key)
        if cached is not None:
            return GatewayResult(body=cached.payload, cache_status=CACHE_HIT)

        data = await self.client.search_games(query, size)
        ranked = rank_by_relevance(query, data.get("results") or [])
        enriched = await enrich_items(ranked, self.ratings)
        results = [
            {**item, "images": {"cover_url": item.get("background_image") or None}}
            for item in enriched
        ]

        body = {
            "count": data.get("count"),
            "next": data.get("next"),
            "previous": data.get("previous"),
            "results": results,
        }
        await self._write_cache(cache_key, body)
        return GatewayResult(body=body, cache_status=CACHE_MISS)

    # ============================================================
    # Lists
    # ============================================================

    async def list_games(self, params: dict[str, str]) -> GatewayResult:
        """Serve a filtered/sorted list through the response cache.

        Raises:
            UpstreamError: If the primary RAWG call fails (cache misses only).
        """
        prepared = self.client.prepare_list_params(params)
        cache_key = normalize_cache_key(LIST_CACHE_PATH, prepared)

        cached = await self._read_cache(cache_key)
        if cached is not None:
            return GatewayResult(
                body=cached.payload, cache_status=CACHE_HIT, tag_mode=cached.tag_mode
            )

        fetch = await self.client.list_games(prepared)
        results = await enrich_items(fetch.data.get("results") or [], self.ratings)
        body = {**fetch.data, "results": results}

        await self._write_cache(cache_key, body, tag_mode=fetch.mode)
        return GatewayResult(body=body, cache_status=CACHE_MISS, tag_mode=fetch.mode)

    # ============================================================
    # Cache helpers
    # ============================================================

    async def _read_cache(self, key: str) -> CacheEntry | None:
        """Return a fresh cache entry, or None on miss/stale/store failure."""
        try:
            entry = await self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return None

        if entry is None:
            logger.info(f"Cache MISS for {key}")
            return None

        now = datetime.now(timezone.utc)
        age_hours = (now - entry.created_at).total_seconds() / 3600
        if not is_fresh(entry, self.ttl, now):
            logger.info(f"Cache EXPIRED for {key} (age: {age_hours:.1f}h)")
            return None

        logger.info(f"Cache HIT for {key} (age: {age_hours:.1f}h)")
        return entry

    async def _write_cache(
        self, key: str, body: dict[str, Any], tag_mode: str | None = None
    ) -> None:
        entry = CacheEntry(
            key=key,
            payload=body,
            created_at=datetime.now(timezone.utc),
            tag_mode=tag_mode,
        )
        try:
            await self.cache.put(entry)
        except Exception as e:
            logger.warning(f"cache write failed for {key}: {e}")
            return
        logger.info(f"Cached response for {key}")


# Gateway instance (built lazily from app settings)
_gateway: CatalogGateway | None = None


def build_cache_store(settings: Settings) -> ResponseCacheStore:
    """Pick the response cache backend configured in settings."""
    if settings.cache_backend == "redis":
        return RedisResponseCache(settings.redis_cache_retention_seconds)
    return PostgresResponseCache()


def get_gateway() -> CatalogGateway:
    """Get gateway singleton (FastAPI dependency)."""
    global _gateway
    if _gateway is None:
        settings = get_settings()
        _gateway = CatalogGateway(
            settings=settings,
            client=get_rawg_client(),
            cache=build_cache_store(settings),
            ratings=PostgresRatingStore(),
        )
    return _gateway


def reset_gateway() -> None:
    """Drop the singleton (app shutdown)."""
    global _gateway
    _gateway = None
