#!/usr/bin/env python3
"""Cache warm-up job for the most requested list pages.

Schedule:
- Run once a day, shortly before the previous day's entries expire.

Behavior:
- For each (ordering) x (genre or no genre) combination, serve the list
  through the gateway, exactly like GET /catalog/list would
- Fresh entries are left alone (HIT); stale or missing ones are refetched
  and upserted (MISS)
- One combination failing upstream does not stop the run

Run (local / cron):
  python -m scripts.warm_lists

Optional env vars:
  WARM_ORDERINGS="-metacritic,-released,-added"
  WARM_GENRES="action,shooter,role-playing-games-rpg"
  WARM_PAGE_SIZE=40
"""

import asyncio
import os
import sys

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from catalog_gateway.services.gateway import CACHE_HIT, get_gateway  # noqa: E402
from catalog_gateway.services.rawg_client import UpstreamError, close_rawg_client  # noqa: E402
from catalog_gateway.settings import get_settings  # noqa: E402
from catalog_gateway.stores.postgres import close_db, init_db, ping_db  # noqa: E402
from catalog_gateway.stores.redis import close_redis, init_redis  # noqa: E402


def _parse_csv_env(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    return [p.strip() for p in raw.split(",") if p.strip()]


def build_warm_queries(orderings: list[str], genres: list[str], page_size: str) -> list[dict[str, str]]:
    """Every ordering alone, then combined with each genre."""
    queries: list[dict[str, str]] = []
    for ordering in orderings:
        queries.append({"ordering": ordering, "page_size": page_size})
        for genre in genres:
            queries.append({"ordering": ordering, "genres": genre, "page_size": page_size})
    return queries


async def main() -> int:
    orderings = _parse_csv_env("WARM_ORDERINGS", ["-metacritic", "-released", "-added"])
    genres = _parse_csv_env("WARM_GENRES", ["action", "shooter", "role-playing-games-rpg"])
    page_size = os.getenv("WARM_PAGE_SIZE", "40")

    settings = get_settings()
    await init_db()
    await ping_db()
    if settings.cache_backend == "redis":
        await init_redis()

    gateway = get_gateway()
    stats = {"hit": 0, "miss": 0, "failed": 0}
    try:
        for params in build_warm_queries(orderings, genres, page_size):
            try:
                result = await gateway.list_games(params)
            except UpstreamError as e:
                stats["failed"] += 1
                print(f"[warm] FAILED {params}: {e}")
                continue
            stats["hit" if result.cache_status == CACHE_HIT else "miss"] += 1
            print(f"[warm] {result.cache_status} {params} ({len(result.body.get('results', []))} results)")
    finally:
        await close_rawg_client()
        await close_redis()
        await close_db()

    print(f"[warm] done: {stats}")
    return 1 if stats["failed"] and not (stats["hit"] or stats["miss"]) else 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
