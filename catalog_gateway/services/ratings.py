"""Rating enrichment.

Attaches the first-party aggregate rating (game_stats.average_rating) to
RAWG items as `factiony_rating`:
- Single item: one point lookup
- List: one batched lookup for every id on the page

This is a left join: unrated games get an explicit null, never a missing
key. A failing rating store degrades to all-null ratings; it never fails
the request.
"""

import logging
from typing import Any, Protocol

from sqlalchemy import select

from catalog_gateway.models import GameStat
from catalog_gateway.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")

RATING_FIELD = "factiony_rating"


class RatingStore(Protocol):
    async def get_rating(self, game_id: str) -> float | None: ...

    async def get_ratings(self, game_ids: list[str]) -> dict[str, float]: ...


class PostgresRatingStore:
    """Reads aggregate ratings from the game_stats table."""

    async def get_rating(self, game_id: str) -> float | None:
        async with get_session() as session:
            result = await session.execute(
                select(GameStat.average_rating).where(GameStat.game_id == game_id)
            )
            return result.scalar_one_or_none()

    async def get_ratings(self, game_ids: list[str]) -> dict[str, float]:
        async with get_session() as session:
            result = await session.execute(
                select(GameStat.game_id, GameStat.average_rating).where(
                    GameStat.game_id.in_(game_ids)
                )
            )
            return {
                row.game_id: row.average_rating
                for row in result
                if row.average_rating is not None
            }


def _game_id(item: dict[str, Any]) -> str | None:
    game_id = item.get("id")
    return str(game_id) if game_id is not None else None


async def enrich_item(item: dict[str, Any], store: RatingStore) -> dict[str, Any]:
    """Return a copy of item with factiony_rating attached."""
    game_id = _game_id(item)
    rating = None
    if game_id is not None:
        try:
            rating = await store.get_rating(game_id)
        except Exception as e:
            logger.warning(f"Rating lookup failed for game {game_id}: {e}")
    return {**item, RATING_FIELD: rating}


async def enrich_items(items: list[dict[str, Any]], store: RatingStore) -> list[dict[str, Any]]:
    """Return copies of items, in order, each with factiony_rating attached.

    Args:
        items: RAWG result page.
        store: Rating source; queried once for all ids on the page.

    Returns:
        A list of the same length; unrated items carry None.
    """
    if not items:
        return []

    game_ids = list(dict.fromkeys(gid for gid in map(_game_id, items) if gid is not None))
    ratings: dict[str, float] = {}
    if game_ids:
        try:
            ratings = await store.get_ratings(game_ids)
        except Exception as e:
            logger.warning(f"Batched rating lookup failed for {len(game_ids)} games: {e}")

    return [{**item, RATING_FIELD: ratings.get(_game_id(item))} for item in items]
