"""Response cache stores.

A response cache is a durable key -> JSON payload map that also remembers
when each payload was written. Writes are upserts (last writer wins).

The stores do not judge freshness: they hand back the entry with its
created_at and the gateway compares it against its TTL. They also do not
swallow driver errors; the gateway decides how a failed read or write
degrades.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from typing import Any, Protocol

import redis.asyncio as redis
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from catalog_gateway.models import ApiCacheEntry
from catalog_gateway.stores.postgres import get_session
from catalog_gateway.stores.redis import PREFIX_RESPONSE_CACHE, get_redis

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: dict[str, Any]
    created_at: datetime
    # Kept beside the payload so the served body stays byte-for-byte
    tag_mode: str | None = None


class ResponseCacheStore(Protocol):
    async def get(self, key: str) -> CacheEntry | None: ...

    async def put(self, entry: CacheEntry) -> None: ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_upsert(entry: CacheEntry):
    """INSERT ... ON CONFLICT (cache_key) DO UPDATE for one cache entry."""
    stmt = pg_insert(ApiCacheEntry).values(
        cache_key=entry.key,
        data=entry.payload,
        tag_mode=entry.tag_mode,
        created_at=entry.created_at,
    )
    return stmt.on_conflict_do_update(
        index_elements=[ApiCacheEntry.cache_key],
        set_={
            "data": stmt.excluded.data,
            "tag_mode": stmt.excluded.tag_mode,
            "created_at": stmt.excluded.created_at,
        },
    )


class PostgresResponseCache:
    """Cache rows in the api_cache_rawg_lists table."""

    async def get(self, key: str) -> CacheEntry | None:
        async with get_session() as session:
            result = await session.execute(
                select(ApiCacheEntry.data, ApiCacheEntry.tag_mode, ApiCacheEntry.created_at).where(
                    ApiCacheEntry.cache_key == key
                )
            )
            row = result.one_or_none()

        if row is None:
            return None
        return CacheEntry(
            key=key,
            payload=row.data,
            created_at=_as_utc(row.created_at),
            tag_mode=row.tag_mode,
        )

    async def put(self, entry: CacheEntry) -> None:
        async with get_session() as session:
            await session.execute(build_upsert(entry))


class RedisResponseCache:
    """Cache documents in Redis as {"payload", "tag_mode", "created_at"}.

    The Redis expiry only bounds memory; it is set well above the gateway TTL
    so stale entries are still visible (and overwritten) like in Postgres.
    """

    def __init__(self, retention_seconds: int, client: redis.Redis | None = None):
        self._retention_seconds = retention_seconds
        self._redis = client

    def _client(self) -> redis.Redis:
        # Resolved per call so a Redis outage at startup only degrades lookups.
        return self._redis if self._redis is not None else get_redis()

    async def get(self, key: str) -> CacheEntry | None:
        raw = await self._client().get(f"{PREFIX_RESPONSE_CACHE}{key}")
        if not raw:
            return None

        try:
            doc = json.loads(raw)
            created_at = _as_utc(datetime.fromisoformat(doc["created_at"]))
            payload = doc["payload"]
            tag_mode = doc.get("tag_mode")
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            # Unreadable document: let the next miss overwrite it.
            logger.warning(f"Ignoring malformed Redis cache entry for {key}")
            return None

        return CacheEntry(key=key, payload=payload, created_at=created_at, tag_mode=tag_mode)

    async def put(self, entry: CacheEntry) -> None:
        doc = {
            "payload": entry.payload,
            "tag_mode": entry.tag_mode,
            "created_at": entry.created_at.isoformat(),
        }
        await self._client().set(
            f"{PREFIX_RESPONSE_CACHE}{entry.key}",
            json.dumps(doc),
            ex=self._retention_seconds,
        )
