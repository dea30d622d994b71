"""Shared fixtures: a scripted RAWG upstream and in-memory stores."""

from typing import Any

import httpx
import pytest

from catalog_gateway.services.gateway import CatalogGateway
from catalog_gateway.services.rawg_client import RawgClient
from catalog_gateway.settings import Settings
from catalog_gateway.stores.cache import CacheEntry


def game(game_id: int, name: str, **extra: Any) -> dict[str, Any]:
    return {"id": game_id, "name": name, "slug": name.lower().replace(" ", "-"), **extra}


class FakeRawg:
    """Scripted RAWG API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.games: dict[int, dict[str, Any]] = {}
        self.list_results: list[dict[str, Any]] = []
        self.tag_results: dict[str, list[dict[str, Any]]] = {}
        self.search_results: dict[str, list[dict[str, Any]]] = {}
        self.fail_status: int | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, text="upstream exploded " * 50)

        path = request.url.path
        params = request.url.params
        if path.startswith("/api/games/"):
            game_id = int(path.rsplit("/", 1)[1])
            if game_id not in self.games:
                return httpx.Response(404, json={"detail": "Not found."})
            return httpx.Response(200, json=self.games[game_id])

        if "search" in params:
            results = self.search_results.get(params["search"], [])
        elif "tags" in params:
            results = self.tag_results.get(params["tags"], [])
        else:
            results = self.list_results
        return httpx.Response(
            200,
            json={"count": len(results), "next": None, "previous": None, "results": results},
        )


class InMemoryCacheStore:
    """ResponseCacheStore backed by a dict."""

    def __init__(self) -> None:
        self.entries: dict[str, CacheEntry] = {}
        self.puts = 0
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, key: str) -> CacheEntry | None:
        if self.fail_reads:
            raise ConnectionError("cache store unreachable")
        return self.entries.get(key)

    async def put(self, entry: CacheEntry) -> None:
        if self.fail_writes:
            raise ConnectionError("cache store unreachable")
        self.puts += 1
        self.entries[entry.key] = entry


class FakeRatingStore:
    """RatingStore backed by a dict, recording every lookup."""

    def __init__(self, ratings: dict[str, float] | None = None) -> None:
        self.ratings = ratings or {}
        self.point_calls: list[str] = []
        self.batch_calls: list[list[str]] = []
        self.fail = False

    async def get_rating(self, game_id: str) -> float | None:
        self.point_calls.append(game_id)
        if self.fail:
            raise ConnectionError("ratings unavailable")
        return self.ratings.get(game_id)

    async def get_ratings(self, game_ids: list[str]) -> dict[str, float]:
        self.batch_calls.append(list(game_ids))
        if self.fail:
            raise ConnectionError("ratings unavailable")
        return {gid: self.ratings[gid] for gid in game_ids if gid in self.ratings}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        rawg_api_key="test-key",
        rawg_base_url="https://api.rawg.io/api",
        upstream_min_interval_seconds=0,
    )


@pytest.fixture
def fake_rawg() -> FakeRawg:
    return FakeRawg()


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def rating_store() -> FakeRatingStore:
    return FakeRatingStore()


@pytest.fixture
async def rawg_client(settings: Settings, fake_rawg: FakeRawg):
    client = RawgClient(settings, transport=httpx.MockTransport(fake_rawg))
    yield client
    await client.close()


@pytest.fixture
def gateway(
    settings: Settings,
    rawg_client: RawgClient,
    cache_store: InMemoryCacheStore,
    rating_store: FakeRatingStore,
) -> CatalogGateway:
    return CatalogGateway(
        settings=settings,
        client=rawg_client,
        cache=cache_store,
        ratings=rating_store,
    )
