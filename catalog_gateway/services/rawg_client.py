"""RAWG catalog API client.

Upstream policy:
- Every call has a bounded timeout; timeouts, transport errors, non-2xx
  statuses and non-object bodies all raise UpstreamError
- No automatic retries: the only second call is the deliberate tag
  fallback, which is a different query
- List requests get an opinionated default ordering and a page size cap
  before they are sent (and before they are used as a cache key)

Tag fallback:
- Some RAWG tags (e.g. "battle-royale") are sparsely applied upstream, so an
  empty result for such a tag is retried once without the tag, as a free-text
  search plus broader genres
- The fallback only replaces the primary data when it has results
"""

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any

import httpx

from catalog_gateway.services.pacing import CallPacer
from catalog_gateway.settings import Settings, get_settings

logger = logging.getLogger("uvicorn.error")

TAG_MODE_PRIMARY = "primary"
TAG_MODE_FALLBACK = "fallback"

# Upstream bodies are only echoed in truncated form
MAX_ERROR_BODY_CHARS = 200


class UpstreamError(RuntimeError):
    """The catalog API failed to answer with a usable payload."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class ListFetch:
    """Result of a list fetch and which query produced it."""

    data: dict[str, Any]
    mode: str = TAG_MODE_PRIMARY


class RawgClient:
    """Client for the RAWG games endpoints."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize client from settings.

        Args:
            settings: Gateway settings (API key, base URL, timeouts, list policy).
            transport: Optional httpx transport, used by tests to stub RAWG.
        """
        self.settings = settings
        self.api_key = settings.rawg_api_key
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

        if not self.api_key:
            logger.warning("RAWG API key not configured, upstream calls will be rejected")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.settings.rawg_base_url,
                timeout=self.settings.upstream_timeout_seconds,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    # ============================================================
    # Public calls
    # ============================================================

    async def get_game(self, game_id: int) -> dict[str, Any]:
        """Fetch a single game by its numeric RAWG id."""
        return await self._get_json(f"/games/{game_id}", {})

    async def search_games(self, query: str, page_size: int) -> dict[str, Any]:
        """Free-text search; ordering is left to the relevance scorer."""
        logger.info(f"RAWG search query={query!r} page_size={page_size}")
        data = await self._get_json("/games", {"search": query, "page_size": str(page_size)})
        return self._checked_page(data)

    async def list_games(self, params: Mapping[str, str]) -> ListFetch:
        """Fetch a filtered list, falling back once for unreliable tags.

        Args:
            params: Query parameters already passed through prepare_list_params().

        Returns:
            ListFetch with the payload that will be served and its mode.
        """
        pacer = CallPacer(self.settings.upstream_min_interval_seconds)

        await pacer.wait()
        logger.info(f"Fetching from RAWG: /games {_describe(params)}")
        data = self._checked_page(await self._get_json("/games", dict(params)))

        tag = params.get("tags")
        fallback = self.settings.tag_fallbacks.get(tag) if tag else None
        if fallback is None or data.get("results"):
            return ListFetch(data=data, mode=TAG_MODE_PRIMARY)

        logger.info(f"Tag {tag!r} returned 0 results, trying fallback")
        fallback_params = {k: v for k, v in params.items() if k != "tags"}
        fallback_params.update(fallback)

        await pacer.wait()
        try:
            fallback_data = self._checked_page(await self._get_json("/games", fallback_params))
        except UpstreamError as e:
            logger.warning(f"Fallback for tag {tag!r} failed, keeping primary result: {e}")
            return ListFetch(data=data, mode=TAG_MODE_PRIMARY)

        fallback_count = len(fallback_data["results"])
        if not fallback_count:
            logger.info(f"Fallback for tag {tag!r} also empty, keeping primary result")
            return ListFetch(data=data, mode=TAG_MODE_PRIMARY)

        logger.info(f"Fallback returned {fallback_count} results")
        return ListFetch(data=fallback_data, mode=TAG_MODE_FALLBACK)

    # ============================================================
    # List policy
    # ============================================================

    def clamp_page_size(self, value: object) -> int:
        """Parse a requested page size and clamp it to [1, max_page_size]."""
        try:
            size = int(str(value))
        except (TypeError, ValueError):
            size = self.settings.default_page_size
        return max(1, min(size, self.settings.max_page_size))

    def prepare_list_params(self, params: Mapping[str, str]) -> dict[str, str]:
        """Apply ordering override and page size cap to client parameters.

        - Missing or low-signal ordering -> settings.default_ordering
        - page_size -> clamped (100 becomes 40)
        - A client-supplied "key" is dropped; ours is added per call
        """
        prepared = {k: v for k, v in params.items() if k != "key"}

        ordering = prepared.get("ordering")
        if not ordering or ordering in self.settings.low_signal_orderings:
            prepared["ordering"] = self.settings.default_ordering

        prepared["page_size"] = str(self.clamp_page_size(prepared.get("page_size")))
        return prepared

    def _checked_page(self, data: dict[str, Any]) -> dict[str, Any]:
        """Validate the results list of a paginated RAWG payload.

        A missing results key reads as an empty page and non-object entries
        are dropped.

        Raises:
            UpstreamError: If results is present but not a list.
        """
        results = data.get("results")
        if results is None:
            return {**data, "results": []}
        if not isinstance(results, list):
            logger.error(f"RAWG results has type {type(results).__name__}, expected list")
            raise UpstreamError("Unexpected response from RAWG API")

        items = [item for item in results if isinstance(item, dict)]
        if len(items) != len(results):
            logger.warning(f"Dropped {len(results) - len(items)} malformed RAWG results")
            return {**data, "results": items}
        return data

    # ============================================================
    # Transport
    # ============================================================

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get(path, params={**params, "key": self.api_key})
        except httpx.TimeoutException as e:
            logger.warning(f"RAWG API timeout on {path}")
            raise UpstreamError(
                f"RAWG API timeout after {self.settings.upstream_timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"RAWG API request failed on {path}: {e.__class__.__name__}")
            raise UpstreamError(f"RAWG API request failed: {e.__class__.__name__}") from e

        if not response.is_success:
            body = response.text[:MAX_ERROR_BODY_CHARS]
            logger.error(f"RAWG API error: {response.status_code} on {path} - {body}")
            raise UpstreamError(
                f"RAWG API error: {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "RAWG API returned invalid JSON", status_code=response.status_code
            ) from e

        if not isinstance(data, dict):
            raise UpstreamError(
                "Unexpected response from RAWG API", status_code=response.status_code
            )
        return data


def _describe(params: Mapping[str, str]) -> str:
    return "&".join(f"{k}={v}" for k, v in params.items())


# Singleton client instance
_client: RawgClient | None = None


def get_rawg_client() -> RawgClient:
    """Get RAWG client singleton."""
    global _client
    if _client is None:
        _client = RawgClient(get_settings())
    return _client


async def close_rawg_client() -> None:
    """Close the singleton's HTTP client (app shutdown)."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None
