"""Catalog endpoints.

GET /catalog/items/{id}      - Single RAWG game + factiony_rating
GET /catalog/items?ids=1,2   - Batch lookup ({"ok", "games": {id: game | null}})
GET /catalog/search?query=   - Relevance-ranked search (cached)
GET /catalog/list?...        - Filtered/sorted list with tag fallback (cached)

Diagnostics headers:
- X-Cache: HIT | MISS (search, list)
- X-Factiony-Tag-Mode: primary | fallback (list, on MISS and HIT)

Routers are thin: call the gateway for business logic.
"""

from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import JSONResponse, Response

from catalog_gateway.services.gateway import (
    CatalogGateway,
    GatewayResult,
    QueryValidationError,
    get_gateway,
)

router = APIRouter()

# Static CORS policy (not configurable)
CORS_ALLOW_ORIGINS = ["*"]
CORS_ALLOW_METHODS = ["GET", "OPTIONS"]
CORS_ALLOW_HEADERS = ["authorization", "content-type", "x-client-info", "apikey"]
CORS_EXPOSE_HEADERS = ["X-Cache", "X-Factiony-Tag-Mode"]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}


def _respond(result: GatewayResult) -> JSONResponse:
    headers: dict[str, str] = {}
    if result.cache_status:
        headers["X-Cache"] = result.cache_status
    if result.tag_mode:
        headers["X-Factiony-Tag-Mode"] = result.tag_mode
    return JSONResponse(content=result.body, headers=headers)


@router.get("/items/{game_id}")
async def get_item(
    game_id: int = Path(ge=1, description="RAWG numeric game id", examples=[3498]),
    gateway: CatalogGateway = Depends(get_gateway),
) -> JSONResponse:
    """Get a single game with its first-party rating.

    Raises:
        UpstreamError: Mapped to 502 by the app exception handler.
    """
    return _respond(await gateway.get_item(game_id))


@router.get("/items")
async def get_items(
    ids: str | None = Query(
        default=None,
        description="Comma-separated RAWG ids",
        examples=["3498,4200"],
    ),
    gateway: CatalogGateway = Depends(get_gateway),
) -> JSONResponse:
    """Get several games at once; unknown or failing ids map to null."""
    if not ids:
        raise QueryValidationError("Missing ids query param")
    return _respond(await gateway.get_items(ids.split(",")))


@router.get("/search")
async def search_games(
    query: str | None = Query(default=None, description="Free-text query", examples=["doom"]),
    search: str | None = Query(default=None, description="Alias of query"),
    page_size: str | None = Query(default=None, description="Results per page (max 40)"),
    gateway: CatalogGateway = Depends(get_gateway),
) -> JSONResponse:
    """Search games; results are re-ranked by name relevance."""
    return _respond(await gateway.search(query or search, page_size))


@router.get("/list")
async def list_games(
    request: Request,
    gateway: CatalogGateway = Depends(get_gateway),
) -> JSONResponse:
    """List games; every query parameter is passed through to RAWG.

    ordering defaults to -metacritic (also replacing -rating), page_size is
    capped at 40.
    """
    return _respond(await gateway.list_games(dict(request.query_params)))


@router.options("/{path:path}", include_in_schema=False)
async def preflight(path: str) -> Response:
    """Answer bare OPTIONS requests with the static CORS policy."""
    return Response(status_code=204, headers=CORS_HEADERS)
