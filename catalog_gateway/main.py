"""FastAPI application entry point.

Catalog Gateway - cached, enriched access to the RAWG game catalog.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_gateway.routes import api_router
from catalog_gateway.routes.catalog import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    CORS_EXPOSE_HEADERS,
)
from catalog_gateway.schemas import ErrorDetail, ErrorResponse, HealthResponse
from catalog_gateway.services.gateway import QueryValidationError, reset_gateway
from catalog_gateway.services.rawg_client import UpstreamError, close_rawg_client
from catalog_gateway.settings import get_settings
from catalog_gateway.stores.postgres import init_db, close_db, ping_db
from catalog_gateway.stores.redis import init_redis, close_redis

logger = logging.getLogger("uvicorn.error")


def _error_response(status_code: int, code: str, message: str, detail: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()

    # Postgres holds game_stats (and the cache table on the default backend)
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    if settings.cache_backend == "redis":
        try:
            await init_redis()
        except Exception:
            logger.exception("Redis init failed")

    yield

    # Shutdown
    reset_gateway()
    await close_rawg_client()
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Cached, rating-enriched access to the RAWG game catalog",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=False,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=CORS_EXPOSE_HEADERS,
    )

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        """Catalog API failures become 502 with a short diagnostic."""
        detail: dict = {"status_code": exc.status_code}
        if settings.debug and exc.body:
            detail["body"] = exc.body
        return _error_response(502, "UPSTREAM_ERROR", str(exc), detail)

    @app.exception_handler(QueryValidationError)
    async def validation_error_handler(request: Request, exc: QueryValidationError) -> JSONResponse:
        return _error_response(400, "VALIDATION_ERROR", str(exc))

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        return _error_response(
            500,
            "INTERNAL_ERROR",
            str(exc) if settings.debug else "Internal server error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(ok=True)

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "catalog_gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
