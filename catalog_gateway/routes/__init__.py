"""API routes."""

from fastapi import APIRouter

from catalog_gateway.routes import catalog

api_router = APIRouter()

# Catalog endpoints (items, search, lists)
api_router.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
