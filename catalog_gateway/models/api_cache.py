"""Cached list/search responses.

One row per normalized cache key. Rows are upserted on every miss and never
deleted by the gateway; freshness is judged from created_at.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from catalog_gateway.stores.postgres import Base


class ApiCacheEntry(Base):
    """Cached RAWG list/search payload keyed by normalized request."""

    __tablename__ = "api_cache_rawg_lists"

    # e.g. "/games?ordering=-metacritic&page_size=20"
    cache_key: Mapped[str] = mapped_column(Text, primary_key=True)

    # Exact enriched body returned to the client
    data: Mapped[dict[str, Any]] = mapped_column(JSON().with_variant(JSONB(), "postgresql"))

    # Which list query produced the payload (primary | fallback); null for search
    tag_mode: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ApiCacheEntry {self.cache_key[:60]}>"
