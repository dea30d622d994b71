"""First-party rating aggregates.

Written by the review layer (one row per rated game); the gateway only
reads it to attach factiony_rating to catalog items.
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, String, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog_gateway.stores.postgres import Base


class GameStat(Base):
    """Aggregate rating for a catalog game."""

    __tablename__ = "game_stats"

    # RAWG numeric id, stored as text
    game_id: Mapped[str] = mapped_column(String(32), primary_key=True)

    average_rating: Mapped[float | None] = mapped_column(Float)
    ratings_count: Mapped[int] = mapped_column(default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<GameStat {self.game_id} avg={self.average_rating}>"
