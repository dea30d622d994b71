"""create_cache_and_game_stats

Revision ID: 3e7d51c0a9b2
Revises:
Create Date: 2026-10-19

game_stats is owned by the ratings side and is only created here when
missing, so a fresh database works. downgrade() leaves it in place on
purpose: dropping it would delete rating data this service does not own.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3e7d51c0a9b2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "api_cache_rawg_lists",
        sa.Column("cache_key", sa.Text(), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("tag_mode", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("cache_key"),
    )

    # Owned by the review layer; created here so a fresh database works.
    op.create_table(
        "game_stats",
        sa.Column("game_id", sa.String(length=32), nullable=False),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("ratings_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("game_id"),
        if_not_exists=True,
    )


def downgrade() -> None:
    # game_stats is intentionally kept (see module docstring)
    op.drop_table("api_cache_rawg_lists")
