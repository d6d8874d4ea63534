"""Initial schema with player mappings, self player, score ledger and slots."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "player_mappings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("player_name", sa.String(length=128), nullable=False),
        sa.Column("team_name", sa.String(length=128), nullable=False),
    )
    op.create_index("ix_player_mappings_player_name", "player_mappings", ["player_name"], unique=True)

    op.create_table(
        "self_player",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "score_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=128), nullable=False, unique=True),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("added_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_current_player", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "score_meta",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("is_overall_update", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "score_slots",
        sa.Column("slot_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(length=128), nullable=False, server_default=""),
        sa.Column("saved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("remaining_races", sa.Integer(), nullable=True),
        sa.Column("scores", sa.JSON(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("score_slots")
    op.drop_table("score_meta")
    op.drop_table("score_entries")
    op.drop_table("self_player")
    op.drop_index("ix_player_mappings_player_name", table_name="player_mappings")
    op.drop_table("player_mappings")
