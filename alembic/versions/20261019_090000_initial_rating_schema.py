"""Initial rating schema: players, rating tracks, history, tournaments, rating jobs

Revision ID: 5e1f0a7c3b21
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "5e1f0a7c3b21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "players",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "player_ratings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.String(length=32), nullable=False),
        sa.Column("track", sa.String(length=10), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False, server_default="800"),
        sa.Column("games_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating_status", sa.String(length=15), nullable=False, server_default="provisional"),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("player_id", "track", name="uq_player_rating_track"),
        sa.CheckConstraint("rating >= 800", name="ck_player_rating_floor"),
        sa.CheckConstraint("games_played >= 0", name="ck_player_rating_games"),
        sa.CheckConstraint("track IN ('classical', 'rapid', 'blitz')", name="ck_player_rating_track"),
    )

    op.create_table(
        "rating_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.String(length=32), nullable=False),
        sa.Column("track", sa.String(length=10), nullable=False),
        sa.Column("entry_date", sa.String(length=10), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_rating_history_player_track", "rating_history", ["player_id", "track", "id"])

    op.create_table(
        "tournaments",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=10), nullable=True),
        sa.Column("status", sa.String(length=15), nullable=False, server_default="pending"),
        sa.Column("processing_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_player_ids", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_tournaments_status", "tournaments", ["status"])

    op.create_table(
        "tournament_players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.String(length=32), nullable=False),
        sa.Column("player_id", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tournament_id", "player_id", name="uq_tournament_player"),
    )

    op.create_table(
        "tournament_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.String(length=32), nullable=False),
        sa.Column("player_id", sa.String(length=32), nullable=False),
        sa.Column("rating_change", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("result", sa.String(length=20), nullable=True),
        sa.Column("opponent", sa.String(length=255), nullable=True),
        sa.Column("position", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_tournament_results_player", "tournament_results", ["player_id"])

    op.create_table(
        "pairings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.String(length=32), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("white_id", sa.String(length=32), nullable=False),
        sa.Column("black_id", sa.String(length=32), nullable=False),
        sa.Column("result", sa.String(length=7), nullable=False, server_default="*"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["white_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["black_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_pairings_tournament_round", "pairings", ["tournament_id", "round_number"])

    op.create_table(
        "rating_jobs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=15), nullable=False, server_default="pending"),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("summary", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_rating_jobs_tournament_status", "rating_jobs", ["tournament_id", "status"])


def downgrade() -> None:
    op.drop_index("idx_rating_jobs_tournament_status", table_name="rating_jobs")
    op.drop_table("rating_jobs")
    op.drop_index("idx_pairings_tournament_round", table_name="pairings")
    op.drop_table("pairings")
    op.drop_index("idx_tournament_results_player", table_name="tournament_results")
    op.drop_table("tournament_results")
    op.drop_table("tournament_players")
    op.drop_index("idx_tournaments_status", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_index("idx_rating_history_player_track", table_name="rating_history")
    op.drop_table("rating_history")
    op.drop_table("player_ratings")
    op.drop_table("players")
