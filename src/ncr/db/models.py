"""
SQLAlchemy ORM models for NCR.

This module defines all database tables and their relationships.

Key design decisions:
- Each player has one row per rating track in player_ratings, so the
  three formats stay fully independent
- Rating history is append-only; insertion order (id) is chronological
  order
- Tournament rosters, results and pairings are child tables of
  tournaments
- rating_jobs records every report run with a JSON summary, which is also
  what guards a tournament against being processed twice

Tables:
- players: Registered players
- player_ratings: Current rating state per player and track
- rating_history: Every rating a track has held, with a reason
- tournaments: Tournament master data and lifecycle status
- tournament_players: Tournament rosters
- tournament_results: Recorded per-player outcomes
- pairings: Individual games by round
- rating_jobs: Audit trail of rating report runs
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ncr.rating.constants import FLOOR_RATING, PROVISIONAL, UNPLAYED
from ncr.tournament_statuses import PENDING


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Player Models
# =============================================================================

class Player(Base):
    """
    Registered player.

    The id is the federation's opaque player id (e.g. "NCR1A2B3C") and
    never changes. Ratings live in player_ratings, one row per track.
    """
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    ratings: Mapped[list["PlayerRating"]] = relationship(
        back_populates="player", cascade="all, delete-orphan"
    )
    history: Mapped[list["RatingHistory"]] = relationship(
        back_populates="player",
        cascade="all, delete-orphan",
        order_by="RatingHistory.id",
    )

    def __repr__(self) -> str:
        return f"<Player(id='{self.id}', name='{self.name}')>"


class PlayerRating(Base):
    """Current rating state for one player on one track."""
    __tablename__ = "player_ratings"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)

    # 'classical', 'rapid', 'blitz'
    track: Mapped[str] = mapped_column(String(10), nullable=False)

    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=FLOOR_RATING)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # 'provisional', 'established'
    rating_status: Mapped[str] = mapped_column(String(15), nullable=False, default=PROVISIONAL)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    player: Mapped["Player"] = relationship(back_populates="ratings")

    __table_args__ = (
        UniqueConstraint("player_id", "track", name="uq_player_rating_track"),
        CheckConstraint(f"rating >= {FLOOR_RATING}", name="ck_player_rating_floor"),
        CheckConstraint("games_played >= 0", name="ck_player_rating_games"),
        CheckConstraint(
            "track IN ('classical', 'rapid', 'blitz')",
            name="ck_player_rating_track",
        ),
    )

    def __repr__(self) -> str:
        return f"<PlayerRating(player_id='{self.player_id}', track='{self.track}', rating={self.rating})>"


class RatingHistory(Base):
    """
    One rating history entry for a player's track.

    Rows are only ever inserted. Ordering by id gives chronological order.
    """
    __tablename__ = "rating_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    track: Mapped[str] = mapped_column(String(10), nullable=False)

    # ISO calendar date (YYYY-MM-DD)
    entry_date: Mapped[str] = mapped_column(String(10), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    player: Mapped["Player"] = relationship(back_populates="history")

    __table_args__ = (
        Index("idx_rating_history_player_track", "player_id", "track", "id"),
    )

    def __repr__(self) -> str:
        return f"<RatingHistory(player_id='{self.player_id}', track='{self.track}', rating={self.rating})>"


# =============================================================================
# Tournament Models
# =============================================================================

class Tournament(Base):
    """
    Tournament master data.

    Categories:
    - 'classical' (default, also used for unknown categories)
    - 'rapid'
    - 'blitz'

    Status follows pending → approved → ongoing → completed → processed,
    or pending → rejected.
    """
    __tablename__ = "tournaments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    status: Mapped[str] = mapped_column(String(15), nullable=False, default=PENDING)

    # Set once, when ratings are applied
    processing_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_player_ids: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    entries: Mapped[list["TournamentPlayer"]] = relationship(
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TournamentPlayer.id",
    )
    results: Mapped[list["TournamentResult"]] = relationship(
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TournamentResult.id",
    )
    pairings: Mapped[list["Pairing"]] = relationship(
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="Pairing.id",
    )

    __table_args__ = (
        Index("idx_tournaments_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Tournament(id='{self.id}', name='{self.name}', status='{self.status}')>"


class TournamentPlayer(Base):
    """A player registered on a tournament roster."""
    __tablename__ = "tournament_players"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)

    tournament: Mapped["Tournament"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("tournament_id", "player_id", name="uq_tournament_player"),
    )


class TournamentResult(Base):
    """A player's recorded outcome for a tournament."""
    __tablename__ = "tournament_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)

    # Pre-computed by the pairing pass (legacy delta source)
    rating_change: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    result: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    opponent: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    position: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    tournament: Mapped["Tournament"] = relationship(back_populates="results")

    __table_args__ = (
        Index("idx_tournament_results_player", "player_id"),
    )


class Pairing(Base):
    """One game in a tournament round. Result is from white's side."""
    __tablename__ = "pairings"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), nullable=False)
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    white_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    black_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)

    # '1-0', '0-1', '1/2-1/2', '*'
    result: Mapped[str] = mapped_column(String(7), nullable=False, default=UNPLAYED)

    tournament: Mapped["Tournament"] = relationship(back_populates="pairings")

    __table_args__ = (
        Index("idx_pairings_tournament_round", "tournament_id", "round_number"),
    )


# =============================================================================
# Audit Models
# =============================================================================

class RatingJob(Base):
    """
    Audit record for one tournament rating report run.

    Status values: 'pending', 'running', 'completed', 'failed'.
    summary holds the per-player changes (player_id, old_rating,
    new_rating, delta).
    """
    __tablename__ = "rating_jobs"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(15), nullable=False, default="pending")

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    summary: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (
        Index("idx_rating_jobs_tournament_status", "tournament_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<RatingJob(tournament_id='{self.tournament_id}', status='{self.status}')>"
