"""
Database module for NCR.

Provides SQLAlchemy ORM models, session management, and the SQL-backed
player and tournament stores.

Usage:
    from ncr.db import get_session, SqlPlayerStore

    with get_session() as session:
        players = SqlPlayerStore(session).get_players()
"""

from ncr.db.models import (
    Base,
    Pairing,
    Player,
    PlayerRating,
    RatingHistory,
    RatingJob,
    Tournament,
    TournamentPlayer,
    TournamentResult,
)
from ncr.db.session import SessionLocal, get_engine, get_session
from ncr.db.store import (
    SqlPlayerStore,
    SqlTournamentStore,
    has_completed_rating_job,
    record_rating_job,
)

__all__ = [
    # Base
    "Base",
    # Models
    "Player",
    "PlayerRating",
    "RatingHistory",
    "Tournament",
    "TournamentPlayer",
    "TournamentResult",
    "Pairing",
    "RatingJob",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
    # Stores
    "SqlPlayerStore",
    "SqlTournamentStore",
    "has_completed_rating_job",
    "record_rating_job",
]
