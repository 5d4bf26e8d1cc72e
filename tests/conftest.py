"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests: a SQLite database for the SQL stores,
in-memory stores for the report processor, and player/tournament
builders.
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ncr.db.models import Base
from ncr.exceptions import StoreError
from ncr.rating.constants import ESTABLISHED, PROVISIONAL, TRACKS
from ncr.rating.models import Player

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(scope="session")
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory for fast tests that don't need
    PostgreSQL-specific features. StaticPool keeps the single in-memory
    database shared by every connection.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT rollback
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture(scope="session")
def tables(test_engine):
    """
    Create all tables for testing.

    This fixture runs once per test session.
    """
    Base.metadata.create_all(test_engine)
    yield
    Base.metadata.drop_all(test_engine)


@pytest.fixture
def db_session(test_engine, tables):
    """
    Create a database session for a test.

    Each test gets its own session with automatic rollback,
    ensuring tests don't affect each other.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    Session = sessionmaker(bind=connection)
    session = Session()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# =============================================================================
# In-memory stores
# =============================================================================

class InMemoryPlayerStore:
    """PlayerStore over a dict. Ids in fail_on raise on update."""

    def __init__(self, players=(), fail_on=(), error=None):
        self.players = {p.id: p for p in players}
        self.fail_on = set(fail_on)
        self.error = error
        self.updates = []
        self.reads = 0
        self._lock = threading.Lock()

    def get_players(self, filter=None):
        self.reads += 1
        ids = (filter or {}).get("ids")
        if ids is None:
            return list(self.players.values())
        return [self.players[i] for i in ids if i in self.players]

    def update_player(self, player_id, fields):
        if player_id in self.fail_on:
            raise self.error or StoreError(f"write failed for {player_id}")
        with self._lock:
            self.players[player_id] = replace(self.players[player_id], **fields)
            self.updates.append((player_id, dict(fields)))


class InMemoryTournamentStore:
    """TournamentStore over a dict."""

    def __init__(self, tournaments=(), fail=False):
        self.tournaments = {t.id: t for t in tournaments}
        self.fail = fail
        self.updates = []

    def get_tournament(self, tournament_id):
        try:
            return self.tournaments[tournament_id]
        except KeyError:
            raise StoreError(f"Tournament {tournament_id!r} not found") from None

    def update_tournament(self, tournament_id, fields):
        if self.fail:
            raise StoreError("tournament write failed")
        fields = dict(fields)
        self.updates.append((tournament_id, dict(fields)))
        if "processed_player_ids" in fields:
            fields["processed_player_ids"] = tuple(fields["processed_player_ids"])
        self.tournaments[tournament_id] = replace(self.tournaments[tournament_id], **fields)


@pytest.fixture
def make_stores():
    """Build (player_store, tournament_store) from players and tournaments."""
    def _make(players=(), tournaments=(), **player_store_kwargs):
        return (
            InMemoryPlayerStore(players, **player_store_kwargs),
            InMemoryTournamentStore(tournaments),
        )
    return _make


# =============================================================================
# Domain builders
# =============================================================================

@pytest.fixture
def make_player():
    """
    Build a Player with given (rating, games_played) per track.

    Status follows the game count; every track carries its initial
    history entry dated 2024-01-01.
    """
    def _make(player_id, classical=(800, 0), rapid=(800, 0), blitz=(800, 0), name=None):
        player = Player.new(player_id, name or player_id.title(), on_date="2024-01-01")
        for track, (rating, games) in zip(TRACKS, (classical, rapid, blitz)):
            player = player.with_track(
                track,
                replace(
                    player.track(track),
                    rating=rating,
                    games_played=games,
                    rating_status=ESTABLISHED if games >= 30 else PROVISIONAL,
                ),
            )
        return player
    return _make


@pytest.fixture
def fixed_clock():
    """Clock for the report processor that always returns 2024-05-01 12:00 UTC."""
    return lambda: FIXED_NOW
