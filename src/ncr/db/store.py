"""
SQLAlchemy implementations of the rating engine's store interfaces.

The stores translate between ORM rows and the frozen domain values in
ncr.rating.models. They only flush; committing (or rolling back) is the
caller's job, normally through get_session(). Every SQLAlchemy failure is
re-raised as StoreError.

Usage:
    with get_session() as session:
        players = SqlPlayerStore(session)
        tournaments = SqlTournamentStore(session)
        processor = TournamentReportProcessor(players, tournaments)
        report = processor.process(tournaments.get_tournament("T-2024-017"))
        record_rating_job(session, "T-2024-017", "completed", summary=report.summary())
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ncr.db.models import Pairing as PairingRow
from ncr.db.models import Player as PlayerRow
from ncr.db.models import PlayerRating, RatingHistory, RatingJob
from ncr.db.models import Tournament as TournamentRow
from ncr.db.models import TournamentPlayer
from ncr.db.models import TournamentResult as TournamentResultRow
from ncr.exceptions import StoreError
from ncr.rating.constants import TRACKS
from ncr.rating.models import (
    Pairing,
    Player,
    RatingHistoryEntry,
    RatingTrack,
    Tournament,
    TournamentResult,
)

logger = logging.getLogger(__name__)

# Tournament columns update_tournament() may change
TOURNAMENT_UPDATABLE_FIELDS = ("name", "category", "status", "processing_date", "processed_player_ids")

# Rating job status values
JOB_PENDING = "pending"
JOB_RUNNING = "running"
JOB_COMPLETED = "completed"
JOB_FAILED = "failed"


# ---------------------------------------------------------------------------
# Row ↔ domain conversion
# ---------------------------------------------------------------------------

def _player_from_row(row: PlayerRow) -> Player:
    ratings = {r.track: r for r in row.ratings}
    history: dict[str, list[RatingHistoryEntry]] = defaultdict(list)
    for h in sorted(row.history, key=lambda h: h.id):
        history[h.track].append(RatingHistoryEntry(date=h.entry_date, rating=h.rating, reason=h.reason))

    tracks = {}
    for name in TRACKS:
        rating_row = ratings.get(name)
        if rating_row is None:
            tracks[name] = RatingTrack(rating_history=tuple(history[name]))
            continue
        tracks[name] = RatingTrack(
            rating=rating_row.rating,
            games_played=rating_row.games_played,
            rating_status=rating_row.rating_status,
            rating_history=tuple(history[name]),
        )
    return Player(id=row.id, name=row.name, **tracks)


def _tournament_from_row(row: TournamentRow) -> Tournament:
    return Tournament(
        id=row.id,
        name=row.name,
        category=row.category,
        status=row.status,
        players=tuple(entry.player_id for entry in row.entries),
        results=tuple(
            TournamentResult(
                player_id=r.player_id,
                tournament_id=r.tournament_id,
                rating_change=r.rating_change,
                result=r.result,
                opponent=r.opponent,
                position=r.position,
            )
            for r in row.results
        ),
        pairings=tuple(
            Pairing(
                round_number=p.round_number,
                white_id=p.white_id,
                black_id=p.black_id,
                result=p.result,
            )
            for p in row.pairings
        ),
        processing_date=row.processing_date,
        processed_player_ids=tuple(row.processed_player_ids or ()),
    )


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

class SqlPlayerStore:
    """
    PlayerStore backed by the players / player_ratings / rating_history tables.

    A Session is not thread-safe, so writes are serialized with a lock.
    This lets the report processor fan out on a thread pool against this
    store without corrupting the session.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._lock = threading.Lock()

    def get_players(self, filter: Optional[Mapping[str, Any]] = None) -> list[Player]:
        stmt = (
            select(PlayerRow)
            .options(selectinload(PlayerRow.ratings), selectinload(PlayerRow.history))
            .order_by(PlayerRow.id)
        )
        ids = (filter or {}).get("ids")
        if ids is not None:
            stmt = stmt.where(PlayerRow.id.in_(list(ids)))

        try:
            rows = self.session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load players: {exc}") from exc
        return [_player_from_row(row) for row in rows]

    def get_player(self, player_id: str) -> Player:
        players = self.get_players({"ids": [player_id]})
        if not players:
            raise StoreError(f"Player {player_id!r} not found")
        return players[0]

    def add_player(self, player: Player) -> None:
        """Insert a new player with all three tracks and their histories."""
        with self._lock:
            try:
                row = PlayerRow(id=player.id, name=player.name)
                self.session.add(row)
                for name in TRACKS:
                    self._write_track(row, name, player.track(name), existing_history=0)
                self.session.flush()
            except SQLAlchemyError as exc:
                raise StoreError(f"Could not add player {player.id!r}: {exc}") from exc

    def update_player(self, player_id: str, fields: Mapping[str, Any]) -> None:
        """
        Persist a partial player update.

        Fields are ``name`` and/or track names mapping to RatingTrack
        values. Only history entries beyond those already stored are
        inserted; a shorter history than stored is rejected.
        """
        with self._lock:
            try:
                row = self.session.get(PlayerRow, player_id)
                if row is None:
                    raise StoreError(f"Player {player_id!r} not found")

                for key, value in fields.items():
                    if key == "name":
                        row.name = value
                    elif key in TRACKS:
                        stored = sum(1 for h in row.history if h.track == key)
                        self._write_track(row, key, value, existing_history=stored)
                    else:
                        raise StoreError(f"Unknown player field {key!r}")

                self.session.flush()
            except SQLAlchemyError as exc:
                raise StoreError(f"Could not update player {player_id!r}: {exc}") from exc

    def _write_track(self, row: PlayerRow, name: str, track: RatingTrack, existing_history: int) -> None:
        if len(track.rating_history) < existing_history:
            raise StoreError(
                f"Rating history for {row.id!r}/{name} is append-only "
                f"({len(track.rating_history)} entries < {existing_history} stored)"
            )

        rating_row = next((r for r in row.ratings if r.track == name), None)
        if rating_row is None:
            rating_row = PlayerRating(track=name)
            row.ratings.append(rating_row)
        rating_row.rating = track.rating
        rating_row.games_played = track.games_played
        rating_row.rating_status = track.rating_status

        for entry in track.rating_history[existing_history:]:
            row.history.append(
                RatingHistory(
                    track=name,
                    entry_date=entry.date,
                    rating=entry.rating,
                    reason=entry.reason,
                )
            )


class SqlTournamentStore:
    """TournamentStore backed by tournaments and its child tables."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_tournament(self, tournament_id: str) -> Tournament:
        stmt = (
            select(TournamentRow)
            .options(
                selectinload(TournamentRow.entries),
                selectinload(TournamentRow.results),
                selectinload(TournamentRow.pairings),
            )
            .where(TournamentRow.id == tournament_id)
        )
        try:
            row = self.session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load tournament {tournament_id!r}: {exc}") from exc
        if row is None:
            raise StoreError(f"Tournament {tournament_id!r} not found")
        return _tournament_from_row(row)

    def add_tournament(self, tournament: Tournament) -> None:
        """Insert a tournament with its roster, results and pairings."""
        try:
            row = TournamentRow(
                id=tournament.id,
                name=tournament.name,
                category=tournament.category,
                status=tournament.status,
                processing_date=tournament.processing_date,
                processed_player_ids=list(tournament.processed_player_ids) or None,
            )
            row.entries = [TournamentPlayer(player_id=pid) for pid in tournament.players]
            row.results = [
                TournamentResultRow(
                    player_id=r.player_id,
                    rating_change=r.rating_change,
                    result=r.result,
                    opponent=r.opponent,
                    position=r.position,
                )
                for r in tournament.results
            ]
            row.pairings = [
                PairingRow(
                    round_number=p.round_number,
                    white_id=p.white_id,
                    black_id=p.black_id,
                    result=p.result,
                )
                for p in tournament.pairings
            ]
            self.session.add(row)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not add tournament {tournament.id!r}: {exc}") from exc

    def update_tournament(self, tournament_id: str, fields: Mapping[str, Any]) -> None:
        try:
            row = self.session.get(TournamentRow, tournament_id)
            if row is None:
                raise StoreError(f"Tournament {tournament_id!r} not found")

            for key, value in fields.items():
                if key not in TOURNAMENT_UPDATABLE_FIELDS:
                    raise StoreError(f"Unknown tournament field {key!r}")
                if key == "processed_player_ids":
                    value = list(value)
                setattr(row, key, value)

            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not update tournament {tournament_id!r}: {exc}") from exc


# ---------------------------------------------------------------------------
# Rating job ledger
# ---------------------------------------------------------------------------

def has_completed_rating_job(session: Session, tournament_id: str) -> bool:
    """Whether a completed rating job already exists for the tournament."""
    stmt = (
        select(RatingJob.id)
        .where(RatingJob.tournament_id == tournament_id)
        .where(RatingJob.status == JOB_COMPLETED)
        .limit(1)
    )
    try:
        return session.scalars(stmt).first() is not None
    except SQLAlchemyError as exc:
        raise StoreError(f"Could not read rating jobs for {tournament_id!r}: {exc}") from exc


def record_rating_job(
    session: Session,
    tournament_id: str,
    status: str,
    summary: Optional[Iterable[dict]] = None,
    started_at: Optional[datetime] = None,
    error_message: Optional[str] = None,
) -> RatingJob:
    """Add a rating_jobs row describing one report run."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    job = RatingJob(
        tournament_id=tournament_id,
        status=status,
        started_at=started_at or now,
        finished_at=now if status in (JOB_COMPLETED, JOB_FAILED) else None,
        summary=list(summary) if summary is not None else None,
        error_message=error_message,
    )
    try:
        session.add(job)
        session.flush()
    except SQLAlchemyError as exc:
        raise StoreError(f"Could not record rating job for {tournament_id!r}: {exc}") from exc
    logger.info("Recorded %s rating job for tournament %s", status, tournament_id)
    return job
