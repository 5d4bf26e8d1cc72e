"""
Domain value types for players and tournaments.

These are plain frozen dataclasses, independent of the database. The
rating engine receives copies from a store, returns new values, and
leaves persistence to the caller. Replacing one track on a Player keeps
the other two tracks (and their histories) as the very same objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

from ncr.exceptions import InvalidTrackError
from ncr.rating.constants import (
    DEFAULT_TRACK,
    FLOOR_RATING,
    INITIAL_RATING_REASON,
    PROVISIONAL,
    TRACKS,
    UNPLAYED,
)
from ncr.tournament_statuses import PENDING


def validate_track(track: str) -> str:
    """Return the track name unchanged, or raise InvalidTrackError."""
    if track not in TRACKS:
        raise InvalidTrackError(track)
    return track


def as_date_string(on_date: date | str | None) -> str:
    """Normalize a history date to an ISO calendar date string (today if None)."""
    if on_date is None:
        return date.today().isoformat()
    if isinstance(on_date, datetime):
        return on_date.date().isoformat()
    if isinstance(on_date, date):
        return on_date.isoformat()
    return str(on_date)


@dataclass(frozen=True)
class RatingHistoryEntry:
    """One point in a track's rating history."""
    date: str
    rating: int
    reason: str


@dataclass(frozen=True)
class RatingTrack:
    """Rating state for one format (classical, rapid or blitz)."""
    rating: int = FLOOR_RATING
    games_played: int = 0
    rating_status: str = PROVISIONAL
    # Append-only, oldest first
    rating_history: tuple[RatingHistoryEntry, ...] = ()

    @classmethod
    def initial(cls, on_date: date | str | None = None) -> "RatingTrack":
        """A fresh floor-rated track with its "Initial rating" entry."""
        return cls(
            rating_history=(
                RatingHistoryEntry(
                    date=as_date_string(on_date),
                    rating=FLOOR_RATING,
                    reason=INITIAL_RATING_REASON,
                ),
            ),
        )


@dataclass(frozen=True)
class Player:
    """
    A rated player with three independent rating tracks.

    The id is opaque and never changes. Tracks are accessed by name
    through track() so callers can select one from a tournament category.
    """
    id: str
    name: str = ""
    classical: RatingTrack = field(default_factory=RatingTrack)
    rapid: RatingTrack = field(default_factory=RatingTrack)
    blitz: RatingTrack = field(default_factory=RatingTrack)

    @classmethod
    def new(
        cls,
        player_id: str,
        name: str = "",
        on_date: date | str | None = None,
    ) -> "Player":
        """Register a player: every track at the floor with 0 games, provisional."""
        return cls(
            id=player_id,
            name=name,
            classical=RatingTrack.initial(on_date),
            rapid=RatingTrack.initial(on_date),
            blitz=RatingTrack.initial(on_date),
        )

    def track(self, name: str) -> RatingTrack:
        """Get one rating track by name."""
        return getattr(self, validate_track(name))

    def with_track(self, name: str, track: RatingTrack) -> "Player":
        """Return a copy of this player with one track replaced."""
        return replace(self, **{validate_track(name): track})

    @property
    def tracks(self) -> dict[str, RatingTrack]:
        return {name: getattr(self, name) for name in TRACKS}

    def __repr__(self) -> str:
        return (
            f"<Player(id='{self.id}', classical={self.classical.rating}, "
            f"rapid={self.rapid.rating}, blitz={self.blitz.rating})>"
        )


@dataclass(frozen=True)
class TournamentResult:
    """A player's recorded outcome for one tournament."""
    player_id: str
    tournament_id: str
    rating_change: int = 0
    result: Optional[str] = None
    opponent: Optional[str] = None
    position: Optional[int] = None


@dataclass(frozen=True)
class Pairing:
    """One game between two players, result from white's side."""
    round_number: int
    white_id: str
    black_id: str
    result: str = UNPLAYED

    def involves(self, player_id: str) -> bool:
        return player_id in (self.white_id, self.black_id)


@dataclass(frozen=True)
class Tournament:
    """
    A tournament and its final results.

    Statuses move along pending → approved → ongoing → completed →
    processed (or pending → rejected). See ncr.tournament_statuses.
    """
    id: str
    name: str
    category: Optional[str] = DEFAULT_TRACK
    status: str = PENDING
    players: tuple[str, ...] = ()
    results: tuple[TournamentResult, ...] = ()
    pairings: tuple[Pairing, ...] = ()
    processing_date: Optional[datetime] = None
    processed_player_ids: tuple[str, ...] = ()

    @property
    def rating_track(self) -> str:
        """Track this tournament is rated on; unknown categories are classical."""
        return self.category if self.category in TRACKS else DEFAULT_TRACK

    def result_for(self, player_id: str) -> Optional[TournamentResult]:
        """The player's result entry for this tournament, if one was recorded."""
        for result in self.results:
            if result.player_id == player_id and result.tournament_id == self.id:
                return result
        return None

    def pairings_for(self, player_id: str) -> list[Pairing]:
        """All of the player's games in this tournament, in round order."""
        games = [p for p in self.pairings if p.involves(player_id)]
        return sorted(games, key=lambda p: p.round_number)

    def __repr__(self) -> str:
        return f"<Tournament(id='{self.id}', name='{self.name}', status='{self.status}')>"
