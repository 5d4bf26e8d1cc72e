"""
Persistence interfaces used by the rating engine.

The engine never talks to a database directly. It reads and writes
through these two protocols, which ncr.db.store implements on top of
SQLAlchemy. Any implementation must raise StoreError for read or write
failures.

Player update fields are keyed by track name and carry whole RatingTrack
values, e.g. ``{"rapid": RatingTrack(...)}``. Tournament update fields
use the Tournament attribute names (status, processing_date,
processed_player_ids).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol

from ncr.exceptions import StoreError

if TYPE_CHECKING:
    from ncr.rating.models import Player, Tournament

__all__ = ["PlayerStore", "TournamentStore", "StoreError"]


class PlayerStore(Protocol):

    def get_players(self, filter: Optional[Mapping[str, Any]] = None) -> list[Player]:
        """
        Load players.

        Supported filter keys: ``ids`` (iterable of player ids). No filter
        returns every player.
        """
        ...

    def update_player(self, player_id: str, fields: Mapping[str, Any]) -> None:
        """Persist a partial update to one player."""
        ...


class TournamentStore(Protocol):

    def get_tournament(self, tournament_id: str) -> Tournament:
        ...

    def update_tournament(self, tournament_id: str, fields: Mapping[str, Any]) -> None:
        """Persist a partial update to one tournament."""
        ...
