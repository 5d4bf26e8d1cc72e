"""Tunable rating parameters in one object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ncr.rating.constants import (
    BULK_BONUS,
    BULK_BONUS_MIN_RATING,
    ESTABLISHED_GAMES,
    FLOOR_RATING,
    K_BANDS,
    K_NEW_PLAYER,
    NEW_PLAYER_GAMES,
)

if TYPE_CHECKING:
    from ncr.config import Settings


@dataclass(frozen=True)
class RatingRules:
    """
    All rating parameters the engine reads.

    Defaults reproduce the national regulations. Alternative rule sets
    are mainly useful for replaying history under the legacy 10-game
    new-player threshold.
    """
    # Matches the database CHECK constraint; from_settings never changes it
    floor_rating: int = FLOOR_RATING
    established_games: int = ESTABLISHED_GAMES

    # K-factor selection
    new_player_games: int = NEW_PLAYER_GAMES
    new_player_k: int = K_NEW_PLAYER
    k40_max_rating: int | None = None
    k_bands: tuple[tuple[int | None, int], ...] = K_BANDS

    # Bulk upload rule
    bulk_bonus: int = BULK_BONUS
    bulk_bonus_min_rating: int = BULK_BONUS_MIN_RATING

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RatingRules":
        """Build a rule set from application settings."""
        return cls(
            established_games=settings.established_games,
            new_player_games=settings.new_player_games,
            k40_max_rating=settings.k40_max_rating,
            bulk_bonus=settings.bulk_bonus,
            bulk_bonus_min_rating=settings.bulk_bonus_min_rating,
        )


DEFAULT_RULES = RatingRules()
