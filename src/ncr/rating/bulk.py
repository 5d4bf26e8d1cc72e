"""
Bulk rating upload rule.

Used when a rating officer imports an existing rating list:
- Every track that already holds a real rating (801 or above) gets a flat
  +100 bonus and is counted as having at least 30 games (established).
- Every other track is reset to the 800 floor with no games counted.

Tracks are adjusted independently. This is unrelated to the Elo path in
report.py: it has no tournament, no opponent and no K-factor.

The "established" test here is a rating test (>= 801). It is not the
30-game status rule in status.py.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, NamedTuple

from ncr.rating.calculator import ensure_number
from ncr.rating.constants import BULK_ADJUSTMENT_REASON, TRACKS
from ncr.rating.models import Player, RatingHistoryEntry, as_date_string
from ncr.rating.rules import DEFAULT_RULES, RatingRules
from ncr.rating.status import next_status


class TrackRating(NamedTuple):
    """Rating and game count for one track."""
    rating: int
    games_played: int


class PlayerRatings(NamedTuple):
    """A player's three (rating, games) pairs."""
    classical: TrackRating
    rapid: TrackRating
    blitz: TrackRating

    @classmethod
    def of(cls, player: Player) -> "PlayerRatings":
        return cls(
            *(
                TrackRating(player.track(name).rating, player.track(name).games_played)
                for name in TRACKS
            )
        )


def qualifies_for_bonus(rating: int, rules: RatingRules = DEFAULT_RULES) -> bool:
    """Whether a track's rating is high enough for the upload bonus (801+)."""
    return ensure_number(rating, "rating") >= rules.bulk_bonus_min_rating


def adjust_track(track: TrackRating, rules: RatingRules = DEFAULT_RULES) -> TrackRating:
    """
    Apply the upload rule to a single track.

    Examples:
        adjust_track(TrackRating(2100, 30))  # → TrackRating(2200, 30)
        adjust_track(TrackRating(801, 5))    # → TrackRating(901, 30)
        adjust_track(TrackRating(800, 0))    # → TrackRating(800, 0)
    """
    games = ensure_number(track.games_played, "games_played")
    if qualifies_for_bonus(track.rating, rules):
        return TrackRating(
            rating=int(track.rating) + rules.bulk_bonus,
            games_played=int(max(games, rules.established_games)),
        )
    return TrackRating(rating=rules.floor_rating, games_played=0)


def apply_rating_upload(
    ratings: PlayerRatings,
    rules: RatingRules = DEFAULT_RULES,
) -> PlayerRatings:
    """Apply the upload rule to all three tracks. Pure; returns new values."""
    return PlayerRatings(*(adjust_track(track, rules) for track in ratings))


def adjust_player(
    player: Player,
    on_date: date | str | None = None,
    record_history: bool = True,
    rules: RatingRules = DEFAULT_RULES,
) -> Player:
    """
    Apply the upload rule to a Player record.

    Status follows the usual sticky rule, so a track bumped to 30 games
    becomes established. When record_history is set, every track whose
    rating changed gets a "Bulk rating adjustment" history entry.
    """
    adjusted = apply_rating_upload(PlayerRatings.of(player), rules)
    entry_date = as_date_string(on_date)

    updated = player
    for name, new_values in zip(TRACKS, adjusted):
        current = player.track(name)
        history = current.rating_history
        if record_history and new_values.rating != current.rating:
            history = history + (
                RatingHistoryEntry(
                    date=entry_date,
                    rating=new_values.rating,
                    reason=BULK_ADJUSTMENT_REASON,
                ),
            )
        updated = updated.with_track(
            name,
            replace(
                current,
                rating=new_values.rating,
                games_played=new_values.games_played,
                rating_status=next_status(current.rating_status, new_values.games_played, rules),
                rating_history=history,
            ),
        )
    return updated


def adjust_players(
    players: Iterable[Player],
    on_date: date | str | None = None,
    record_history: bool = True,
    rules: RatingRules = DEFAULT_RULES,
) -> list[Player]:
    """Apply the upload rule to many players."""
    return [adjust_player(p, on_date, record_history, rules) for p in players]


def fix_game_counts(
    ratings: PlayerRatings,
    rules: RatingRules = DEFAULT_RULES,
) -> dict[str, int]:
    """
    Game-count corrections that make counts agree with ratings.

    Tracks with a bonus-qualifying rating should show 30 games; floor
    tracks should show 0. Returns only the tracks that need changing,
    e.g. ``{"rapid": 0}``.
    """
    corrections: dict[str, int] = {}
    for name, track in zip(TRACKS, ratings):
        expected = rules.established_games if qualifies_for_bonus(track.rating, rules) else 0
        if track.games_played != expected:
            corrections[name] = expected
    return corrections


def validate_rating_update(
    old: PlayerRatings,
    new: PlayerRatings,
    rules: RatingRules = DEFAULT_RULES,
) -> tuple[bool, list[str]]:
    """
    Check a manual rating edit.

    A floor-rated track may not be lifted above the floor unless it also
    records at least 30 games.

    Returns:
        (valid, errors) where errors lists one message per offending track
    """
    errors: list[str] = []
    for name, before, after in zip(TRACKS, old, new):
        if (
            before.rating == rules.floor_rating
            and after.rating > rules.floor_rating
            and after.games_played < rules.established_games
        ):
            errors.append(
                f"Cannot assign rating above floor without completing "
                f"{rules.established_games} games in {name.capitalize()} format"
            )
    return not errors, errors
