"""
Single-track player rating updates.

apply_rating_change() is the only way the tournament path changes a
player's rating. It is a pure transform: given a player it returns a new
player with exactly one track replaced, and writes nothing anywhere.

Applying the same change twice is not a no-op. Each call appends its own
history entry and counts one more event, so callers must make sure a
tournament is applied once.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from ncr.rating.calculator import clamp_to_floor, ensure_number
from ncr.rating.models import Player, RatingHistoryEntry, as_date_string, validate_track
from ncr.rating.rules import DEFAULT_RULES, RatingRules
from ncr.rating.status import increment_games, next_status


def apply_rating_change(
    player: Player,
    track: str,
    delta: int,
    reason: str,
    on_date: date | str | None = None,
    rules: RatingRules = DEFAULT_RULES,
) -> Player:
    """
    Apply a rating delta to one of a player's tracks.

    The new rating is clamped to the floor, the track's game count goes
    up by one, a history entry is appended and the status is re-evaluated
    (it never regresses from established).

    Args:
        player: Player to update (not modified)
        track: "classical", "rapid" or "blitz"
        delta: Rating change, may be negative
        reason: History reason, e.g. "Tournament: Lagos Open"
        on_date: History entry date (defaults to today)
        rules: Rule set for floor and status thresholds

    Returns:
        New Player with only that track's rating, games_played,
        rating_status and rating_history replaced

    Raises:
        InvalidTrackError: If track is not a known rating track
        NonNumericInputError: If delta is not a finite number

    Example:
        updated = apply_rating_change(player, "classical", -20, "Tournament: Abuja Open")
        updated.classical.rating  # 1000 → 980
    """
    validate_track(track)
    delta = ensure_number(delta, "delta")

    current = player.track(track)
    new_rating = clamp_to_floor(current.rating + delta, rules)
    new_games = increment_games(current.games_played)

    entry = RatingHistoryEntry(
        date=as_date_string(on_date),
        rating=new_rating,
        reason=reason,
    )
    updated_track = replace(
        current,
        rating=new_rating,
        games_played=new_games,
        rating_status=next_status(current.rating_status, new_games, rules),
        rating_history=current.rating_history + (entry,),
    )
    return player.with_track(track, updated_track)
