"""
Provisional / established status rules for a rating track.

A track starts provisional. Once 30 games have been played on it the
status becomes established, and it stays established from then on even
if an administrative correction later lowers the game count.

Game counts go up by one per tournament the player is rated in, not per
game inside the tournament.
"""

from ncr.rating.calculator import ensure_number
from ncr.rating.constants import ESTABLISHED, PROVISIONAL, UNRATED
from ncr.rating.rules import DEFAULT_RULES, RatingRules


def is_established(games_played: int, rules: RatingRules = DEFAULT_RULES) -> bool:
    """Whether a track with this many games counts as established."""
    return ensure_number(games_played, "games_played") >= rules.established_games


def next_status(
    current_status: str,
    new_games_played: int,
    rules: RatingRules = DEFAULT_RULES,
) -> str:
    """
    Status of a track after its game count changes.

    Status never regresses: an established track stays established.

    Examples:
        next_status("provisional", 29)  # → "provisional"
        next_status("provisional", 30)  # → "established"
        next_status("established", 3)   # → "established"
    """
    if current_status == ESTABLISHED:
        return ESTABLISHED
    return ESTABLISHED if is_established(new_games_played, rules) else PROVISIONAL


def increment_games(current_games_played: int) -> int:
    """Count one more rated event on a track."""
    ensure_number(current_games_played, "games_played")
    return int(current_games_played) + 1


def display_status(
    rating: int,
    games_played: int,
    rules: RatingRules = DEFAULT_RULES,
) -> str:
    """
    Status shown to users, which adds "unrated" for tracks at the floor.

    This is presentation only; the stored rating_status is never
    "unrated".
    """
    if ensure_number(rating, "rating") <= rules.floor_rating:
        return UNRATED
    if is_established(games_played, rules):
        return ESTABLISHED
    return PROVISIONAL


def format_rating_display(
    rating: int,
    games_played: int,
    rules: RatingRules = DEFAULT_RULES,
) -> str:
    """Format a rating for listings, e.g. "Unrated", "1450 (Provisional)", "1820"."""
    status = display_status(rating, games_played, rules)
    if status == UNRATED:
        return "Unrated"
    if status == PROVISIONAL:
        return f"{int(rating)} (Provisional)"
    return f"{int(rating)}"
