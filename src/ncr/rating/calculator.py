"""
Elo rating math for the national rating system.

Implements the standard Elo formula with the federation's variable
K-factors and the 800 rating floor.

The Elo formula:
  Expected score: E_A = 1 / (1 + 10^((R_B - R_A) / 400))
  Rating change:  delta = round(K * (actual - expected))

Where:
  R_A, R_B = Current ratings of the player and the opponent
  K = How much a single game can move the rating (see k_factor)
  actual = 1 for a win, 0.5 for a draw, 0 for a loss

Every function here is pure. Inputs must be finite numbers; anything else
raises NonNumericInputError.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real

from ncr.exceptions import NonNumericInputError
from ncr.rating.constants import RATING_SPREAD, RESULT_SCORES, UNPLAYED
from ncr.rating.rules import DEFAULT_RULES, RatingRules


def ensure_number(value: object, name: str) -> float:
    """
    Return value as a float, rejecting anything that is not a finite number.

    Booleans are rejected even though Python treats them as ints, since a
    True rating is always a caller bug.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise NonNumericInputError(name, value)
    as_float = float(value)
    if not math.isfinite(as_float):
        raise NonNumericInputError(name, value)
    return as_float


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity."""
    return math.floor(value + 0.5)


def expected_score(player_rating: float, opponent_rating: float) -> float:
    """
    Expected score of the player against the opponent.

    Equal ratings give exactly 0.5. The result is strictly between 0 and
    1 for any realistic rating gap.

    Example:
        expected_score(1800, 1600)  # ~0.76
    """
    player_rating = ensure_number(player_rating, "player_rating")
    opponent_rating = ensure_number(opponent_rating, "opponent_rating")
    try:
        return 1.0 / (1.0 + 10.0 ** ((opponent_rating - player_rating) / RATING_SPREAD))
    except OverflowError:
        # Gap of several thousand points, player is hopeless
        return 0.0


def k_factor(
    rating: float,
    games_played: int,
    rules: RatingRules = DEFAULT_RULES,
) -> int:
    """
    K-factor for a player based on rating and experience.

    Args:
        rating: Current rating on the track being rated
        games_played: Games already played on that track
        rules: Rule set; controls the new-player threshold and optional
               rating cap for the new-player band

    Returns:
        40 for new players, otherwise 32 / 24 / 16 by rating band

    Examples:
        k_factor(1000, 9)    # → 40
        k_factor(2000, 30)   # → 32
        k_factor(2200, 30)   # → 24
        k_factor(2500, 30)   # → 16
    """
    rating = ensure_number(rating, "rating")
    games_played = ensure_number(games_played, "games_played")

    is_new = games_played < rules.new_player_games
    if is_new and (rules.k40_max_rating is None or rating < rules.k40_max_rating):
        return rules.new_player_k

    for upper_bound, k in rules.k_bands:
        if upper_bound is None or rating < upper_bound:
            return k
    # Bands always end with an open upper bound
    return rules.k_bands[-1][1]


def compute_delta(
    player_rating: float,
    opponent_rating: float,
    score: float,
    k: float,
) -> int:
    """
    Integer rating change for a single game.

    Args:
        player_rating: Player's rating before the game
        opponent_rating: Opponent's rating before the game
        score: 1 for a win, 0.5 for a draw, 0 for a loss
        k: K-factor for the player (see k_factor)

    Returns:
        Rounded rating delta (may be negative)

    Raises:
        NonNumericInputError: If any input is not a finite number
        ValueError: If score is outside [0, 1]
    """
    score = ensure_number(score, "score")
    k = ensure_number(k, "k")
    if not 0.0 <= score <= 1.0:
        raise ValueError(f"score must be between 0 and 1, got {score}")

    expected = expected_score(player_rating, opponent_rating)
    return round_half_up(k * (score - expected))


def clamp_to_floor(rating: float, rules: RatingRules = DEFAULT_RULES) -> int:
    """Raise a rating to the floor (800) if it fell below."""
    rating = ensure_number(rating, "rating")
    return int(max(rating, rules.floor_rating))


def result_to_score(result: str | None) -> float:
    """
    Convert a game result token to white's score.

    "1-0" → 1, "1/2-1/2" → 0.5, anything else (including "*") → 0.
    Black's score is 1 minus this value.
    """
    return RESULT_SCORES.get(result, 0.0)


@dataclass(frozen=True)
class PairingChange:
    """Rating changes for both sides of one game."""
    result: str
    white_change: int
    black_change: int

    @property
    def was_played(self) -> bool:
        return self.result != UNPLAYED


def calculate_pairing_changes(
    white_rating: float,
    black_rating: float,
    white_games: int,
    black_games: int,
    result: str | None,
    rules: RatingRules = DEFAULT_RULES,
) -> PairingChange:
    """
    Calculate both players' rating changes for a head-to-head game.

    Each side uses its own K-factor, so the changes are not necessarily
    zero-sum. Unplayed games ("*" or no result) produce no change.

    Example:
        change = calculate_pairing_changes(1000, 1000, 9, 40, "0-1")
        change.white_change  # → -20 (K=40)
        change.black_change  # → 16 (K=32)
    """
    if result not in RESULT_SCORES:
        return PairingChange(result=UNPLAYED, white_change=0, black_change=0)

    white_score = result_to_score(result)
    black_score = 1.0 - white_score

    white_change = compute_delta(
        white_rating,
        black_rating,
        white_score,
        k_factor(white_rating, white_games, rules),
    )
    black_change = compute_delta(
        black_rating,
        white_rating,
        black_score,
        k_factor(black_rating, black_games, rules),
    )
    return PairingChange(result=result, white_change=white_change, black_change=black_change)
