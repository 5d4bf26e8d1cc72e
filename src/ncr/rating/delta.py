"""
Where a player's tournament rating change comes from.

Two sources exist:
- HeadToHeadComputedDelta (default): rates every decided game the player
  played in the tournament against the opponent's pre-tournament rating
  and sums the per-game changes.
- PrecomputedDelta (legacy): trusts the ratingChange already stored on
  the player's tournament result, computed by an earlier pairing pass.

Both return None when the player has nothing to be rated on, which the
report processor treats as "skip this player".
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from ncr.exceptions import PlayerNotFoundError
from ncr.rating.calculator import compute_delta, k_factor, result_to_score
from ncr.rating.constants import RESULT_SCORES
from ncr.rating.models import Player, Tournament
from ncr.rating.rules import DEFAULT_RULES, RatingRules


class DeltaSource(Protocol):
    """Strategy that decides one player's rating change for a tournament."""

    def delta_for(
        self,
        player: Player,
        tournament: Tournament,
        roster: Mapping[str, Player],
    ) -> Optional[int]:
        ...


class PrecomputedDelta:
    """Use the rating_change recorded on the player's tournament result."""

    def delta_for(
        self,
        player: Player,
        tournament: Tournament,
        roster: Mapping[str, Player],
    ) -> Optional[int]:
        result = tournament.result_for(player.id)
        if result is None:
            return None
        return result.rating_change


class HeadToHeadComputedDelta:
    """
    Compute the change from the player's games in the tournament.

    Every game is rated with the ratings and game counts from the roster,
    i.e. as they stood before the tournament, so the order in which
    players are processed never matters.
    """

    def __init__(self, rules: RatingRules = DEFAULT_RULES):
        self.rules = rules

    def delta_for(
        self,
        player: Player,
        tournament: Tournament,
        roster: Mapping[str, Player],
    ) -> Optional[int]:
        track = tournament.rating_track
        own = player.track(track)
        k = k_factor(own.rating, own.games_played, self.rules)

        total = 0
        rated_games = 0
        for pairing in tournament.pairings_for(player.id):
            if pairing.result not in RESULT_SCORES:
                continue

            is_white = pairing.white_id == player.id
            opponent_id = pairing.black_id if is_white else pairing.white_id
            opponent = roster.get(opponent_id)
            if opponent is None:
                raise PlayerNotFoundError(
                    f"Opponent {opponent_id!r} of player {player.id!r} is not in the "
                    f"roster for tournament {tournament.id!r}"
                )

            white_score = result_to_score(pairing.result)
            score = white_score if is_white else 1.0 - white_score
            total += compute_delta(own.rating, opponent.track(track).rating, score, k)
            rated_games += 1

        if rated_games == 0:
            return None
        return total
