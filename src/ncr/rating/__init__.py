"""
Rating computation and update engine.

Implements the national chess rating rules with:
- Elo expected score with variable K-factors (40 / 32 / 24 / 16)
- An 800 rating floor on every track
- Provisional → established status after 30 games (never regresses)
- Independent classical, rapid and blitz tracks
- Tournament report processing that applies results exactly once
- The +100 bulk upload rule for imported rating lists
"""

from ncr.rating.bulk import PlayerRatings, TrackRating, adjust_player, apply_rating_upload
from ncr.rating.calculator import (
    calculate_pairing_changes,
    clamp_to_floor,
    compute_delta,
    expected_score,
    k_factor,
    result_to_score,
)
from ncr.rating.constants import BLITZ, CLASSICAL, RAPID, TRACKS
from ncr.rating.delta import DeltaSource, HeadToHeadComputedDelta, PrecomputedDelta
from ncr.rating.models import (
    Pairing,
    Player,
    RatingHistoryEntry,
    RatingTrack,
    Tournament,
    TournamentResult,
)
from ncr.rating.report import RatingChange, RatingReport, TournamentReportProcessor
from ncr.rating.rules import DEFAULT_RULES, RatingRules
from ncr.rating.status import increment_games, is_established, next_status
from ncr.rating.updater import apply_rating_change

__all__ = [
    "BLITZ",
    "CLASSICAL",
    "RAPID",
    "TRACKS",
    "DEFAULT_RULES",
    "RatingRules",
    "expected_score",
    "k_factor",
    "compute_delta",
    "clamp_to_floor",
    "result_to_score",
    "calculate_pairing_changes",
    "is_established",
    "next_status",
    "increment_games",
    "Player",
    "RatingTrack",
    "RatingHistoryEntry",
    "Tournament",
    "TournamentResult",
    "Pairing",
    "apply_rating_change",
    "DeltaSource",
    "PrecomputedDelta",
    "HeadToHeadComputedDelta",
    "TournamentReportProcessor",
    "RatingReport",
    "RatingChange",
    "PlayerRatings",
    "TrackRating",
    "apply_rating_upload",
    "adjust_player",
]
