"""
Unit tests for the bulk rating upload (+100) rule.

Rated tracks (801+) gain 100 and count at least 30 games; everything
else is reset to the floor with no games.
"""

import pytest

from ncr.exceptions import NonNumericInputError
from ncr.rating.bulk import (
    PlayerRatings,
    TrackRating,
    adjust_player,
    adjust_players,
    adjust_track,
    apply_rating_upload,
    fix_game_counts,
    qualifies_for_bonus,
    validate_rating_update,
)
from ncr.rating.rules import RatingRules


class TestAdjustTrack:

    @pytest.mark.parametrize(
        "before,after",
        [
            (TrackRating(2100, 30), TrackRating(2200, 30)),
            (TrackRating(800, 0), TrackRating(800, 0)),
            (TrackRating(801, 5), TrackRating(901, 30)),
            (TrackRating(1500, 64), TrackRating(1600, 64)),
            # Played but never left the floor
            (TrackRating(800, 12), TrackRating(800, 0)),
        ],
    )
    def test_rule(self, before, after):
        assert adjust_track(before) == after

    def test_qualifies_for_bonus(self):
        assert not qualifies_for_bonus(800)
        assert qualifies_for_bonus(801)

    def test_rejects_non_numeric(self):
        with pytest.raises(NonNumericInputError):
            adjust_track(TrackRating("2100", 30))

    def test_custom_bonus(self):
        rules = RatingRules(bulk_bonus=50)
        assert adjust_track(TrackRating(1000, 0), rules) == TrackRating(1050, 30)


def test_apply_rating_upload_all_tracks():
    ratings = PlayerRatings(
        classical=TrackRating(2100, 30),
        rapid=TrackRating(800, 0),
        blitz=TrackRating(801, 5),
    )
    assert apply_rating_upload(ratings) == PlayerRatings(
        classical=TrackRating(2200, 30),
        rapid=TrackRating(800, 0),
        blitz=TrackRating(901, 30),
    )


class TestAdjustPlayer:

    @pytest.fixture
    def player(self, make_player):
        return make_player("p1", classical=(2100, 30), rapid=(800, 0), blitz=(801, 5))

    def test_updates_ratings_and_status(self, player):
        adjusted = adjust_player(player, "2024-06-01")

        assert (adjusted.classical.rating, adjusted.classical.games_played) == (2200, 30)
        assert (adjusted.blitz.rating, adjusted.blitz.games_played) == (901, 30)
        assert adjusted.blitz.rating_status == "established"
        assert adjusted.rapid.rating_status == "provisional"

    def test_history_only_for_changed_tracks(self, player):
        adjusted = adjust_player(player, "2024-06-01")

        entry = adjusted.classical.rating_history[-1]
        assert (entry.date, entry.rating, entry.reason) == ("2024-06-01", 2200, "Bulk rating adjustment")
        assert adjusted.blitz.rating_history[-1].rating == 901
        assert adjusted.rapid.rating_history == player.rapid.rating_history

    def test_without_history(self, player):
        adjusted = adjust_player(player, "2024-06-01", record_history=False)

        assert adjusted.classical.rating == 2200
        assert adjusted.classical.rating_history == player.classical.rating_history

    def test_established_status_survives_reset(self, make_player):
        player = make_player("p2", classical=(800, 40))
        adjusted = adjust_player(player, "2024-06-01")

        assert adjusted.classical.games_played == 0
        assert adjusted.classical.rating_status == "established"

    def test_adjust_players(self, make_player):
        players = [make_player("a", classical=(1500, 10)), make_player("b")]
        adjusted = adjust_players(players, "2024-06-01")

        assert [p.id for p in adjusted] == ["a", "b"]
        assert adjusted[0].classical.rating == 1600
        assert adjusted[1] == players[1]


def test_fix_game_counts():
    ratings = PlayerRatings(
        classical=TrackRating(1800, 12),
        rapid=TrackRating(800, 3),
        blitz=TrackRating(1200, 30),
    )
    assert fix_game_counts(ratings) == {"classical": 30, "rapid": 0}


class TestValidateRatingUpdate:

    def test_lifting_floor_track_needs_thirty_games(self):
        old = PlayerRatings(TrackRating(800, 0), TrackRating(800, 0), TrackRating(800, 0))
        new = PlayerRatings(TrackRating(1500, 10), TrackRating(800, 0), TrackRating(1300, 30))

        valid, errors = validate_rating_update(old, new)

        assert not valid
        assert errors == [
            "Cannot assign rating above floor without completing 30 games in Classical format"
        ]

    def test_valid_edit(self):
        old = PlayerRatings(TrackRating(1500, 40), TrackRating(800, 0), TrackRating(800, 0))
        new = PlayerRatings(TrackRating(1450, 40), TrackRating(900, 30), TrackRating(800, 0))

        assert validate_rating_update(old, new) == (True, [])
