"""
Unit tests for TournamentReportProcessor.

Uses the in-memory stores from conftest so every store call can be
inspected.
"""

from dataclasses import replace

import pytest

from ncr.config import Settings
from ncr.exceptions import (
    PlayerNotFoundError,
    StoreError,
    TournamentAlreadyProcessedError,
    TournamentNotReadyError,
)
from ncr.rating.delta import HeadToHeadComputedDelta, PrecomputedDelta
from ncr.rating.models import Pairing, Tournament, TournamentResult
from ncr.rating.report import TournamentReportProcessor


def game(round_number, white, black, result):
    return Pairing(round_number=round_number, white_id=white, black_id=black, result=result)


def entries(tournament_id, *player_ids):
    return tuple(TournamentResult(player_id=pid, tournament_id=tournament_id) for pid in player_ids)


@pytest.fixture
def players(make_player):
    return [
        make_player("p1", classical=(1000, 9), rapid=(1100, 12), blitz=(950, 2)),
        make_player("p2", classical=(1000, 40), rapid=(1300, 35), blitz=(1000, 31)),
        make_player("p3", classical=(800, 0)),
        make_player("p4", classical=(800, 3)),
    ]


@pytest.fixture
def classical_event():
    return Tournament(
        id="t1",
        name="Lagos Open",
        status="completed",
        players=("p1", "p2", "p3", "p4"),
        results=entries("t1", "p1", "p2", "p3", "p4"),
        pairings=(
            game(1, "p2", "p1", "1-0"),
            game(1, "p3", "p4", "1-0"),
        ),
    )


def make_processor(player_store, tournament_store, fixed_clock, **kwargs):
    return TournamentReportProcessor(player_store, tournament_store, clock=fixed_clock, **kwargs)


class TestProcess:

    def test_new_player_loses_to_equal(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        report = make_processor(player_store, tournament_store, fixed_clock).process(classical_event)

        p1 = player_store.players["p1"].classical
        assert (p1.rating, p1.games_played, p1.rating_status) == (980, 10, "provisional")
        assert p1.rating_history[-1].reason == "Tournament: Lagos Open"
        assert p1.rating_history[-1].date == "2024-05-01"

        p2 = player_store.players["p2"].classical
        assert (p2.rating, p2.games_played, p2.rating_status) == (1016, 41, "established")
        assert report.track == "classical"

    def test_floor_player_wins(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        make_processor(player_store, tournament_store, fixed_clock).process(classical_event)

        p3 = player_store.players["p3"].classical
        assert (p3.rating, p3.games_played, p3.rating_status) == (820, 1, "provisional")
        # Loser is held at the floor
        p4 = player_store.players["p4"].classical
        assert (p4.rating, p4.games_played) == (800, 4)

    def test_marks_tournament_processed(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        report = make_processor(player_store, tournament_store, fixed_clock).process(classical_event)

        assert tournament_store.updates == [
            (
                "t1",
                {
                    "status": "processed",
                    "processing_date": fixed_clock(),
                    "processed_player_ids": ["p1", "p2", "p3", "p4"],
                },
            )
        ]
        assert report.tournament.status == "processed"
        assert report.tournament.processing_date == fixed_clock()
        assert report.tournament.processed_player_ids == ("p1", "p2", "p3", "p4")
        # The caller's value is not modified
        assert classical_event.status == "completed"

    def test_only_the_tournament_track_changes(self, make_stores, players, fixed_clock):
        rapid_event = Tournament(
            id="t2",
            name="Rapid Cup",
            category="rapid",
            status="completed",
            players=("p1", "p2"),
            results=entries("t2", "p1", "p2"),
            pairings=(game(1, "p1", "p2", "1/2-1/2"),),
        )
        before = {p.id: p for p in players}
        player_store, tournament_store = make_stores(players, [rapid_event])
        make_processor(player_store, tournament_store, fixed_clock).process(rapid_event)

        for player_id in ("p1", "p2"):
            after = player_store.players[player_id]
            assert after.classical is before[player_id].classical
            assert after.blitz is before[player_id].blitz
            assert after.rapid.games_played == before[player_id].rapid.games_played + 1
            assert after.rapid.rating_history[-1].reason == "Tournament: Rapid Cup"
        assert player_store.players["p1"].rapid.rating > 1100
        assert all(set(fields) == {"rapid"} for _, fields in player_store.updates)

    def test_player_without_result_is_skipped(self, make_stores, players, fixed_clock):
        event = Tournament(
            id="t3",
            name="Abuja Classic",
            status="completed",
            players=("p1", "p2", "p3"),
            results=(
                TournamentResult(player_id="p1", tournament_id="t3", rating_change=12),
                TournamentResult(player_id="p2", tournament_id="t3", rating_change=-12),
            ),
        )
        player_store, tournament_store = make_stores(players, [event])
        processor = make_processor(
            player_store, tournament_store, fixed_clock, delta_source=PrecomputedDelta()
        )
        report = processor.process(event)

        assert report.skipped_player_ids == ["p3"]
        assert report.players["p3"] is players[2]
        assert player_store.players["p3"] is players[2]
        assert [player_id for player_id, _ in player_store.updates] == ["p1", "p2"]
        assert report.tournament.processed_player_ids == ("p1", "p2")
        assert player_store.players["p1"].classical.rating == 1012
        assert player_store.players["p2"].classical.rating == 988

    def test_head_to_head_rates_only_players_with_results(self, make_stores, players, fixed_clock):
        event = Tournament(
            id="t6",
            name="Kano Invitational",
            status="completed",
            players=("p1", "p2", "p3"),
            # p2 has a decided game but no result entry; p3 has an entry but no game
            results=entries("t6", "p1", "p3"),
            pairings=(game(1, "p1", "p2", "1-0"),),
        )
        player_store, tournament_store = make_stores(players, [event])
        report = make_processor(player_store, tournament_store, fixed_clock).process(event)

        assert report.processed_player_ids == ["p1"]
        assert report.skipped_player_ids == ["p2", "p3"]
        assert player_store.players["p1"].classical.rating == 1020
        assert player_store.players["p2"] is players[1]
        assert player_store.players["p3"] is players[2]
        assert [player_id for player_id, _ in player_store.updates] == ["p1"]
        assert report.tournament.processed_player_ids == ("p1",)

    def test_duplicate_roster_ids_rated_once(self, make_stores, players, fixed_clock):
        event = Tournament(
            id="t7",
            name="Enugu Weekender",
            status="completed",
            players=("p1", "p2", "p1"),
            results=entries("t7", "p1", "p2"),
            pairings=(game(1, "p2", "p1", "1-0"),),
        )
        player_store, tournament_store = make_stores(players, [event])
        report = make_processor(player_store, tournament_store, fixed_clock).process(event)

        assert [change.player_id for change in report.changes] == ["p1", "p2"]
        assert len(player_store.updates) == 2
        assert report.tournament.processed_player_ids == ("p1", "p2")
        assert player_store.players["p1"].classical.games_played == 10
        assert player_store.players["p1"].classical.rating == 980

    def test_unknown_category_rates_classical(self, make_stores, players, fixed_clock):
        event = Tournament(
            id="t4",
            name="Simul",
            category="exhibition",
            status="completed",
            players=("p1", "p2"),
            results=entries("t4", "p1", "p2"),
            pairings=(game(1, "p1", "p2", "0-1"),),
        )
        player_store, tournament_store = make_stores(players, [event])
        report = make_processor(player_store, tournament_store, fixed_clock).process(event)

        assert report.track == "classical"
        assert player_store.players["p1"].classical.rating == 980

    def test_loads_roster_once(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        make_processor(player_store, tournament_store, fixed_clock).process(classical_event)
        assert player_store.reads == 1

    def test_uses_supplied_roster(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        make_processor(player_store, tournament_store, fixed_clock).process(classical_event, roster=players)
        assert player_store.reads == 0


class TestReadiness:

    @pytest.mark.parametrize("status", ["pending", "approved", "ongoing", "rejected"])
    def test_not_ready(self, make_stores, players, classical_event, fixed_clock, status):
        event = replace(classical_event, status=status)
        player_store, tournament_store = make_stores(players, [event])
        with pytest.raises(TournamentNotReadyError):
            make_processor(player_store, tournament_store, fixed_clock).process(event)
        assert player_store.updates == []
        assert tournament_store.updates == []

    def test_already_processed(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        processor = make_processor(player_store, tournament_store, fixed_clock)
        report = processor.process(classical_event)

        with pytest.raises(TournamentAlreadyProcessedError):
            processor.process(report.tournament)
        with pytest.raises(TournamentAlreadyProcessedError):
            processor.compute(report.tournament, players)
        # Each player counted once
        assert player_store.players["p1"].classical.games_played == 10

    def test_widened_ready_statuses(self, make_stores, players, classical_event, fixed_clock):
        event = replace(classical_event, status="ongoing")
        player_store, tournament_store = make_stores(players, [event])
        processor = make_processor(
            player_store, tournament_store, fixed_clock, ready_statuses=("ongoing", "completed")
        )
        assert processor.process(event).tournament.status == "processed"


class TestFailures:

    def test_missing_roster_player(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players[:3], [classical_event])
        with pytest.raises(PlayerNotFoundError):
            make_processor(player_store, tournament_store, fixed_clock).process(classical_event)
        assert player_store.updates == []
        assert tournament_store.updates == []

    def test_write_failure_leaves_tournament_unprocessed(
        self, make_stores, players, classical_event, fixed_clock
    ):
        player_store, tournament_store = make_stores(players, [classical_event], fail_on={"p3"})
        with pytest.raises(StoreError):
            make_processor(player_store, tournament_store, fixed_clock).process(classical_event)
        assert tournament_store.updates == []
        assert tournament_store.tournaments["t1"].status == "completed"

    def test_unexpected_store_exception_is_wrapped(
        self, make_stores, players, classical_event, fixed_clock
    ):
        player_store, tournament_store = make_stores(
            players, [classical_event], fail_on={"p1"}, error=RuntimeError("disk full")
        )
        with pytest.raises(StoreError, match="disk full"):
            make_processor(player_store, tournament_store, fixed_clock).process(classical_event)

    def test_tournament_write_failure_propagates(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        tournament_store.fail = True
        with pytest.raises(StoreError):
            make_processor(player_store, tournament_store, fixed_clock).process(classical_event)


class TestConcurrentWrites:

    @pytest.fixture
    def big_event(self, make_player):
        ids = [f"q{i}" for i in range(8)]
        roster = [make_player(pid, classical=(1200 + 50 * i, 40)) for i, pid in enumerate(ids)]
        event = Tournament(
            id="t9",
            name="Big Open",
            status="completed",
            players=tuple(ids),
            results=entries("t9", *ids),
            pairings=tuple(game(1, ids[i], ids[i + 1], "1-0") for i in range(0, 8, 2)),
        )
        return roster, event

    def test_thread_pool_matches_sequential(self, make_stores, big_event, fixed_clock):
        roster, event = big_event

        seq_players, seq_tournaments = make_stores(roster, [event])
        make_processor(seq_players, seq_tournaments, fixed_clock).process(event)

        par_players, par_tournaments = make_stores(roster, [event])
        report = make_processor(par_players, par_tournaments, fixed_clock, max_workers=4).process(event)

        assert par_players.players == seq_players.players
        assert len(par_players.updates) == 8
        assert report.tournament.status == "processed"

    def test_thread_pool_failure(self, make_stores, big_event, fixed_clock):
        roster, event = big_event
        player_store, tournament_store = make_stores(roster, [event], fail_on={"q5"})
        with pytest.raises(StoreError):
            make_processor(player_store, tournament_store, fixed_clock, max_workers=4).process(event)
        assert tournament_store.updates == []


class TestCompute:

    def test_compute_writes_nothing(self, make_stores, players, classical_event, fixed_clock):
        player_store, tournament_store = make_stores(players, [classical_event])
        report = make_processor(player_store, tournament_store, fixed_clock).compute(classical_event, players)

        assert player_store.updates == []
        assert tournament_store.updates == []
        assert report.players["p1"].classical.rating == 980

    def test_order_does_not_matter(self, make_stores, players, classical_event, fixed_clock):
        reversed_event = replace(classical_event, players=tuple(reversed(classical_event.players)))
        processor = make_processor(*make_stores(), fixed_clock)

        forward = processor.compute(classical_event, players)
        backward = processor.compute(reversed_event, players)
        assert forward.players == backward.players

    def test_floor_clamp_in_summary(self, make_stores, make_player, fixed_clock):
        event = Tournament(
            id="t5",
            name="Club Night",
            status="completed",
            players=("x", "y"),
            results=(TournamentResult(player_id="x", tournament_id="t5", rating_change=-20),),
        )
        roster = [make_player("x", classical=(810, 4)), make_player("y")]
        processor = make_processor(*make_stores(), fixed_clock, delta_source=PrecomputedDelta())
        report = processor.compute(event, roster)

        (change,) = report.changes
        assert change.requested_delta == -20
        assert change.delta == -10
        assert report.summary() == [
            {"player_id": "x", "old_rating": 810, "new_rating": 800, "delta": -10}
        ]


def test_from_settings(make_stores):
    settings = Settings(ready_statuses=["ongoing"], report_max_workers=3, new_player_games=10)
    processor = TournamentReportProcessor.from_settings(*make_stores(), settings)

    assert processor.ready_statuses == ("ongoing",)
    assert processor.max_workers == 3
    assert processor.rules.new_player_games == 10
    assert isinstance(processor.delta_source, HeadToHeadComputedDelta)
    assert processor.delta_source.rules.new_player_games == 10
