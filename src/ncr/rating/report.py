"""
Tournament report processing: turns final tournament results into
permanent rating changes.

Flow for one tournament:
1. Check the tournament is ready (completed by default) and not processed
2. Load the roster for every player id in the tournament (one store call)
3. Compute every player's new track in memory, with no store calls per player
4. Write each updated player (sequentially or on a thread pool)
5. Barrier: only once every player write succeeded, mark the tournament
   processed with a processing date

Any failure in step 4 aborts the run before step 5, so the tournament is
never marked processed with missing player updates. Whether player writes
that did succeed are rolled back is up to the store; the SQL store only
flushes and the caller's session rolls everything back on error.

Re-running a tournament whose previous run failed half-way through
against a non-transactional store double-applies the players that were
already written. Callers must also ensure only one run per tournament is
in flight at a time.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Optional, Union

from ncr.exceptions import (
    PlayerNotFoundError,
    StoreError,
    TournamentAlreadyProcessedError,
    TournamentNotReadyError,
)
from ncr.rating.constants import TOURNAMENT_REASON_TEMPLATE
from ncr.rating.delta import DeltaSource, HeadToHeadComputedDelta
from ncr.rating.models import Player, Tournament
from ncr.rating.rules import DEFAULT_RULES, RatingRules
from ncr.rating.updater import apply_rating_change
from ncr.stores import PlayerStore, TournamentStore
from ncr.tournament_statuses import DEFAULT_READY_STATUSES, PROCESSED

if TYPE_CHECKING:
    from ncr.config import Settings

logger = logging.getLogger(__name__)

Roster = Union[Mapping[str, Player], Iterable[Player]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RatingChange:
    """One player's rating change from a tournament."""
    player_id: str
    track: str
    old_rating: int
    new_rating: int
    # Change asked for by the delta source, before floor clamping
    requested_delta: int
    games_played: int
    rating_status: str

    @property
    def delta(self) -> int:
        """Change actually applied (differs from requested_delta at the floor)."""
        return self.new_rating - self.old_rating

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "old_rating": self.old_rating,
            "new_rating": self.new_rating,
            "delta": self.delta,
        }


@dataclass
class RatingReport:
    """Outcome of computing (and optionally applying) a tournament's ratings."""
    tournament: Tournament
    track: str
    # Every roster player, updated or unchanged, keyed by id
    players: dict[str, Player] = field(default_factory=dict)
    changes: list[RatingChange] = field(default_factory=list)
    skipped_player_ids: list[str] = field(default_factory=list)

    @property
    def processed_player_ids(self) -> list[str]:
        return [change.player_id for change in self.changes]

    def summary(self) -> list[dict]:
        """Per-player changes as plain dicts, suitable for storing as JSON."""
        return [change.to_dict() for change in self.changes]


class TournamentReportProcessor:
    """
    Applies a concluded tournament's results to its players' ratings.

    Usage (preview the changes without writing anything):

        processor = TournamentReportProcessor(player_store, tournament_store)
        report = processor.compute(tournament, roster)

    Usage (apply and persist; caller commits the session):

        with get_session() as session:
            processor = TournamentReportProcessor(
                SqlPlayerStore(session), SqlTournamentStore(session)
            )
            report = processor.process(tournament)
    """

    def __init__(
        self,
        player_store: PlayerStore,
        tournament_store: TournamentStore,
        delta_source: Optional[DeltaSource] = None,
        rules: RatingRules = DEFAULT_RULES,
        ready_statuses: Iterable[str] = DEFAULT_READY_STATUSES,
        max_workers: int = 1,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.player_store = player_store
        self.tournament_store = tournament_store
        self.delta_source = delta_source or HeadToHeadComputedDelta(rules)
        self.rules = rules
        self.ready_statuses = tuple(ready_statuses)
        self.max_workers = max(1, max_workers)
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        player_store: PlayerStore,
        tournament_store: TournamentStore,
        settings: "Settings",
        delta_source: Optional[DeltaSource] = None,
    ) -> "TournamentReportProcessor":
        """Instantiate with rules, ready statuses and worker count from settings."""
        rules = RatingRules.from_settings(settings)
        return cls(
            player_store,
            tournament_store,
            delta_source=delta_source or HeadToHeadComputedDelta(rules),
            rules=rules,
            ready_statuses=settings.ready_statuses,
            max_workers=settings.report_max_workers,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_ready(self, tournament: Tournament) -> None:
        """
        Raise unless the tournament may have its ratings processed.

        Raises:
            TournamentAlreadyProcessedError: status is already processed
            TournamentNotReadyError: status is not one of ready_statuses
        """
        if tournament.status == PROCESSED:
            raise TournamentAlreadyProcessedError(
                f"Ratings have already been processed for tournament {tournament.id!r}"
            )
        if tournament.status not in self.ready_statuses:
            raise TournamentNotReadyError(
                f"Tournament {tournament.id!r} is {tournament.status!r}; "
                f"expected one of {list(self.ready_statuses)}"
            )

    def compute(self, tournament: Tournament, roster: Roster) -> RatingReport:
        """
        Compute every participant's updated rating without persisting.

        Only players with a result entry for this tournament are rated.
        Players without one, and players the delta source has nothing to
        rate on (e.g. no decided game for the head-to-head source), are
        returned unchanged and listed in skipped_player_ids.

        Args:
            tournament: Tournament with its results / pairings
            roster: Pre-tournament Player records for every id in
                    tournament.players (mapping by id or any iterable)

        Raises:
            TournamentAlreadyProcessedError: tournament is already processed
            PlayerNotFoundError: a tournament player is missing from roster
        """
        if tournament.status == PROCESSED:
            raise TournamentAlreadyProcessedError(
                f"Ratings have already been processed for tournament {tournament.id!r}"
            )

        by_id = _index_roster(roster)
        track = tournament.rating_track
        reason = TOURNAMENT_REASON_TEMPLATE.format(name=tournament.name)
        on_date = self.clock().date()

        report = RatingReport(tournament=tournament, track=track)
        # Roster ids form a set; keep first-seen order
        for player_id in dict.fromkeys(tournament.players):
            player = by_id.get(player_id)
            if player is None:
                raise PlayerNotFoundError(
                    f"Player {player_id!r} of tournament {tournament.id!r} is not in the roster"
                )

            if tournament.result_for(player_id) is None:
                logger.debug("Skipping %s: no result entry in %s", player_id, tournament.id)
                report.players[player_id] = player
                report.skipped_player_ids.append(player_id)
                continue

            # Deltas are always computed against the untouched roster
            delta = self.delta_source.delta_for(player, tournament, by_id)
            if delta is None:
                logger.debug("Skipping %s: nothing to rate in %s", player_id, tournament.id)
                report.players[player_id] = player
                report.skipped_player_ids.append(player_id)
                continue

            updated = apply_rating_change(player, track, delta, reason, on_date, self.rules)
            new_track = updated.track(track)
            report.players[player_id] = updated
            report.changes.append(
                RatingChange(
                    player_id=player_id,
                    track=track,
                    old_rating=player.track(track).rating,
                    new_rating=new_track.rating,
                    requested_delta=int(delta),
                    games_played=new_track.games_played,
                    rating_status=new_track.rating_status,
                )
            )

        return report

    def process(self, tournament: Tournament, roster: Optional[Roster] = None) -> RatingReport:
        """
        Compute, persist every player update, then mark the tournament processed.

        Args:
            tournament: Tournament to process
            roster: Optional pre-loaded players; loaded from the player
                    store when omitted

        Returns:
            RatingReport whose tournament carries the processed status

        Raises:
            TournamentAlreadyProcessedError, TournamentNotReadyError: see check_ready
            StoreError: a read or write failed; the tournament is not
                        marked processed
        """
        self.check_ready(tournament)

        if roster is None:
            ids = list(dict.fromkeys(tournament.players))
            roster = self.player_store.get_players({"ids": ids})

        report = self.compute(tournament, roster)
        logger.info(
            "Applying %s ratings for tournament %s: %d rated, %d skipped",
            report.track,
            tournament.id,
            len(report.changes),
            len(report.skipped_player_ids),
        )

        self._persist_players(report)

        # Barrier: every player write has completed at this point
        processing_date = self.clock()
        processed_ids = tuple(report.processed_player_ids)
        try:
            self.tournament_store.update_tournament(
                tournament.id,
                {
                    "status": PROCESSED,
                    "processing_date": processing_date,
                    "processed_player_ids": list(processed_ids),
                },
            )
        except StoreError:
            logger.error("Could not mark tournament %s processed", tournament.id)
            raise

        report.tournament = replace(
            tournament,
            status=PROCESSED,
            processing_date=processing_date,
            processed_player_ids=processed_ids,
        )
        logger.info("Tournament %s processed", tournament.id)
        return report

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist_players(self, report: RatingReport) -> None:
        """Write every changed player; raise StoreError on the first failure."""
        writes = [
            (change.player_id, {report.track: report.players[change.player_id].track(report.track)})
            for change in report.changes
        ]
        if not writes:
            return

        if self.max_workers == 1:
            for player_id, fields in writes:
                self._write_player(report.tournament.id, player_id, fields)
            return

        failure: Optional[BaseException] = None
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self._write_player, report.tournament.id, player_id, fields)
                for player_id, fields in writes
            ]
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None and failure is None:
                    failure = exc
        if failure is not None:
            raise failure

    def _write_player(self, tournament_id: str, player_id: str, fields: dict) -> None:
        try:
            self.player_store.update_player(player_id, fields)
        except StoreError:
            logger.error("Rating write failed for %s in tournament %s", player_id, tournament_id)
            raise
        except Exception as exc:
            logger.error("Rating write failed for %s in tournament %s: %s", player_id, tournament_id, exc)
            raise StoreError(f"Could not update player {player_id!r}: {exc}") from exc


def _index_roster(roster: Roster) -> dict[str, Player]:
    if isinstance(roster, Mapping):
        return dict(roster)
    return {player.id: player for player in roster}
