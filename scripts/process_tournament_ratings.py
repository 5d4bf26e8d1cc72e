#!/usr/bin/env python3
"""
Apply a concluded tournament's results to player ratings.

Loads the tournament and its roster, computes every participant's new
rating on the tournament's track, writes the players, marks the
tournament processed and records a rating job, all in one transaction.

Usage:
    # Preview the changes without writing anything
    python scripts/process_tournament_ratings.py T-2024-017 --dry-run

    # Apply using the rating changes recorded on tournament results
    python scripts/process_tournament_ratings.py T-2024-017 --delta-source precomputed

    # Allow processing straight from 'ongoing'
    python scripts/process_tournament_ratings.py T-2024-017 --ready-status ongoing --ready-status completed
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ncr.config import settings
from ncr.db import (
    SqlPlayerStore,
    SqlTournamentStore,
    get_session,
    has_completed_rating_job,
    record_rating_job,
)
from ncr.db.store import JOB_COMPLETED, JOB_FAILED
from ncr.exceptions import RatingError, StoreError
from ncr.rating import HeadToHeadComputedDelta, PrecomputedDelta, RatingReport, RatingRules, TournamentReportProcessor

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Process tournament ratings")
    parser.add_argument("tournament_id", help="Tournament to process")
    parser.add_argument(
        "--delta-source",
        choices=("head-to-head", "precomputed"),
        default="head-to-head",
        help="Compute changes from pairings, or use rating changes stored on results",
    )
    parser.add_argument(
        "--ready-status",
        action="append",
        dest="ready_statuses",
        help="Tournament status accepted for processing (repeatable, default from settings)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print changes without writing")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Process even if a completed rating job exists for the tournament",
    )
    return parser.parse_args(argv)


def print_report(report: RatingReport) -> None:
    print(f"\n{report.tournament.name} ({report.track})")
    print("-" * 48)
    for change in report.changes:
        print(
            f"{change.player_id:<16} {change.old_rating:>5} -> {change.new_rating:>5} "
            f"({change.delta:+d})  {change.rating_status}"
        )
    if report.skipped_player_ids:
        print(f"Skipped (no result): {', '.join(report.skipped_player_ids)}")
    print(f"Rated: {len(report.changes)}  Skipped: {len(report.skipped_player_ids)}")


def main(argv=None) -> int:
    args = parse_args(argv)
    rules = RatingRules.from_settings(settings)
    if args.delta_source == "precomputed":
        delta_source = PrecomputedDelta()
    else:
        delta_source = HeadToHeadComputedDelta(rules)

    try:
        with get_session() as session:
            if not args.force and has_completed_rating_job(session, args.tournament_id):
                logger.error("Ratings have already been processed for %s", args.tournament_id)
                return 1

            players = SqlPlayerStore(session)
            tournaments = SqlTournamentStore(session)
            processor = TournamentReportProcessor.from_settings(
                players, tournaments, settings, delta_source=delta_source
            )
            if args.ready_statuses:
                processor.ready_statuses = tuple(args.ready_statuses)

            tournament = tournaments.get_tournament(args.tournament_id)
            if args.dry_run:
                processor.check_ready(tournament)
                roster = players.get_players({"ids": list(tournament.players)})
                print_report(processor.compute(tournament, roster))
                return 0

            report = processor.process(tournament)
            record_rating_job(session, args.tournament_id, JOB_COMPLETED, summary=report.summary())
    except RatingError as exc:
        logger.error("Rating run for %s failed: %s", args.tournament_id, exc)
        try:
            with get_session() as session:
                record_rating_job(session, args.tournament_id, JOB_FAILED, error_message=str(exc))
        except StoreError as record_exc:
            logger.warning("Could not record failed rating job: %s", record_exc)
        return 1

    print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
