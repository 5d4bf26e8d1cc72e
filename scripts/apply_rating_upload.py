#!/usr/bin/env python3
"""
Apply the bulk +100 rating upload rule to stored players.

Every track rated 801 or above gains 100 points and is counted as at
least 30 games; every other track is reset to 800 with no games.

Usage:
    # Dry run (print only, no DB writes)
    python scripts/apply_rating_upload.py --dry-run

    # Adjust specific players only
    python scripts/apply_rating_upload.py --player NCR4F9A1C07B2 --player NCR0B1D2E3F40

    # Adjust everyone without writing history entries
    python scripts/apply_rating_upload.py --no-history
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ncr.config import settings
from ncr.db import SqlPlayerStore, get_session
from ncr.exceptions import StoreError
from ncr.rating import RatingRules
from ncr.rating.bulk import adjust_players
from ncr.rating.constants import TRACKS

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply the bulk rating upload rule")
    parser.add_argument("--player", action="append", dest="player_ids", help="Player id (repeatable)")
    parser.add_argument("--no-history", action="store_true", help="Do not append history entries")
    parser.add_argument("--dry-run", action="store_true", help="Print changes without writing")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    rules = RatingRules.from_settings(settings)

    try:
        with get_session() as session:
            store = SqlPlayerStore(session)
            filter = {"ids": args.player_ids} if args.player_ids else None
            players = store.get_players(filter)
            adjusted = adjust_players(players, date.today(), not args.no_history, rules)

            changed = 0
            for before, after in zip(players, adjusted):
                if before == after:
                    continue
                changed += 1
                summary = ", ".join(
                    f"{name} {before.track(name).rating}->{after.track(name).rating}" for name in TRACKS
                )
                print(f"{after.id:<16} {summary}")
                if not args.dry_run:
                    store.update_player(after.id, after.tracks)

            if args.dry_run:
                session.rollback()
    except StoreError as exc:
        logger.error("Bulk adjustment failed: %s", exc)
        return 1

    logger.info("%s %d of %d players", "Would adjust" if args.dry_run else "Adjusted", changed, len(players))
    return 0


if __name__ == "__main__":
    sys.exit(main())
