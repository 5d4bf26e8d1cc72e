#!/usr/bin/env python3
"""
Import a CSV rating list as new players, applying the +100 upload bonus.

Usage:
    # Preview
    python scripts/import_rating_list.py ratings.csv --dry-run

    # Import, skipping ids that already exist
    python scripts/import_rating_list.py ratings.csv --skip-existing
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
from ncr.rating.status import format_rating_display
from ncr.rating_list import RatingListError, read_rating_list

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a CSV rating list")
    parser.add_argument("path", type=Path, help="CSV file to import")
    parser.add_argument("--skip-existing", action="store_true", help="Skip ids already in the database")
    parser.add_argument("--dry-run", action="store_true", help="Print players without writing")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    rules = RatingRules.from_settings(settings)
    today = date.today()

    try:
        raw_players = read_rating_list(args.path, today)
    except (OSError, RatingListError) as exc:
        logger.error("Could not read %s: %s", args.path, exc)
        return 1

    players = adjust_players(raw_players, today, record_history=True, rules=rules)
    for player in players:
        print(
            f"{player.id:<16} {player.name:<30} "
            f"C {format_rating_display(player.classical.rating, player.classical.games_played, rules):<18} "
            f"R {format_rating_display(player.rapid.rating, player.rapid.games_played, rules):<18} "
            f"B {format_rating_display(player.blitz.rating, player.blitz.games_played, rules)}"
        )
    if args.dry_run:
        logger.info("Dry run: %d players not imported", len(players))
        return 0

    try:
        with get_session() as session:
            store = SqlPlayerStore(session)
            existing = set()
            if args.skip_existing:
                existing = {p.id for p in store.get_players({"ids": [p.id for p in players]})}
            for player in players:
                if player.id in existing:
                    logger.info("Skipping existing player %s", player.id)
                    continue
                store.add_player(player)
    except StoreError as exc:
        logger.error("Import failed, nothing was saved: %s", exc)
        return 1

    logger.info("Imported %d players", len(players) - len(existing))
    return 0


if __name__ == "__main__":
    sys.exit(main())
