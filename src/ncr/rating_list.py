"""
Reader for officer-supplied rating lists (CSV).

Rating lists come from other federations' exports, so headers vary. A
column is found by the first alias contained in its (lower-cased)
header, e.g. "Name", "Player" or "Full Name" for the name column and
"STD", "Standard" or "Rating" for classical.

The reader only builds raw players: listed ratings are copied onto the
tracks as-is and every other track stays at the floor. Apply the bulk
upload rule (ncr.rating.bulk.adjust_player) afterwards.
"""

from __future__ import annotations

import csv
import logging
import re
import secrets
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Optional

from ncr.rating.constants import BLITZ, CLASSICAL, RAPID
from ncr.rating.models import Player

logger = logging.getLogger(__name__)

# Header aliases, checked in order
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("ncr id", "ncr_id", "player id", "player_id"),
    "name": ("player", "players", "name", "fullname", "full name"),
    CLASSICAL: ("std", "standard", "classical", "fide", "rating"),
    RAPID: ("rpd", "rapid"),
    BLITZ: ("blz", "blitz"),
}


class RatingListError(ValueError):
    """Raised when a rating list cannot be read."""


def generate_player_id() -> str:
    """New opaque federation id, e.g. "NCR4F9A1C07B2"."""
    return f"NCR{secrets.token_hex(5).upper()}"


def is_id_column(header: str) -> bool:
    """Whether a header names an identifier, e.g. "FIDE ID" or "player_id"."""
    return re.search(r"\bid\b", header.strip().lower().replace("_", " ")) is not None


def find_column(headers: list[str], aliases: tuple[str, ...], exclude: tuple[int, ...] = ()) -> Optional[int]:
    """Index of the first header containing one of the aliases, or None."""
    normalized = [h.strip().lower() for h in headers]
    for alias in aliases:
        for index, header in enumerate(normalized):
            if index not in exclude and alias in header:
                return index
    return None


def _parse_rating(raw: str) -> Optional[int]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return int(float(raw))
    except ValueError:
        return None


def read_rating_list(path: Path, on_date: date | str | None = None) -> list[Player]:
    """
    Read a CSV rating list into raw Player records.

    Rows without a name are skipped. Unparseable ratings leave that
    track at the floor.

    Raises:
        RatingListError: If the file is empty or has no name column
    """
    with Path(path).open(newline="", encoding="utf-8-sig") as f:
        rows = list(csv.reader(f))

    if len(rows) <= 1:
        raise RatingListError(f"{path} does not contain any data")

    headers = rows[0]
    id_index = find_column(headers, COLUMN_ALIASES["id"])
    name_index = find_column(
        headers, COLUMN_ALIASES["name"], exclude=(id_index,) if id_index is not None else ()
    )
    if name_index is None:
        raise RatingListError(
            "Could not find a column for player names. Include a column with "
            "'Name', 'Player', or 'Full Name' in the header."
        )
    # Identifier columns such as "FIDE ID" never hold ratings
    id_columns = tuple(i for i, header in enumerate(headers) if is_id_column(header))
    # Rapid/blitz headers like "Rapid Rating" would otherwise match classical's "rating"
    rapid_index = find_column(headers, COLUMN_ALIASES[RAPID], exclude=id_columns)
    blitz_index = find_column(headers, COLUMN_ALIASES[BLITZ], exclude=id_columns)
    track_columns = {
        RAPID: rapid_index,
        BLITZ: blitz_index,
        CLASSICAL: find_column(
            headers,
            COLUMN_ALIASES[CLASSICAL],
            exclude=tuple(
                i for i in (id_index, name_index, rapid_index, blitz_index, *id_columns)
                if i is not None
            ),
        ),
    }

    players: list[Player] = []
    for line_number, row in enumerate(rows[1:], start=2):
        name = row[name_index].strip() if name_index < len(row) else ""
        if not name:
            continue

        player_id = ""
        if id_index is not None and id_index < len(row):
            player_id = row[id_index].strip()
        player = Player.new(player_id or generate_player_id(), name, on_date)

        for track, index in track_columns.items():
            if index is None or index >= len(row):
                continue
            rating = _parse_rating(row[index])
            if rating is None:
                if row[index].strip():
                    logger.warning("Line %d: ignoring %s rating %r", line_number, track, row[index])
                continue
            player = player.with_track(track, replace(player.track(track), rating=rating))

        players.append(player)

    logger.info("Read %d players from %s", len(players), path)
    return players
