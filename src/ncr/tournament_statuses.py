"""Shared tournament-status definitions and lifecycle helpers.

This module is the single source of truth for the tournament lifecycle:

    pending → approved → ongoing → completed → processed
    pending → rejected

``processed`` means ratings have been applied. It is terminal, as is
``rejected``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TypeVar

from ncr.exceptions import InvalidStatusTransitionError

PENDING = "pending"
APPROVED = "approved"
ONGOING = "ongoing"
COMPLETED = "completed"
PROCESSED = "processed"
REJECTED = "rejected"

# Individual statuses in lifecycle order.
ALL_TOURNAMENT_STATUSES: tuple[str, ...] = (
    PENDING,
    APPROVED,
    ONGOING,
    COMPLETED,
    PROCESSED,
    REJECTED,
)

# Statuses no further change can leave.
TERMINAL_STATUSES: tuple[str, ...] = (PROCESSED, REJECTED)

# Single forward step allowed from each status.
ALLOWED_TRANSITIONS: dict[str, tuple[str, ...]] = {
    PENDING: (APPROVED, REJECTED),
    APPROVED: (ONGOING,),
    ONGOING: (COMPLETED,),
    COMPLETED: (PROCESSED,),
    PROCESSED: (),
    REJECTED: (),
}

# Statuses a report run accepts unless the caller widens the set.
DEFAULT_READY_STATUSES: tuple[str, ...] = (COMPLETED,)

T = TypeVar("T")


def can_transition(current: str, new: str) -> bool:
    """Whether a tournament may move directly from ``current`` to ``new``."""
    return new in ALLOWED_TRANSITIONS.get(current, ())


def advance_status(tournament: T, new_status: str) -> T:
    """Return a copy of the tournament moved to ``new_status``.

    Raises InvalidStatusTransitionError for backwards moves, skipped steps,
    unknown statuses and any move out of a terminal status.
    """
    current = tournament.status
    if not can_transition(current, new_status):
        raise InvalidStatusTransitionError(
            f"Tournament {tournament.id!r} cannot move from {current!r} to {new_status!r}"
        )
    return replace(tournament, status=new_status)
