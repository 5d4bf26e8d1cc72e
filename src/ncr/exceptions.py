"""
Error taxonomy for the rating engine.

Pure rating functions raise these synchronously. Store implementations
wrap their backend failures in StoreError so callers only need to know
about one persistence exception.
"""


class RatingError(Exception):
    """Base class for all rating engine errors."""


class InvalidTrackError(RatingError, ValueError):
    """Raised when a rating track name is not classical, rapid or blitz."""

    def __init__(self, track: object):
        self.track = track
        super().__init__(f"Unknown rating track: {track!r}")


class NonNumericInputError(RatingError, ValueError):
    """Raised when a rating or delta input is not a finite number."""

    def __init__(self, name: str, value: object):
        self.name = name
        self.value = value
        super().__init__(f"{name} must be a finite number, got {value!r}")


class StoreError(RatingError):
    """Raised when the persistence layer fails to read or write."""


class PlayerNotFoundError(RatingError, LookupError):
    """Raised when a referenced player is missing from the roster or store."""


class TournamentNotReadyError(RatingError):
    """Raised when a tournament's status does not allow rating processing."""


class TournamentAlreadyProcessedError(RatingError):
    """Raised when ratings were already applied for a tournament."""


class InvalidStatusTransitionError(RatingError, ValueError):
    """Raised when a tournament status change breaks the lifecycle order."""
