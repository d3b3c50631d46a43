"""
Exceptions raised by the tournament engine.
"""


class TournamentError(Exception):
    """Base class for every engine error."""


class ValidationError(TournamentError):
    """Raised for invalid input: bad scores, duplicate names, oversized rosters."""


class IllegalStateError(TournamentError):
    """Raised when a tournament or match is not in the state an operation expects."""


class AmbiguousAdvancementWarning(UserWarning):
    """Issued when knockout seeding has to fall back to a best-effort order."""
