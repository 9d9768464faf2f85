"""
Error types raised by the bracket engine.
"""


class BracketError(Exception):
    """Base class for all bracket engine errors."""


class InvalidInput(BracketError):
    """Raised for empty team lists, identical opponents or bad scores."""


class NotFound(BracketError):
    """Raised when a tournament, team or match reference does not exist."""


class Conflict(BracketError):
    """Raised for duplicate match keys and stale match state."""


class InvalidTransition(BracketError):
    """Raised when a match status change is not allowed from its current status."""
