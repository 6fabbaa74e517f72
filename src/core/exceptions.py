"""
Custom exceptions shared by all layers.

Everything derives from GameError, so the message layer can catch a single type and report `str(error)` back to the caller.
"""


class GameError(Exception):
    """Base class for all errors raised while handling a match request."""

    retryable: bool = False


# --- VALIDATION ---
class InvalidRequestError(GameError):
    """Malformed request payload (coordinates, sizes, methods...)"""


class GameStateError(GameError):
    """Request does not fit the current phase / status of the match."""


class NotYourTurnError(GameError):
    pass


class OutOfBoundsError(GameError):
    pass


class OccupiedPointError(GameError):
    pass


# --- RULE VIOLATIONS ---
class IllegalMoveError(GameError):
    """A placement that is well-formed but breaks a rule of Go."""


class SuicideError(IllegalMoveError):
    pass


class SuperkoError(IllegalMoveError):
    pass


# --- AUTHORIZATION ---
class NotAParticipantError(GameError):
    pass


class WrongColorError(GameError):
    pass


# --- SCORING ---
class ScoringInProgressError(GameError):
    """Another scoring method is already being confirmed."""


# --- PERSISTENCE ---
class RepositoryError(GameError):
    pass


class ConcurrencyConflictError(RepositoryError):
    """The stored match changed between load and save."""

    retryable = True
