"""Exceptions raised by the guessing engine."""

from typing import Optional


class GameError(Exception):
    """Base class for engine errors."""


class DataIntegrityError(GameError):
    """A ledger candidate is missing from the catalog.

    The ledger and catalog are out of sync, so the session cannot continue.
    """

    def __init__(self, candidate_id: str):
        super().__init__(
            f"Candidate {candidate_id!r} referenced in the ledger not found in catalog"
        )
        self.candidate_id = candidate_id


class InvalidBacktrack(GameError):
    """Back was requested with no snapshot to restore."""


class NoUsableSignal(GameError):
    """Too many questions went by without moving any score."""


class InvalidAction(GameError):
    """The action is not allowed in the session's current state."""


class UnknownSession(GameError):
    """No active session with the given id."""


class ResponseRejected(GameError):
    """A response came from the wrong player or for an outdated prompt."""


class SessionConflict(GameError):
    """The player already has an active session."""

    def __init__(self, player: str, session_id: Optional[str] = None):
        super().__init__(f"Player {player!r} already has an ongoing game")
        self.player = player
        self.session_id = session_id
