"""Active-session store: one game per player, with response windows."""

import time
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from .errors import SessionConflict, UnknownSession
from .session import GameSession


@dataclass
class RegistryEntry:
    """A registered session and its current response window."""
    session: GameSession
    deadline: Optional[float] = None
    window: Optional[Literal["answer", "continue"]] = None

    @property
    def player(self) -> str:
        return self.session.player

    @property
    def session_id(self) -> str:
        return self.session.session_id


class SessionStore:
    """Sessions keyed by player identity and by session id.

    An entry exists while the session waits on the player: from the first
    posed question or guess until it ends, times out, or finishes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._by_player: dict[str, RegistryEntry] = {}
        self._by_session: dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._by_session)

    def __contains__(self, player: str) -> bool:
        return player in self._by_player

    def entry_for(self, player: str) -> Optional[RegistryEntry]:
        return self._by_player.get(player)

    def active_session_id(self, player: str) -> Optional[str]:
        """Id of the player's active session, if any."""
        entry = self.entry_for(player)
        return entry.session_id if entry else None

    def register(self, session: GameSession) -> RegistryEntry:
        """Add a session, rejecting a second one for the same player."""
        existing = self._by_player.get(session.player)
        if existing is not None:
            if existing.session is session:
                return existing
            raise SessionConflict(session.player, existing.session_id)

        entry = RegistryEntry(session=session)
        self._by_player[session.player] = entry
        self._by_session[session.session_id] = entry
        return entry

    def lookup(self, session_id: str) -> RegistryEntry:
        """Get the entry for a session id."""
        entry = self._by_session.get(session_id)
        if entry is None:
            raise UnknownSession(f"No active game with id {session_id!r}")
        return entry

    def release(self, session_id: str) -> Optional[RegistryEntry]:
        """Remove a session; no-op if it is not registered."""
        entry = self._by_session.pop(session_id, None)
        if entry is not None:
            self._by_player.pop(entry.player, None)
        return entry

    def arm(
        self,
        session_id: str,
        seconds: float,
        window: Literal["answer", "continue"] = "answer"
    ) -> RegistryEntry:
        """Start (or restart) a session's response window."""
        entry = self.lookup(session_id)
        entry.deadline = self.clock() + seconds
        entry.window = window
        return entry

    def is_expired(self, entry: RegistryEntry, now: Optional[float] = None) -> bool:
        """Whether the entry's response window has lapsed."""
        if entry.deadline is None:
            return False
        now = self.clock() if now is None else now
        return now >= entry.deadline

    def expired(self, now: Optional[float] = None) -> list[RegistryEntry]:
        """Entries whose response windows have lapsed."""
        now = self.clock() if now is None else now
        return [entry for entry in self._by_session.values() if self.is_expired(entry, now)]
