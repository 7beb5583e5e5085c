"""Transport-facing game engine.

The engine owns the session store and translates transport events (start,
answer, back, end, continue, window expiry) into session transitions. It does
no rendering: every call returns an outcome dataclass for the transport to
present.
"""

import logging
import random
import time
import uuid
from typing import Callable, Optional

from .config import Config
from .errors import DataIntegrityError, InvalidBacktrack, ResponseRejected, SessionConflict
from .loader import Catalog
from .models import Ended, Outcome, grade_weight
from .registry import RegistryEntry, SessionStore
from .selector import QuestionSelector
from .session import GameSession
from .updater import BeliefUpdater

logger = logging.getLogger(__name__)


class GameEngine:
    """Runs guessing games for many players, one game per player."""

    def __init__(
        self,
        catalog: Catalog,
        config: Optional[Config] = None,
        store: Optional[SessionStore] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize the engine.

        Args:
            catalog: Candidate catalog shared by all sessions
            config: Engine and transport configuration
            store: Session store (a new one using clock if omitted)
            rng: Random source for question tie-breaks and ledger tie order
            clock: Monotonic time source for response windows
        """
        self.catalog = catalog
        self.config = config or Config()
        self.rng = rng or random.Random()
        self.selector = QuestionSelector(
            catalog,
            rng=self.rng,
            rare_question_divisor=self.config.engine.rare_question_divisor,
        )
        self.updater = BeliefUpdater(catalog, rng=self.rng)
        self.store = store or SessionStore(clock=clock)

    def _generate_id(self) -> str:
        """Generate a unique session ID."""
        return uuid.uuid4().hex[:8]

    def active_session_id(self, player: str) -> Optional[str]:
        return self.store.active_session_id(player)

    def get_session(self, session_id: str) -> GameSession:
        return self.store.lookup(session_id).session

    def start_session(self, player: str) -> Outcome:
        """Start a game for a player.

        A previous game whose response window has lapsed is ended as timed
        out first, so it never blocks a new one.

        Raises:
            SessionConflict: The player already has an active game
        """
        existing = self.store.entry_for(player)
        if existing is not None:
            if not self.store.is_expired(existing):
                logger.warning(
                    "Player %s already playing in session %s", player, existing.session_id
                )
                raise SessionConflict(player, existing.session_id)
            self._expire(existing)

        session = GameSession(
            self._generate_id(),
            player,
            self.catalog,
            selector=self.selector,
            updater=self.updater,
            config=self.config.engine,
        )
        return self._run(session, session.start)

    def submit_answer(
        self,
        session_id: str,
        grade: str,
        player: Optional[str] = None,
        prompt_id: Optional[int] = None
    ) -> Outcome:
        """Answer the current question with a grade.

        Args:
            session_id: Session being answered
            grade: One of the grade names in GRADE_WEIGHTS
            player: Responding player; rejected if it is not the session's player
            prompt_id: Id of the prompt being answered. Only when it is passed
                are stale or second responses to a prompt rejected, so
                transports should always send it.

        Raises:
            ResponseRejected: Wrong player, or a prompt that is no longer current
        """
        grade_weight(grade)
        entry = self._accept(session_id, player, prompt_id)
        if self.store.is_expired(entry):
            return self._expire(entry)
        return self._run(entry.session, lambda: entry.session.answer(grade))

    def go_back(
        self,
        session_id: str,
        player: Optional[str] = None,
        prompt_id: Optional[int] = None
    ) -> Outcome:
        """Undo the last answer.

        As with submit_answer, pass prompt_id to reject a repeated request.

        Raises:
            InvalidBacktrack: No back-track point; the session is unchanged
        """
        entry = self._accept(session_id, player, prompt_id)
        if self.store.is_expired(entry):
            return self._expire(entry)
        try:
            return self._run(entry.session, entry.session.back)
        except InvalidBacktrack:
            logger.warning("Session %s: back rejected", session_id)
            self.store.arm(session_id, self.config.transport.question_timeout)
            raise

    def end_session(self, session_id: str, player: Optional[str] = None) -> Ended:
        """End a game at the player's request."""
        entry = self._accept(session_id, player, None)
        if self.store.is_expired(entry):
            return self._expire(entry)
        return self._run(entry.session, entry.session.end)

    def continue_after_guess(
        self,
        session_id: str,
        player: Optional[str] = None,
        prompt_id: Optional[int] = None
    ) -> Outcome:
        """Keep playing after a wrong guess.

        As with submit_answer, pass prompt_id to reject a repeated request.
        """
        entry = self._accept(session_id, player, prompt_id)
        if self.store.is_expired(entry):
            return self._expire(entry)
        return self._run(entry.session, entry.session.continue_after_guess)

    def expire_stale(self, now: Optional[float] = None) -> list[Ended]:
        """End every session whose response window has lapsed.

        Returns:
            The Ended outcomes, so the transport can freeze their prompts
        """
        return [self._expire(entry) for entry in self.store.expired(now)]

    def _accept(
        self,
        session_id: str,
        player: Optional[str],
        prompt_id: Optional[int]
    ) -> RegistryEntry:
        entry = self.store.lookup(session_id)
        if player is not None and player != entry.player:
            raise ResponseRejected(f"Only {entry.player} can answer in this game")
        if prompt_id is not None and prompt_id != entry.session.prompt_id:
            raise ResponseRejected(
                f"Prompt {prompt_id} was already answered (current prompt {entry.session.prompt_id})"
            )
        return entry

    def _expire(self, entry: RegistryEntry) -> Ended:
        logger.info("Session %s: %s window expired", entry.session_id, entry.window)
        self.store.release(entry.session_id)
        return entry.session.end("timeout")

    def _run(self, session: GameSession, action: Callable[[], Outcome]) -> Outcome:
        try:
            outcome = action()
        except DataIntegrityError:
            logger.error("Session %s aborted: ledger out of sync with catalog", session.session_id)
            self.store.release(session.session_id)
            raise
        return self._settle(session, outcome)

    def _settle(self, session: GameSession, outcome: Outcome) -> Outcome:
        transport = self.config.transport
        if outcome.kind == "question":
            self.store.register(session)
            self.store.arm(session.session_id, transport.question_timeout, "answer")
        elif outcome.kind == "guess":
            self.store.register(session)
            self.store.arm(session.session_id, transport.continue_timeout, "continue")
        else:
            self.store.release(session.session_id)
        return outcome
