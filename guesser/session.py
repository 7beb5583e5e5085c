"""Turn-by-turn state machine for one game.

A session alternates between choosing a question and absorbing the answer.
Each time it is about to ask, it first checks whether to commit to a guess,
give up for lack of signal, or concede because nothing is left to ask.
"""

import logging
import random
from typing import Optional

from .config import EngineConfig
from .errors import DataIntegrityError, InvalidAction, InvalidBacktrack, NoUsableSignal
from .ledger import initial_ledger, leader, leader_score, runner_up, runner_up_score, without
from .loader import Catalog
from .models import (
    TERMINAL_STATES,
    Aborted,
    Conceded,
    Ended,
    GameState,
    GuessOutcome,
    Outcome,
    QuestionPrompt,
    ScoreEntry,
    TurnSnapshot,
    grade_weight,
)
from .selector import QuestionSelector
from .updater import BeliefUpdater

logger = logging.getLogger(__name__)


class GameSession:
    """One player's game: ledger, asked questions, and the current prompt."""

    def __init__(
        self,
        session_id: str,
        player: str,
        catalog: Catalog,
        selector: Optional[QuestionSelector] = None,
        updater: Optional[BeliefUpdater] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None
    ):
        """Initialize the session in the awaiting-question state.

        Args:
            session_id: Identifier handed to the transport
            player: Identity of the player who owns the session
            catalog: Candidate catalog
            selector: Question selector (built from catalog if omitted)
            updater: Belief updater (built from catalog if omitted)
            config: Termination policy settings
            rng: Random source shared by default selector and updater
        """
        self.session_id = session_id
        self.player = player
        self.catalog = catalog
        self.config = config or EngineConfig()
        rng = rng or random.Random()
        self.selector = selector or QuestionSelector(
            catalog, rng=rng, rare_question_divisor=self.config.rare_question_divisor
        )
        self.updater = updater or BeliefUpdater(catalog, rng=rng)

        self.state: GameState = "awaiting_question"
        self.ledger: list[ScoreEntry] = initial_ledger(catalog.list_candidates())
        self.asked: list[str] = []
        self.asked_count = 0
        self.question: Optional[str] = None
        self.guess: Optional[ScoreEntry] = None
        self.prompt_id = 0
        self.last_outcome: Optional[Outcome] = None

        # Back-track point offered with the current question
        self.snapshot: Optional[TurnSnapshot] = None
        # State captured when the current question was posed
        self._posed: Optional[TurnSnapshot] = None

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def can_go_back(self) -> bool:
        return self.state == "question_posed" and self.snapshot is not None

    def start(self) -> Outcome:
        """Evaluate the opening position."""
        if self.prompt_id != 0 or self.state != "awaiting_question":
            raise InvalidAction(f"Session {self.session_id} already started")
        logger.info("Session %s started for %s", self.session_id, self.player)
        return self.evaluate()

    def answer(self, grade: str) -> Outcome:
        """Apply the player's graded answer to the current question."""
        self._require("question_posed", "answer")
        weight = grade_weight(grade)

        posed = self._posed
        self.ledger = self.updater.answer(self.question, weight, self.ledger, self.asked)
        self.asked_count += 1
        self.snapshot = posed
        logger.debug(
            "Session %s: %r answered %s, leader %s",
            self.session_id, self.question, grade, self.ledger[:1],
        )
        return self.evaluate()

    def back(self) -> Outcome:
        """Undo the most recent answer. Only one level deep."""
        self._require("question_posed", "go back")
        if self.snapshot is None:
            raise InvalidBacktrack("Can't go back here")

        snapshot = self.snapshot
        self.ledger = list(snapshot.ledger)
        self.asked = list(snapshot.asked)
        self.asked_count = snapshot.asked_count
        self.snapshot = None
        logger.debug("Session %s: back to before %r", self.session_id, snapshot.question)
        return self.evaluate()

    def continue_after_guess(self) -> Outcome:
        """Resume after a wrong guess, without the guessed candidate."""
        self._require("declared", "continue")
        self.ledger = without(self.ledger, self.guess.candidate_id)
        self.asked_count += 1
        self.snapshot = None
        self.guess = None
        return self.evaluate()

    def end(self, reason: str = "ended") -> Ended:
        """Stop the session on player request or expired window."""
        if self.is_finished:
            raise InvalidAction(f"Session {self.session_id} is already {self.state}")
        self.state = "ended"
        self.prompt_id += 1
        logger.info("Session %s ended (%s)", self.session_id, reason)
        return self._emit(Ended(self.session_id, self.prompt_id, self.asked_count, reason=reason))

    def _require(self, state: GameState, action: str) -> None:
        if self.state != state:
            raise InvalidAction(f"Can't {action} while session is {self.state}")

    def _emit(self, outcome: Outcome) -> Outcome:
        self.last_outcome = outcome
        return outcome

    def evaluate(self) -> Outcome:
        """Enter the awaiting-question state and decide the next outcome."""
        self.state = "awaiting_question"
        self.question = None
        config = self.config
        top = leader_score(self.ledger)
        second = runner_up_score(self.ledger)

        if self.asked_count >= config.min_questions_before_guess and second + config.lead_margin < top:
            return self._declare()

        try:
            self._check_signal(top)
        except NoUsableSignal as e:
            logger.info("Session %s aborted: %s", self.session_id, e)
            self.state = "aborted"
            self.prompt_id += 1
            return self._emit(Aborted(
                self.session_id, self.prompt_id, self.asked_count,
                reason="no_usable_signal", message=str(e),
            ))

        question = self.selector.select(self.ledger, self.asked)
        if question is None:
            if second < top:
                return self._declare()
            logger.info("Session %s conceded after %d questions", self.session_id, self.asked_count)
            self.state = "conceded"
            self.prompt_id += 1
            return self._emit(Conceded(self.session_id, self.prompt_id, self.asked_count))

        return self._pose(question)

    def _check_signal(self, top: int) -> None:
        if self.asked_count == self.config.signal_check_turn and top == 0:
            raise NoUsableSignal("I can't give you any questions if you don't answer them")

    def _pose(self, question: str) -> QuestionPrompt:
        self._posed = TurnSnapshot(
            question=question,
            ledger=tuple(self.ledger),
            asked=tuple(self.asked),
            asked_count=self.asked_count,
        )
        self.question = question
        self.state = "question_posed"
        self.prompt_id += 1
        return self._emit(QuestionPrompt(
            self.session_id, self.prompt_id, self.asked_count, question,
            can_go_back=self.snapshot is not None,
        ))

    def _declare(self) -> GuessOutcome:
        top = leader(self.ledger)
        candidate = self.catalog.get_candidate(top.candidate_id)
        if candidate is None:
            self.state = "aborted"
            raise DataIntegrityError(top.candidate_id)

        second = runner_up(self.ledger)
        second_candidate = self.catalog.get_candidate(second.candidate_id) if second else None

        self.guess = top
        self.state = "declared"
        self.prompt_id += 1
        logger.info(
            "Session %s guessed %s after %d questions (score %d)",
            self.session_id, candidate.candidate_id, self.asked_count, top.score,
        )
        return self._emit(GuessOutcome(
            self.session_id, self.prompt_id, self.asked_count,
            candidate_id=candidate.candidate_id,
            name=candidate.name,
            reveal_statements=candidate.reveal_statements,
            score=top.score,
            runner_up_name=second_candidate.name if second_candidate else None,
            runner_up_score=second.score if second_candidate else None,
        ))
