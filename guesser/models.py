"""Data models for the guessing game."""

from dataclasses import dataclass, field
from typing import Literal, Optional


# Signed weight carried by each answer grade. Negative evidence weighs more.
GRADE_WEIGHTS: dict[str, int] = {
    "yes": 2,
    "probably": 1,
    "dont_know": 0,
    "probably_not": -1,
    "no": -3,
}

GRADE_LABELS: dict[str, str] = {
    "yes": "Yes",
    "probably": "I think so",
    "dont_know": "I don't know",
    "probably_not": "I don't think so",
    "no": "No",
}

GameState = Literal[
    "awaiting_question",
    "question_posed",
    "declared",
    "conceded",
    "aborted",
    "ended",
]

TERMINAL_STATES = frozenset({"conceded", "aborted", "ended"})


def grade_weight(grade: str) -> int:
    """Look up the signed weight of a grade identifier."""
    try:
        return GRADE_WEIGHTS[grade]
    except KeyError:
        raise ValueError(
            f"Unknown grade: {grade!r}. Expected one of {list(GRADE_WEIGHTS)}"
        ) from None


@dataclass(frozen=True)
class Candidate:
    """A catalog item the engine tries to identify."""
    candidate_id: str
    name: str
    reveal_statements: tuple[str, ...] = ()


@dataclass(frozen=True)
class AttributeStatement:
    """A yes/no fact about one candidate, exposed as a question.

    `dependencies` maps other question texts to the answer this attribute
    predicts for them when it holds.
    """
    candidate_id: str
    question: str
    statement: str = ""
    dependencies: dict[str, bool] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class ScoreEntry:
    """Belief score for one candidate."""
    candidate_id: str
    score: int = 0


@dataclass(frozen=True)
class TurnSnapshot:
    """State captured when a question is posed, used for a single back-track."""
    question: str
    ledger: tuple[ScoreEntry, ...]
    asked: tuple[str, ...]
    asked_count: int


@dataclass
class QuestionPrompt:
    """A question posed to the player."""
    session_id: str
    prompt_id: int
    asked_count: int
    question: str
    options: list[str] = field(default_factory=lambda: list(GRADE_WEIGHTS))
    can_go_back: bool = False
    kind: Literal["question"] = "question"


@dataclass
class GuessOutcome:
    """The engine commits to a guess and offers to keep playing."""
    session_id: str
    prompt_id: int
    asked_count: int
    candidate_id: str
    name: str
    reveal_statements: tuple[str, ...]
    score: int
    runner_up_name: Optional[str] = None
    runner_up_score: Optional[int] = None
    can_continue: bool = True
    kind: Literal["guess"] = "guess"


@dataclass
class Conceded:
    """No question left and no clear leader: the player wins."""
    session_id: str
    prompt_id: int
    asked_count: int
    kind: Literal["conceded"] = "conceded"


@dataclass
class Aborted:
    """Session stopped by the engine."""
    session_id: str
    prompt_id: int
    asked_count: int
    reason: Literal["no_usable_signal"] = "no_usable_signal"
    message: str = ""
    kind: Literal["aborted"] = "aborted"


@dataclass
class Ended:
    """Session stopped by the player or by an expired response window."""
    session_id: str
    prompt_id: int
    asked_count: int
    reason: Literal["ended", "timeout"] = "ended"
    kind: Literal["ended"] = "ended"


Outcome = QuestionPrompt | GuessOutcome | Conceded | Aborted | Ended
