"""Adaptive 20-questions style guessing engine."""

from .models import (
    Candidate,
    AttributeStatement,
    ScoreEntry,
    TurnSnapshot,
    QuestionPrompt,
    GuessOutcome,
    Conceded,
    Aborted,
    Ended,
    GRADE_WEIGHTS,
)
from .config import Config, load_config
from .loader import Catalog, load_catalog, build_catalog
from .selector import QuestionSelector
from .updater import BeliefUpdater
from .session import GameSession
from .registry import SessionStore
from .engine import GameEngine
from .errors import (
    GameError,
    DataIntegrityError,
    InvalidBacktrack,
    NoUsableSignal,
    SessionConflict,
)

__all__ = [
    "Candidate",
    "AttributeStatement",
    "ScoreEntry",
    "TurnSnapshot",
    "QuestionPrompt",
    "GuessOutcome",
    "Conceded",
    "Aborted",
    "Ended",
    "GRADE_WEIGHTS",
    "Config",
    "load_config",
    "Catalog",
    "load_catalog",
    "build_catalog",
    "QuestionSelector",
    "BeliefUpdater",
    "GameSession",
    "SessionStore",
    "GameEngine",
    "GameError",
    "DataIntegrityError",
    "InvalidBacktrack",
    "NoUsableSignal",
    "SessionConflict",
]
