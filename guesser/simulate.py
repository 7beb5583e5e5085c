"""Self-play simulation.

An oracle player thinks of a secret candidate and answers from the catalog:
"yes" when the secret has a statement with the question's text, "no"
otherwise. Optional noise swaps in hedged answers. Games run through a real
GameEngine, so the termination policy is exercised exactly as in play.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import Config, SimulationConfig
from .engine import GameEngine
from .loader import Catalog
from .models import Outcome

logger = logging.getLogger(__name__)

# Hedged grades used when noise kicks in, by true answer
HEDGES = {
    True: ["probably", "dont_know"],
    False: ["probably_not", "dont_know"],
}


class OraclePlayer:
    """Answers questions truthfully for a secret candidate."""

    def __init__(
        self,
        catalog: Catalog,
        secret_id: str,
        noise: float = 0.0,
        rng: Optional[random.Random] = None
    ):
        if catalog.get_candidate(secret_id) is None:
            raise ValueError(f"Unknown secret: {secret_id}")
        self.secret_id = secret_id
        self.noise = noise
        self.rng = rng or random.Random()
        self.known = {s.question for s in catalog.attributes_of(secret_id)}

    def truth(self, question: str) -> bool:
        return question in self.known

    def grade(self, question: str) -> str:
        """Grade for a question, occasionally hedged."""
        truth = self.truth(question)
        if self.noise and self.rng.random() < self.noise:
            return self.rng.choice(HEDGES[truth])
        return "yes" if truth else "no"


@dataclass
class GameRecord:
    """Result of one simulated game."""
    secret_id: str
    outcome: str  # "won", "conceded", "aborted", "ended", "turn_limit"
    questions_asked: int
    wrong_guesses: list[str] = field(default_factory=list)
    guessed_id: Optional[str] = None
    transcript: list[tuple[str, str]] = field(default_factory=list)

    @property
    def won(self) -> bool:
        return self.outcome == "won"


def simulate_game(
    engine: GameEngine,
    player: OraclePlayer,
    max_turns: int = 40,
    player_name: Optional[str] = None
) -> GameRecord:
    """Play one game to completion.

    Wrong guesses are answered with "continue". The game is ended after
    max_turns engine outcomes to bound pathological catalogs.

    Args:
        engine: Engine to play against
        player: Oracle answering for the secret
        max_turns: Maximum number of engine outcomes to process
        player_name: Player identity (defaults to one derived from the secret)

    Returns:
        GameRecord describing the game
    """
    name = player_name or f"oracle:{player.secret_id}"
    record = GameRecord(secret_id=player.secret_id, outcome="turn_limit", questions_asked=0)

    outcome: Outcome = engine.start_session(name)
    for _ in range(max_turns):
        record.questions_asked = outcome.asked_count

        if outcome.kind == "question":
            grade = player.grade(outcome.question)
            record.transcript.append((outcome.question, grade))
            outcome = engine.submit_answer(outcome.session_id, grade, player=name)
        elif outcome.kind == "guess":
            if outcome.candidate_id == player.secret_id:
                record.outcome = "won"
                record.guessed_id = outcome.candidate_id
                engine.end_session(outcome.session_id, player=name)
                return record
            record.wrong_guesses.append(outcome.candidate_id)
            outcome = engine.continue_after_guess(outcome.session_id, player=name)
        else:
            record.outcome = outcome.kind
            return record

    if outcome.kind in ("question", "guess"):
        engine.end_session(outcome.session_id, player=name)
    logger.warning("Game for %s hit the %d turn limit", player.secret_id, max_turns)
    return record


def simulate_batch(
    catalog: Catalog,
    config: Optional[Config] = None,
    secrets: Optional[list[str]] = None
) -> list[GameRecord]:
    """Run many simulated games.

    Args:
        catalog: Catalog to play over
        config: Configuration (simulation section controls games/noise/seed)
        secrets: Secrets to play, one game each; random secrets if omitted

    Returns:
        One GameRecord per game
    """
    config = config or Config()
    sim: SimulationConfig = config.simulation
    rng = random.Random(sim.seed)
    engine = GameEngine(catalog, config, rng=random.Random(rng.random()))

    if secrets is None:
        ids = [c.candidate_id for c in catalog.list_candidates()]
        secrets = [rng.choice(ids) for _ in range(sim.games)]

    records = []
    for i, secret_id in enumerate(secrets):
        player = OraclePlayer(catalog, secret_id, noise=sim.noise, rng=random.Random(rng.random()))
        records.append(simulate_game(engine, player, sim.max_turns, player_name=f"oracle-{i}"))
    return records


def summarize(records: list[GameRecord]) -> dict:
    """Aggregate statistics over simulated games."""
    if not records:
        return {"games": 0}

    questions = np.array([r.questions_asked for r in records])
    won = np.array([r.won for r in records])
    wrong = np.array([len(r.wrong_guesses) for r in records])

    outcomes: dict[str, int] = {}
    for r in records:
        outcomes[r.outcome] = outcomes.get(r.outcome, 0) + 1

    summary = {
        "games": len(records),
        "win_rate": float(won.mean()),
        "mean_questions": float(questions.mean()),
        "median_questions": float(np.median(questions)),
        "p90_questions": float(np.percentile(questions, 90)),
        "mean_wrong_guesses": float(wrong.mean()),
        "by_outcome": outcomes,
    }
    if won.any():
        summary["mean_questions_when_won"] = float(questions[won].mean())
    return summary
