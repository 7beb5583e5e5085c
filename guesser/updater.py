"""Belief updates from graded answers, with dependency propagation.

Answering one question can settle others: a candidate's attribute may declare
the expected answer to related questions. A positive answer pushes those
implied answers through the ledger as if the player had given them, and a
contradicted expectation penalizes the candidate and marks its dependent
questions as asked.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from .ledger import sort_ledger
from .loader import Catalog
from .models import ScoreEntry

logger = logging.getLogger(__name__)


def contradicts(expected: bool, weight: int) -> bool:
    """Whether an expected answer disagrees with the sign of a weight."""
    if weight > 0:
        return not expected
    if weight < 0:
        return expected is not False
    return False


@dataclass
class StepResult:
    """Outcome of applying one question to the ledger."""
    ledger: list[ScoreEntry]
    forced: list[str] = field(default_factory=list)
    implied: dict[str, bool] = field(default_factory=dict)


class BeliefUpdater:
    """Applies a weighted answer to the ledger and expands the asked set."""

    def __init__(self, catalog: Catalog, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    def apply_step(
        self,
        question: str,
        weight: int,
        ledger: list[ScoreEntry]
    ) -> StepResult:
        """Score every candidate against a single question.

        Args:
            question: Question text being answered
            weight: Signed answer weight
            ledger: Current ledger (not modified)

        Returns:
            StepResult with the unsorted new ledger, questions forced as asked,
            and (for positive weights) the answers implied by matched statements
        """
        result = StepResult(ledger=[])

        for entry in ledger:
            statements = self.catalog.attributes_of(entry.candidate_id)
            matched = next((s for s in statements if s.question == question), None)

            if weight > 0 and matched is not None:
                result.implied.update(matched.dependencies)

            delta = weight if matched is not None else 0
            expectations = self.catalog.merged_dependencies(entry.candidate_id)
            if question in expectations and contradicts(expectations[question], weight):
                delta -= abs(weight)
                result.forced.extend(
                    s.question for s in statements if question in s.dependencies
                )

            result.ledger.append(ScoreEntry(entry.candidate_id, entry.score + delta))

        return result

    def answer(
        self,
        question: str,
        weight: int,
        ledger: list[ScoreEntry],
        asked: list[str]
    ) -> list[ScoreEntry]:
        """Apply an answer and everything it implies.

        Implied answers are resolved depth first: each one, with everything it
        implies in turn, is settled before the next sibling is tried. Once an
        implied answer is settled, the questions its step forced are settled
        too, so later siblings skip them. A question already asked, or already
        processed during this call, is skipped, so dependency cycles terminate.

        Args:
            question: The question the player just answered
            weight: Signed weight of the player's grade
            ledger: Ledger before the answer (not modified)
            asked: Asked questions; extended in place

        Returns:
            New ledger sorted by score, descending
        """
        # ("answer", question, weight) or ("settle", forced questions)
        stack: list[tuple] = [("answer", question, weight)]
        processed: set[str] = set()
        settled: set[str] = set()
        newly_asked: list[str] = []

        while stack:
            item = stack.pop()
            if item[0] == "settle":
                settled.update(item[1])
                continue

            _, current, current_weight = item
            if current in processed or current in settled:
                continue
            processed.add(current)

            step = self.apply_step(current, current_weight, ledger)
            ledger = sort_ledger(step.ledger, self.rng)
            newly_asked.append(current)
            newly_asked.extend(step.forced)

            # Pops after every implied answer below it
            stack.append(("settle", step.forced))
            for implied_question, expected in reversed(step.implied.items()):
                if implied_question in asked:
                    continue
                implied_weight = current_weight if expected else -current_weight
                logger.debug(
                    "%r implies %r (weight %+d)", current, implied_question, implied_weight
                )
                stack.append(("answer", implied_question, implied_weight))

        seen = set(asked)
        for text in newly_asked:
            if text not in seen:
                seen.add(text)
                asked.append(text)

        return sort_ledger(ledger, self.rng)
