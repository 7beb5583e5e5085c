"""Question selection by weighted split.

Every candidate contributes its unasked questions to a pool, replicated once
per point of score (at least once). The question answered "yes" by closest to
half of that pool splits the weighted candidates most evenly and is asked next.
"""

import logging
import random
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from .ledger import scores_by_id
from .loader import Catalog
from .models import ScoreEntry

logger = logging.getLogger(__name__)


@dataclass
class QuestionCandidate:
    """A question with its weighted frequency in the current pool."""
    question: str
    frequency: int  # weighted number of statements with this question
    pool_size: int

    @property
    def split_ratio(self) -> float:
        """Proportion of the weighted pool that would answer YES."""
        if self.pool_size == 0:
            return 0.0
        return self.frequency / self.pool_size

    @property
    def distance(self) -> int:
        """Distance from a perfect half split, in units of half a pool entry."""
        return abs(2 * self.frequency - self.pool_size)


class QuestionSelector:
    """Picks the most discriminating unasked question for a ledger."""

    def __init__(
        self,
        catalog: Catalog,
        rng: Optional[random.Random] = None,
        rare_question_divisor: int = 9
    ):
        """Initialize the selector.

        Args:
            catalog: Catalog providing candidates and their statements
            rng: Random source for tie-breaking
            rare_question_divisor: Questions held by less than
                pool_size / rare_question_divisor weighted entries are dropped
        """
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.rare_question_divisor = rare_question_divisor

    def weighted_pool(
        self,
        ledger: Iterable[ScoreEntry],
        asked: Iterable[str]
    ) -> tuple[Counter, int]:
        """Tally question frequencies over the weighted pool.

        Candidates missing from the ledger count with score 0.

        Returns:
            (frequency per question text, total pool size)
        """
        asked = set(asked)
        scores = scores_by_id(ledger)
        frequencies: Counter = Counter()
        total = 0

        for candidate in self.catalog.list_candidates():
            weight = max(round(scores.get(candidate.candidate_id, 0)), 1)
            for statement in self.catalog.attributes_of(candidate.candidate_id):
                if statement.question in asked:
                    continue
                frequencies[statement.question] += weight
                total += weight

        return frequencies, total

    def rank(
        self,
        ledger: Iterable[ScoreEntry],
        asked: Iterable[str]
    ) -> list[QuestionCandidate]:
        """Scan the pool in random order and keep the best-split questions.

        A new best that is too rare to trust empties the kept set instead of
        replacing it, and the scan continues from an empty set.

        Returns:
            Questions tied at the best distance (possibly empty)
        """
        frequencies, total = self.weighted_pool(ledger, asked)
        if not frequencies:
            return []

        entries = list(frequencies.items())
        self.rng.shuffle(entries)

        best: list[QuestionCandidate] = []
        for question, frequency in entries:
            current = QuestionCandidate(question, frequency, total)
            # An empty set sits at frequency 0, the widest possible distance
            best_distance = best[0].distance if best else total

            if current.distance < best_distance:
                if self.rare_question_divisor * frequency < total:
                    logger.debug(
                        "Discarding rare question %r (%d of %d)", question, frequency, total
                    )
                    best = []
                else:
                    best = [current]
            elif current.distance == best_distance:
                best.append(current)

        return best

    def select(
        self,
        ledger: Iterable[ScoreEntry],
        asked: Iterable[str]
    ) -> Optional[str]:
        """Next question to ask, or None when nothing discriminating is left."""
        ranked = self.rank(ledger, asked)
        if not ranked:
            return None

        choice = ranked[0]
        logger.debug(
            "Selected %r (split %.2f, %d tied)", choice.question, choice.split_ratio, len(ranked)
        )
        return choice.question
