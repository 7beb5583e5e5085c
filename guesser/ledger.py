"""Belief ledger: candidate scores ordered from most to least likely.

A ledger is a plain list of ScoreEntry sorted by score, descending. Ties are
ordered randomly, so two runs over the same input may list equal-score
candidates differently.
"""

import random
from typing import Iterable, Optional

from .models import Candidate, ScoreEntry


def initial_ledger(candidates: Iterable[Candidate]) -> list[ScoreEntry]:
    """Create an all-zero ledger with one entry per candidate."""
    return [ScoreEntry(candidate.candidate_id, 0) for candidate in candidates]


def sort_ledger(
    ledger: Iterable[ScoreEntry],
    rng: Optional[random.Random] = None
) -> list[ScoreEntry]:
    """Sort entries by score, descending, with random order among ties.

    Args:
        ledger: Entries to sort (not modified)
        rng: Random source for tie order

    Returns:
        New sorted list
    """
    entries = list(ledger)
    (rng or random).shuffle(entries)
    # sorted() is stable, so ties keep the shuffled order
    return sorted(entries, key=lambda entry: entry.score, reverse=True)


def leader(ledger: list[ScoreEntry]) -> Optional[ScoreEntry]:
    """The highest-scoring entry, if any."""
    return ledger[0] if ledger else None


def runner_up(ledger: list[ScoreEntry]) -> Optional[ScoreEntry]:
    """The second highest-scoring entry, if any."""
    return ledger[1] if len(ledger) > 1 else None


def leader_score(ledger: list[ScoreEntry]) -> int:
    """Score of the leader, 0 for an empty ledger."""
    return ledger[0].score if ledger else 0


def runner_up_score(ledger: list[ScoreEntry]) -> int:
    """Score of the runner-up, 0 when there is none."""
    return ledger[1].score if len(ledger) > 1 else 0


def scores_by_id(ledger: Iterable[ScoreEntry]) -> dict[str, int]:
    """Map candidate id to score."""
    return {entry.candidate_id: entry.score for entry in ledger}


def without(ledger: list[ScoreEntry], candidate_id: str) -> list[ScoreEntry]:
    """Copy of the ledger with one candidate removed."""
    return [entry for entry in ledger if entry.candidate_id != candidate_id]
