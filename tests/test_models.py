"""Tests for data models and ledger helpers."""

import random
from typing import get_args, get_type_hints

import pytest
from guesser.ledger import (
    initial_ledger,
    leader,
    leader_score,
    runner_up,
    runner_up_score,
    scores_by_id,
    sort_ledger,
    without,
)
from guesser.models import (
    GRADE_WEIGHTS,
    Aborted,
    AttributeStatement,
    Candidate,
    GuessOutcome,
    QuestionPrompt,
    ScoreEntry,
    grade_weight,
)


class TestGrades:
    def test_weights(self):
        assert grade_weight("yes") == 2
        assert grade_weight("probably") == 1
        assert grade_weight("dont_know") == 0
        assert grade_weight("probably_not") == -1
        assert grade_weight("no") == -3

    def test_negative_evidence_weighs_more(self):
        assert abs(GRADE_WEIGHTS["no"]) > GRADE_WEIGHTS["yes"]

    def test_unknown_grade(self):
        with pytest.raises(ValueError):
            grade_weight("maybe")


class TestModels:
    def test_statement_defaults(self):
        statement = AttributeStatement("a", "Is it red?")
        assert statement.statement == ""
        assert statement.dependencies == {}

    def test_question_prompt_defaults(self):
        prompt = QuestionPrompt("s1", 1, 0, "Is it red?")
        assert prompt.kind == "question"
        assert prompt.options == list(GRADE_WEIGHTS)
        assert prompt.can_go_back == False

    def test_guess_defaults(self):
        guess = GuessOutcome("s1", 3, 7, "a", "Alpha", ("It is red.",), 9)
        assert guess.kind == "guess"
        assert guess.runner_up_name is None
        assert guess.can_continue == True

    def test_aborted_reasons(self):
        assert get_args(get_type_hints(Aborted)["reason"]) == ("no_usable_signal",)
        assert Aborted("s1", 4, 10).reason == "no_usable_signal"


class TestLedger:
    def test_initial_ledger(self):
        ledger = initial_ledger([Candidate("a", "A"), Candidate("b", "B")])
        assert ledger == [ScoreEntry("a", 0), ScoreEntry("b", 0)]

    def test_sort_descending(self):
        ledger = [ScoreEntry("a", 1), ScoreEntry("b", 5), ScoreEntry("c", -2)]
        assert [e.candidate_id for e in sort_ledger(ledger, random.Random(0))] == ["b", "a", "c"]

    def test_sort_does_not_modify_input(self):
        ledger = [ScoreEntry("a", 1), ScoreEntry("b", 5)]
        sort_ledger(ledger)
        assert ledger == [ScoreEntry("a", 1), ScoreEntry("b", 5)]

    def test_sorted_input_keeps_members(self):
        ledger = [ScoreEntry("b", 5), ScoreEntry("a", 1)]
        assert sort_ledger(ledger) == ledger

    def test_ties_randomized(self):
        ledger = [ScoreEntry(cid, 0) for cid in "abcdef"]
        rng = random.Random(11)
        orders = {tuple(e.candidate_id for e in sort_ledger(ledger, rng)) for _ in range(50)}
        assert len(orders) > 1

    def test_leader_and_runner_up(self):
        ledger = [ScoreEntry("b", 5), ScoreEntry("a", 1)]
        assert leader(ledger) == ScoreEntry("b", 5)
        assert runner_up(ledger) == ScoreEntry("a", 1)
        assert leader_score(ledger) == 5
        assert runner_up_score(ledger) == 1

    def test_scores_default_to_zero(self):
        assert leader([]) is None
        assert leader_score([]) == 0
        assert runner_up([ScoreEntry("a", 3)]) is None
        assert runner_up_score([ScoreEntry("a", 3)]) == 0

    def test_scores_by_id(self):
        assert scores_by_id([ScoreEntry("a", 2), ScoreEntry("b", -1)]) == {"a": 2, "b": -1}

    def test_without(self):
        ledger = [ScoreEntry("b", 5), ScoreEntry("a", 1)]
        assert without(ledger, "b") == [ScoreEntry("a", 1)]
        assert without(ledger, "zzz") == ledger
