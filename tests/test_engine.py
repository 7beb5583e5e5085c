"""Tests for the transport-facing engine and session store."""

import random
from pathlib import Path

import pytest
from guesser.config import Config
from guesser.engine import GameEngine
from guesser.errors import (
    DataIntegrityError,
    InvalidAction,
    InvalidBacktrack,
    ResponseRejected,
    SessionConflict,
    UnknownSession,
)
from guesser.loader import build_catalog, load_catalog
from guesser.models import AttributeStatement, ScoreEntry
from guesser.registry import SessionStore
from guesser.session import GameSession

DATA_DIR = Path(__file__).parent.parent / "data"


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def sample_catalog():
    return load_catalog(DATA_DIR / "items.jsonl", DATA_DIR / "questions.jsonl")


def tiny_catalog():
    """Two candidates: only "a" has a statement, so one answer settles it."""
    return build_catalog(
        [("a", "Alpha"), ("b", "Beta")],
        [AttributeStatement("a", "Is it first?", "It comes first.")],
    )


def make_engine(catalog=None, clock=None):
    clock = clock or FakeClock()
    return GameEngine(catalog or sample_catalog(), Config(), rng=random.Random(0), clock=clock)


class TestSessionStore:
    def make_session(self, player="alice", session_id="s1"):
        return GameSession(session_id, player, tiny_catalog())

    def test_register_and_lookup(self):
        store = SessionStore(clock=FakeClock())
        session = self.make_session()
        store.register(session)
        assert "alice" in store
        assert store.active_session_id("alice") == "s1"
        assert store.lookup("s1").session is session
        assert len(store) == 1

    def test_register_same_session_twice_is_noop(self):
        store = SessionStore(clock=FakeClock())
        session = self.make_session()
        first = store.register(session)
        assert store.register(session) is first

    def test_second_session_for_player_rejected(self):
        store = SessionStore(clock=FakeClock())
        store.register(self.make_session())
        with pytest.raises(SessionConflict) as exc_info:
            store.register(self.make_session(session_id="s2"))
        assert exc_info.value.session_id == "s1"

    def test_players_are_independent(self):
        store = SessionStore(clock=FakeClock())
        store.register(self.make_session("alice", "s1"))
        store.register(self.make_session("bob", "s2"))
        assert len(store) == 2

    def test_release(self):
        store = SessionStore(clock=FakeClock())
        store.register(self.make_session())
        store.release("s1")
        assert "alice" not in store
        with pytest.raises(UnknownSession):
            store.lookup("s1")
        assert store.release("s1") is None

    def test_window_expiry(self):
        clock = FakeClock()
        store = SessionStore(clock=clock)
        store.register(self.make_session())
        entry = store.arm("s1", 120)
        assert store.is_expired(entry) == False
        clock.advance(119)
        assert store.is_expired(entry) == False
        clock.advance(1)
        assert store.is_expired(entry) == True
        assert store.expired() == [entry]

    def test_unarmed_entry_never_expires(self):
        store = SessionStore(clock=FakeClock())
        entry = store.register(self.make_session())
        assert store.is_expired(entry, now=1e9) == False


class TestStartSession:
    def test_start_registers_player(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        assert outcome.kind == "question"
        assert engine.active_session_id("alice") == outcome.session_id

    def test_second_start_rejected_with_existing_session(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        with pytest.raises(SessionConflict) as exc_info:
            engine.start_session("alice")
        assert exc_info.value.session_id == outcome.session_id

    def test_other_players_can_start(self):
        engine = make_engine()
        first = engine.start_session("alice")
        second = engine.start_session("bob")
        assert first.session_id != second.session_id

    def test_immediate_concession_not_registered(self):
        catalog = build_catalog([("a", "Alpha"), ("b", "Beta")], [])
        engine = make_engine(catalog)
        outcome = engine.start_session("alice")
        assert outcome.kind == "conceded"
        assert engine.active_session_id("alice") is None


class TestResponses:
    def test_answer_advances(self):
        engine = make_engine()
        first = engine.start_session("alice")
        second = engine.submit_answer(first.session_id, "yes", player="alice")
        assert second.asked_count == 1

    def test_unknown_grade(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        with pytest.raises(ValueError):
            engine.submit_answer(outcome.session_id, "sure")

    def test_other_player_rejected(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        with pytest.raises(ResponseRejected):
            engine.submit_answer(outcome.session_id, "yes", player="mallory")
        assert engine.get_session(outcome.session_id).asked_count == 0

    def test_second_response_to_same_prompt_rejected(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        engine.submit_answer(outcome.session_id, "yes", player="alice", prompt_id=outcome.prompt_id)
        with pytest.raises(ResponseRejected):
            engine.submit_answer(outcome.session_id, "no", player="alice", prompt_id=outcome.prompt_id)
        assert engine.get_session(outcome.session_id).asked_count == 1

    def test_response_without_prompt_id_is_not_checked(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        engine.submit_answer(outcome.session_id, "dont_know")
        engine.submit_answer(outcome.session_id, "dont_know")
        assert engine.get_session(outcome.session_id).asked_count == 2

    def test_unknown_session(self):
        engine = make_engine()
        with pytest.raises(UnknownSession):
            engine.submit_answer("nope", "yes")

    def test_go_back_restores(self):
        engine = make_engine()
        first = engine.start_session("alice")
        engine.submit_answer(first.session_id, "yes")
        outcome = engine.go_back(first.session_id)
        assert outcome.asked_count == 0
        assert engine.get_session(first.session_id).asked == []

    def test_second_back_rejected(self):
        engine = make_engine()
        first = engine.start_session("alice")
        engine.submit_answer(first.session_id, "yes")
        engine.go_back(first.session_id)
        with pytest.raises(InvalidBacktrack):
            engine.go_back(first.session_id)
        assert engine.active_session_id("alice") == first.session_id

    def test_end_session_releases(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        ended = engine.end_session(outcome.session_id, player="alice")
        assert ended.kind == "ended"
        assert ended.reason == "ended"
        assert engine.active_session_id("alice") is None
        # A new game can start once the old one is over
        assert engine.start_session("alice").kind == "question"


class TestGuessFlow:
    def test_guess_then_continue_then_concede(self):
        engine = make_engine(tiny_catalog())
        question = engine.start_session("alice")
        assert question.question == "Is it first?"

        guess = engine.submit_answer(question.session_id, "yes")
        assert guess.kind == "guess"
        assert guess.candidate_id == "a"
        assert guess.name == "Alpha"
        assert guess.reveal_statements == ("It comes first.",)
        assert guess.score == 2
        assert guess.runner_up_name == "Beta"
        assert guess.runner_up_score == 0
        assert engine.active_session_id("alice") == question.session_id

        conceded = engine.continue_after_guess(question.session_id)
        assert conceded.kind == "conceded"
        assert conceded.asked_count == 2
        assert engine.active_session_id("alice") is None

    def test_no_answer_guesses_other_candidate(self):
        engine = make_engine(tiny_catalog())
        question = engine.start_session("alice")
        guess = engine.submit_answer(question.session_id, "no")
        assert guess.kind == "guess"
        assert guess.candidate_id == "b"

    def test_answer_rejected_while_guessing(self):
        engine = make_engine(tiny_catalog())
        question = engine.start_session("alice")
        engine.submit_answer(question.session_id, "yes")
        with pytest.raises(InvalidAction):
            engine.submit_answer(question.session_id, "yes")


class TestTimeouts:
    def test_question_window_expires(self):
        clock = FakeClock()
        engine = make_engine(clock=clock)
        outcome = engine.start_session("alice")
        clock.advance(120)

        ended = engine.submit_answer(outcome.session_id, "yes")
        assert ended.kind == "ended"
        assert ended.reason == "timeout"
        assert engine.active_session_id("alice") is None
        with pytest.raises(UnknownSession):
            engine.submit_answer(outcome.session_id, "yes")

    def test_answer_inside_window_accepted(self):
        clock = FakeClock()
        engine = make_engine(clock=clock)
        outcome = engine.start_session("alice")
        clock.advance(119)
        assert engine.submit_answer(outcome.session_id, "yes").kind != "ended"

    def test_each_question_gets_a_fresh_window(self):
        clock = FakeClock()
        engine = make_engine(clock=clock)
        outcome = engine.start_session("alice")
        clock.advance(100)
        engine.submit_answer(outcome.session_id, "yes")
        clock.advance(100)
        assert engine.submit_answer(outcome.session_id, "no").kind != "ended"

    def test_continue_window_is_shorter(self):
        clock = FakeClock()
        engine = make_engine(tiny_catalog(), clock=clock)
        question = engine.start_session("alice")
        guess = engine.submit_answer(question.session_id, "yes")
        assert guess.kind == "guess"

        clock.advance(30)
        ended = engine.continue_after_guess(question.session_id)
        assert ended.kind == "ended"
        assert ended.reason == "timeout"

    def test_rejected_back_rearms_window(self):
        clock = FakeClock()
        engine = make_engine(clock=clock)
        outcome = engine.start_session("alice")
        clock.advance(100)
        with pytest.raises(InvalidBacktrack):
            engine.go_back(outcome.session_id)
        clock.advance(100)
        assert engine.submit_answer(outcome.session_id, "yes").kind != "ended"

    def test_lapsed_game_does_not_block_a_new_one(self):
        clock = FakeClock()
        engine = make_engine(clock=clock)
        first = engine.start_session("alice")
        clock.advance(500)

        second = engine.start_session("alice")
        assert second.kind == "question"
        assert second.session_id != first.session_id
        assert engine.active_session_id("alice") == second.session_id
        with pytest.raises(UnknownSession):
            engine.submit_answer(first.session_id, "yes")

    def test_game_inside_window_still_conflicts(self):
        clock = FakeClock()
        engine = make_engine(clock=clock)
        first = engine.start_session("alice")
        clock.advance(119)
        with pytest.raises(SessionConflict):
            engine.start_session("alice")
        assert engine.active_session_id("alice") == first.session_id

    def test_expire_stale_sweeps_all_lapsed_sessions(self):
        clock = FakeClock()
        engine = make_engine(clock=clock)
        alice = engine.start_session("alice")
        clock.advance(60)
        bob = engine.start_session("bob")
        clock.advance(60)

        ended = engine.expire_stale()
        assert [e.session_id for e in ended] == [alice.session_id]
        assert engine.active_session_id("alice") is None
        assert engine.active_session_id("bob") == bob.session_id


class TestDataIntegrity:
    def test_desynchronized_leader_aborts_session(self):
        engine = make_engine()
        outcome = engine.start_session("alice")
        session = engine.get_session(outcome.session_id)
        session.ledger = [ScoreEntry("ghost", 50)] + session.ledger
        session.asked_count = 5

        with pytest.raises(DataIntegrityError):
            engine.submit_answer(outcome.session_id, "dont_know")
        assert session.state == "aborted"
        assert engine.active_session_id("alice") is None
