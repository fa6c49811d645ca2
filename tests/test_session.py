"""Tests for session aggregation, streaks, and invariants."""

import random

from song_guess.models import Difficulty
from song_guess.session import SessionAggregator
from tests.conftest import make_result, make_tracks


def test_start_derives_timing_from_difficulty() -> None:
    aggregator = SessionAggregator()
    session = aggregator.start(make_tracks("A", "B"), Difficulty.EASY)

    assert session.current_index == 0
    assert session.results == []
    assert session.score == 0
    assert session.max_answer_time == 30
    assert session.snippet_time == 30
    assert not aggregator.is_ended()


def test_streak_tracks_best_run() -> None:
    aggregator = SessionAggregator()
    aggregator.start(make_tracks("A", "B", "C", "D"), Difficulty.HARD)

    for index, correct in enumerate([True, True, False, True]):
        assert aggregator.record_result(make_result(f"t{index}", correct, score=300 if correct else 0))
        assert aggregator.advance()

    assert aggregator.best_streak == 2
    assert aggregator.streak == 1
    assert aggregator.session.score == 900
    assert aggregator.is_ended()


def test_duplicate_result_for_same_track_is_ignored() -> None:
    aggregator = SessionAggregator()
    aggregator.start(make_tracks("A", "B"), Difficulty.HARD)

    assert aggregator.record_result(make_result("t0", True, score=300))
    assert not aggregator.record_result(make_result("t0", True, score=300))
    assert len(aggregator.session.results) == 1
    assert aggregator.session.score == 300


def test_result_for_wrong_track_is_ignored() -> None:
    aggregator = SessionAggregator()
    aggregator.start(make_tracks("A", "B"), Difficulty.HARD)

    assert not aggregator.record_result(make_result("t1", True, score=300))
    assert aggregator.session.results == []


def test_advance_past_end_is_a_no_op() -> None:
    aggregator = SessionAggregator()
    aggregator.start(make_tracks("A"), Difficulty.HARD)

    assert aggregator.advance()
    assert not aggregator.advance()
    assert aggregator.session.current_index == 1
    assert not aggregator.record_result(make_result("t0", True, score=300))


def test_start_replaces_running_session() -> None:
    aggregator = SessionAggregator()
    aggregator.start(make_tracks("A", "B"), Difficulty.HARD)
    aggregator.record_result(make_result("t0", True, score=300))

    session = aggregator.start(make_tracks("C"), Difficulty.MEDIUM)

    assert session.results == []
    assert session.score == 0
    assert aggregator.streak == 0
    assert aggregator.best_streak == 0
    assert aggregator.session is session


def test_invariants_hold_under_random_operations() -> None:
    rng = random.Random(7)
    aggregator = SessionAggregator()
    tracks = make_tracks(*[f"Song {n}" for n in range(12)])
    aggregator.start(tracks, Difficulty.MEDIUM)

    for _ in range(60):
        session = aggregator.session
        if rng.random() < 0.5 and not session.is_ended:
            correct = rng.random() < 0.5
            track_id = tracks[session.current_index].id
            aggregator.record_result(make_result(track_id, correct, score=200 if correct else 0))
        else:
            aggregator.advance()

        aggregator.check_invariants()
        assert session.current_index <= len(tracks)
        assert session.score == sum(result.score for result in session.results)
        assert aggregator.best_streak >= aggregator.streak
        if not aggregator.has_result_for_current:
            assert len(session.results) <= session.current_index
