"""Unit tests for the quiz state machine (habit_quest/gamification/quiz_engine.py)"""
import random

import pytest

from habit_quest.exceptions import QuizStateError, ValidationError
from habit_quest.gamification.quiz_engine import QuizEngine
from habit_quest.models.quiz import QuizSession, QuizState


@pytest.fixture
def engine(ledger, abcd_wheel, questions):
    return QuizEngine(ledger, abcd_wheel, questions, rng=random.Random(7))


def _play_round(engine, choice=0):
    result = engine.submit_answer(choice)
    engine.complete_round()
    return result


# ============================================================================
# Answers
# ============================================================================

def test_starts_awaiting_first_answer(engine):
    assert engine.state == QuizState.AWAITING_ANSWER
    assert engine.round_index == 0
    assert engine.current_question is not None


def test_correct_answer_credits_quiz_xp(engine, ledger):
    result = engine.submit_answer(0)

    assert result == {"correct": True, "xp_awarded": 10, "round": 0}
    assert ledger.category_points("quiz") == 10
    assert engine.state == QuizState.ROUND_COMPLETE


def test_incorrect_answer_credits_nothing(engine, ledger):
    result = engine.submit_answer(1)

    assert result["correct"] is False
    assert result["xp_awarded"] == 0
    assert ledger.categories == {}
    assert engine.state == QuizState.ROUND_COMPLETE


def test_answer_in_wrong_state_raises(engine):
    engine.submit_answer(0)
    with pytest.raises(QuizStateError) as exc_info:
        engine.submit_answer(0)
    assert exc_info.value.state == QuizState.ROUND_COMPLETE.value


# ============================================================================
# Wheel Gate
# ============================================================================

def test_round_complete_moves_to_spin_eligible(engine):
    engine.submit_answer(0)
    assert engine.complete_round() is True
    assert engine.state == QuizState.SPIN_ELIGIBLE
    assert engine.can_spin() is True


def test_spin_credits_wheel_and_advances(engine, ledger, fixed_source):
    _play_round(engine)
    spin = engine.spin(fixed_source(0.76))

    assert spin.segment.label == "D"
    assert ledger.category_points("wheel") == 40
    assert engine.last_spin == spin
    assert engine.state == QuizState.AWAITING_ANSWER
    assert engine.round_index == 1
    assert engine.session.wheel_shown_this_round is False
    assert engine.session.wheel_shown_today is True


def test_wheel_fires_once_per_day(engine, fixed_source):
    _play_round(engine)
    engine.spin(fixed_source(0.1))

    # Round 2: per-round flag was reset but the day flag blocks the wheel
    assert _play_round(engine)["round"] == 1
    assert engine.can_spin() is False
    with pytest.raises(QuizStateError):
        engine.spin(fixed_source(0.1))


def test_wheel_already_shown_today(ledger, abcd_wheel, questions, fixed_source):
    engine = QuizEngine(ledger, abcd_wheel, questions, session=QuizSession(wheel_shown_today=True))
    engine.submit_answer(0)

    assert engine.complete_round() is False
    with pytest.raises(QuizStateError):
        engine.spin(fixed_source(0.5))
    assert "wheel" not in ledger.categories


def test_spin_before_round_complete_raises(engine, fixed_source):
    with pytest.raises(QuizStateError):
        engine.spin(fixed_source(0.5))


# ============================================================================
# Session Flow
# ============================================================================

def test_three_rounds_then_session_complete(engine, ledger):
    for _ in range(3):
        _play_round(engine)
        engine.skip_spin()

    assert engine.state == QuizState.SESSION_COMPLETE
    assert engine.current_question is None
    assert engine.session.correct_count == 3
    assert ledger.category_points("quiz") == 30


def test_questions_drawn_without_replacement(engine):
    seen = []
    for _ in range(3):
        seen.append(engine.current_question.id)
        _play_round(engine)
        engine.skip_spin()

    assert len(set(seen)) == 3


def test_no_actions_after_session_complete(engine):
    for _ in range(3):
        _play_round(engine)
        engine.skip_spin()

    with pytest.raises(QuizStateError):
        engine.submit_answer(0)
    with pytest.raises(QuizStateError):
        engine.skip_spin()


def test_abandon_keeps_credited_xp_and_day_flag(engine, ledger, fixed_source):
    _play_round(engine)
    engine.spin(fixed_source(0.1))
    engine.submit_answer(0)

    engine.abandon()

    assert engine.state == QuizState.SESSION_COMPLETE
    assert ledger.category_points("quiz") == 20
    assert ledger.category_points("wheel") == 10
    assert engine.session.round_index == 0
    assert engine.session.wheel_shown_today is True


def test_pool_smaller_than_rounds_rejected(ledger, abcd_wheel, questions):
    with pytest.raises(ValidationError):
        QuizEngine(ledger, abcd_wheel, questions[:2])


@pytest.mark.parametrize("rounds", [0, -1])
def test_zero_or_negative_rounds_rejected(ledger, abcd_wheel, questions, rounds):
    with pytest.raises(ValidationError) as exc_info:
        QuizEngine(ledger, abcd_wheel, questions, rounds=rounds)
    assert exc_info.value.field == "rounds"


def test_single_round_quiz(ledger, abcd_wheel, questions):
    engine = QuizEngine(ledger, abcd_wheel, questions, rounds=1)
    engine.submit_answer(0)
    engine.complete_round()
    engine.skip_spin()

    assert engine.state == QuizState.SESSION_COMPLETE


def test_ensure_can_spin_outside_spin_state(engine):
    with pytest.raises(QuizStateError):
        engine.ensure_can_spin()
