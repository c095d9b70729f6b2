"""Global test fixtures and utilities for habit-quest tests"""
import pytest
from datetime import date
from typing import Callable, List

from habit_quest.gamification.reward_wheel import RewardWheel
from habit_quest.gamification.task_store import DailyTaskStore
from habit_quest.gamification.xp_system import ProgressionLedger
from habit_quest.models.quiz import QuizQuestion
from habit_quest.models.reward import RewardSegment
from habit_quest.services.gamification_service import GamificationService
from habit_quest.storage.kv_store import InMemoryStore


# ============================================================================
# User & Clock Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def today():
    """Fixed 'today' so date-keyed tests are deterministic"""
    return date(2024, 1, 15)


@pytest.fixture
def today_key(today):
    return today.isoformat()


# ============================================================================
# Progression Fixtures
# ============================================================================

@pytest.fixture
def ledger():
    """Empty progression ledger"""
    return ProgressionLedger()


@pytest.fixture
def task_store(ledger):
    """Task store wired to the ledger fixture"""
    return DailyTaskStore(ledger)


@pytest.fixture
def memory_store():
    """Fresh in-memory key/value store"""
    return InMemoryStore()


# ============================================================================
# Reward Wheel & Quiz Fixtures
# ============================================================================

@pytest.fixture
def abcd_segments() -> List[RewardSegment]:
    """Four equal-weight segments A-D"""
    return [
        RewardSegment(label="A", reward_value=10, weight=1),
        RewardSegment(label="B", reward_value=20, weight=1),
        RewardSegment(label="C", reward_value=30, weight=1),
        RewardSegment(label="D", reward_value=40, weight=1),
    ]


@pytest.fixture
def abcd_wheel(abcd_segments):
    return RewardWheel(abcd_segments, extra_rotations=5)


@pytest.fixture
def questions() -> List[QuizQuestion]:
    """Small question pool; the right answer is always choice 0"""
    return [
        QuizQuestion(id=f"q{i}", prompt=f"Question {i}?", choices=["right", "wrong"], answer_index=0)
        for i in range(4)
    ]


@pytest.fixture
def fixed_source():
    """Factory of random sources that always return the same value"""
    def _make(value: float) -> Callable[[], float]:
        return lambda: value
    return _make


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def service_factory(memory_store, test_user_id, today, abcd_wheel, questions):
    """
    Build (not load) GamificationService instances over the shared store.

    Usage:
        service = await service_factory().load()
    """
    def _create(**kwargs):
        params = {
            "display_name": "Tester",
            "wheel": abcd_wheel,
            "questions": questions,
            "clock": lambda: today,
        }
        params.update(kwargs)
        return GamificationService(memory_store, test_user_id, **params)

    return _create
