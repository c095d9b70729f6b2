"""
Gamification system for Habit Quest

Progression & reward engine:
- XP ledger and leveling
- Daily task store
- Streak tracking
- Achievement evaluation and habit category stages
- Weighted reward wheel
- Quiz engine
- Leaderboard and progress history
"""

from habit_quest.gamification.xp_system import ProgressionLedger, LedgerSnapshot, calculate_level_from_xp
from habit_quest.gamification.task_store import DailyTaskStore
from habit_quest.gamification.streak_system import record_qualifying_day, expire_streak
from habit_quest.gamification.achievement_system import evaluate, earned_only, category_stage, next_stage
from habit_quest.gamification.reward_wheel import RewardWheel, WheelGate, can_spin, resolve_spin
from habit_quest.gamification.quiz_engine import QuizEngine
from habit_quest.gamification.leaderboard import Leaderboard
from habit_quest.gamification.dashboards import ProgressHistory

__all__ = [
    "ProgressionLedger",
    "LedgerSnapshot",
    "calculate_level_from_xp",
    "DailyTaskStore",
    "record_qualifying_day",
    "expire_streak",
    "evaluate",
    "earned_only",
    "category_stage",
    "next_stage",
    "RewardWheel",
    "WheelGate",
    "can_spin",
    "resolve_spin",
    "QuizEngine",
    "Leaderboard",
    "ProgressHistory",
]
