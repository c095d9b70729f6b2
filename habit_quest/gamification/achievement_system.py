"""
Achievement System

Earned status is derived from ledger and task snapshots on every call. Nothing
is persisted and evaluation has no side effects, so repeated calls with the
same inputs always agree.

Built-in achievements:
- First Week Streak: streak of at least 7 days
- Milestone 100 XP: total XP of at least 100
- Habit Master: points in at least 3 habit categories
- Task Champion: 5 tasks completed on a single day

Habit categories carry staged goals (points thresholds with a reward each).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from habit_quest import config
from habit_quest.gamification.xp_system import LedgerSnapshot
from habit_quest.models.achievement import (
    Achievement,
    CategoryStage,
    EvaluatedAchievement,
    HabitCategory,
)
from habit_quest.models.task import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementContext:
    """Facts the achievement conditions are evaluated against"""
    streak: int
    total_xp: int
    active_categories: int
    best_day_completed: int


ACHIEVEMENTS: List[Achievement] = [
    Achievement(
        id=1,
        title="First Week Streak",
        description="Completed 7 days of habits",
        condition=lambda ctx: ctx.streak >= 7,
    ),
    Achievement(
        id=2,
        title="Milestone 100 XP",
        description="Reached 100 XP points",
        condition=lambda ctx: ctx.total_xp >= 100,
    ),
    Achievement(
        id=3,
        title="Habit Master",
        description="Completed 3 habits consistently",
        condition=lambda ctx: ctx.active_categories >= 3,
    ),
    Achievement(
        id=4,
        title="Task Champion",
        description="Completed 5 tasks in a day",
        condition=lambda ctx: ctx.best_day_completed >= 5,
    ),
]


HABIT_CATEGORIES: List[HabitCategory] = [
    HabitCategory(
        id="addiction",
        name="Addiction Recovery",
        icon="🚭",
        description="Break free from harmful dependencies",
        stages=[
            CategoryStage(level=1, goal="First Week Clean", points=50, reward="Self-Care Package"),
            CategoryStage(level=2, goal="One Month Milestone", points=200, reward="Wellness Session"),
            CategoryStage(level=3, goal="Quarterly Achievement", points=500, reward="Personal Experience Gift"),
        ],
    ),
    HabitCategory(
        id="fitness",
        name="Fitness Transformation",
        icon="💪",
        description="Build a healthier, stronger you",
        stages=[
            CategoryStage(level=1, goal="Consistent Workouts", points=75, reward="Healthy Meal Coupon"),
            CategoryStage(level=2, goal="Nutrition Tracking", points=250, reward="Fitness Gear"),
            CategoryStage(level=3, goal="Body Composition Change", points=600, reward="Personal Training"),
        ],
    ),
]


def build_context(ledger: LedgerSnapshot, tasks: Dict[str, List[Task]]) -> AchievementContext:
    """Derive the evaluation facts from snapshots"""
    completed_per_day = [sum(1 for t in items if t.completed) for items in tasks.values()]
    completed_total = sum(completed_per_day)

    return AchievementContext(
        streak=ledger.streak,
        total_xp=sum(ledger.categories.values()) + config.TASK_COMPLETION_XP * completed_total,
        active_categories=sum(1 for points in ledger.categories.values() if points > 0),
        best_day_completed=max(completed_per_day, default=0),
    )


def evaluate(
    ledger: LedgerSnapshot,
    tasks: Dict[str, List[Task]],
    achievements: Optional[List[Achievement]] = None,
) -> List[EvaluatedAchievement]:
    """
    Evaluate every achievement against the given snapshots.

    Args:
        ledger: Ledger snapshot (categories + streak)
        tasks: Task store snapshot keyed by date
        achievements: Rule set to evaluate (defaults to ACHIEVEMENTS)

    Returns:
        One EvaluatedAchievement per rule, in rule order
    """
    ctx = build_context(ledger, tasks)
    results = [
        EvaluatedAchievement(
            id=a.id,
            title=a.title,
            description=a.description,
            earned=bool(a.condition(ctx)),
        )
        for a in (achievements if achievements is not None else ACHIEVEMENTS)
    ]
    logger.debug(f"Evaluated {len(results)} achievements: {sum(r.earned for r in results)} earned")
    return results


def earned_only(results: List[EvaluatedAchievement]) -> List[EvaluatedAchievement]:
    return [r for r in results if r.earned]


def get_category(category_id: str) -> Optional[HabitCategory]:
    for category in HABIT_CATEGORIES:
        if category.id == category_id:
            return category
    return None


def category_stage(category_id: str, points: int) -> Optional[CategoryStage]:
    """Highest stage whose points threshold has been reached, or None"""
    category = get_category(category_id)
    if category is None:
        return None
    reached = [s for s in category.stages if points >= s.points]
    return reached[-1] if reached else None


def next_stage(category_id: str, points: int) -> Optional[CategoryStage]:
    """First stage not yet reached, or None when the category is maxed"""
    category = get_category(category_id)
    if category is None:
        return None
    for stage in category.stages:
        if points < stage.points:
            return stage
    return None
