"""
XP and Leveling System

Owns per-category XP and the streak counter, and derives total XP and level.

Leveling Curve:
- Flat XP_PER_LEVEL (100) XP per level
- Level = floor(total_xp / 100) + 1, progress = total_xp mod 100

XP Award Rules:
- Task completion: 10 XP in "tasks" (plus 10 XP per completed task in the total)
- Correct quiz answer: 10 XP in "quiz"
- Reward wheel: segment value in "wheel"
"""

from typing import Callable, Dict, List, Optional
import logging

from pydantic import BaseModel, Field

from habit_quest import config
from habit_quest.exceptions import InvalidDeltaError, ValidationError

logger = logging.getLogger(__name__)

LedgerListener = Callable[[str, dict], None]


class LedgerSnapshot(BaseModel):
    """Immutable view of a ledger, used for persistence and evaluation"""
    categories: Dict[str, int] = Field(default_factory=dict)
    streak: int = Field(0, ge=0)


def calculate_level_from_xp(total_xp: int) -> Dict[str, int]:
    """
    Calculate level from total XP

    Returns:
        {
            'current_level': int,
            'xp_in_current_level': int,
            'xp_to_next_level': int,
            'total_xp_for_next_level': int
        }
    """
    total_xp = max(total_xp, 0)
    level = total_xp // config.XP_PER_LEVEL + 1
    progress = total_xp % config.XP_PER_LEVEL

    return {
        "current_level": level,
        "xp_in_current_level": progress,
        "xp_to_next_level": config.XP_PER_LEVEL - progress,
        "total_xp_for_next_level": level * config.XP_PER_LEVEL,
    }


def streak_percentage(streak: int, maximum: Optional[int] = None) -> float:
    """Share of the displayed streak bar, capped at 100"""
    maximum = maximum or config.STREAK_DISPLAY_MAX
    return min(streak / maximum * 100, 100.0)


class ProgressionLedger:
    """
    Per-category XP totals plus a streak counter.

    Category totals only ever grow through add_points(); reset_category() is
    the single explicit way down. The completed-task count is read from the
    task store through a bound counter callable.
    """

    def __init__(
        self,
        categories: Optional[Dict[str, int]] = None,
        streak: int = 0,
        task_counter: Optional[Callable[[], int]] = None,
    ):
        if streak < 0:
            raise ValidationError("Streak cannot be negative", field="streak", value=streak)
        self._categories: Dict[str, int] = dict(categories or {})
        self._streak = streak
        self._task_counter = task_counter or (lambda: 0)
        self._listeners: List[LedgerListener] = []

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> "ProgressionLedger":
        return cls(categories=snapshot.categories, streak=snapshot.streak)

    def bind_task_counter(self, counter: Callable[[], int]) -> None:
        self._task_counter = counter

    def subscribe(self, listener: LedgerListener) -> None:
        """Register a callback invoked as listener(event, payload) after each mutation"""
        self._listeners.append(listener)

    def _notify(self, event: str, payload: dict) -> None:
        for listener in list(self._listeners):
            listener(event, payload)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_points(self, category: str, delta: int) -> int:
        """
        Credit XP to a category.

        Args:
            category: Habit domain id ("fitness", "tasks", "quiz", ...)
            delta: Positive integer amount

        Returns:
            The category's new running total

        Raises:
            InvalidDeltaError: delta is not a positive integer
        """
        if isinstance(delta, bool) or not isinstance(delta, int) or delta <= 0:
            raise InvalidDeltaError(value=delta, context={"category": category, "delta": delta})

        old_level = self.level()
        self._categories[category] = self._categories.get(category, 0) + delta
        new_total = self._categories[category]

        logger.info(f"Awarded {delta} XP in '{category}'. Category total: {new_total}, total XP: {self.total_xp()}")
        if self.level() > old_level:
            logger.info(f"Leveled up from {old_level} to {self.level()}!")

        self._notify("points_added", {"category": category, "delta": delta, "total": new_total})
        return new_total

    def reset_category(self, category: str) -> None:
        """Explicitly zero a category (the only operation that lowers points)"""
        if category in self._categories:
            del self._categories[category]
            logger.info(f"Reset category '{category}'")
            self._notify("category_reset", {"category": category})

    def get_streak(self) -> int:
        return self._streak

    def set_streak(self, value: int) -> None:
        if value < 0:
            raise ValidationError("Streak cannot be negative", field="streak", value=value)
        self._streak = value
        self._notify("streak_set", {"streak": value})

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def category_points(self, category: str) -> int:
        return self._categories.get(category, 0)

    @property
    def categories(self) -> Dict[str, int]:
        return dict(self._categories)

    def total_xp(self) -> int:
        """Sum of category totals plus TASK_COMPLETION_XP per completed task"""
        return sum(self._categories.values()) + config.TASK_COMPLETION_XP * self._task_counter()

    def level(self) -> int:
        return calculate_level_from_xp(self.total_xp())["current_level"]

    def level_progress(self) -> int:
        return calculate_level_from_xp(self.total_xp())["xp_in_current_level"]

    def streak_progress(self) -> float:
        return streak_percentage(self._streak)

    def days_to_max_streak(self) -> int:
        return max(config.STREAK_DISPLAY_MAX - self._streak, 0)

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(categories=dict(self._categories), streak=self._streak)
