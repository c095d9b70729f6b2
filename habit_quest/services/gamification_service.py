"""
GamificationService - Progression & Reward Business Logic

Per-user facade over the progression engine. Loads ledger and task state from
the key/value store, runs user actions, persists what changed and keeps the
leaderboard and progress history in sync through ledger / task notifications.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from habit_quest import config
from habit_quest.exceptions import QuizStateError
from habit_quest.gamification.achievement_system import HABIT_CATEGORIES, category_stage, evaluate, next_stage
from habit_quest.gamification.dashboards import ProgressHistory, store_history_feed
from habit_quest.gamification.leaderboard import Leaderboard, LeaderboardFeed, empty_feed
from habit_quest.gamification.quiz_engine import QuizEngine
from habit_quest.gamification.reward_wheel import DEFAULT_SEGMENTS, RewardWheel, WheelGate
from habit_quest.gamification.streak_system import expire_streak, record_qualifying_day
from habit_quest.gamification.task_store import DailyTaskStore
from habit_quest.gamification.xp_system import ProgressionLedger, calculate_level_from_xp
from habit_quest.models.achievement import EvaluatedAchievement
from habit_quest.models.leaderboard import LeaderboardEntry, ProgressPoint
from habit_quest.models.quiz import QuizQuestion, QuizSession
from habit_quest.models.reward import WheelSpin
from habit_quest.models.task import Task, TaskPatch
from habit_quest.storage import keys
from habit_quest.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for one user's progression state.

    Responsibilities:
    - Loading / persisting ledger, streak and task lists
    - Task actions (add, toggle, edit, delete)
    - Streak updates from qualifying days
    - Quiz sessions and the reward wheel gate
    - Leaderboard and progress history views
    """

    def __init__(
        self,
        store: KeyValueStore,
        user_id: str,
        display_name: Optional[str] = None,
        leaderboard_feed: Optional[LeaderboardFeed] = None,
        wheel: Optional[RewardWheel] = None,
        questions: Optional[Sequence[QuizQuestion]] = None,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize GamificationService.

        Args:
            store: Persistent key/value store
            user_id: Store key space of the user
            display_name: Name shown on the leaderboard (defaults to user_id)
            leaderboard_feed: Async callable returning [{name, xp}]
            wheel: Reward wheel (defaults to DEFAULT_SEGMENTS)
            questions: Quiz question pool (defaults to the built-in pool)
            clock: Returns "today"; injectable for tests
        """
        self.store = store
        self.user_id = user_id
        self.display_name = display_name or user_id
        self.leaderboard_feed = leaderboard_feed or empty_feed
        self.wheel = wheel or RewardWheel(DEFAULT_SEGMENTS)
        self.questions = questions
        self.clock = clock

        self.ledger = ProgressionLedger()
        self.tasks = DailyTaskStore(self.ledger)
        self.leaderboard = Leaderboard()
        self.history = ProgressHistory()
        self.gate = WheelGate(store, user_id)
        self.quiz: Optional[QuizEngine] = None
        self.last_active: Optional[date] = None
        self._wire()

    def _wire(self) -> None:
        self.ledger.subscribe(self._on_change)
        self.tasks.subscribe(self._on_change)

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    async def load(self) -> "GamificationService":
        """Build ledger and task store from the user's stored values"""
        stored = await self.store.list_all(self.user_id)

        categories = stored.get(keys.LEDGER_CATEGORIES) or {}
        streak = stored.get(keys.LEDGER_STREAK) or 0
        last_active = stored.get(keys.LEDGER_LAST_ACTIVE)

        tasks: Dict[str, List[Task]] = {}
        for key, value in stored.items():
            if key.startswith(keys.TASKS_PREFIX) and value:
                tasks[key[len(keys.TASKS_PREFIX):]] = [Task(**item) for item in value]

        self.ledger = ProgressionLedger(categories=categories, streak=streak)
        self.tasks = DailyTaskStore(self.ledger, tasks)
        self.last_active = date.fromisoformat(last_active) if last_active else None

        self._wire()

        if expire_streak(self.ledger, self.last_active, self.clock()):
            await self._save_ledger()

        logger.info(
            f"Loaded progression for user {self.user_id}: {self.ledger.total_xp()} XP, "
            f"{len(tasks)} task days, streak {self.ledger.get_streak()}"
        )
        return self

    async def _save_ledger(self) -> None:
        await self.store.set(self.user_id, keys.LEDGER_CATEGORIES, self.ledger.categories)
        await self.store.set(self.user_id, keys.LEDGER_STREAK, self.ledger.get_streak())
        if self.last_active:
            await self.store.set(self.user_id, keys.LEDGER_LAST_ACTIVE, self.last_active.isoformat())

    async def _save_tasks(self, date_key: str) -> None:
        payload = [t.model_dump() for t in self.tasks.tasks_for(date_key)]
        if payload:
            await self.store.set(self.user_id, keys.tasks_key(date_key), payload)
        else:
            await self.store.delete(self.user_id, keys.tasks_key(date_key))

    def _on_change(self, event: str, payload: dict) -> None:
        # Keep dependent views in step with ledger / task mutations
        self.leaderboard.upsert_self(self.display_name, self.ledger.total_xp())

        date_key = payload.get("date_key")
        if date_key:
            try:
                day = date.fromisoformat(date_key)
            except ValueError:
                return
            progress = self.tasks.completed_count_on(date_key) * config.TASK_COMPLETION_XP
            self.history.record(day, progress)

    def today_key(self) -> str:
        return self.clock().isoformat()

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def total_xp(self) -> int:
        return self.ledger.total_xp()

    def get_streak(self) -> int:
        return self.ledger.get_streak()

    def xp_summary(self) -> Dict[str, Any]:
        """
        Returns:
            {
                'total_xp': int,
                'current_level': int,
                'xp_in_current_level': int,
                'xp_to_next_level': int,
                'categories': dict,
                'stages': {category_id: {'points', 'current', 'next'}}
            }
        """
        total = self.ledger.total_xp()
        level_info = calculate_level_from_xp(total)
        return {
            "total_xp": total,
            "current_level": level_info["current_level"],
            "xp_in_current_level": level_info["xp_in_current_level"],
            "xp_to_next_level": level_info["xp_to_next_level"],
            "categories": self.ledger.categories,
            "stages": self.stage_summary(),
        }

    def stage_summary(self) -> Dict[str, Dict[str, Any]]:
        """Reached and upcoming stage of every habit category"""
        summary = {}
        for category in HABIT_CATEGORIES:
            points = self.ledger.category_points(category.id)
            summary[category.id] = {
                "points": points,
                "current": category_stage(category.id, points),
                "next": next_stage(category.id, points),
            }
        return summary

    def streak_summary(self) -> Dict[str, Any]:
        return {
            "current_streak": self.ledger.get_streak(),
            "progress_percent": self.ledger.streak_progress(),
            "days_to_max": self.ledger.days_to_max_streak(),
            "last_active": self.last_active,
        }

    def evaluate(self) -> List[EvaluatedAchievement]:
        return evaluate(self.ledger.snapshot(), self.tasks.snapshot())

    def ranked(self) -> List[LeaderboardEntry]:
        return self.leaderboard.ranked()

    def tasks_for(self, date_key: Optional[str] = None) -> List[Task]:
        return self.tasks.tasks_for(date_key or self.today_key())

    def progress_series(self) -> List[ProgressPoint]:
        return self.history.series(self.clock())

    # ------------------------------------------------------------------
    # Habit progress
    # ------------------------------------------------------------------

    async def add_points(self, category: str, delta: int) -> int:
        """
        Credit habit progress to a category and persist the ledger.

        Raises:
            InvalidDeltaError: delta is not a positive integer
        """
        total = self.ledger.add_points(category, delta)
        await self._save_ledger()
        return total

    # ------------------------------------------------------------------
    # Task actions
    # ------------------------------------------------------------------

    async def add_task(self, title: str, date_key: Optional[str] = None) -> Task:
        date_key = date_key or self.today_key()
        task = self.tasks.add_task(date_key, title)
        await self._save_tasks(date_key)
        return task

    async def toggle_completion(self, task_id: int, completed: bool, date_key: Optional[str] = None) -> Task:
        date_key = date_key or self.today_key()
        task = self.tasks.toggle_completion(date_key, task_id, completed)
        await self._save_tasks(date_key)
        await self._save_ledger()
        return task

    async def update_task(self, task_id: int, patch: TaskPatch, date_key: Optional[str] = None) -> Task:
        date_key = date_key or self.today_key()
        task = self.tasks.update_task(date_key, task_id, patch)
        await self._save_tasks(date_key)
        return task

    async def toggle_edit(self, task_id: int, date_key: Optional[str] = None) -> Task:
        date_key = date_key or self.today_key()
        task = self.tasks.toggle_edit(date_key, task_id)
        await self._save_tasks(date_key)
        return task

    async def delete_task(self, task_id: int, date_key: Optional[str] = None) -> None:
        date_key = date_key or self.today_key()
        self.tasks.delete_task(date_key, task_id)
        await self._save_tasks(date_key)

    # ------------------------------------------------------------------
    # Streak
    # ------------------------------------------------------------------

    async def set_streak(self, value: int) -> int:
        self.ledger.set_streak(value)
        await self._save_ledger()
        return value

    async def record_activity(self, activity_date: Optional[date] = None) -> Dict[str, Any]:
        """Register a qualifying day and roll the streak"""
        result = record_qualifying_day(self.ledger, self.last_active, activity_date or self.clock())
        self.last_active = result["last_active"]
        await self._save_ledger()
        return result

    # ------------------------------------------------------------------
    # Quiz and reward wheel
    # ------------------------------------------------------------------

    async def start_quiz(self) -> QuizEngine:
        """Start a new playthrough; the per-day wheel flag comes from the store"""
        shown_today = await self.gate.shown_on(self.today_key())
        self.quiz = QuizEngine(
            self.ledger,
            self.wheel,
            questions=self.questions,
            session=QuizSession(wheel_shown_today=shown_today),
        )
        logger.info(f"Quiz started for user {self.user_id} (wheel shown today: {shown_today})")
        return self.quiz

    def _require_quiz(self) -> QuizEngine:
        if self.quiz is None:
            raise QuizStateError("No quiz in progress", user_id=self.user_id)
        return self.quiz

    async def submit_answer(self, choice_index: int) -> Dict[str, Any]:
        """
        Score the current question and close the round.

        Returns:
            {'correct': bool, 'xp_awarded': int, 'round': int, 'wheel_available': bool}
        """
        quiz = self._require_quiz()
        result = quiz.submit_answer(choice_index)
        result["wheel_available"] = quiz.complete_round()
        if result["xp_awarded"]:
            await self._save_ledger()
        if not result["wheel_available"]:
            quiz.skip_spin()
        return result

    async def spin(self, random_source=None) -> WheelSpin:
        """Spin the wheel for the current round, persisting the once-per-day flag"""
        quiz = self._require_quiz()
        quiz.ensure_can_spin()
        # Day flag first: a failed write leaves the round spin-eligible and unpaid
        await self.gate.mark_shown(self.today_key())
        spin = quiz.spin(random_source)
        await self._save_ledger()
        return spin

    def skip_spin(self) -> None:
        self._require_quiz().skip_spin()

    def abandon_quiz(self) -> None:
        if self.quiz is not None:
            self.quiz.abandon()
            self.quiz = None

    # ------------------------------------------------------------------
    # Async views
    # ------------------------------------------------------------------

    async def refresh_leaderboard(self) -> List[LeaderboardEntry]:
        await self.leaderboard.seed(self.leaderboard_feed)
        self.leaderboard.upsert_self(self.display_name, self.ledger.total_xp())
        return self.leaderboard.ranked()

    async def refresh_history(self) -> List[ProgressPoint]:
        await self.history.load(store_history_feed(self.store, self.user_id, self.clock()))
        return self.history.series(self.clock())
