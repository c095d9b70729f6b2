"""
Progress history for the dashboard chart.

Holds the last seven days of {date, progress}. The series is loaded by an
async fetch that may overlap local updates; a response is applied only if no
newer fetch was issued and no local point was recorded while it was in flight.
"""

from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
import logging

from habit_quest import config
from habit_quest.exceptions import StaleWriteIgnored
from habit_quest.models.leaderboard import ProgressPoint
from habit_quest.models.task import Task
from habit_quest.storage.keys import tasks_key
from habit_quest.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_DAYS = 7

HistoryFeed = Callable[[], Awaitable[Iterable[Dict[str, Any]]]]


def last_days(today: Optional[date] = None, days: int = HISTORY_DAYS) -> List[date]:
    today = today or date.today()
    start = today - timedelta(days=days - 1)
    return [start + timedelta(days=i) for i in range(days)]


class ProgressHistory:
    """Seven-day progress series with stale-response protection"""

    def __init__(self):
        self._points: Dict[date, int] = {}
        self._revision = 0

    @property
    def revision(self) -> int:
        return self._revision

    def series(self, today: Optional[date] = None) -> List[ProgressPoint]:
        """Chart points for the last seven days; missing days are 0"""
        return [ProgressPoint(date=d, progress=self._points.get(d, 0)) for d in last_days(today)]

    def record(self, day: date, progress: int) -> None:
        """Local update; any fetch already in flight becomes stale"""
        self._points[day] = progress
        self._revision += 1

    def _accept(self, issued: int) -> None:
        if issued != self._revision:
            raise StaleWriteIgnored("progress history", issued, self._revision)

    async def load(self, fetch: HistoryFeed) -> bool:
        """
        Fetch and apply the series.

        Returns:
            True if the response was applied, False if it failed or was stale
        """
        self._revision += 1
        issued = self._revision

        try:
            raw = list(await fetch())
            points = [ProgressPoint(**item) for item in raw]
        except Exception as e:
            logger.error(f"Error fetching user progress: {e}", exc_info=True)
            return False

        try:
            self._accept(issued)
        except StaleWriteIgnored as signal:
            logger.debug(str(signal))
            return False

        self._points = {p.date: p.progress for p in points}
        logger.debug(f"Progress history loaded with {len(points)} points")
        return True


def store_history_feed(store: KeyValueStore, user_id: str, today: Optional[date] = None) -> HistoryFeed:
    """
    Build a history feed that reads the stored task lists of the last seven
    days and reports TASK_COMPLETION_XP per completed task.
    """

    async def fetch() -> List[Dict[str, Any]]:
        points = []
        for day in last_days(today):
            raw = await store.get(user_id, tasks_key(day.isoformat())) or []
            completed = sum(1 for item in raw if Task(**item).completed)
            points.append({"date": day, "progress": completed * config.TASK_COMPLETION_XP})
        return points

    return fetch
