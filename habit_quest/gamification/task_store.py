"""
Daily Task Store

Date-keyed task lists. Completing a task credits the progression ledger;
un-completing or deleting a completed task does not take XP back.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

from habit_quest import config
from habit_quest.exceptions import NotFoundError, ValidationError
from habit_quest.gamification.xp_system import ProgressionLedger
from habit_quest.models.task import Task, TaskPatch

logger = logging.getLogger(__name__)

TASKS_CATEGORY = "tasks"

TaskListener = Callable[[str, dict], None]


class DailyTaskStore:
    """Tasks bucketed by ISO date key; entries for past dates stay reachable"""

    def __init__(self, ledger: ProgressionLedger, tasks: Optional[Dict[str, List[Task]]] = None):
        self.ledger = ledger
        self._tasks: Dict[str, List[Task]] = {k: list(v) for k, v in (tasks or {}).items()}
        self._last_id = max((t.id for items in self._tasks.values() for t in items), default=0)
        self._listeners: List[TaskListener] = []
        ledger.bind_task_counter(self.completed_count)

    def subscribe(self, listener: TaskListener) -> None:
        self._listeners.append(listener)

    def _notify(self, event: str, payload: dict) -> None:
        for listener in list(self._listeners):
            listener(event, payload)

    def _next_id(self) -> int:
        # Millisecond timestamp, bumped past the last id so two tasks added in
        # the same millisecond never collide
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return self._last_id

    def _find(self, date_key: str, task_id: int) -> Task:
        for task in self._tasks.get(date_key, []):
            if task.id == task_id:
                return task
        raise NotFoundError(
            f"Task {task_id} not found on {date_key}",
            record_type="Task",
            record_id=str(task_id),
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def add_task(self, date_key: str, title: str) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Task title cannot be empty", field="title", value=title)

        task = Task(id=self._next_id(), title=title, completed=False, created_on=date_key)
        self._tasks.setdefault(date_key, []).append(task)
        logger.info(f"Added task {task.id} '{title}' on {date_key}")
        self._notify("task_added", {"date_key": date_key, "task_id": task.id})
        return task

    def toggle_completion(self, date_key: str, task_id: int, completed: bool) -> Task:
        """
        Set a task's completion flag.

        A false -> true transition credits TASK_COMPLETION_XP to the "tasks"
        category. true -> false leaves the ledger untouched.
        """
        task = self._find(date_key, task_id)
        was_completed = task.completed
        task.completed = completed

        if completed and not was_completed:
            self.ledger.add_points(TASKS_CATEGORY, config.TASK_COMPLETION_XP)

        self._notify("task_toggled", {"date_key": date_key, "task_id": task_id, "completed": completed})
        return task

    def update_task(self, date_key: str, task_id: int, patch: TaskPatch) -> Task:
        task = self._find(date_key, task_id)
        changes = patch.model_dump(exclude_none=True)
        for name, value in changes.items():
            setattr(task, name, value)
        self._notify("task_updated", {"date_key": date_key, "task_id": task_id, **changes})
        return task

    def toggle_edit(self, date_key: str, task_id: int) -> Task:
        task = self._find(date_key, task_id)
        return self.update_task(date_key, task_id, TaskPatch(is_editing=not task.is_editing))

    def delete_task(self, date_key: str, task_id: int) -> None:
        task = self._find(date_key, task_id)
        self._tasks[date_key].remove(task)
        logger.info(f"Deleted task {task_id} on {date_key}")
        self._notify("task_deleted", {"date_key": date_key, "task_id": task_id})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def tasks_for(self, date_key: str) -> List[Task]:
        return list(self._tasks.get(date_key, []))

    def date_keys(self) -> List[str]:
        return sorted(self._tasks)

    def completed_count(self) -> int:
        return sum(1 for items in self._tasks.values() for t in items if t.completed)

    def completed_count_on(self, date_key: str) -> int:
        return sum(1 for t in self._tasks.get(date_key, []) if t.completed)

    def snapshot(self) -> Dict[str, List[Task]]:
        return {k: [t.model_copy() for t in v] for k, v in self._tasks.items()}
