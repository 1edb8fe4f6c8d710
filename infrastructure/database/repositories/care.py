"""
Care Repositories
=================

Concrete implementations of the CarePlanRepository, TaskRepository and
CareLogRepository protocols using SQLite.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from app.domain.care.care_log_entity import CareLogEntry
from app.domain.care.care_plan_entity import CarePlan
from app.domain.care.task_entity import Recurrence, Task
from infrastructure.database.repositories.base import SQLiteRepository

logger = logging.getLogger(__name__)


class CarePlanRepository(SQLiteRepository):
    def create(self, plan: CarePlan) -> CarePlan:
        return self._backend.insert_care_plan(plan)

    def get_active(self, plant_id: int) -> CarePlan | None:
        return self._backend.get_active_care_plan(plant_id)

    def deactivate_all(self, plant_id: int) -> int:
        return self._backend.deactivate_care_plans(plant_id)

    def list_for_plant(self, plant_id: int) -> list[CarePlan]:
        return self._backend.get_care_plans_for_plant(plant_id)


class TaskRepository(SQLiteRepository):
    def create_if_absent(self, task: Task) -> Task | None:
        """
        Insert a pending occurrence unless one already exists.

        The existence check runs in the same transaction as the insert and
        the INSERT OR IGNORE against the pending-occurrence index covers a
        writer on another connection.
        """
        with self.transaction():
            if self._backend.pending_task_exists(task.plant_id, task.task_type, task.due_date):
                logger.debug(
                    "Pending %s task for plant %s on %s already exists",
                    task.task_type, task.plant_id, task.due_date,
                )
                return None
            return self._backend.insert_task(task)

    def get(self, task_id: int) -> Task | None:
        return self._backend.get_task(task_id)

    def delete_pending_for_plant(self, plant_id: int) -> int:
        return self._backend.delete_pending_tasks(plant_id)

    def mark_completed(self, task_id: int, user_id: int, notes: str | None, completed_at: str) -> bool:
        return self._backend.complete_task(task_id, user_id, notes, completed_at)

    def mark_skipped(self, task_id: int, reason: str | None, skipped_at: str) -> bool:
        return self._backend.skip_task(task_id, reason, skipped_at)

    def set_pending_recurrence(self, plant_id: int, task_type: str, recurrence: Recurrence) -> int:
        return self._backend.update_pending_recurrence(plant_id, task_type, recurrence)

    def list_for_plant(self, plant_id: int, *, include_skipped: bool = False, limit: int | None = 20) -> list[Task]:
        return self._backend.get_tasks_for_plant(plant_id, include_skipped=include_skipped, limit=limit)

    def list_pending_for_plant(self, plant_id: int, limit: int | None = None) -> list[Task]:
        return self._backend.get_pending_tasks_for_plant(plant_id, limit)

    def list_due_for_user(self, user_id: int, until: date) -> list[Task]:
        return self._backend.get_due_tasks_for_user(user_id, until)

    def list_upcoming_for_user(self, user_id: int, start: date, end: date) -> list[Task]:
        return self._backend.get_upcoming_tasks_for_user(user_id, start, end)

    def completion_stats(self, plant_id: int) -> dict[str, int]:
        return self._backend.get_completion_stats(plant_id)


class CareLogRepository(SQLiteRepository):
    def append(self, entry: CareLogEntry) -> CareLogEntry:
        return self._backend.insert_care_log(entry)

    def recent(self, plant_id: int, limit: int = 30, action: str | None = None) -> list[CareLogEntry]:
        return self._backend.get_recent_care_log(plant_id, limit, action)

    def since(self, plant_id: int, action: str, since: datetime) -> list[CareLogEntry]:
        return self._backend.get_care_log_since(plant_id, action, since)
