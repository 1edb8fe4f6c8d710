"""Task lists across the plants a user owns or shares through a household."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from app.domain.care.task_entity import Task
from app.domain.exceptions import NotFoundError, ValidationError
from app.utils.time import days_from, today_utc

if TYPE_CHECKING:
    from app.domain.care.repository import PlantRepository, TaskRepository

logger = logging.getLogger(__name__)

PLANT_TASK_LIMIT = 20
MAX_UPCOMING_DAYS = 90


class TaskAgenda:
    def __init__(self, plant_repo: "PlantRepository", task_repo: "TaskRepository", *, upcoming_days: int = 7):
        self.plant_repo = plant_repo
        self.task_repo = task_repo
        self.upcoming_days = upcoming_days

    def today(self, user_id: int, *, today: date | None = None) -> list[Task]:
        """
        Tasks due today or earlier that were not skipped, on active plants.

        Pending tasks come first, then by priority and due date. Tasks
        completed earlier are included so the day's progress stays visible.
        """
        return self.task_repo.list_due_for_user(user_id, today or today_utc())

    def upcoming(self, user_id: int, days: int | None = None, *, today: date | None = None) -> list[Task]:
        days = self.upcoming_days if days is None else days
        if days < 0 or days > MAX_UPCOMING_DAYS:
            raise ValidationError(
                f"days must be between 0 and {MAX_UPCOMING_DAYS}", detail={"days": days}
            )
        start = today or today_utc()
        return self.task_repo.list_upcoming_for_user(user_id, start, days_from(start, days))

    def for_plant(self, user_id: int, plant_id: int) -> list[Task]:
        if not self.plant_repo.can_access(user_id, plant_id):
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})
        return self.task_repo.list_for_plant(plant_id, limit=PLANT_TASK_LIMIT)
