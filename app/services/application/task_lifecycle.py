"""
Task Lifecycle
==============
State transitions of a single care task.

    pending --complete--> completed
    pending --skip------> skipped

Both transitions are terminal. Each one runs in its own transaction that
resolves the task (a conditional UPDATE on pending rows), appends the care
log entry and schedules the next occurrence of a recurring task.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.care.care_log_entity import CareLogEntry, skipped_action
from app.domain.care.task_entity import Task
from app.domain.exceptions import ConflictError, NotFoundError, PlantCareError, ValidationError
from app.enums import CareOutcome, TaskState
from app.utils.time import iso_now

if TYPE_CHECKING:
    from app.domain.care.repository import CareLogRepository, PlantRepository, TaskRepository
    from app.services.application.task_scheduler import TaskScheduler

logger = logging.getLogger(__name__)

BULK_COMPLETE_LIMIT = 50


@dataclass
class TaskResolution:
    """A resolved task and the occurrence scheduled after it, if any."""

    task: Task
    next_task: Task | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task.to_dict(),
            "next_task": self.next_task.to_dict() if self.next_task else None,
        }


@dataclass
class BulkCompleteResult:
    completed: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    errors: dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": self.completed,
            "failed": self.failed,
            "errors": {str(task_id): message for task_id, message in self.errors.items()},
            "count": len(self.completed),
        }


class TaskLifecycle:
    """Completes and skips tasks on behalf of a user."""

    def __init__(
        self,
        plant_repo: "PlantRepository",
        task_repo: "TaskRepository",
        care_log_repo: "CareLogRepository",
        scheduler: "TaskScheduler",
        *,
        bulk_limit: int = BULK_COMPLETE_LIMIT,
    ):
        self.plant_repo = plant_repo
        self.task_repo = task_repo
        self.care_log_repo = care_log_repo
        self.scheduler = scheduler
        self.bulk_limit = bulk_limit

    def _load_accessible_task(self, task_id: int, user_id: int) -> Task:
        # Missing and inaccessible tasks are reported the same way
        task = self.task_repo.get(task_id)
        if task is None or not self.plant_repo.can_access(user_id, task.plant_id):
            raise NotFoundError("Task not found", detail={"task_id": task_id})
        return task

    @staticmethod
    def _ensure_pending(task: Task) -> None:
        if not task.is_pending:
            raise ConflictError(
                f"Task already {task.state.value}",
                detail={"task_id": task.task_id, "state": task.state.value},
            )

    def _reload(self, task_id: int) -> Task:
        task = self.task_repo.get(task_id)
        if task is None:
            raise NotFoundError("Task not found", detail={"task_id": task_id})
        return task

    def complete(self, task_id: int, user_id: int, notes: str | None = None) -> TaskResolution:
        """
        Mark a task completed by ``user_id``.

        Raises:
            NotFoundError: Task missing or its plant not accessible
            ConflictError: Task already completed or skipped
        """
        task = self._load_accessible_task(task_id, user_id)
        self._ensure_pending(task)

        now = iso_now()
        with self.task_repo.transaction():
            if not self.task_repo.mark_completed(task_id, user_id, notes, now):
                raise ConflictError("Task already resolved", detail={"task_id": task_id})
            self.care_log_repo.append(
                CareLogEntry(
                    plant_id=task.plant_id,
                    task_id=task_id,
                    action=task.task_type,
                    notes=notes,
                    outcome=CareOutcome.POSITIVE,
                    performed_by=user_id,
                    performed_at=now,
                )
            )
            next_task = self.scheduler.compute_next_occurrence(task)

        logger.info("Task %s (%s) completed by user %s", task_id, task.task_type, user_id)
        return TaskResolution(task=self._reload(task_id), next_task=next_task)

    def skip(self, task_id: int, user_id: int, reason: str | None = None) -> TaskResolution:
        """
        Mark a task skipped. Future tasks may be skipped as well.

        Raises:
            NotFoundError: Task missing or its plant not accessible
            ConflictError: Task already completed or skipped
        """
        task = self._load_accessible_task(task_id, user_id)
        self._ensure_pending(task)

        now = iso_now()
        with self.task_repo.transaction():
            if not self.task_repo.mark_skipped(task_id, reason, now):
                raise ConflictError("Task already resolved", detail={"task_id": task_id})
            self.care_log_repo.append(
                CareLogEntry(
                    plant_id=task.plant_id,
                    task_id=task_id,
                    action=skipped_action(task.task_type),
                    notes=reason,
                    outcome=CareOutcome.NEUTRAL,
                    performed_by=user_id,
                    performed_at=now,
                )
            )
            next_task = self.scheduler.compute_next_occurrence(task)

        logger.info("Task %s (%s) skipped by user %s", task_id, task.task_type, user_id)
        return TaskResolution(task=self._reload(task_id), next_task=next_task)

    def bulk_complete(self, task_ids: list[int], user_id: int, notes: str | None = None) -> BulkCompleteResult:
        """
        Complete several tasks, each in its own transaction.

        Tasks that are already completed count as completed without a second
        care log entry. Ids beyond the batch limit are reported as failed.
        """
        if not task_ids:
            raise ValidationError("No task IDs provided")

        result = BulkCompleteResult()
        unique_ids = list(dict.fromkeys(task_ids))
        for task_id in unique_ids[self.bulk_limit:]:
            result.failed.append(task_id)
            result.errors[task_id] = f"Batch limit of {self.bulk_limit} tasks exceeded"

        for task_id in unique_ids[: self.bulk_limit]:
            try:
                self.complete(task_id, user_id, notes)
            except ConflictError as exc:
                if exc.detail.get("state") == TaskState.COMPLETED.value:
                    result.completed.append(task_id)
                else:
                    result.failed.append(task_id)
                    result.errors[task_id] = str(exc)
            except PlantCareError as exc:
                result.failed.append(task_id)
                result.errors[task_id] = str(exc)
            else:
                result.completed.append(task_id)

        logger.info(
            "Bulk complete by user %s: %d completed, %d failed",
            user_id, len(result.completed), len(result.failed),
        )
        return result
