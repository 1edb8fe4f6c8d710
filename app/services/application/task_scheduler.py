"""
Task Scheduler
==============
Next-occurrence generation for recurring tasks and interval adjustments.

The next occurrence of a resolved task is due one recurrence interval after
the task's *original* due date, not after the day it was resolved, so a
late completion keeps the fixed cadence. (plant_id, task_type, due_date)
of a pending task acts as the idempotency key: generating the same
occurrence twice creates a single task.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING, Any

from app.domain.care.care_log_entity import CareLogEntry, schedule_adjusted_action, skipped_action
from app.domain.care.task_entity import Recurrence, Task
from app.domain.exceptions import ConflictError, ExternalServiceError, NotFoundError, ValidationError
from app.enums import CareOutcome, ResultSource
from app.utils.time import iso_now, today_utc

if TYPE_CHECKING:
    from app.domain.care.repository import CareLogRepository, PlantRepository, TaskRepository
    from app.services.ai.care_advisor import LLMCareAdvisor

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 7
SCHEDULE_ADJUSTED_SUFFIX = " (schedule adjusted)"


@dataclass
class ScheduleSuggestion:
    """Suggested recurrence interval for a task type. Never applied by itself."""

    task_id: int
    task_type: str
    current_interval: int
    new_interval: int
    should_adjust: bool
    rationale: str
    source: ResultSource = ResultSource.FALLBACK

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "task_type": self.task_type,
            "current_interval": self.current_interval,
            "new_interval": self.new_interval,
            "should_adjust": self.should_adjust,
            "suggestion": self.rationale,
            "source": self.source.value,
        }


def heuristic_suggestion(reason: str, current_interval: int) -> tuple[int, bool, str]:
    """
    Rule-based interval suggestion from a skip reason.

    Returns ``(new_interval, should_adjust, rationale)``.
    """
    text = (reason or "").lower()
    if "moist" in text or "wet" in text:
        new_interval = math.ceil(min(current_interval + 2, current_interval * 1.5))
        return new_interval, True, (
            f"Since the soil is still moist, I suggest extending watering to every {new_interval} days."
        )
    if "recently" in text or "already" in text:
        new_interval = current_interval + 1
        return new_interval, True, (
            f"Extending the schedule slightly to every {new_interval} days to avoid over-caring."
        )
    if "stressed" in text:
        return current_interval, False, (
            "When a plant is stressed, maintaining the current schedule is often best. Monitor closely."
        )
    new_interval = current_interval + 1
    return new_interval, True, f"Based on your feedback, consider adjusting to every {new_interval} days."


class TaskScheduler:
    """Recurrence handling and schedule adjustment for care tasks."""

    def __init__(
        self,
        plant_repo: "PlantRepository",
        task_repo: "TaskRepository",
        care_log_repo: "CareLogRepository",
        advisor: "LLMCareAdvisor" | None = None,
        *,
        skip_history_days: int = 30,
    ):
        self.plant_repo = plant_repo
        self.task_repo = task_repo
        self.care_log_repo = care_log_repo
        self.advisor = advisor
        self.skip_history_days = skip_history_days

    # ------------------------------------------------------------------
    # Recurrence
    # ------------------------------------------------------------------

    @staticmethod
    def next_due_date(task: Task) -> date | None:
        if task.recurrence is None or task.due_date is None:
            return None
        return task.recurrence.advance(task.due_date)

    def compute_next_occurrence(self, task: Task) -> Task | None:
        """
        Create the pending task that follows *task*.

        Returns the created task, or None for one-shot tasks and when a
        pending task for the same plant, type and date already exists.
        """
        next_due = self.next_due_date(task)
        if next_due is None:
            return None

        created = self.task_repo.create_if_absent(
            Task(
                care_plan_id=task.care_plan_id,
                plant_id=task.plant_id,
                task_type=task.task_type,
                due_date=next_due,
                recurrence=task.recurrence,
                instructions=task.instructions,
                priority=task.priority,
            )
        )
        if created is not None:
            logger.debug("Scheduled next %s task %s for plant %s on %s",
                         created.task_type, created.task_id, created.plant_id, next_due)
        return created

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------

    def _load_accessible_task(self, task_id: int, user_id: int) -> Task:
        task = self.task_repo.get(task_id)
        if task is None or not self.plant_repo.can_access(user_id, task.plant_id):
            raise NotFoundError("Task not found", detail={"task_id": task_id})
        return task

    def skip_history(self, task: Task, today: date | None = None) -> list[CareLogEntry]:
        """Skips of the task's type on the same plant over the trailing window."""
        today = today or today_utc()
        since = datetime.combine(today - timedelta(days=self.skip_history_days), time.min, tzinfo=timezone.utc)
        return self.care_log_repo.since(task.plant_id, skipped_action(task.task_type), since)

    def adjust_interval(
        self, task_id: int, user_id: int, reason: str = "", *, today: date | None = None
    ) -> ScheduleSuggestion:
        """
        Suggest a new recurrence interval for a task type.

        Uses the AI advisor when available and the reason heuristics
        otherwise. Nothing is written.
        """
        task = self._load_accessible_task(task_id, user_id)
        current = task.recurrence.interval if task.recurrence else DEFAULT_INTERVAL
        history = self.skip_history(task, today)

        if self.advisor is not None:
            plant = self.plant_repo.get(task.plant_id)
            try:
                payload = self.advisor.suggest_schedule(plant, task, reason, current, history, user_id=user_id)
                new_interval = payload.new_interval if payload.new_interval is not None else current
                return ScheduleSuggestion(
                    task_id=task_id,
                    task_type=task.task_type,
                    current_interval=current,
                    new_interval=max(1, new_interval),
                    should_adjust=payload.should_adjust and new_interval != current,
                    rationale=payload.suggestion,
                    source=ResultSource.AI,
                )
            except ExternalServiceError as exc:
                logger.warning("AI schedule suggestion failed for task %s, using heuristics: %s", task_id, exc)

        new_interval, should_adjust, rationale = heuristic_suggestion(reason, current)
        return ScheduleSuggestion(
            task_id=task_id,
            task_type=task.task_type,
            current_interval=current,
            new_interval=max(1, new_interval),
            should_adjust=should_adjust,
            rationale=rationale,
            source=ResultSource.FALLBACK,
        )

    def apply_adjustment(
        self, task_id: int, user_id: int, new_interval: int, reason: str = ""
    ) -> Task | None:
        """
        Apply a new interval to every pending task of the plant and type,
        skip the current task and schedule its next occurrence.

        Returns:
            The next occurrence, or None when none was created

        Raises:
            ValidationError: ``new_interval`` below 1
            NotFoundError: Task missing or not accessible
            ConflictError: Task already completed or skipped
        """
        if isinstance(new_interval, bool) or not isinstance(new_interval, int) or new_interval < 1:
            raise ValidationError("new_interval must be a positive integer", detail={"new_interval": new_interval})

        task = self._load_accessible_task(task_id, user_id)
        if not task.is_pending:
            raise ConflictError("Task already resolved", detail={"task_id": task_id, "state": task.state.value})

        recurrence = (task.recurrence or Recurrence()).with_interval(new_interval)
        now = iso_now()
        skip_reason = f"{reason}{SCHEDULE_ADJUSTED_SUFFIX}".strip()

        with self.task_repo.transaction():
            updated = self.task_repo.set_pending_recurrence(task.plant_id, task.task_type, recurrence)
            if not self.task_repo.mark_skipped(task_id, skip_reason, now):
                raise ConflictError("Task already resolved", detail={"task_id": task_id})
            self.care_log_repo.append(
                CareLogEntry(
                    plant_id=task.plant_id,
                    task_id=task_id,
                    action=schedule_adjusted_action(task.task_type),
                    notes=f"{reason} - Adjusted to every {new_interval} {recurrence.type.value}".strip(" -"),
                    outcome=CareOutcome.POSITIVE,
                    performed_by=user_id,
                    performed_at=now,
                )
            )
            next_task = None
            if task.recurrence is not None:
                next_task = self.compute_next_occurrence(replace(task, recurrence=recurrence))

        logger.info(
            "Adjusted %s schedule for plant %s to every %d %s (%d pending tasks updated)",
            task.task_type, task.plant_id, new_interval, recurrence.type.value, updated,
        )
        return next_task
