"""
Care Task Domain Entity
=======================

A single scheduled care action and the recurrence rule that spawns its
next occurrence once it is resolved.

A task is in exactly one state:

- pending:   ``completed_at`` and ``skipped_at`` are both None
- completed: ``completed_at`` set (terminal)
- skipped:   ``skipped_at`` set (terminal)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any

from app.domain.exceptions import ValidationError
from app.enums import RecurrenceType, TaskPriority, TaskState
from app.utils.time import add_months, coerce_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recurrence:
    """Recurrence rule, e.g. ``{"type": "days", "interval": 7}``."""

    type: RecurrenceType = RecurrenceType.DAYS
    interval: int = 7

    def __post_init__(self) -> None:
        if not isinstance(self.type, RecurrenceType):
            object.__setattr__(self, "type", RecurrenceType(self.type))
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise ValidationError("Recurrence interval must be an integer", detail={"interval": self.interval})
        if self.interval < 1:
            raise ValidationError("Recurrence interval must be at least 1", detail={"interval": self.interval})

    def advance(self, from_date: date) -> date:
        """Return *from_date* shifted by one interval."""
        if self.type == RecurrenceType.WEEKS:
            return from_date + timedelta(weeks=self.interval)
        if self.type == RecurrenceType.MONTHS:
            return add_months(from_date, self.interval)
        return from_date + timedelta(days=self.interval)

    def with_interval(self, interval: int) -> "Recurrence":
        return replace(self, interval=interval)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "interval": self.interval}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @staticmethod
    def from_value(value: Any) -> "Recurrence | None":
        """
        Parse a stored or AI-supplied recurrence.

        Accepts a dict, a JSON string or None. Unknown types fall back to
        days; malformed input raises ValidationError.
        """
        if value is None or value == "":
            return None
        if isinstance(value, Recurrence):
            return value
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                raise ValidationError("Recurrence is not valid JSON", detail={"recurrence": value}) from None
        if not isinstance(value, dict):
            raise ValidationError("Recurrence must be an object", detail={"recurrence": value})

        try:
            rtype = RecurrenceType(str(value.get("type", "days")).lower())
        except ValueError:
            logger.warning("Unknown recurrence type %r, treating as days", value.get("type"))
            rtype = RecurrenceType.DAYS

        raw_interval = value.get("interval", 7)
        try:
            interval = int(raw_interval)
        except (TypeError, ValueError):
            raise ValidationError("Recurrence interval must be an integer", detail={"interval": raw_interval}) from None
        return Recurrence(type=rtype, interval=interval)


@dataclass
class Task:
    """
    Scheduled care action for one plant.

    Attributes:
        task_id: Unique identifier (None before insert)
        care_plan_id: Plan that produced the task (None for ad-hoc tasks)
        task_type: Built-in TaskType value or a user-defined type
        due_date: Calendar date the task is due
        recurrence: Rule for the next occurrence, None for one-shot tasks
        completed_by: Acting user, may differ from the owner in households
    """

    task_id: int | None = None
    care_plan_id: int | None = None
    plant_id: int = 0
    task_type: str = ""
    due_date: date | None = None
    recurrence: Recurrence | None = None
    instructions: str | None = None
    priority: TaskPriority = TaskPriority.NORMAL
    notes: str | None = None
    completed_at: str | None = None
    completed_by: int | None = None
    skipped_at: str | None = None
    skip_reason: str | None = None
    created_at: str | None = None
    plant_name: str | None = None

    @property
    def state(self) -> TaskState:
        if self.completed_at is not None:
            return TaskState.COMPLETED
        if self.skipped_at is not None:
            return TaskState.SKIPPED
        return TaskState.PENDING

    @property
    def is_pending(self) -> bool:
        return self.state == TaskState.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "care_plan_id": self.care_plan_id,
            "plant_id": self.plant_id,
            "task_type": self.task_type,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "instructions": self.instructions,
            "priority": self.priority.value,
            "notes": self.notes,
            "state": self.state.value,
            "completed_at": self.completed_at,
            "completed_by": self.completed_by,
            "skipped_at": self.skipped_at,
            "skip_reason": self.skip_reason,
            "created_at": self.created_at,
            "plant_name": self.plant_name,
        }

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Task":
        return Task(
            task_id=row.get("task_id"),
            care_plan_id=row.get("care_plan_id"),
            plant_id=row.get("plant_id") or 0,
            task_type=row.get("task_type") or "",
            due_date=coerce_date(row.get("due_date")),
            recurrence=Recurrence.from_value(row.get("recurrence")),
            instructions=row.get("instructions"),
            priority=TaskPriority.parse(row.get("priority")),
            notes=row.get("notes"),
            completed_at=row.get("completed_at"),
            completed_by=row.get("completed_by"),
            skipped_at=row.get("skipped_at"),
            skip_reason=row.get("skip_reason"),
            created_at=row.get("created_at"),
            plant_name=row.get("plant_name"),
        )
