"""
Care Repository Protocols
=========================

Defines the interfaces for plant, care plan, task and care log persistence.
Implementations can use SQLite, PostgreSQL, or other storage.

All repositories backed by the same database handler share its
``transaction()`` scope, so a service can group writes across them.
"""

from __future__ import annotations

from abc import abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Any, Protocol

from app.domain.care.care_log_entity import CareLogEntry
from app.domain.care.care_plan_entity import CarePlan
from app.domain.care.plant_entity import Plant, PlantPatch
from app.domain.care.task_entity import Recurrence, Task


class TransactionalRepository(Protocol):
    @abstractmethod
    def transaction(self) -> AbstractContextManager[Any]:
        """Open (or join) a database transaction."""
        ...


class PlantRepository(TransactionalRepository, Protocol):
    """Protocol for plant persistence and access checks."""

    @abstractmethod
    def create(self, plant: Plant) -> Plant:
        """
        Insert a new plant.

        Args:
            plant: Plant to create (plant_id should be None)

        Returns:
            Created plant with assigned plant_id
        """
        ...

    @abstractmethod
    def get(self, plant_id: int) -> Plant | None:
        ...

    @abstractmethod
    def list_for_user(self, user_id: int, *, archived: bool = False) -> list[Plant]:
        """Owned and household-shared plants, live or archived."""
        ...

    @abstractmethod
    def update(self, plant_id: int, patch: PlantPatch) -> Plant | None:
        """
        Apply a partial update.

        Args:
            plant_id: Plant ID
            patch: Fields to change; untouched fields stay as they are

        Returns:
            Updated plant, or None if the plant does not exist
        """
        ...

    @abstractmethod
    def archive(self, plant_id: int, archived_at: str, reason: str | None = None) -> bool:
        """Mark a plant archived. Returns False if it was already archived."""
        ...

    @abstractmethod
    def can_access(self, user_id: int, plant_id: int) -> bool:
        """True for the owner and for members of a household the plant is shared with."""
        ...

    @abstractmethod
    def disabled_task_types(self, user_id: int) -> set[str]:
        ...

    @abstractmethod
    def set_task_type_enabled(self, user_id: int, task_type: str, enabled: bool) -> None:
        ...


class CarePlanRepository(TransactionalRepository, Protocol):
    """Protocol for care plan persistence."""

    @abstractmethod
    def create(self, plan: CarePlan) -> CarePlan:
        ...

    @abstractmethod
    def get_active(self, plant_id: int) -> CarePlan | None:
        ...

    @abstractmethod
    def deactivate_all(self, plant_id: int) -> int:
        """
        Deactivate every active plan of a plant.

        Returns:
            Number of plans deactivated
        """
        ...

    @abstractmethod
    def list_for_plant(self, plant_id: int) -> list[CarePlan]:
        ...


class TaskRepository(TransactionalRepository, Protocol):
    """Protocol for task persistence."""

    @abstractmethod
    def create_if_absent(self, task: Task) -> Task | None:
        """
        Insert a pending task unless one already exists for the same
        plant, task type and due date.

        Returns:
            The inserted task, or None if an equivalent pending task exists
        """
        ...

    @abstractmethod
    def get(self, task_id: int) -> Task | None:
        ...

    @abstractmethod
    def delete_pending_for_plant(self, plant_id: int) -> int:
        ...

    @abstractmethod
    def mark_completed(self, task_id: int, user_id: int, notes: str | None, completed_at: str) -> bool:
        """
        Complete a pending task.

        Returns:
            False if the task was no longer pending
        """
        ...

    @abstractmethod
    def mark_skipped(self, task_id: int, reason: str | None, skipped_at: str) -> bool:
        """
        Skip a pending task.

        Returns:
            False if the task was no longer pending
        """
        ...

    @abstractmethod
    def set_pending_recurrence(self, plant_id: int, task_type: str, recurrence: Recurrence) -> int:
        ...

    @abstractmethod
    def list_for_plant(self, plant_id: int, *, include_skipped: bool = False, limit: int | None = 20) -> list[Task]:
        ...

    @abstractmethod
    def list_pending_for_plant(self, plant_id: int, limit: int | None = None) -> list[Task]:
        ...

    @abstractmethod
    def list_due_for_user(self, user_id: int, until: date) -> list[Task]:
        ...

    @abstractmethod
    def list_upcoming_for_user(self, user_id: int, start: date, end: date) -> list[Task]:
        ...

    @abstractmethod
    def completion_stats(self, plant_id: int) -> dict[str, int]:
        ...


class CareLogRepository(TransactionalRepository, Protocol):
    """Protocol for the append-only care log."""

    @abstractmethod
    def append(self, entry: CareLogEntry) -> CareLogEntry:
        ...

    @abstractmethod
    def recent(self, plant_id: int, limit: int = 30, action: str | None = None) -> list[CareLogEntry]:
        """
        Most recent entries first.

        Args:
            plant_id: Plant ID
            limit: Maximum number of entries
            action: Optional exact action filter
        """
        ...

    @abstractmethod
    def since(self, plant_id: int, action: str, since: datetime) -> list[CareLogEntry]:
        ...
