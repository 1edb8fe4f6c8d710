"""
Task Database Operations
========================

Database operations for the Tasks table.

Resolving a task (complete/skip) is a conditional UPDATE that only matches
pending rows, so two concurrent requests cannot both resolve the same task.
The partial unique index ``uq_tasks_pending_occurrence`` makes
(plant_id, task_type, due_date) an idempotency key for pending tasks.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import TYPE_CHECKING

from app.domain.care.task_entity import Recurrence, Task
from app.domain.exceptions import RepositoryError
from app.utils.time import iso_now
from infrastructure.database.ops.plants import ACCESSIBLE_PLANTS_SQL

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)

_PENDING = "completed_at IS NULL AND skipped_at IS NULL"

_PRIORITY_ORDER = """
    CASE t.priority
        WHEN 'urgent' THEN 0
        WHEN 'high' THEN 1
        WHEN 'normal' THEN 2
        WHEN 'low' THEN 3
        ELSE 4
    END
"""


class TaskOperations:
    """Task-related CRUD helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def _commit(self, conn: "Connection") -> None:
        raise NotImplementedError("Subclass must implement _commit()")

    # =========================================================================
    # Inserts
    # =========================================================================

    def insert_task(self, task: Task) -> Task | None:
        """
        Insert a task unless the pending-occurrence index already holds one.

        Args:
            task: Task to create (task_id should be None)

        Returns:
            Created task, or None when an equivalent pending task exists
        """
        if task.due_date is None:
            raise RepositoryError("Task due_date is required", detail={"task_type": task.task_type})
        created_at = iso_now()
        db = self.get_db()
        try:
            cursor = db.execute(
                """
                INSERT OR IGNORE INTO Tasks (
                    care_plan_id, plant_id, task_type, due_date, recurrence,
                    instructions, priority, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.care_plan_id,
                    task.plant_id,
                    task.task_type,
                    task.due_date.isoformat(),
                    task.recurrence.to_json() if task.recurrence else None,
                    task.instructions,
                    task.priority.value,
                    created_at,
                ),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error creating %s task for plant %s: %s", task.task_type, task.plant_id, e)
            raise RepositoryError("Failed to create task") from e

        if cursor.rowcount == 0:
            return None
        task.task_id = cursor.lastrowid
        task.created_at = created_at
        return task

    # =========================================================================
    # Reads
    # =========================================================================

    def get_task(self, task_id: int) -> Task | None:
        db = self.get_db()
        try:
            row = db.execute(
                """
                SELECT t.*, p.name AS plant_name
                FROM Tasks t JOIN Plants p ON p.plant_id = t.plant_id
                WHERE t.task_id = ?
                """,
                (task_id,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error getting task %s: %s", task_id, e)
            raise RepositoryError("Failed to load task") from e
        return Task.from_row(dict(row)) if row else None

    def pending_task_exists(self, plant_id: int, task_type: str, due_date: date) -> bool:
        db = self.get_db()
        try:
            row = db.execute(
                f"""
                SELECT 1 FROM Tasks
                WHERE plant_id = ? AND task_type = ? AND due_date = ? AND {_PENDING}
                LIMIT 1
                """,
                (plant_id, task_type, due_date.isoformat()),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error checking pending %s task for plant %s: %s", task_type, plant_id, e)
            raise RepositoryError("Failed to check pending tasks") from e
        return row is not None

    def _select_tasks(self, sql: str, params: dict | tuple, context: str) -> list[Task]:
        db = self.get_db()
        try:
            rows = db.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing tasks (%s): %s", context, e)
            raise RepositoryError("Failed to list tasks") from e
        return [Task.from_row(dict(row)) for row in rows]

    def get_tasks_for_plant(
        self, plant_id: int, *, include_skipped: bool = False, limit: int | None = 20
    ) -> list[Task]:
        where = "t.plant_id = ?" if include_skipped else "t.plant_id = ? AND t.skipped_at IS NULL"
        limit_clause = f"LIMIT {int(limit)}" if limit else ""
        return self._select_tasks(
            f"""
            SELECT t.*, p.name AS plant_name
            FROM Tasks t JOIN Plants p ON p.plant_id = t.plant_id
            WHERE {where}
            ORDER BY CASE WHEN t.completed_at IS NULL AND t.skipped_at IS NULL THEN 0 ELSE 1 END,
                     t.due_date ASC, t.task_id ASC
            {limit_clause}
            """,
            (plant_id,),
            f"plant {plant_id}",
        )

    def get_pending_tasks_for_plant(self, plant_id: int, limit: int | None = None) -> list[Task]:
        limit_clause = f"LIMIT {int(limit)}" if limit else ""
        return self._select_tasks(
            f"""
            SELECT t.*, p.name AS plant_name
            FROM Tasks t JOIN Plants p ON p.plant_id = t.plant_id
            WHERE t.plant_id = ? AND t.completed_at IS NULL AND t.skipped_at IS NULL
            ORDER BY t.due_date ASC, t.task_id ASC
            {limit_clause}
            """,
            (plant_id,),
            f"pending for plant {plant_id}",
        )

    def get_due_tasks_for_user(self, user_id: int, until: date) -> list[Task]:
        """Tasks due on or before *until*: pending first, then priority, then due date."""
        return self._select_tasks(
            f"""
            SELECT t.*, p.name AS plant_name
            FROM Tasks t JOIN Plants p ON p.plant_id = t.plant_id
            WHERE t.plant_id IN ({ACCESSIBLE_PLANTS_SQL})
              AND t.due_date <= :until
              AND t.skipped_at IS NULL
              AND p.archived_at IS NULL
            ORDER BY CASE WHEN t.completed_at IS NULL THEN 0 ELSE 1 END,
                     {_PRIORITY_ORDER},
                     t.due_date ASC, t.task_id ASC
            """,
            {"user_id": user_id, "until": until.isoformat()},
            f"due for user {user_id}",
        )

    def get_upcoming_tasks_for_user(self, user_id: int, start: date, end: date) -> list[Task]:
        return self._select_tasks(
            f"""
            SELECT t.*, p.name AS plant_name
            FROM Tasks t JOIN Plants p ON p.plant_id = t.plant_id
            WHERE t.plant_id IN ({ACCESSIBLE_PLANTS_SQL})
              AND t.due_date BETWEEN :start AND :end
              AND t.completed_at IS NULL AND t.skipped_at IS NULL
              AND p.archived_at IS NULL
            ORDER BY t.due_date ASC, {_PRIORITY_ORDER}, t.task_id ASC
            """,
            {"user_id": user_id, "start": start.isoformat(), "end": end.isoformat()},
            f"upcoming for user {user_id}",
        )

    def get_completion_stats(self, plant_id: int) -> dict[str, int]:
        db = self.get_db()
        try:
            rows = db.execute(
                """
                SELECT task_type, COUNT(*) AS completed
                FROM Tasks
                WHERE plant_id = ? AND completed_at IS NOT NULL
                GROUP BY task_type
                """,
                (plant_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error getting completion stats for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to load completion stats") from e
        return {row["task_type"]: row["completed"] for row in rows}

    # =========================================================================
    # Updates
    # =========================================================================

    def complete_task(self, task_id: int, user_id: int, notes: str | None, completed_at: str) -> bool:
        db = self.get_db()
        try:
            cursor = db.execute(
                f"""
                UPDATE Tasks SET completed_at = ?, completed_by = ?, notes = ?
                WHERE task_id = ? AND {_PENDING}
                """,
                (completed_at, user_id, notes, task_id),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error completing task %s: %s", task_id, e)
            raise RepositoryError("Failed to complete task") from e
        return cursor.rowcount > 0

    def skip_task(self, task_id: int, reason: str | None, skipped_at: str) -> bool:
        db = self.get_db()
        try:
            cursor = db.execute(
                f"""
                UPDATE Tasks SET skipped_at = ?, skip_reason = ?
                WHERE task_id = ? AND {_PENDING}
                """,
                (skipped_at, reason, task_id),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error skipping task %s: %s", task_id, e)
            raise RepositoryError("Failed to skip task") from e
        return cursor.rowcount > 0

    def update_pending_recurrence(self, plant_id: int, task_type: str, recurrence: Recurrence) -> int:
        db = self.get_db()
        try:
            cursor = db.execute(
                f"""
                UPDATE Tasks SET recurrence = ?
                WHERE plant_id = ? AND task_type = ? AND {_PENDING}
                """,
                (recurrence.to_json(), plant_id, task_type),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error updating %s recurrence for plant %s: %s", task_type, plant_id, e)
            raise RepositoryError("Failed to update task recurrence") from e
        return cursor.rowcount

    def delete_pending_tasks(self, plant_id: int) -> int:
        db = self.get_db()
        try:
            cursor = db.execute(
                f"DELETE FROM Tasks WHERE plant_id = ? AND {_PENDING}",
                (plant_id,),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error deleting pending tasks for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to delete pending tasks") from e
        return cursor.rowcount
