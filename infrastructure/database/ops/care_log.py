"""
Care Log Database Operations
============================

Append-only access to the CareLog table. Entries are never updated or
deleted by the application.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING

from app.domain.care.care_log_entity import CareLogEntry
from app.domain.exceptions import RepositoryError
from app.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class CareLogOperations:
    """Care log helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def _commit(self, conn: "Connection") -> None:
        raise NotImplementedError("Subclass must implement _commit()")

    def insert_care_log(self, entry: CareLogEntry) -> CareLogEntry:
        db = self.get_db()
        performed_at = entry.performed_at or iso_now()
        try:
            cursor = db.execute(
                """
                INSERT INTO CareLog (plant_id, task_id, action, notes, outcome, performed_by, performed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.plant_id,
                    entry.task_id,
                    entry.action,
                    entry.notes,
                    entry.outcome.value if entry.outcome else None,
                    entry.performed_by,
                    performed_at,
                ),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error logging '%s' for plant %s: %s", entry.action, entry.plant_id, e)
            raise RepositoryError("Failed to write care log") from e

        entry.log_id = cursor.lastrowid
        entry.performed_at = performed_at
        return entry

    def get_recent_care_log(self, plant_id: int, limit: int = 30, action: str | None = None) -> list[CareLogEntry]:
        sql = "SELECT * FROM CareLog WHERE plant_id = ?"
        params: list = [plant_id]
        if action:
            sql += " AND action = ?"
            params.append(action)
        sql += " ORDER BY performed_at DESC, log_id DESC LIMIT ?"
        params.append(limit)

        db = self.get_db()
        try:
            rows = db.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error reading care log for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to read care log") from e
        return [CareLogEntry.from_row(dict(row)) for row in rows]

    def get_care_log_since(self, plant_id: int, action: str, since: datetime) -> list[CareLogEntry]:
        db = self.get_db()
        try:
            rows = db.execute(
                """
                SELECT * FROM CareLog
                WHERE plant_id = ? AND action = ? AND performed_at > ?
                ORDER BY performed_at DESC, log_id DESC
                """,
                (plant_id, action, since.isoformat()),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error reading '%s' history for plant %s: %s", action, plant_id, e)
            raise RepositoryError("Failed to read care log") from e
        return [CareLogEntry.from_row(dict(row)) for row in rows]
