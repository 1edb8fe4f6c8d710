"""
Chat Database Operations
========================

Per-plant, per-user chat history with the care assistant.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import RepositoryError
from app.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


def _row_to_message(row: dict[str, Any]) -> dict[str, Any]:
    actions = row.get("suggested_actions")
    if actions:
        try:
            row["suggested_actions"] = json.loads(actions)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable suggested_actions on message %s", row.get("message_id"))
            row["suggested_actions"] = []
    else:
        row["suggested_actions"] = []
    return row


class ChatOperations:
    """Chat message helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def _commit(self, conn: "Connection") -> None:
        raise NotImplementedError("Subclass must implement _commit()")

    def insert_chat_message(
        self,
        plant_id: int,
        user_id: int,
        role: str,
        content: str,
        *,
        provider: str | None = None,
        suggested_actions: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        db = self.get_db()
        created_at = iso_now()
        try:
            cursor = db.execute(
                """
                INSERT INTO ChatMessages (plant_id, user_id, role, content, provider, suggested_actions, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    plant_id,
                    user_id,
                    role,
                    content,
                    provider,
                    json.dumps(suggested_actions) if suggested_actions else None,
                    created_at,
                ),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error saving chat message for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to save chat message") from e

        return {
            "message_id": cursor.lastrowid,
            "plant_id": plant_id,
            "user_id": user_id,
            "role": role,
            "content": content,
            "provider": provider,
            "suggested_actions": suggested_actions or [],
            "created_at": created_at,
        }

    def get_chat_messages(self, plant_id: int, user_id: int, limit: int = 50) -> list[dict[str, Any]]:
        """Most recent *limit* messages, oldest first."""
        db = self.get_db()
        try:
            rows = db.execute(
                """
                SELECT * FROM (
                    SELECT * FROM ChatMessages
                    WHERE plant_id = ? AND user_id = ?
                    ORDER BY message_id DESC
                    LIMIT ?
                ) ORDER BY message_id ASC
                """,
                (plant_id, user_id, limit),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error loading chat history for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to load chat history") from e
        return [_row_to_message(dict(row)) for row in rows]

    def delete_chat_messages(self, plant_id: int, user_id: int) -> int:
        db = self.get_db()
        try:
            cursor = db.execute(
                "DELETE FROM ChatMessages WHERE plant_id = ? AND user_id = ?",
                (plant_id, user_id),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error clearing chat history for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to clear chat history") from e
        return cursor.rowcount
