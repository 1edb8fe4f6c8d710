"""AI usage log: one row per provider call, successful or not."""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from app.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class AIUsageOperations:
    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def _commit(self, conn: "Connection") -> None:
        raise NotImplementedError("Subclass must implement _commit()")

    def insert_ai_usage(
        self,
        action: str,
        *,
        user_id: int | None,
        provider: str | None,
        model: str | None,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        """Record a provider call. Failures to record are logged, not raised."""
        db = self.get_db()
        try:
            db.execute(
                """
                INSERT INTO AIUsageLog (user_id, action, provider, model, success, error_message, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (user_id, action, provider, model, int(success), error_message, iso_now()),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.warning("Could not record AI usage for %s: %s", action, e)

    def get_ai_usage(self, user_id: int | None = None, limit: int = 100) -> list[dict[str, Any]]:
        db = self.get_db()
        sql = "SELECT * FROM AIUsageLog"
        params: list = []
        if user_id is not None:
            sql += " WHERE user_id = ?"
            params.append(user_id)
        sql += " ORDER BY usage_id DESC LIMIT ?"
        params.append(limit)
        try:
            rows = db.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error reading AI usage log: %s", e)
            return []
        return [dict(row) for row in rows]
