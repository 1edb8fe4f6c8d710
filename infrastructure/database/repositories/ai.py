"""
AI Repositories
===============

Chat history and AI usage logging.
"""
from __future__ import annotations

from typing import Any

from infrastructure.database.repositories.base import SQLiteRepository


class ChatRepository(SQLiteRepository):
    def add_message(
        self,
        plant_id: int,
        user_id: int,
        role: str,
        content: str,
        *,
        provider: str | None = None,
        suggested_actions: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        return self._backend.insert_chat_message(
            plant_id, user_id, role, content, provider=provider, suggested_actions=suggested_actions
        )

    def recent_messages(self, plant_id: int, user_id: int, limit: int = 50) -> list[dict[str, Any]]:
        return self._backend.get_chat_messages(plant_id, user_id, limit)

    def clear(self, plant_id: int, user_id: int) -> int:
        return self._backend.delete_chat_messages(plant_id, user_id)


class AIUsageRepository(SQLiteRepository):
    def record(
        self,
        action: str,
        *,
        user_id: int | None,
        provider: str | None,
        model: str | None,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        self._backend.insert_ai_usage(
            action,
            user_id=user_id,
            provider=provider,
            model=model,
            success=success,
            error_message=error_message,
        )

    def recent(self, user_id: int | None = None, limit: int = 100) -> list[dict[str, Any]]:
        return self._backend.get_ai_usage(user_id, limit)
