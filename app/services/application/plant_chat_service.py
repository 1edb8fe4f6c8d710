"""
Plant Chat Service
==================
Conversations with the AI care advisor about one plant.

Both turns of an exchange are stored only after the provider answered, so
a failed request leaves no half conversation behind. Chat has no fallback:
provider failures surface as ExternalServiceError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.domain.care.suggested_actions import action_to_dict
from app.domain.exceptions import ExternalServiceError, NotFoundError, ValidationError
from app.enums import ChatRole

if TYPE_CHECKING:
    from app.domain.care.repository import CareLogRepository, PlantRepository, TaskRepository
    from app.services.ai.care_advisor import LLMCareAdvisor
    from infrastructure.database.repositories.ai import ChatRepository

logger = logging.getLogger(__name__)

HISTORY_TURNS = 10
CONTEXT_LIMIT = 10
MAX_MESSAGE_LENGTH = 4000


class PlantChatService:
    def __init__(
        self,
        plant_repo: "PlantRepository",
        task_repo: "TaskRepository",
        care_log_repo: "CareLogRepository",
        chat_repo: "ChatRepository",
        advisor: "LLMCareAdvisor" | None = None,
    ):
        self.plant_repo = plant_repo
        self.task_repo = task_repo
        self.care_log_repo = care_log_repo
        self.chat_repo = chat_repo
        self.advisor = advisor

    def _require_access(self, user_id: int, plant_id: int):
        plant = self.plant_repo.get(plant_id)
        if plant is None or not self.plant_repo.can_access(user_id, plant_id):
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})
        return plant

    def send(self, user_id: int, plant_id: int, message: str) -> dict[str, Any]:
        """
        Send a message about a plant and return the assistant's reply.

        Returns:
            ``{"response", "suggested_actions", "provider"}``
        """
        message = (message or "").strip()
        if not message:
            raise ValidationError("Message is required")
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")

        plant = self._require_access(user_id, plant_id)
        if self.advisor is None:
            raise ExternalServiceError("No AI provider configured", detail={"action": "chat"})

        history = [
            {"role": item["role"], "content": item["content"]}
            for item in self.chat_repo.recent_messages(plant_id, user_id, HISTORY_TURNS)
        ]
        history.append({"role": ChatRole.USER.value, "content": message})
        context = {
            "care_log": self.care_log_repo.recent(plant_id, CONTEXT_LIMIT),
            "pending_tasks": self.task_repo.list_pending_for_plant(plant_id, CONTEXT_LIMIT),
        }

        reply = self.advisor.chat(plant, history, context, user_id=user_id)
        actions = [action_to_dict(action) for action in reply.suggested_actions]

        with self.chat_repo.transaction():
            self.chat_repo.add_message(plant_id, user_id, ChatRole.USER.value, message, provider=reply.provider)
            self.chat_repo.add_message(
                plant_id,
                user_id,
                ChatRole.ASSISTANT.value,
                reply.content,
                provider=reply.provider,
                suggested_actions=actions,
            )

        logger.debug("Chat reply for plant %s with %d suggested actions", plant_id, len(actions))
        return {"response": reply.content, "suggested_actions": actions, "provider": reply.provider}

    def history(self, user_id: int, plant_id: int, limit: int = 50) -> list[dict[str, Any]]:
        self._require_access(user_id, plant_id)
        return self.chat_repo.recent_messages(plant_id, user_id, max(1, min(int(limit), 200)))

    def clear_history(self, user_id: int, plant_id: int) -> int:
        self._require_access(user_id, plant_id)
        removed = self.chat_repo.clear(plant_id, user_id)
        logger.info("Cleared %d chat messages for plant %s", removed, plant_id)
        return removed
