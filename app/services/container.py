from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from app.config import AppConfig
from app.services.ai.care_advisor import LLMCareAdvisor
from app.services.ai.llm_backends import LLMBackend
from app.services.application.care_plan_engine import CarePlanEngine
from app.services.application.plant_chat_service import PlantChatService
from app.services.application.plant_service import PlantService
from app.services.application.recommendation_engine import RecommendationEngine
from app.services.application.task_agenda import TaskAgenda
from app.services.application.task_lifecycle import TaskLifecycle
from app.services.application.task_scheduler import TaskScheduler
from app.services.container_builder import ContainerBuilder
from infrastructure.database.repositories import (
    AIUsageRepository,
    CareLogRepository,
    CarePlanRepository,
    ChatRepository,
    HouseholdRepository,
    PlantRepository,
    TaskRepository,
)
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    # Repositories
    plant_repo: PlantRepository
    plan_repo: CarePlanRepository
    task_repo: TaskRepository
    care_log_repo: CareLogRepository
    household_repo: HouseholdRepository
    chat_repo: ChatRepository
    ai_usage_repo: AIUsageRepository
    # AI
    llm_backend: Optional[LLMBackend]
    care_advisor: Optional[LLMCareAdvisor]
    # Care services
    care_plan_engine: CarePlanEngine
    task_scheduler: TaskScheduler
    task_lifecycle: TaskLifecycle
    task_agenda: TaskAgenda
    recommendation_engine: RecommendationEngine
    plant_service: PlantService
    plant_chat_service: PlantChatService

    @classmethod
    def build(cls, config: AppConfig, *, database: SQLiteDatabaseHandler | None = None) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            database: Optional pre-built database handler
        """
        logger.info("Building ServiceContainer using ContainerBuilder...")
        components = ContainerBuilder(config, database=database).build()
        container = cls(**components)
        logger.info("ServiceContainer built successfully.")
        return container

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        self.database.close_db()
        logger.info("ServiceContainer shut down")
