"""
Container Builder
=================
Wires the database, repositories, AI advisor and application services
that make up the :class:`~app.services.container.ServiceContainer`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.config import AppConfig
from app.services.ai.care_advisor import LLMCareAdvisor
from app.services.ai.llm_backends import LLMBackend, create_backend
from app.services.application.care_plan_engine import CarePlanEngine
from app.services.application.plant_chat_service import PlantChatService
from app.services.application.plant_service import PlantService
from app.services.application.recommendation_engine import RecommendationEngine
from app.services.application.task_agenda import TaskAgenda
from app.services.application.task_lifecycle import TaskLifecycle
from app.services.application.task_scheduler import TaskScheduler
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
class InfrastructureComponents:
    """Infrastructure layer components (database and repositories)."""

    database: SQLiteDatabaseHandler
    plant_repo: PlantRepository
    plan_repo: CarePlanRepository
    task_repo: TaskRepository
    care_log_repo: CareLogRepository
    household_repo: HouseholdRepository
    chat_repo: ChatRepository
    ai_usage_repo: AIUsageRepository


@dataclass
class AIComponents:
    llm_backend: LLMBackend | None
    care_advisor: LLMCareAdvisor | None


@dataclass
class ApplicationComponents:
    """Care services built on top of the repositories."""

    care_plan_engine: CarePlanEngine
    task_scheduler: TaskScheduler
    task_lifecycle: TaskLifecycle
    task_agenda: TaskAgenda
    recommendation_engine: RecommendationEngine
    plant_service: PlantService
    plant_chat_service: PlantChatService


class ContainerBuilder:
    """
    Builder for constructing the service container.

    Each method constructs one layer; ``build`` runs them in dependency order.
    """

    def __init__(self, config: AppConfig, *, database: SQLiteDatabaseHandler | None = None):
        """
        Args:
            config: Application configuration
            database: Pre-built database handler (tests pass an in-memory one)
        """
        self.config = config
        self._database = database

    def build_infrastructure(self) -> InfrastructureComponents:
        logger.info("Building infrastructure components...")

        database = self._database
        if database is None:
            database = SQLiteDatabaseHandler(self.config.database_path)
            database.init_app(None)

        return InfrastructureComponents(
            database=database,
            plant_repo=PlantRepository(database),
            plan_repo=CarePlanRepository(database),
            task_repo=TaskRepository(database),
            care_log_repo=CareLogRepository(database),
            household_repo=HouseholdRepository(database),
            chat_repo=ChatRepository(database),
            ai_usage_repo=AIUsageRepository(database),
        )

    def build_ai_components(self, infra: InfrastructureComponents) -> AIComponents:
        """
        Build the LLM backend and care advisor.

        With provider ``none`` (or a backend that fails to initialise) the
        advisor is None and every AI-backed flow uses its fallback.
        """
        backend = create_backend(
            self.config.llm_provider,
            api_key=self.config.llm_api_key,
            model=self.config.llm_model,
            base_url=self.config.llm_base_url or None,
            timeout=self.config.llm_timeout,
        )
        if backend is None:
            return AIComponents(llm_backend=None, care_advisor=None)

        advisor = LLMCareAdvisor(
            backend,
            usage_repo=infra.ai_usage_repo,
            max_tokens=self.config.llm_max_tokens,
            temperature=self.config.llm_temperature,
        )
        logger.info("✓ AI care advisor ready (%s/%s)", backend.name, backend.model)
        return AIComponents(llm_backend=backend, care_advisor=advisor)

    def build_application_components(
        self, infra: InfrastructureComponents, ai: AIComponents
    ) -> ApplicationComponents:
        advisor = ai.care_advisor

        engine = CarePlanEngine(
            infra.plant_repo,
            infra.plan_repo,
            infra.task_repo,
            infra.care_log_repo,
            advisor,
            care_log_context_size=self.config.care_log_context_size,
        )
        scheduler = TaskScheduler(
            infra.plant_repo,
            infra.task_repo,
            infra.care_log_repo,
            advisor,
            skip_history_days=self.config.skip_history_days,
        )
        lifecycle = TaskLifecycle(
            infra.plant_repo,
            infra.task_repo,
            infra.care_log_repo,
            scheduler,
            bulk_limit=self.config.bulk_complete_limit,
        )

        return ApplicationComponents(
            care_plan_engine=engine,
            task_scheduler=scheduler,
            task_lifecycle=lifecycle,
            task_agenda=TaskAgenda(infra.plant_repo, infra.task_repo, upcoming_days=self.config.upcoming_days),
            recommendation_engine=RecommendationEngine(
                infra.plant_repo, infra.plan_repo, infra.task_repo, infra.care_log_repo, advisor
            ),
            plant_service=PlantService(
                infra.plant_repo, infra.plan_repo, infra.task_repo, infra.care_log_repo, engine
            ),
            plant_chat_service=PlantChatService(
                infra.plant_repo, infra.task_repo, infra.care_log_repo, infra.chat_repo, advisor
            ),
        )

    def build(self) -> dict[str, Any]:
        """
        Build the complete service container.

        Returns:
            Dictionary with all components for ServiceContainer construction
        """
        infra = self.build_infrastructure()
        ai = self.build_ai_components(infra)
        app_components = self.build_application_components(infra, ai)
        logger.info("✓ Application services initialized")

        return {
            "config": self.config,
            **vars(infra),
            **vars(ai),
            **vars(app_components),
        }
