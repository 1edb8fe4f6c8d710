"""
Shared test fixtures for the plant care backend test suite.

Provides:
- In-memory SQLite database with all tables created
- Repository instances wired to the test database
- A scripted LLM backend standing in for the AI provider
- Service factories for the care services
- Helper utilities for seeding test data

Usage:
    def test_example(seed, task_repo):
        plant = seed.create_plant(owner_id=1)
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        assert task_repo.get(task.task_id).is_pending
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any

import pytest

from app.domain.care import Plant, Recurrence, Task
from app.enums import TaskPriority
from app.services.ai.care_advisor import LLMCareAdvisor
from app.services.ai.llm_backends import LLMBackend, LLMResponse
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

# ---------------------------------------------------------------------------
# Logging — keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

OWNER_ID = 1
MEMBER_ID = 2
STRANGER_ID = 3


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created.

    Each test gets a fresh database — no cross-test contamination.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close_db()


# ========================== Repository Fixtures ============================


@pytest.fixture()
def plant_repo(db_handler):
    return PlantRepository(db_handler)


@pytest.fixture()
def plan_repo(db_handler):
    return CarePlanRepository(db_handler)


@pytest.fixture()
def task_repo(db_handler):
    return TaskRepository(db_handler)


@pytest.fixture()
def care_log_repo(db_handler):
    return CareLogRepository(db_handler)


@pytest.fixture()
def household_repo(db_handler):
    return HouseholdRepository(db_handler)


@pytest.fixture()
def chat_repo(db_handler):
    return ChatRepository(db_handler)


@pytest.fixture()
def ai_usage_repo(db_handler):
    return AIUsageRepository(db_handler)


# ========================== AI Provider Fixtures ===========================


class FakeBackend(LLMBackend):
    """LLM backend that returns scripted replies and records every call.

    Queue replies with :meth:`reply` (dicts are JSON-encoded). Setting
    ``error`` makes every call raise it.
    """

    def __init__(self) -> None:
        self.replies: list[str] = []
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return "fake-model"

    @property
    def is_available(self) -> bool:
        return True

    def initialize(self) -> bool:
        return True

    def reply(self, payload: dict | str) -> "FakeBackend":
        self.replies.append(payload if isinstance(payload, str) else json.dumps(payload))
        return self

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        history: list[dict[str, str]] | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "history": list(history or []),
                "json_mode": json_mode,
            }
        )
        if self.error is not None:
            raise self.error
        if not self.replies:
            raise RuntimeError("FakeBackend has no scripted reply")
        return LLMResponse(text=self.replies.pop(0), model=self.model)


@pytest.fixture()
def fake_backend():
    return FakeBackend()


@pytest.fixture()
def advisor(fake_backend, ai_usage_repo):
    return LLMCareAdvisor(fake_backend, usage_repo=ai_usage_repo)


# ========================== Service Factory Fixtures =======================


@pytest.fixture()
def care_plan_engine(plant_repo, plan_repo, task_repo, care_log_repo):
    """CarePlanEngine without an AI provider (default plans only)."""
    return CarePlanEngine(plant_repo, plan_repo, task_repo, care_log_repo)


@pytest.fixture()
def ai_care_plan_engine(plant_repo, plan_repo, task_repo, care_log_repo, advisor):
    return CarePlanEngine(plant_repo, plan_repo, task_repo, care_log_repo, advisor)


@pytest.fixture()
def scheduler(plant_repo, task_repo, care_log_repo):
    return TaskScheduler(plant_repo, task_repo, care_log_repo)


@pytest.fixture()
def ai_scheduler(plant_repo, task_repo, care_log_repo, advisor):
    return TaskScheduler(plant_repo, task_repo, care_log_repo, advisor)


@pytest.fixture()
def lifecycle(plant_repo, task_repo, care_log_repo, scheduler):
    return TaskLifecycle(plant_repo, task_repo, care_log_repo, scheduler)


@pytest.fixture()
def agenda(plant_repo, task_repo):
    return TaskAgenda(plant_repo, task_repo)


@pytest.fixture()
def recommendation_engine(plant_repo, plan_repo, task_repo, care_log_repo):
    return RecommendationEngine(plant_repo, plan_repo, task_repo, care_log_repo)


@pytest.fixture()
def ai_recommendation_engine(plant_repo, plan_repo, task_repo, care_log_repo, advisor):
    return RecommendationEngine(plant_repo, plan_repo, task_repo, care_log_repo, advisor)


@pytest.fixture()
def plant_service(plant_repo, plan_repo, task_repo, care_log_repo, care_plan_engine):
    return PlantService(plant_repo, plan_repo, task_repo, care_log_repo, care_plan_engine)


@pytest.fixture()
def chat_service(plant_repo, task_repo, care_log_repo, chat_repo, advisor):
    return PlantChatService(plant_repo, task_repo, care_log_repo, chat_repo, advisor)


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(seed):
            plant = seed.create_plant(owner_id=1, species="Monstera deliciosa")
            task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)
            seed.share_with(plant.plant_id, member_id=2)
    """

    def __init__(self, db_handler: SQLiteDatabaseHandler):
        self._plants = PlantRepository(db_handler)
        self._tasks = TaskRepository(db_handler)
        self._households = HouseholdRepository(db_handler)

    def create_plant(self, owner_id: int = OWNER_ID, name: str = "Monty", **fields: Any) -> Plant:
        fields.setdefault("pot_size", "medium")
        fields.setdefault("soil_type", "standard")
        return self._plants.create(Plant(owner_id=owner_id, name=name, **fields))

    def create_task(
        self,
        plant_id: int,
        task_type: str = "water",
        due_date: date | None = None,
        *,
        interval: int | None = 7,
        recurrence_type: str = "days",
        priority: TaskPriority = TaskPriority.NORMAL,
        instructions: str | None = None,
    ) -> Task | None:
        recurrence = Recurrence.from_value({"type": recurrence_type, "interval": interval}) if interval else None
        return self._tasks.create_if_absent(
            Task(
                plant_id=plant_id,
                task_type=task_type,
                due_date=due_date or date.today(),
                recurrence=recurrence,
                priority=priority,
                instructions=instructions,
            )
        )

    def share_with(self, plant_id: int, member_id: int = MEMBER_ID, owner_id: int = OWNER_ID) -> int:
        """Create a household owned by ``owner_id`` and share the plant with ``member_id``."""
        household_id = self._households.create("Home", owner_id)
        self._households.add_member(household_id, owner_id, "owner")
        self._households.add_member(household_id, member_id)
        self._households.share_plant(household_id, plant_id)
        return household_id


@pytest.fixture()
def seed(db_handler):
    """SeedData helper for quickly populating the test database."""
    return SeedData(db_handler)
