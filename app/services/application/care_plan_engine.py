"""
Care Plan Engine
================
Generates and regenerates a plant's active care plan.

A plan is drafted by the AI care advisor from the plant record, its recent
care log and the current season. When the advisor is unavailable or fails,
a deterministic default plan is used instead, so generation always ends
with an active plan.

Regeneration runs in one transaction: older plans are deactivated, pending
tasks are deleted (completed and skipped tasks stay as history), the new
plan is inserted and its filtered tasks are created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from app.domain.care.care_plan_entity import CarePlan, CarePlanDraft, ProposedTask, season_for
from app.domain.care.plant_entity import Plant
from app.domain.care.task_entity import Recurrence, Task
from app.domain.exceptions import ConflictError, ExternalServiceError, NotFoundError
from app.enums import ResultSource, Season, TaskPriority, TaskType
from app.utils.time import add_months, days_from, today_utc

if TYPE_CHECKING:
    from app.domain.care.repository import (
        CareLogRepository,
        CarePlanRepository,
        PlantRepository,
        TaskRepository,
    )
    from app.services.ai.care_advisor import LLMCareAdvisor

logger = logging.getLogger(__name__)

DEFAULT_PLAN_REASONING = "Default care plan based on general houseplant guidelines"
DEFAULT_PHOTO_CHECK_REASON = "Regular health check"
PHOTO_CHECK_DAYS = 14
PLAN_VALID_MONTHS = 3

# Task types that make no sense for a cutting rooting in water
_WATER_PROPAGATION_EXCLUDED = frozenset({TaskType.WATER.value, TaskType.FERTILIZE.value, TaskType.ROTATE.value})


@dataclass
class GeneratedCarePlan:
    """A plan together with its pending tasks. ``plan`` is None for an archived plant never planned."""

    plan: CarePlan | None
    tasks: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "care_plan": self.plan.to_dict() if self.plan else None,
            "tasks": [task.to_dict() for task in self.tasks],
        }


class CarePlanEngine:
    """Builds care plans from AI drafts or the default rules."""

    def __init__(
        self,
        plant_repo: "PlantRepository",
        plan_repo: "CarePlanRepository",
        task_repo: "TaskRepository",
        care_log_repo: "CareLogRepository",
        advisor: "LLMCareAdvisor" | None = None,
        *,
        care_log_context_size: int = 30,
    ):
        self.plant_repo = plant_repo
        self.plan_repo = plan_repo
        self.task_repo = task_repo
        self.care_log_repo = care_log_repo
        self.advisor = advisor
        self.care_log_context_size = care_log_context_size

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    @staticmethod
    def build_default_plan(season: Season, today: date) -> CarePlanDraft:
        """Deterministic plan used whenever the AI draft is unavailable."""
        if season == Season.SUMMER:
            water_interval = 5
        elif season == Season.WINTER:
            water_interval = 10
        else:
            water_interval = 7
        fertilize_interval = 60 if season == Season.WINTER else 30

        return CarePlanDraft(
            reasoning=DEFAULT_PLAN_REASONING,
            next_photo_check=days_from(today, PHOTO_CHECK_DAYS),
            photo_check_reason=DEFAULT_PHOTO_CHECK_REASON,
            source=ResultSource.FALLBACK,
            tasks=[
                ProposedTask(
                    task_type=TaskType.WATER.value,
                    due_date=today,
                    recurrence=Recurrence(interval=water_interval),
                    instructions="Water thoroughly until water drains from bottom",
                    priority=TaskPriority.NORMAL,
                ),
                ProposedTask(
                    task_type=TaskType.CHECK.value,
                    due_date=days_from(today, 3),
                    recurrence=Recurrence(interval=7),
                    instructions="Check soil moisture and leaf condition",
                    priority=TaskPriority.LOW,
                ),
                ProposedTask(
                    task_type=TaskType.FERTILIZE.value,
                    due_date=days_from(today, 14),
                    recurrence=Recurrence(interval=fertilize_interval),
                    instructions="Apply balanced liquid fertilizer at half strength",
                    priority=TaskPriority.LOW,
                ),
            ],
        )

    @staticmethod
    def filter_proposed_tasks(
        plant: Plant,
        tasks: list[ProposedTask],
        disabled_types: set[str] | frozenset[str] = frozenset(),
    ) -> list[ProposedTask]:
        """
        Apply the per-plant task filters, in order:

        1. task types the owner disabled
        2. ``rotate`` when the plant must not be rotated
        3. propagations: water/fertilize/rotate for cuttings in water,
           ``change_water`` for cuttings in a rooting medium
        """
        kept: list[ProposedTask] = []
        for task in tasks:
            task_type = task.task_type
            if task_type in disabled_types:
                logger.debug("Dropping disabled task type %s for plant %s", task_type, plant.plant_id)
                continue
            if task_type == TaskType.ROTATE.value and not plant.can_rotate:
                continue
            if plant.is_propagation:
                if plant.in_water and task_type in _WATER_PROPAGATION_EXCLUDED:
                    continue
                if not plant.in_water and task_type == TaskType.CHANGE_WATER.value:
                    continue
            kept.append(task)
        return kept

    def draft_plan(self, plant: Plant, *, today: date, user_id: int | None = None) -> CarePlanDraft:
        """Ask the advisor for a draft, falling back to the default plan."""
        season = season_for(today)
        if self.advisor is None:
            return self.build_default_plan(season, today)

        care_log = self.care_log_repo.recent(plant.plant_id, self.care_log_context_size)
        stats = self.task_repo.completion_stats(plant.plant_id)
        try:
            return self.advisor.generate_care_plan(
                plant,
                care_log,
                season,
                today=today,
                completion_stats=stats,
                user_id=user_id if user_id is not None else plant.owner_id,
            )
        except ExternalServiceError as exc:
            logger.warning("AI care plan generation failed for plant %s, using default plan: %s", plant.plant_id, exc)
            return self.build_default_plan(season, today)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(self, plant_id: int, *, user_id: int | None = None, today: date | None = None) -> GeneratedCarePlan:
        """
        Generate (or regenerate) the active care plan of a plant.

        Args:
            plant_id: Plant to plan for
            user_id: Acting user; when given, the user must have access
            today: Reference date, defaults to the current UTC date

        Returns:
            The new active plan and the tasks created for it

        Raises:
            NotFoundError: Plant missing or not accessible to ``user_id``
            ConflictError: Plant is archived
        """
        plant = self.plant_repo.get(plant_id)
        if plant is None or (user_id is not None and not self.plant_repo.can_access(user_id, plant_id)):
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})
        if plant.is_archived:
            raise ConflictError("Plant is archived", detail={"plant_id": plant_id})

        today = today or today_utc()
        season = season_for(today)

        # The AI call stays outside the write transaction
        draft = self.draft_plan(plant, today=today, user_id=user_id)
        proposed = self.filter_proposed_tasks(
            plant, draft.tasks, self.plant_repo.disabled_task_types(plant.owner_id)
        )

        with self.plan_repo.transaction():
            deactivated = self.plan_repo.deactivate_all(plant_id)
            deleted = self.task_repo.delete_pending_for_plant(plant_id)
            plan = self.plan_repo.create(
                CarePlan(
                    plant_id=plant_id,
                    season=season,
                    ai_reasoning=draft.reasoning or None,
                    next_photo_check=draft.next_photo_check or days_from(today, PHOTO_CHECK_DAYS),
                    photo_check_reason=draft.photo_check_reason or DEFAULT_PHOTO_CHECK_REASON,
                    valid_until=add_months(today, PLAN_VALID_MONTHS),
                    is_active=True,
                    source=draft.source,
                )
            )
            created: list[Task] = []
            for item in proposed:
                task = self.task_repo.create_if_absent(
                    Task(
                        care_plan_id=plan.plan_id,
                        plant_id=plant_id,
                        task_type=item.task_type,
                        due_date=item.due_date,
                        recurrence=item.recurrence,
                        instructions=item.instructions,
                        priority=item.priority,
                    )
                )
                if task is not None:
                    created.append(task)

        logger.info(
            "Generated %s care plan %s for plant %s: %d tasks (replaced %d plans, %d pending tasks)",
            plan.source.value, plan.plan_id, plant_id, len(created), deactivated, deleted,
        )
        return GeneratedCarePlan(plan=plan, tasks=created)

    def get_active_plan(
        self, plant_id: int, *, user_id: int | None = None, today: date | None = None, task_limit: int = 10
    ) -> GeneratedCarePlan:
        """
        Return the active plan and its next pending tasks, generating one if missing.

        Archived plants are never replanned: their latest plan is returned as is.
        """
        plant = self.plant_repo.get(plant_id)
        if plant is None or (user_id is not None and not self.plant_repo.can_access(user_id, plant_id)):
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})

        if plant.is_archived:
            plans = self.plan_repo.list_for_plant(plant_id)
            return GeneratedCarePlan(plan=plans[0] if plans else None)

        plan = self.plan_repo.get_active(plant_id)
        if plan is None:
            return self.generate(plant_id, user_id=user_id, today=today)

        tasks = self.task_repo.list_pending_for_plant(plant_id, task_limit)
        return GeneratedCarePlan(plan=plan, tasks=tasks)
