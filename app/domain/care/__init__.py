"""
Care Domain Module
==================

Domain model for plants, care plans, recurring tasks and the care log.

This module provides:
- Plant / PlantPatch: plant record and its typed partial update
- CarePlan / CarePlanDraft / ProposedTask: generated plans
- Task / Recurrence: scheduled care actions and their recurrence rule
- CareLogEntry: append-only care history
- Suggested actions: chat assistant proposals as a tagged union
- Repository protocols for persistence
"""
from app.domain.care.care_log_entity import CareLogEntry
from app.domain.care.care_plan_entity import (
    SEASONAL_CONTEXT,
    CarePlan,
    CarePlanDraft,
    ProposedTask,
    SeasonalContext,
    season_for,
)
from app.domain.care.plant_entity import UNSET, Plant, PlantPatch
from app.domain.care.repository import (
    CareLogRepository,
    CarePlanRepository,
    PlantRepository,
    TaskRepository,
)
from app.domain.care.task_entity import Recurrence, Task

__all__ = [
    "CareLogEntry",
    "CarePlan",
    "CarePlanDraft",
    "ProposedTask",
    "SeasonalContext",
    "SEASONAL_CONTEXT",
    "season_for",
    "Plant",
    "PlantPatch",
    "UNSET",
    "Recurrence",
    "Task",
    "PlantRepository",
    "CarePlanRepository",
    "TaskRepository",
    "CareLogRepository",
]
