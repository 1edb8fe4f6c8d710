"""
Recommendation Engine
=====================
Context-aware instructions for a single care task.

The AI care advisor is asked first. When it is not configured or fails,
recommendations come from a rule table keyed by task type and adjusted for
pot size, species family, plant health and season. Every call returns a
well-formed :class:`Recommendation`; ``source`` tells which path produced it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from app.domain.care.care_log_entity import HEALTH_UPDATE_ACTION
from app.domain.care.care_plan_entity import SEASONAL_CONTEXT, SeasonalContext, season_for
from app.domain.care.plant_entity import Plant
from app.domain.care.task_entity import Task
from app.domain.exceptions import ExternalServiceError, NotFoundError
from app.enums import PotSize, ResultSource, Season, TaskType
from app.utils.time import today_utc

if TYPE_CHECKING:
    from app.domain.care.repository import (
        CareLogRepository,
        CarePlanRepository,
        PlantRepository,
        TaskRepository,
    )
    from app.services.ai.care_advisor import LLMCareAdvisor

logger = logging.getLogger(__name__)

DEFAULT_TIMING = "Morning is generally best"
DRY_LOVING_FAMILIES = ("succulent", "cactus")

_WATER_AMOUNTS = {
    PotSize.SMALL: "100-200ml",
    PotSize.MEDIUM: "300-500ml",
    PotSize.LARGE: "500-750ml",
    PotSize.XLARGE: "1-1.5L",
}

_FERTILIZER_STRENGTHS = {
    PotSize.SMALL: "1/4",
    PotSize.MEDIUM: "1/2",
    PotSize.LARGE: "1/2-full",
    PotSize.XLARGE: "full",
}

_TRIM_STEPS = [
    "Use clean, sharp scissors or pruning shears",
    "Remove any yellow, brown, or dead leaves at their base",
    "Trim leggy growth to encourage bushier shape",
    "Cut just above a leaf node for best regrowth",
]


@dataclass
class Recommendation:
    summary: str
    steps: list[str] = field(default_factory=list)
    amount: str = ""
    timing: str = DEFAULT_TIMING
    warnings: list[str] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)
    source: ResultSource = ResultSource.FALLBACK

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "steps": list(self.steps),
            "amount": self.amount,
            "timing": self.timing,
            "warnings": list(self.warnings),
            "tips": list(self.tips),
            "source": self.source.value,
        }


def _pot_size(plant: Plant) -> PotSize:
    try:
        return PotSize((plant.pot_size or "").lower())
    except ValueError:
        return PotSize.MEDIUM


def _is_dry_loving(plant: Plant) -> bool:
    species = (plant.species or "").lower()
    return any(family in species for family in DRY_LOVING_FAMILIES)


def fallback_recommendation(task: Task, plant: Plant, seasonal: SeasonalContext | None = None) -> Recommendation:
    """Rule-based recommendation used when the AI advisor is unavailable."""
    name = plant.name or "your plant"
    pot = _pot_size(plant)
    rec = Recommendation(summary="")

    health = plant.health
    if health is not None and health.needs_attention:
        rec.warnings.append(
            f"This plant is currently {health.value} - proceed carefully and monitor closely after care."
        )
    if seasonal is not None:
        rec.tips.append(f"Seasonal note ({seasonal.season.value}): {seasonal.watering_adjustment}")

    task_type = task.task_type
    if task_type == TaskType.WATER.value:
        rec.summary = f"Water {name} thoroughly until water drains from the bottom."
        rec.amount = _WATER_AMOUNTS[pot]
        rec.steps = [
            "Check soil moisture 1-2 inches deep with your finger or moisture meter",
            "If dry, water slowly around the base of the plant",
            "Continue until water drains from drainage holes",
            "Empty saucer after 30 minutes to prevent root rot",
        ]
        if _is_dry_loving(plant):
            rec.warnings.append("Succulents prefer to dry out completely between waterings")
            rec.amount = "Soak thoroughly, then wait until bone dry"

    elif task_type == TaskType.FERTILIZE.value:
        strength = _FERTILIZER_STRENGTHS[pot]
        rec.summary = f"Apply balanced fertilizer at {strength} strength to support growth."
        rec.amount = f"{strength} strength dilution"
        rec.steps = [
            "Ensure soil is moist before fertilizing (water lightly first if dry)",
            "Mix fertilizer at recommended dilution",
            "Apply evenly around the soil surface",
            "Water again lightly to help distribute nutrients",
        ]
        if seasonal is not None and seasonal.season == Season.WINTER:
            rec.warnings.append("Most plants don't need fertilizer in winter - consider skipping")

    elif task_type in (TaskType.TRIM.value, TaskType.PRUNE.value):
        rec.summary = f"Remove dead or yellowing leaves and shape {name} as needed."
        rec.steps = list(_TRIM_STEPS)
        rec.tips.append("Healthy cuttings can often be propagated in water!")

    elif task_type == TaskType.REPOT.value:
        rec.summary = f"Move {name} to a slightly larger pot with fresh soil."
        rec.amount = "New pot should be 1-2 inches larger in diameter"
        rec.steps = [
            "Water the plant 1-2 days before repotting",
            "Prepare new pot with drainage and fresh potting mix",
            "Gently remove plant and loosen root ball",
            "Place in new pot at same depth, fill with soil",
            "Water thoroughly and keep in indirect light for a week",
        ]

    elif task_type == TaskType.MIST.value:
        rec.summary = f"Mist {name} to increase humidity around the leaves."
        rec.steps = [
            "Use room temperature water in a spray bottle",
            "Mist around and above the plant, not directly on leaves",
            "Focus on the air around the plant",
        ]
        rec.timing = "Morning is best - leaves need time to dry before evening"
        if _is_dry_loving(plant):
            rec.warnings.append("Skip misting! Succulents and cacti prefer dry conditions.")

    elif task_type == TaskType.ROTATE.value:
        rec.summary = f"Turn {name} 1/4 turn for even light exposure."
        rec.steps = [
            "Rotate the pot 90 degrees (1/4 turn)",
            "Always rotate in the same direction",
            "Mark the pot if needed to track rotation",
        ]
        rec.tips.append("This prevents lopsided growth toward the light source")

    elif task_type == TaskType.CHECK.value:
        rec.summary = f"Inspect {name} for overall health and any issues."
        rec.steps = [
            "Check leaves (top and bottom) for pests or spots",
            "Feel soil moisture level",
            "Look for new growth or changes",
            "Check for yellowing, browning, or drooping",
        ]
        rec.tips.append("Take a photo to track changes over time")

    elif task_type == TaskType.CHANGE_WATER.value:
        rec.summary = f"Replace the water around {name}'s cutting with fresh, room temperature water."
        rec.steps = [
            "Pour out the old water and rinse the vessel",
            "Refill with room temperature water, ideally left out overnight",
            "Keep nodes submerged and leaves above the waterline",
        ]
        rec.tips.append("Cloudy or smelly water means it should be changed more often")

    elif task_type == TaskType.CHECK_ROOTS.value:
        rec.summary = f"Check how {name}'s roots are developing."
        rec.steps = [
            "Look for new white roots at the nodes",
            "Note root length; 2-3 cm roots are usually ready for potting",
            "Remove any soft, brown or slimy roots",
        ]

    elif task_type == TaskType.POT_UP.value:
        rec.summary = f"Move {name} from propagation into a small pot with fresh soil."
        rec.amount = "A pot just a little wider than the root mass"
        rec.steps = [
            "Prepare a small pot with drainage and light, airy potting mix",
            "Plant the cutting at the same depth the roots were growing",
            "Water gently and keep the soil lightly moist for the first weeks",
            "Keep in bright, indirect light while it adjusts",
        ]

    else:
        rec.summary = f"Complete the {task_type} task for {name}."
        rec.steps = ["Follow standard care practices for this task type"]

    return rec


class RecommendationEngine:
    """Produces task recommendations from the AI advisor or the rule table."""

    def __init__(
        self,
        plant_repo: "PlantRepository",
        plan_repo: "CarePlanRepository",
        task_repo: "TaskRepository",
        care_log_repo: "CareLogRepository",
        advisor: "LLMCareAdvisor" | None = None,
    ):
        self.plant_repo = plant_repo
        self.plan_repo = plan_repo
        self.task_repo = task_repo
        self.care_log_repo = care_log_repo
        self.advisor = advisor

    def recommend(self, task_id: int, user_id: int, *, today: date | None = None) -> Recommendation:
        """
        Recommendation for one task.

        Raises:
            NotFoundError: Task missing or its plant not accessible
        """
        task = self.task_repo.get(task_id)
        if task is None or not self.plant_repo.can_access(user_id, task.plant_id):
            raise NotFoundError("Task not found", detail={"task_id": task_id})
        plant = self.plant_repo.get(task.plant_id)
        if plant is None:
            raise NotFoundError("Task not found", detail={"task_id": task_id})

        seasonal = SEASONAL_CONTEXT[season_for(today or today_utc())]

        if self.advisor is not None:
            plan = self.plan_repo.get_active(plant.plant_id)
            try:
                payload = self.advisor.recommend_task(
                    plant,
                    task,
                    care_history=self.care_log_repo.recent(plant.plant_id, 10),
                    health_history=self.care_log_repo.recent(plant.plant_id, 3, HEALTH_UPDATE_ACTION),
                    seasonal=seasonal,
                    plan_reasoning=plan.ai_reasoning if plan else None,
                    user_id=user_id,
                )
                return Recommendation(
                    summary=payload.summary,
                    steps=payload.steps,
                    amount=payload.amount,
                    timing=payload.timing or DEFAULT_TIMING,
                    warnings=payload.warnings,
                    tips=payload.tips,
                    source=ResultSource.AI,
                )
            except ExternalServiceError as exc:
                logger.warning("AI recommendation failed for task %s, using rule table: %s", task_id, exc)

        return fallback_recommendation(task, plant, seasonal)
