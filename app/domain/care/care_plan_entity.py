"""
Care Plan Domain Entity
=======================

Care plans, AI/fallback plan drafts and the seasonal context shared by
plan generation and task recommendations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from app.domain.care.task_entity import Recurrence
from app.enums import ResultSource, Season, TaskPriority
from app.utils.time import coerce_date

_SEASON_BY_MONTH = {
    3: Season.SPRING, 4: Season.SPRING, 5: Season.SPRING,
    6: Season.SUMMER, 7: Season.SUMMER, 8: Season.SUMMER,
    9: Season.FALL, 10: Season.FALL, 11: Season.FALL,
}


def season_for(day: date) -> Season:
    """Meteorological season for *day*."""
    return _SEASON_BY_MONTH.get(day.month, Season.WINTER)


@dataclass(frozen=True)
class SeasonalContext:
    season: Season
    growth_phase: str
    watering_adjustment: str
    fertilizing: str
    notes: str

    def to_dict(self) -> dict[str, str]:
        return {
            "season": self.season.value,
            "growth_phase": self.growth_phase,
            "watering_adjustment": self.watering_adjustment,
            "fertilizing": self.fertilizing,
            "notes": self.notes,
        }


SEASONAL_CONTEXT: dict[Season, SeasonalContext] = {
    Season.SPRING: SeasonalContext(
        season=Season.SPRING,
        growth_phase="Active growth beginning",
        watering_adjustment="Increase watering as growth resumes",
        fertilizing="Resume fertilizing at half strength",
        notes="Good time for repotting and propagation",
    ),
    Season.SUMMER: SeasonalContext(
        season=Season.SUMMER,
        growth_phase="Peak growing season",
        watering_adjustment="Water more frequently, check soil often",
        fertilizing="Regular fertilizing schedule",
        notes="Watch for heat stress and increased pest activity",
    ),
    Season.FALL: SeasonalContext(
        season=Season.FALL,
        growth_phase="Growth slowing down",
        watering_adjustment="Gradually reduce watering frequency",
        fertilizing="Reduce or stop fertilizing",
        notes="Prepare plants for dormancy, bring outdoor plants inside",
    ),
    Season.WINTER: SeasonalContext(
        season=Season.WINTER,
        growth_phase="Dormancy period",
        watering_adjustment="Water sparingly, let soil dry more between waterings",
        fertilizing="No fertilizing needed",
        notes="Keep away from cold drafts and heating vents",
    ),
}


@dataclass
class ProposedTask:
    """Task proposed by a plan draft, not yet persisted."""

    task_type: str
    due_date: date
    recurrence: Recurrence | None = None
    instructions: str | None = None
    priority: TaskPriority = TaskPriority.NORMAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_type": self.task_type,
            "due_date": self.due_date.isoformat(),
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "instructions": self.instructions,
            "priority": self.priority.value,
        }


@dataclass
class CarePlanDraft:
    """Plan proposal from the AI provider or the default rules."""

    reasoning: str
    tasks: list[ProposedTask] = field(default_factory=list)
    next_photo_check: date | None = None
    photo_check_reason: str | None = None
    source: ResultSource = ResultSource.AI


@dataclass
class CarePlan:
    """
    Active or historical care plan of a plant.

    At most one plan per plant is active; older plans are kept for history.
    """

    plan_id: int | None = None
    plant_id: int = 0
    season: Season = Season.SPRING
    ai_reasoning: str | None = None
    next_photo_check: date | None = None
    photo_check_reason: str | None = None
    valid_until: date | None = None
    is_active: bool = True
    source: ResultSource = ResultSource.AI
    generated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "plant_id": self.plant_id,
            "season": self.season.value,
            "ai_reasoning": self.ai_reasoning,
            "next_photo_check": self.next_photo_check.isoformat() if self.next_photo_check else None,
            "photo_check_reason": self.photo_check_reason,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
            "is_active": self.is_active,
            "source": self.source.value,
            "generated_at": self.generated_at,
        }

    @staticmethod
    def from_row(row: dict[str, Any]) -> "CarePlan":
        try:
            source = ResultSource(row.get("source") or "ai")
        except ValueError:
            source = ResultSource.AI
        return CarePlan(
            plan_id=row.get("plan_id"),
            plant_id=row.get("plant_id") or 0,
            season=Season(row.get("season") or Season.SPRING.value),
            ai_reasoning=row.get("ai_reasoning"),
            next_photo_check=coerce_date(row.get("next_photo_check")),
            photo_check_reason=row.get("photo_check_reason"),
            valid_until=coerce_date(row.get("valid_until")),
            is_active=bool(row.get("is_active")),
            source=source,
            generated_at=row.get("generated_at"),
        )
