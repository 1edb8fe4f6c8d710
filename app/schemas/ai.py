"""
AI Payload Schemas
==================

Validation models for the JSON objects returned by the AI provider.
Anything that fails validation is treated as a provider failure.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


def _as_text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item not in (None, "")]
    return [str(value)]


class ProposedTaskPayload(BaseModel):
    """One task in a generated care plan."""

    type: str = Field(..., min_length=1, description="Task type, e.g. water")
    due_date: str | None = Field(default=None, description="YYYY-MM-DD")
    recurrence: dict[str, Any] | None = Field(default=None, description='{"type": "days", "interval": 7}')
    instructions: str | None = None
    priority: str | None = None

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return v.strip().lower()


class CarePlanPayload(BaseModel):
    reasoning: str = ""
    next_photo_check: str | None = None
    photo_check_reason: str | None = None
    tasks: list[dict[str, Any]] = Field(default_factory=list)


class ChatPayload(BaseModel):
    content: str = Field(..., min_length=1)
    suggested_actions: list[dict[str, Any]] = Field(default_factory=list)


class ScheduleSuggestionPayload(BaseModel):
    should_adjust: bool = False
    new_interval: int | None = Field(default=None, ge=1)
    suggestion: str = Field(..., min_length=1)
    reasoning: str | None = None

    @field_validator("new_interval", mode="before")
    @classmethod
    def round_interval(cls, v: Any) -> Any:
        if isinstance(v, float):
            return round(v)
        return v


class TaskRecommendationPayload(BaseModel):
    summary: str = Field(..., min_length=1)
    steps: list[str] = Field(default_factory=list)
    amount: str = ""
    timing: str = ""
    warnings: list[str] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)

    @field_validator("steps", "warnings", "tips", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list[str]:
        return _as_text_list(v)

    @field_validator("amount", "timing", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)
