"""
Care Schemas
============

Request schemas for plant, care log, chat and task endpoints.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from app.domain.care.plant_entity import NON_NULLABLE_FIELDS
from app.enums import CareOutcome, PlantHealthStatus, PotSize


def _strip_or_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class CreatePlantRequest(BaseModel):
    """Request schema for registering a plant."""

    name: str = Field(..., min_length=1, max_length=120, description="Display name")
    species: str | None = Field(default=None, description="Species, marks the plant confirmed when given")
    pot_size: PotSize | None = Field(default=None, description="small, medium, large or xlarge")
    soil_type: str | None = Field(default=None, description='Growing medium; "water" for water propagation')
    light_condition: str | None = None
    location: str | None = None
    notes: str | None = None
    can_rotate: bool = True
    is_propagation: bool = False
    propagation_date: date | None = None
    has_grow_light: bool = False
    grow_light_hours: float | None = Field(default=None, ge=0, le=24)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("species", "soil_type", "light_condition", "location", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        return _strip_or_none(v)

    @field_validator("soil_type")
    @classmethod
    def lower_soil(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class UpdatePlantRequest(BaseModel):
    """Partial plant update; only fields present in the body are written."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    species: str | None = None
    pot_size: PotSize | None = None
    soil_type: str | None = None
    light_condition: str | None = None
    location: str | None = None
    notes: str | None = None
    health_status: PlantHealthStatus | None = None
    can_rotate: bool | None = None
    is_propagation: bool | None = None
    propagation_date: date | None = None
    has_grow_light: bool | None = None
    grow_light_hours: float | None = Field(default=None, ge=0, le=24)

    @model_validator(mode="before")
    @classmethod
    def reject_null_required(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulls = sorted(key for key in NON_NULLABLE_FIELDS if key in data and data[key] is None)
            if nulls:
                raise ValueError(f"{', '.join(nulls)} cannot be null")
        return data

    def to_changes(self) -> dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        for key, value in list(changes.items()):
            if isinstance(value, PotSize):
                changes[key] = value.value
        return changes


class ArchivePlantRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class ConfirmSpeciesRequest(BaseModel):
    species: str = Field(..., min_length=1, max_length=200)


class LogCareRequest(BaseModel):
    """Free-form care log entry."""

    action: str = Field(..., min_length=1, max_length=64, description="e.g. water, repot, health_update")
    notes: str | None = Field(default=None, max_length=2000)
    outcome: CareOutcome | None = None
    performed_at: datetime | None = Field(default=None, description="Defaults to now")

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class TaskTypeSettingRequest(BaseModel):
    task_type: str = Field(..., min_length=1, max_length=64)
    enabled: bool


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class ApplyActionRequest(BaseModel):
    action: dict[str, Any] = Field(..., description="Suggested action as returned by chat")


class CompleteTaskRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)


class SkipTaskRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class BulkCompleteRequest(BaseModel):
    task_ids: list[int] = Field(..., min_length=1, description="Tasks to complete")
    notes: str | None = Field(default=None, max_length=2000)


class AdjustScheduleRequest(BaseModel):
    reason: str = Field(default="", max_length=500)


class ApplyAdjustmentRequest(BaseModel):
    """
    New interval for a task type.

    ``{"adjustment": {"value": N}}`` is accepted as an alternative to
    ``new_interval``.
    """

    new_interval: int = Field(..., ge=1, le=365)
    reason: str = Field(default="", max_length=500)

    @model_validator(mode="before")
    @classmethod
    def unwrap_adjustment(cls, data: Any) -> Any:
        if isinstance(data, dict) and "new_interval" not in data:
            adjustment = data.get("adjustment")
            if isinstance(adjustment, dict) and "value" in adjustment:
                return {**data, "new_interval": adjustment["value"]}
        return data
