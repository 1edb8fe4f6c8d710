"""
Schemas Module
==============

This module provides Pydantic models for request/response validation.
Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.ai import (
    CarePlanPayload,
    ChatPayload,
    ProposedTaskPayload,
    ScheduleSuggestionPayload,
    TaskRecommendationPayload,
)
from app.schemas.care import (
    AdjustScheduleRequest,
    ApplyActionRequest,
    ApplyAdjustmentRequest,
    ArchivePlantRequest,
    BulkCompleteRequest,
    ChatMessageRequest,
    CompleteTaskRequest,
    ConfirmSpeciesRequest,
    CreatePlantRequest,
    LogCareRequest,
    SkipTaskRequest,
    TaskTypeSettingRequest,
    UpdatePlantRequest,
)

__all__ = [
    # AI payloads
    "CarePlanPayload",
    "ChatPayload",
    "ProposedTaskPayload",
    "ScheduleSuggestionPayload",
    "TaskRecommendationPayload",
    # Plant requests
    "ArchivePlantRequest",
    "ConfirmSpeciesRequest",
    "CreatePlantRequest",
    "UpdatePlantRequest",
    # Care requests
    "ApplyActionRequest",
    "ChatMessageRequest",
    "LogCareRequest",
    "TaskTypeSettingRequest",
    # Task requests
    "AdjustScheduleRequest",
    "ApplyAdjustmentRequest",
    "BulkCompleteRequest",
    "CompleteTaskRequest",
    "SkipTaskRequest",
]
