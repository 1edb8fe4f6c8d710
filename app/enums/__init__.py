"""
Enums Module
============

This module provides enumeration types for the plant care application.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.common import (
    CareOutcome,
    ChatRole,
    PlantHealthStatus,
    PotSize,
    RecurrenceType,
    ResultSource,
    Season,
    SuggestedActionType,
    TaskPriority,
    TaskState,
    TaskType,
)

__all__ = [
    "CareOutcome",
    "ChatRole",
    "PlantHealthStatus",
    "PotSize",
    "RecurrenceType",
    "ResultSource",
    "Season",
    "SuggestedActionType",
    "TaskPriority",
    "TaskState",
    "TaskType",
]
