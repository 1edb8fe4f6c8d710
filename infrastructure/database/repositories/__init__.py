"""Repository facades exposing typed accessors over low-level mixins.

Base protocols are available for type-checking and dependency injection::

    from infrastructure.database.repositories.base import BaseRepository
"""

from infrastructure.database.repositories.ai import AIUsageRepository, ChatRepository
from infrastructure.database.repositories.base import BaseRepository, SQLiteRepository
from infrastructure.database.repositories.care import (
    CareLogRepository,
    CarePlanRepository,
    TaskRepository,
)
from infrastructure.database.repositories.households import HouseholdRepository
from infrastructure.database.repositories.plants import PlantRepository

__all__ = [
    "AIUsageRepository",
    "BaseRepository",
    "CareLogRepository",
    "CarePlanRepository",
    "ChatRepository",
    "HouseholdRepository",
    "PlantRepository",
    "SQLiteRepository",
    "TaskRepository",
]
