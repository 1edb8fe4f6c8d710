"""
Plant Repository
================

Concrete implementation of the PlantRepository protocol using SQLite.
Wraps the PlantOperations mixin from the infrastructure layer.
"""
from __future__ import annotations

from app.domain.care.plant_entity import Plant, PlantPatch
from infrastructure.database.repositories.base import SQLiteRepository


class PlantRepository(SQLiteRepository):
    """Plants, household access and task type settings."""

    def create(self, plant: Plant) -> Plant:
        return self._backend.insert_plant(plant)

    def get(self, plant_id: int) -> Plant | None:
        return self._backend.get_plant(plant_id)

    def list_for_user(self, user_id: int, *, archived: bool = False) -> list[Plant]:
        return self._backend.list_plants_for_user(user_id, archived)

    def update(self, plant_id: int, patch: PlantPatch) -> Plant | None:
        if not self._backend.update_plant(plant_id, patch.changes()):
            return None
        return self._backend.get_plant(plant_id)

    def archive(self, plant_id: int, archived_at: str, reason: str | None = None) -> bool:
        return self._backend.archive_plant(plant_id, archived_at, reason)

    def can_access(self, user_id: int, plant_id: int) -> bool:
        return self._backend.user_can_access_plant(user_id, plant_id)

    def disabled_task_types(self, user_id: int) -> set[str]:
        return self._backend.get_disabled_task_types(user_id)

    def set_task_type_enabled(self, user_id: int, task_type: str, enabled: bool) -> None:
        self._backend.set_task_type_enabled(user_id, task_type, enabled)
