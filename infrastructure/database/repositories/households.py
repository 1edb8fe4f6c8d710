"""Household repository: membership and plant sharing."""
from __future__ import annotations

from infrastructure.database.repositories.base import SQLiteRepository


class HouseholdRepository(SQLiteRepository):
    def create(self, name: str, created_by: int) -> int:
        """Create a household with *created_by* as its first member."""
        return self._backend.insert_household(name, created_by)

    def add_member(self, household_id: int, user_id: int, role: str = "member") -> None:
        self._backend.insert_household_member(household_id, user_id, role)

    def share_plant(self, household_id: int, plant_id: int) -> None:
        self._backend.insert_household_plant(household_id, plant_id)
