"""
Household Database Operations
=============================

Minimal household tables: membership and shared plants. They only back the
plant access check; household management itself lives elsewhere.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from app.domain.exceptions import RepositoryError
from app.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class HouseholdOperations:
    """Household membership and plant sharing helpers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def _commit(self, conn: "Connection") -> None:
        raise NotImplementedError("Subclass must implement _commit()")

    def insert_household(self, name: str, created_by: int) -> int:
        db = self.get_db()
        try:
            cursor = db.execute(
                "INSERT INTO Households (name, created_by, created_at) VALUES (?, ?, ?)",
                (name, created_by, iso_now()),
            )
            db.execute(
                "INSERT INTO HouseholdMembers (household_id, user_id, role) VALUES (?, ?, 'owner')",
                (cursor.lastrowid, created_by),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error creating household '%s': %s", name, e)
            raise RepositoryError("Failed to create household") from e
        return cursor.lastrowid

    def insert_household_member(self, household_id: int, user_id: int, role: str = "member") -> None:
        db = self.get_db()
        try:
            db.execute(
                "INSERT OR IGNORE INTO HouseholdMembers (household_id, user_id, role) VALUES (?, ?, ?)",
                (household_id, user_id, role),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error adding user %s to household %s: %s", user_id, household_id, e)
            raise RepositoryError("Failed to add household member") from e

    def insert_household_plant(self, household_id: int, plant_id: int) -> None:
        db = self.get_db()
        try:
            db.execute(
                "INSERT OR IGNORE INTO HouseholdPlants (household_id, plant_id) VALUES (?, ?)",
                (household_id, plant_id),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error sharing plant %s with household %s: %s", plant_id, household_id, e)
            raise RepositoryError("Failed to share plant") from e
