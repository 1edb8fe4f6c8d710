"""
Plant Database Operations
=========================

Database operations for the Plants table, household access checks and
per-user task type settings. Implements the storage side of the
PlantRepository protocol.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from app.domain.care.plant_entity import Plant
from app.domain.exceptions import RepositoryError
from app.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)

# Plant ids visible to a user: owned, or shared with one of the user's households
ACCESSIBLE_PLANTS_SQL = """
    SELECT p.plant_id FROM Plants p WHERE p.owner_id = :user_id
    UNION
    SELECT hp.plant_id
    FROM HouseholdPlants hp
    JOIN HouseholdMembers hm ON hm.household_id = hp.household_id
    WHERE hm.user_id = :user_id
"""


class PlantOperations:
    """Plant-related CRUD helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def _commit(self, conn: "Connection") -> None:
        raise NotImplementedError("Subclass must implement _commit()")

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def insert_plant(self, plant: Plant) -> Plant:
        """
        Insert a plant.

        Args:
            plant: Plant to create (plant_id should be None)

        Returns:
            The plant with plant_id and created_at assigned
        """
        db = self.get_db()
        created_at = iso_now()
        try:
            cursor = db.execute(
                """
                INSERT INTO Plants (
                    owner_id, name, species, species_confidence, species_confirmed,
                    pot_size, soil_type, light_condition, location, notes,
                    health_status, can_rotate, is_propagation, propagation_date,
                    has_grow_light, grow_light_hours, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    plant.owner_id,
                    plant.name,
                    plant.species,
                    plant.species_confidence,
                    int(plant.species_confirmed),
                    plant.pot_size,
                    plant.soil_type,
                    plant.light_condition,
                    plant.location,
                    plant.notes,
                    plant.health_status,
                    int(plant.can_rotate),
                    int(plant.is_propagation),
                    plant.propagation_date.isoformat() if plant.propagation_date else None,
                    int(plant.has_grow_light),
                    plant.grow_light_hours,
                    created_at,
                ),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error creating plant '%s': %s", plant.name, e)
            raise RepositoryError("Failed to create plant") from e

        plant.plant_id = cursor.lastrowid
        plant.created_at = created_at
        logger.info("Created plant %s (%s) for user %s", plant.plant_id, plant.name, plant.owner_id)
        return plant

    def get_plant(self, plant_id: int) -> Plant | None:
        db = self.get_db()
        try:
            row = db.execute("SELECT * FROM Plants WHERE plant_id = ?", (plant_id,)).fetchone()
        except sqlite3.Error as e:
            logger.error("Error getting plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to load plant") from e
        return Plant.from_row(dict(row)) if row else None

    def list_plants_for_user(self, user_id: int, archived: bool = False) -> list[Plant]:
        """
        Plants a user owns or shares through a household.

        Args:
            user_id: Acting user
            archived: List archived plants instead of live ones

        Returns:
            Live plants by name, or archived plants newest first
        """
        if archived:
            condition, order = "archived_at IS NOT NULL", "archived_at DESC, plant_id DESC"
        else:
            condition, order = "archived_at IS NULL", "name COLLATE NOCASE, plant_id"
        db = self.get_db()
        try:
            rows = db.execute(
                f"""
                SELECT * FROM Plants
                WHERE plant_id IN ({ACCESSIBLE_PLANTS_SQL}) AND {condition}
                ORDER BY {order}
                """,
                {"user_id": user_id},
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing plants for user %s: %s", user_id, e)
            raise RepositoryError("Failed to list plants") from e
        return [Plant.from_row(dict(row)) for row in rows]

    def update_plant(self, plant_id: int, changes: dict[str, Any]) -> bool:
        """
        Update the given plant columns.

        Args:
            plant_id: Plant ID
            changes: Column/value pairs, keys taken from PlantPatch fields

        Returns:
            True if a row was updated
        """
        if not changes:
            return self.get_plant(plant_id) is not None

        values = dict(changes)
        for flag in ("species_confirmed", "can_rotate", "is_propagation", "has_grow_light"):
            if flag in values and values[flag] is not None:
                values[flag] = int(bool(values[flag]))
        values["updated_at"] = iso_now()
        if "health_status" in changes:
            values["last_health_check"] = values["updated_at"]

        assignments = ", ".join(f"{column} = ?" for column in values)
        db = self.get_db()
        try:
            cursor = db.execute(
                f"UPDATE Plants SET {assignments} WHERE plant_id = ?",
                (*values.values(), plant_id),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error updating plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to update plant") from e
        return cursor.rowcount > 0

    def archive_plant(self, plant_id: int, archived_at: str, reason: str | None = None) -> bool:
        db = self.get_db()
        try:
            cursor = db.execute(
                """
                UPDATE Plants SET archived_at = ?, archive_reason = ?, updated_at = ?
                WHERE plant_id = ? AND archived_at IS NULL
                """,
                (archived_at, reason, archived_at, plant_id),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error archiving plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to archive plant") from e
        return cursor.rowcount > 0

    # =========================================================================
    # Access
    # =========================================================================

    def user_can_access_plant(self, user_id: int, plant_id: int) -> bool:
        db = self.get_db()
        try:
            row = db.execute(
                f"SELECT 1 FROM ({ACCESSIBLE_PLANTS_SQL}) WHERE plant_id = :plant_id",
                {"user_id": user_id, "plant_id": plant_id},
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error checking access of user %s to plant %s: %s", user_id, plant_id, e)
            raise RepositoryError("Failed to check plant access") from e
        return row is not None

    # =========================================================================
    # Task type settings
    # =========================================================================

    def get_disabled_task_types(self, user_id: int) -> set[str]:
        db = self.get_db()
        try:
            rows = db.execute(
                "SELECT task_type FROM TaskTypeSettings WHERE user_id = ? AND enabled = 0",
                (user_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error loading task type settings for user %s: %s", user_id, e)
            raise RepositoryError("Failed to load task type settings") from e
        return {row["task_type"] for row in rows}

    def set_task_type_enabled(self, user_id: int, task_type: str, enabled: bool) -> None:
        db = self.get_db()
        try:
            db.execute(
                """
                INSERT INTO TaskTypeSettings (user_id, task_type, enabled) VALUES (?, ?, ?)
                ON CONFLICT(user_id, task_type) DO UPDATE SET enabled = excluded.enabled
                """,
                (user_id, task_type, int(enabled)),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error saving task type setting %s for user %s: %s", task_type, user_id, e)
            raise RepositoryError("Failed to save task type setting") from e
