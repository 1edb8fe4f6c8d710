"""
Care Plan Database Operations
=============================

Database operations for the CarePlans table. The partial unique index
``uq_care_plans_active`` backs the one-active-plan-per-plant rule.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from app.domain.care.care_plan_entity import CarePlan
from app.domain.exceptions import ConflictError, RepositoryError
from app.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class CarePlanOperations:
    """Care plan helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def _commit(self, conn: "Connection") -> None:
        raise NotImplementedError("Subclass must implement _commit()")

    def insert_care_plan(self, plan: CarePlan) -> CarePlan:
        """
        Insert a care plan.

        Raises:
            ConflictError: an active plan already exists for the plant
        """
        db = self.get_db()
        generated_at = iso_now()
        try:
            cursor = db.execute(
                """
                INSERT INTO CarePlans (
                    plant_id, season, ai_reasoning, next_photo_check,
                    photo_check_reason, valid_until, is_active, source, generated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    plan.plant_id,
                    plan.season.value,
                    plan.ai_reasoning,
                    plan.next_photo_check.isoformat() if plan.next_photo_check else None,
                    plan.photo_check_reason,
                    plan.valid_until.isoformat() if plan.valid_until else None,
                    int(plan.is_active),
                    plan.source.value,
                    generated_at,
                ),
            )
            self._commit(db)
        except sqlite3.IntegrityError as e:
            logger.warning("Rejected second active care plan for plant %s: %s", plan.plant_id, e)
            raise ConflictError(
                "Plant already has an active care plan", detail={"plant_id": plan.plant_id}
            ) from e
        except sqlite3.Error as e:
            logger.error("Error creating care plan for plant %s: %s", plan.plant_id, e)
            raise RepositoryError("Failed to create care plan") from e

        plan.plan_id = cursor.lastrowid
        plan.generated_at = generated_at
        return plan

    def get_active_care_plan(self, plant_id: int) -> CarePlan | None:
        db = self.get_db()
        try:
            row = db.execute(
                "SELECT * FROM CarePlans WHERE plant_id = ? AND is_active = 1",
                (plant_id,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error getting active care plan for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to load care plan") from e
        return CarePlan.from_row(dict(row)) if row else None

    def deactivate_care_plans(self, plant_id: int) -> int:
        db = self.get_db()
        try:
            cursor = db.execute(
                "UPDATE CarePlans SET is_active = 0 WHERE plant_id = ? AND is_active = 1",
                (plant_id,),
            )
            self._commit(db)
        except sqlite3.Error as e:
            logger.error("Error deactivating care plans for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to deactivate care plans") from e
        return cursor.rowcount

    def get_care_plans_for_plant(self, plant_id: int) -> list[CarePlan]:
        db = self.get_db()
        try:
            rows = db.execute(
                "SELECT * FROM CarePlans WHERE plant_id = ? ORDER BY plan_id DESC",
                (plant_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing care plans for plant %s: %s", plant_id, e)
            raise RepositoryError("Failed to list care plans") from e
        return [CarePlan.from_row(dict(row)) for row in rows]
