"""
Plant Service
=============
Plant registration, edits, archiving, free-form care logging and the
application of chat-suggested actions.

Several flows regenerate the care plan as a side effect and all of them go
through :meth:`CarePlanEngine.generate`:

- creating a plant with a species
- confirming the species
- a health status change to struggling or critical
- the ``update_care_schedule`` chat action
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from app.domain.care.care_log_entity import HEALTH_UPDATE_ACTION, CareLogEntry
from app.domain.care.plant_entity import NON_NULLABLE_FIELDS, Plant, PlantPatch
from app.domain.care.suggested_actions import (
    SuggestedAction,
    UpdateCareSchedule,
    UpdateHealth,
    UpdateNotes,
    UpdateSpecies,
)
from app.domain.exceptions import ConflictError, NotFoundError, PlantCareError, ValidationError
from app.enums import CareOutcome, PlantHealthStatus
from app.utils.time import iso_now

if TYPE_CHECKING:
    from app.domain.care.repository import CareLogRepository, CarePlanRepository, PlantRepository, TaskRepository
    from app.services.application.care_plan_engine import CarePlanEngine, GeneratedCarePlan

logger = logging.getLogger(__name__)

CARE_LOG_MAX_LIMIT = 100


class PlantService:
    """Business logic for plants and their care log."""

    def __init__(
        self,
        plant_repo: "PlantRepository",
        plan_repo: "CarePlanRepository",
        task_repo: "TaskRepository",
        care_log_repo: "CareLogRepository",
        care_plan_engine: "CarePlanEngine",
    ):
        self.plant_repo = plant_repo
        self.plan_repo = plan_repo
        self.task_repo = task_repo
        self.care_log_repo = care_log_repo
        self.care_plan_engine = care_plan_engine

    # ========================================================================
    # Access
    # ========================================================================

    def can_access(self, user_id: int, plant_id: int) -> bool:
        """Owner or household member sharing the plant."""
        return self.plant_repo.can_access(user_id, plant_id)

    def get_plant(self, user_id: int, plant_id: int) -> Plant:
        plant = self.plant_repo.get(plant_id)
        if plant is None or not self.plant_repo.can_access(user_id, plant_id):
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})
        return plant

    def list_plants(self, user_id: int, archived: bool = False) -> list[Plant]:
        """Plants the user can see. ``archived=True`` lists the graveyard instead."""
        return self.plant_repo.list_for_user(user_id, archived=archived)

    def _get_owned_plant(self, user_id: int, plant_id: int) -> Plant:
        plant = self.plant_repo.get(plant_id)
        if plant is None or plant.owner_id != user_id:
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})
        return plant

    # ========================================================================
    # Plants
    # ========================================================================

    def create_plant(self, user_id: int, plant: Plant) -> Plant:
        """
        Register a plant for ``user_id``.

        A plant created with a species counts as confirmed and gets a care
        plan right away.
        """
        name = (plant.name or "").strip()
        if not name:
            raise ValidationError("Plant name is required")

        species = (plant.species or "").strip() or None
        created = self.plant_repo.create(
            replace(
                plant,
                plant_id=None,
                owner_id=user_id,
                name=name,
                species=species,
                species_confirmed=species is not None,
                pot_size=plant.pot_size or "medium",
                soil_type=plant.soil_type or "standard",
                light_condition=plant.light_condition or "medium",
                archived_at=None,
                archive_reason=None,
            )
        )
        logger.info("Created plant %s for user %s", created.plant_id, user_id)

        if species is not None:
            self._regenerate_quietly(created.plant_id, user_id, "species provided at creation")
        return created

    def update_plant(self, user_id: int, plant_id: int, patch: PlantPatch) -> Plant:
        """
        Apply a partial update.

        A health status change to struggling or critical regenerates the
        care plan.
        """
        if patch.is_empty():
            raise ValidationError("No fields to update")
        nulls = [name for name in NON_NULLABLE_FIELDS if getattr(patch, name) is None]
        if nulls:
            raise ValidationError(f"{', '.join(nulls)} cannot be null", detail={"fields": nulls})
        if isinstance(patch.name, str) and not patch.name.strip():
            raise ValidationError("Plant name cannot be empty")

        before = self.get_plant(user_id, plant_id)
        updated = self.plant_repo.update(plant_id, patch)
        if updated is None:
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})

        previous, current = before.health, updated.health
        if not updated.is_archived and current is not None and current.needs_attention and current != previous:
            logger.info("Plant %s health changed %s -> %s, regenerating care plan", plant_id, previous, current)
            self._regenerate_quietly(plant_id, user_id, f"health changed to {current.value}")
        return updated

    def archive_plant(self, user_id: int, plant_id: int, reason: str | None = None) -> Plant:
        """
        Archive a plant. Only the owner may archive.

        Deactivates care plans and deletes pending tasks in the same
        transaction; completed and skipped tasks stay as history.
        """
        plant = self._get_owned_plant(user_id, plant_id)
        if plant.is_archived:
            raise ConflictError("Plant is already archived", detail={"plant_id": plant_id})

        archived_at = iso_now()
        with self.plant_repo.transaction():
            if not self.plant_repo.archive(plant_id, archived_at, reason):
                raise ConflictError("Plant is already archived", detail={"plant_id": plant_id})
            plans = self.plan_repo.deactivate_all(plant_id)
            tasks = self.task_repo.delete_pending_for_plant(plant_id)

        logger.info("Archived plant %s (%d plans deactivated, %d pending tasks removed)", plant_id, plans, tasks)
        return self.plant_repo.get(plant_id) or replace(plant, archived_at=archived_at, archive_reason=reason)

    def confirm_species(self, user_id: int, plant_id: int, species: str) -> Plant:
        species = (species or "").strip()
        if not species:
            raise ValidationError("Species is required")
        self._get_owned_plant(user_id, plant_id)

        updated = self.plant_repo.update(plant_id, PlantPatch(species=species, species_confirmed=True))
        if updated is None:
            raise NotFoundError("Plant not found", detail={"plant_id": plant_id})
        if not updated.is_archived:
            self._regenerate_quietly(plant_id, user_id, "species confirmed")
        return updated

    def regenerate_care_plan(self, user_id: int, plant_id: int) -> "GeneratedCarePlan":
        self.get_plant(user_id, plant_id)
        return self.care_plan_engine.generate(plant_id, user_id=user_id)

    def _regenerate_quietly(self, plant_id: int, user_id: int, trigger: str) -> None:
        # Side-effect regeneration never fails the flow that triggered it
        try:
            self.care_plan_engine.generate(plant_id, user_id=user_id)
        except PlantCareError as exc:
            logger.error("Care plan regeneration (%s) failed for plant %s: %s", trigger, plant_id, exc, exc_info=True)

    # ========================================================================
    # Care log
    # ========================================================================

    def log_care(
        self,
        user_id: int,
        plant_id: int,
        action: str,
        notes: str | None = None,
        *,
        outcome: CareOutcome | None = None,
        performed_at: str | None = None,
    ) -> CareLogEntry:
        """Record a free-form care log entry (not tied to a task)."""
        action = (action or "").strip()
        if not action:
            raise ValidationError("Action type is required")
        self.get_plant(user_id, plant_id)

        entry = self.care_log_repo.append(
            CareLogEntry(
                plant_id=plant_id,
                action=action,
                notes=(notes or "").strip() or None,
                outcome=outcome,
                performed_by=user_id,
                performed_at=performed_at,
            )
        )
        logger.debug("Logged '%s' for plant %s", action, plant_id)
        return entry

    def care_log(self, user_id: int, plant_id: int, *, action: str | None = None, limit: int = 50) -> list[CareLogEntry]:
        self.get_plant(user_id, plant_id)
        limit = max(1, min(int(limit), CARE_LOG_MAX_LIMIT))
        return self.care_log_repo.recent(plant_id, limit, action or None)

    # ========================================================================
    # Task type settings
    # ========================================================================

    def disabled_task_types(self, user_id: int) -> list[str]:
        return sorted(self.plant_repo.disabled_task_types(user_id))

    def set_task_type_enabled(self, user_id: int, task_type: str, enabled: bool) -> list[str]:
        task_type = (task_type or "").strip().lower()
        if not task_type:
            raise ValidationError("Task type is required")
        self.plant_repo.set_task_type_enabled(user_id, task_type, enabled)
        return self.disabled_task_types(user_id)

    # ========================================================================
    # Suggested actions
    # ========================================================================

    def apply_suggested_action(self, user_id: int, plant_id: int, action: SuggestedAction) -> dict[str, Any]:
        """
        Apply an action proposed by the chat assistant.

        Returns:
            ``{"updated_field", "new_value", "message"}`` describing the change
        """
        plant = self.get_plant(user_id, plant_id)

        if isinstance(action, UpdateSpecies):
            self.plant_repo.update(
                plant_id,
                PlantPatch(species=action.species, species_confidence=1.0, species_confirmed=True),
            )
            return {"updated_field": "species", "new_value": action.species, "message": "Species updated"}

        if isinstance(action, UpdateNotes):
            notes = f"{plant.notes}\n\n{action.notes}" if plant.notes else action.notes
            self.plant_repo.update(plant_id, PlantPatch(notes=notes))
            return {"updated_field": "notes", "new_value": notes, "message": "Notes updated"}

        if isinstance(action, UpdateHealth):
            return self._apply_health(user_id, plant, action.health_status, action.reason)

        if isinstance(action, UpdateCareSchedule):
            self.care_plan_engine.generate(plant_id, user_id=user_id)
            return {"updated_field": "care_schedule", "new_value": None, "message": "Care plan regenerated"}

        raise ValidationError(f"Unknown action type: {getattr(action, 'type', action)}")

    def _apply_health(
        self, user_id: int, plant: Plant, status: PlantHealthStatus, reason: str | None
    ) -> dict[str, Any]:
        self.update_plant(user_id, plant.plant_id, PlantPatch(health_status=status))
        self.care_log_repo.append(
            CareLogEntry(
                plant_id=plant.plant_id,
                action=HEALTH_UPDATE_ACTION,
                notes=f"{status.value}: {reason}" if reason else status.value,
                outcome=CareOutcome.NEGATIVE if status.needs_attention else CareOutcome.POSITIVE,
                performed_by=user_id,
            )
        )
        return {"updated_field": "health_status", "new_value": status.value, "message": "Health status updated"}
