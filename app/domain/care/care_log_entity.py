"""Care log entries: the append-only history of what was done to a plant."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.enums import CareOutcome

SKIPPED_PREFIX = "skipped_"
SCHEDULE_ADJUSTED_PREFIX = "schedule_adjusted_"
HEALTH_UPDATE_ACTION = "health_update"


def skipped_action(task_type: str) -> str:
    return f"{SKIPPED_PREFIX}{task_type}"


def schedule_adjusted_action(task_type: str) -> str:
    return f"{SCHEDULE_ADJUSTED_PREFIX}{task_type}"


@dataclass
class CareLogEntry:
    """One recorded care action. ``task_id`` is None for free-form entries."""

    log_id: int | None = None
    plant_id: int = 0
    task_id: int | None = None
    action: str = ""
    notes: str | None = None
    outcome: CareOutcome | None = None
    performed_by: int | None = None
    performed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "log_id": self.log_id,
            "plant_id": self.plant_id,
            "task_id": self.task_id,
            "action": self.action,
            "notes": self.notes,
            "outcome": self.outcome.value if self.outcome else None,
            "performed_by": self.performed_by,
            "performed_at": self.performed_at,
        }

    @staticmethod
    def from_row(row: dict[str, Any]) -> "CareLogEntry":
        outcome = row.get("outcome")
        try:
            parsed_outcome = CareOutcome(outcome) if outcome else None
        except ValueError:
            parsed_outcome = None
        return CareLogEntry(
            log_id=row.get("log_id"),
            plant_id=row.get("plant_id") or 0,
            task_id=row.get("task_id"),
            action=row.get("action") or "",
            notes=row.get("notes"),
            outcome=parsed_outcome,
            performed_by=row.get("performed_by"),
            performed_at=row.get("performed_at"),
        )
