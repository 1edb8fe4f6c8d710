"""
Suggested Actions
=================

Plant changes proposed by the chat assistant. The wire shape is::

    {"type": "update_species", "field": "species", "current": "...",
     "new": "...", "reason": "..."}

Each action type maps to one variant carrying only the fields it needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from app.domain.exceptions import ValidationError
from app.enums import PlantHealthStatus, SuggestedActionType


@dataclass(frozen=True)
class UpdateSpecies:
    species: str
    reason: str | None = None
    type = SuggestedActionType.UPDATE_SPECIES


@dataclass(frozen=True)
class UpdateCareSchedule:
    reason: str | None = None
    type = SuggestedActionType.UPDATE_CARE_SCHEDULE


@dataclass(frozen=True)
class UpdateNotes:
    notes: str
    reason: str | None = None
    type = SuggestedActionType.UPDATE_NOTES


@dataclass(frozen=True)
class UpdateHealth:
    health_status: PlantHealthStatus
    reason: str | None = None
    type = SuggestedActionType.UPDATE_HEALTH


SuggestedAction = Union[UpdateSpecies, UpdateCareSchedule, UpdateNotes, UpdateHealth]


def _required_text(data: dict[str, Any], action_type: str) -> str:
    value = data.get("new")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"Action '{action_type}' requires a non-empty 'new' value",
            detail={"type": action_type},
        )
    return value.strip()


def parse_suggested_action(data: Any) -> SuggestedAction:
    """Parse one wire-format action. Raises ValidationError on bad input."""
    if not isinstance(data, dict) or not data.get("type"):
        raise ValidationError("Invalid action")

    raw_type = str(data["type"])
    try:
        action_type = SuggestedActionType(raw_type)
    except ValueError:
        raise ValidationError(f"Unknown action type: {raw_type}", detail={"type": raw_type}) from None

    reason = data.get("reason")
    if action_type == SuggestedActionType.UPDATE_SPECIES:
        return UpdateSpecies(species=_required_text(data, raw_type), reason=reason)
    if action_type == SuggestedActionType.UPDATE_NOTES:
        return UpdateNotes(notes=_required_text(data, raw_type), reason=reason)
    if action_type == SuggestedActionType.UPDATE_HEALTH:
        value = _required_text(data, raw_type).lower()
        try:
            status = PlantHealthStatus(value)
        except ValueError:
            raise ValidationError(f"Unknown health status: {value}", detail={"new": value}) from None
        return UpdateHealth(health_status=status, reason=reason)
    return UpdateCareSchedule(reason=reason)


def parse_suggested_actions(items: Any) -> list[SuggestedAction]:
    """Parse a list of actions, dropping entries that do not validate."""
    if not isinstance(items, list):
        return []
    parsed: list[SuggestedAction] = []
    for item in items:
        try:
            parsed.append(parse_suggested_action(item))
        except ValidationError:
            continue
    return parsed


def action_to_dict(action: SuggestedAction) -> dict[str, Any]:
    """Render an action back to its wire shape."""
    payload: dict[str, Any] = {"type": action.type.value, "reason": action.reason}
    if isinstance(action, UpdateSpecies):
        payload.update(field="species", new=action.species)
    elif isinstance(action, UpdateNotes):
        payload.update(field="notes", new=action.notes)
    elif isinstance(action, UpdateHealth):
        payload.update(field="health_status", new=action.health_status.value)
    else:
        payload.update(field="care_schedule")
    return payload
