"""
Plant Domain Entity
===================

A registered plant, its growing conditions and the typed partial update
used to edit it.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import Any

from app.enums import PlantHealthStatus
from app.utils.time import coerce_date


class _Unset:
    """Marker for patch fields the caller did not touch."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

# Editable columns a patch may change but never clear
NON_NULLABLE_FIELDS = ("name", "can_rotate", "is_propagation", "has_grow_light")


@dataclass
class Plant:
    """
    A plant owned by one user, optionally shared with household members.

    Attributes:
        plant_id: Unique identifier (None before insert)
        owner_id: Owning user
        species: Identified species, None while unknown
        species_confidence: 0-1 confidence of the identification
        species_confirmed: User confirmed the species
        soil_type: Growing medium; "water" for water propagations
        can_rotate: False for plants that must not be turned
        archived_at: Set when the plant is archived
    """

    plant_id: int | None = None
    owner_id: int = 0
    name: str = ""
    species: str | None = None
    species_confidence: float | None = None
    species_confirmed: bool = False
    pot_size: str | None = None
    soil_type: str | None = None
    light_condition: str | None = None
    location: str | None = None
    notes: str | None = None
    health_status: str | None = None
    can_rotate: bool = True
    is_propagation: bool = False
    propagation_date: date | None = None
    has_grow_light: bool = False
    grow_light_hours: float | None = None
    archived_at: str | None = None
    archive_reason: str | None = None
    created_at: str | None = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def in_water(self) -> bool:
        """True when the growing medium is plain water."""
        return (self.soil_type or "").strip().lower() == "water"

    @property
    def health(self) -> PlantHealthStatus | None:
        try:
            return PlantHealthStatus(self.health_status) if self.health_status else None
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "plant_id": self.plant_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "species": self.species,
            "species_confidence": self.species_confidence,
            "species_confirmed": self.species_confirmed,
            "pot_size": self.pot_size,
            "soil_type": self.soil_type,
            "light_condition": self.light_condition,
            "location": self.location,
            "notes": self.notes,
            "health_status": self.health_status,
            "can_rotate": self.can_rotate,
            "is_propagation": self.is_propagation,
            "propagation_date": self.propagation_date.isoformat() if self.propagation_date else None,
            "has_grow_light": self.has_grow_light,
            "grow_light_hours": self.grow_light_hours,
            "archived_at": self.archived_at,
            "archive_reason": self.archive_reason,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Plant":
        return Plant(
            plant_id=row.get("plant_id"),
            owner_id=row.get("owner_id") or 0,
            name=row.get("name") or "",
            species=row.get("species"),
            species_confidence=row.get("species_confidence"),
            species_confirmed=bool(row.get("species_confirmed")),
            pot_size=row.get("pot_size"),
            soil_type=row.get("soil_type"),
            light_condition=row.get("light_condition"),
            location=row.get("location"),
            notes=row.get("notes"),
            health_status=row.get("health_status"),
            can_rotate=bool(row.get("can_rotate", 1)),
            is_propagation=bool(row.get("is_propagation")),
            propagation_date=coerce_date(row.get("propagation_date")),
            has_grow_light=bool(row.get("has_grow_light")),
            grow_light_hours=row.get("grow_light_hours"),
            archived_at=row.get("archived_at"),
            archive_reason=row.get("archive_reason"),
            created_at=row.get("created_at"),
        )


@dataclass
class PlantPatch:
    """
    Partial update of the editable plant columns.

    Only fields assigned a value are written; ``UNSET`` fields are left
    untouched and ``None`` clears the column.
    """

    name: Any = UNSET
    species: Any = UNSET
    species_confidence: Any = UNSET
    species_confirmed: Any = UNSET
    pot_size: Any = UNSET
    soil_type: Any = UNSET
    light_condition: Any = UNSET
    location: Any = UNSET
    notes: Any = UNSET
    health_status: Any = UNSET
    can_rotate: Any = UNSET
    is_propagation: Any = UNSET
    propagation_date: Any = UNSET
    has_grow_light: Any = UNSET
    grow_light_hours: Any = UNSET

    def changes(self) -> dict[str, Any]:
        """Return the column/value pairs that were set."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is UNSET:
                continue
            if isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, PlantHealthStatus):
                value = value.value
            result[f.name] = value
        return result

    def is_empty(self) -> bool:
        return not self.changes()

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "PlantPatch":
        """Build a patch from already-validated request data."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
