"""
Plant CRUD Operations
=====================

Endpoints for registering, listing, reading, editing and archiving plants.
"""

from __future__ import annotations

import logging

from flask import Response

from app.blueprints.api._common import (
    get_plant_service as _plant_service,
    login_required,
    parse_body,
    require_user_id,
    success as _success,
)
from app.domain.care import Plant, PlantPatch
from app.schemas.care import (
    ArchivePlantRequest,
    ConfirmSpeciesRequest,
    CreatePlantRequest,
    UpdatePlantRequest,
)
from app.utils.http import safe_route

from . import plants_api

logger = logging.getLogger("plants_api.crud")


# ============================================================================
# PLANT CRUD OPERATIONS
# ============================================================================


@plants_api.post("")
@login_required
@safe_route("Failed to add plant")
def create_plant() -> Response:
    """Register a plant for the current user"""
    user_id = require_user_id()
    body = parse_body(CreatePlantRequest)

    plant = _plant_service().create_plant(
        user_id,
        Plant(
            name=body.name,
            species=body.species,
            pot_size=body.pot_size.value if body.pot_size else None,
            soil_type=body.soil_type,
            light_condition=body.light_condition,
            location=body.location,
            notes=body.notes,
            can_rotate=body.can_rotate,
            is_propagation=body.is_propagation,
            propagation_date=body.propagation_date,
            has_grow_light=body.has_grow_light,
            grow_light_hours=body.grow_light_hours,
        ),
    )
    logger.info("User %s added plant %s", user_id, plant.plant_id)
    return _success(plant.to_dict(), 201, message="Plant added")


@plants_api.get("")
@login_required
@safe_route("Failed to list plants")
def list_plants() -> Response:
    """Owned and household-shared plants that are not archived"""
    plants = _plant_service().list_plants(require_user_id())
    return _success({"plants": [plant.to_dict() for plant in plants], "count": len(plants)})


@plants_api.get("/archived")
@login_required
@safe_route("Failed to list archived plants")
def list_archived_plants() -> Response:
    plants = _plant_service().list_plants(require_user_id(), archived=True)
    return _success({"plants": [plant.to_dict() for plant in plants], "count": len(plants)})


@plants_api.get("/<int:plant_id>")
@login_required
@safe_route("Failed to get plant")
def get_plant(plant_id: int) -> Response:
    plant = _plant_service().get_plant(require_user_id(), plant_id)
    return _success(plant.to_dict())


@plants_api.patch("/<int:plant_id>")
@login_required
@safe_route("Failed to update plant")
def update_plant(plant_id: int) -> Response:
    """Update the fields present in the body"""
    body = parse_body(UpdatePlantRequest)
    plant = _plant_service().update_plant(
        require_user_id(), plant_id, PlantPatch.from_mapping(body.to_changes())
    )
    return _success(plant.to_dict(), message="Plant updated")


@plants_api.post("/<int:plant_id>/archive")
@login_required
@safe_route("Failed to archive plant")
def archive_plant(plant_id: int) -> Response:
    body = parse_body(ArchivePlantRequest)
    plant = _plant_service().archive_plant(require_user_id(), plant_id, body.reason)
    return _success(plant.to_dict(), message="Plant archived")


@plants_api.post("/<int:plant_id>/species/confirm")
@login_required
@safe_route("Failed to confirm species")
def confirm_species(plant_id: int) -> Response:
    body = parse_body(ConfirmSpeciesRequest)
    plant = _plant_service().confirm_species(require_user_id(), plant_id, body.species)
    return _success(plant.to_dict(), message="Species confirmed")
