"""
Plant Care Endpoints
====================

Endpoints for:
- Active care plan (view and regenerate)
- Care log (history and free-form entries)
- Task-type settings (disable task types for all plants of a user)
"""

from __future__ import annotations

import logging

from flask import Response, request

from app.blueprints.api._common import (
    get_care_plan_engine as _care_plan_engine,
    get_plant_service as _plant_service,
    login_required,
    parse_body,
    require_user_id,
    success as _success,
)
from app.schemas.care import LogCareRequest, TaskTypeSettingRequest
from app.utils.http import safe_route

from . import plants_api

logger = logging.getLogger("plants_api.care")


# ============================================================================
# CARE PLAN
# ============================================================================


@plants_api.get("/<int:plant_id>/care-plan")
@login_required
@safe_route("Failed to get care plan")
def get_care_plan(plant_id: int) -> Response:
    """
    Active care plan with its upcoming pending tasks.

    Returns:
        {"care_plan": {...} | null, "tasks": [...]}
    """
    generated = _care_plan_engine().get_active_plan(plant_id, user_id=require_user_id())
    return _success(generated.to_dict())


@plants_api.post("/<int:plant_id>/care-plan/regenerate")
@login_required
@safe_route("Failed to regenerate care plan")
def regenerate_care_plan(plant_id: int) -> Response:
    generated = _plant_service().regenerate_care_plan(require_user_id(), plant_id)
    return _success(generated.to_dict(), 201, message="Care plan regenerated")


# ============================================================================
# CARE LOG
# ============================================================================


@plants_api.get("/<int:plant_id>/care-log")
@login_required
@safe_route("Failed to get care log")
def get_care_log(plant_id: int) -> Response:
    """Most recent care log entries; ?action= filters, ?limit= caps (max 100)"""
    limit = request.args.get("limit", 50, type=int)
    action = request.args.get("action") or None
    entries = _plant_service().care_log(require_user_id(), plant_id, action=action, limit=limit)
    return _success({"entries": [entry.to_dict() for entry in entries], "count": len(entries)})


@plants_api.post("/<int:plant_id>/care-log")
@login_required
@safe_route("Failed to log care")
def log_care(plant_id: int) -> Response:
    body = parse_body(LogCareRequest)
    entry = _plant_service().log_care(
        require_user_id(),
        plant_id,
        body.action,
        body.notes,
        outcome=body.outcome,
        performed_at=body.performed_at.isoformat() if body.performed_at else None,
    )
    return _success(entry.to_dict(), 201)


# ============================================================================
# TASK TYPE SETTINGS
# ============================================================================


@plants_api.get("/task-types/disabled")
@login_required
@safe_route("Failed to get task type settings")
def get_disabled_task_types() -> Response:
    disabled = _plant_service().disabled_task_types(require_user_id())
    return _success({"disabled": disabled})


@plants_api.put("/task-types")
@login_required
@safe_route("Failed to update task type setting")
def set_task_type_enabled() -> Response:
    body = parse_body(TaskTypeSettingRequest)
    disabled = _plant_service().set_task_type_enabled(require_user_id(), body.task_type, body.enabled)
    logger.info("Task type '%s' %s", body.task_type, "enabled" if body.enabled else "disabled")
    return _success({"disabled": disabled})
