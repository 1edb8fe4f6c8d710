"""
Task recommendations and schedule adjustment.

``adjust-schedule`` only suggests a new interval; nothing changes until
the client posts it back to ``apply-adjustment``.
"""

from __future__ import annotations

from flask import Response

from app.blueprints.api._common import (
    get_recommendation_engine as _recommendations,
    get_task_scheduler as _scheduler,
    login_required,
    parse_body,
    require_user_id,
    success as _success,
)
from app.schemas.care import AdjustScheduleRequest, ApplyAdjustmentRequest
from app.utils.http import safe_route

from . import tasks_api


@tasks_api.get("/<int:task_id>/recommendations")
@login_required
@safe_route("Failed to get recommendations")
def get_task_recommendations(task_id: int) -> Response:
    recommendation = _recommendations().recommend(task_id, require_user_id())
    return _success(recommendation.to_dict())


@tasks_api.post("/<int:task_id>/adjust-schedule")
@login_required
@safe_route("Failed to suggest schedule adjustment")
def suggest_schedule_adjustment(task_id: int) -> Response:
    body = parse_body(AdjustScheduleRequest)
    suggestion = _scheduler().adjust_interval(task_id, require_user_id(), body.reason)
    return _success(suggestion.to_dict())


@tasks_api.post("/<int:task_id>/apply-adjustment")
@login_required
@safe_route("Failed to apply schedule adjustment")
def apply_schedule_adjustment(task_id: int) -> Response:
    body = parse_body(ApplyAdjustmentRequest)
    next_task = _scheduler().apply_adjustment(task_id, require_user_id(), body.new_interval, body.reason)
    return _success(
        {"new_interval": body.new_interval, "next_task": next_task.to_dict() if next_task else None},
        message="Schedule updated",
    )
