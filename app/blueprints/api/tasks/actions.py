"""
Task resolution endpoints: complete, skip and bulk complete.

Completing or skipping a recurring task schedules its next occurrence,
returned as ``next_task``.
"""

from __future__ import annotations

import logging

from flask import Response

from app.blueprints.api._common import (
    get_task_lifecycle as _lifecycle,
    login_required,
    parse_body,
    require_user_id,
    success as _success,
)
from app.schemas.care import BulkCompleteRequest, CompleteTaskRequest, SkipTaskRequest
from app.utils.http import safe_route

from . import tasks_api

logger = logging.getLogger("tasks_api.actions")


@tasks_api.post("/<int:task_id>/complete")
@login_required
@safe_route("Failed to complete task")
def complete_task(task_id: int) -> Response:
    body = parse_body(CompleteTaskRequest)
    resolution = _lifecycle().complete(task_id, require_user_id(), body.notes)
    return _success(resolution.to_dict(), message="Task completed")


@tasks_api.post("/<int:task_id>/skip")
@login_required
@safe_route("Failed to skip task")
def skip_task(task_id: int) -> Response:
    body = parse_body(SkipTaskRequest)
    resolution = _lifecycle().skip(task_id, require_user_id(), body.reason)
    return _success(resolution.to_dict(), message="Task skipped")


@tasks_api.post("/bulk-complete")
@login_required
@safe_route("Failed to complete tasks")
def bulk_complete_tasks() -> Response:
    """
    Complete several tasks at once.

    Returns:
        {"completed": [ids], "failed": [ids], "errors": {...}, "count": int}
    """
    body = parse_body(BulkCompleteRequest)
    result = _lifecycle().bulk_complete(body.task_ids, require_user_id(), body.notes)
    logger.info("Bulk completed %d tasks (%d failed)", len(result.completed), len(result.failed))
    return _success(result.to_dict())
