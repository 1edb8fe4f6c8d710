"""
Task agenda endpoints.
"""

from __future__ import annotations

from flask import Response, request

from app.blueprints.api._common import (
    get_task_agenda as _agenda,
    login_required,
    require_user_id,
    success as _success,
)
from app.utils.http import safe_route

from . import tasks_api


def _task_list(tasks) -> dict:
    return {"tasks": [task.to_dict() for task in tasks], "count": len(tasks)}


@tasks_api.get("/today")
@login_required
@safe_route("Failed to get today's tasks")
def get_today_tasks() -> Response:
    """Pending tasks due today or overdue, across every accessible plant"""
    return _success(_task_list(_agenda().today(require_user_id())))


@tasks_api.get("/upcoming")
@login_required
@safe_route("Failed to get upcoming tasks")
def get_upcoming_tasks() -> Response:
    """Pending tasks due in the next ``?days=`` days (default 7, max 90)"""
    days = request.args.get("days", type=int)
    return _success(_task_list(_agenda().upcoming(require_user_id(), days)))


@tasks_api.get("/plant/<int:plant_id>")
@login_required
@safe_route("Failed to get plant tasks")
def get_plant_tasks(plant_id: int) -> Response:
    return _success(_task_list(_agenda().for_plant(require_user_id(), plant_id)))
