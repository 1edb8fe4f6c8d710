"""
Care Tasks API
==============

- agenda.py: Today's tasks, upcoming tasks and tasks of one plant
- actions.py: Complete, skip and bulk-complete
- schedule.py: Recommendations and schedule adjustments
"""

from flask import Blueprint

from app.utils.http import error_response

tasks_api = Blueprint("tasks_api", __name__)


@tasks_api.errorhandler(404)
def not_found(error):
    return error_response("Resource not found", 404)


@tasks_api.errorhandler(405)
def method_not_allowed(error):
    return error_response("Method not allowed", 405)


from . import actions, agenda, schedule  # noqa: E402,F401

__all__ = ["tasks_api"]
