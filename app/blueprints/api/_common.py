"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from app.blueprints.api._common import (
        get_container, get_json, parse_body, require_user_id, success, fail,
    )

This module centralizes:
- Service container access
- Acting user from the session
- Request JSON parsing and validation
- Standardized response helpers
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, TypeVar

from flask import current_app, request, session
from pydantic import BaseModel

from app.utils.http import error_response, success_response

logger = logging.getLogger("api._common")

ModelT = TypeVar("ModelT", bound=BaseModel)

# ============================================================================
# User Session Utilities
# ============================================================================


def get_user_id() -> int | None:
    """Get current user ID from session, None when not signed in."""
    user_id = session.get("user_id")
    return int(user_id) if user_id is not None else None


def require_user_id() -> int:
    """Current user ID; callers are behind :func:`login_required`."""
    user_id = get_user_id()
    if user_id is None:
        raise RuntimeError("require_user_id() called outside login_required")
    return user_id


def login_required(fn: Callable) -> Callable:
    """Reject requests without a session user with 401."""

    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any):
        if get_user_id() is None:
            return fail("Authentication required", 401)
        return fn(*args, **kwargs)

    return wrapper


# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Returns:
        ServiceContainer: The application service container

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_plant_service():
    return get_container().plant_service


def get_chat_service():
    return get_container().plant_chat_service


def get_care_plan_engine():
    return get_container().care_plan_engine


def get_task_lifecycle():
    return get_container().task_lifecycle


def get_task_scheduler():
    return get_container().task_scheduler


def get_task_agenda():
    return get_container().task_agenda


def get_recommendation_engine():
    return get_container().recommendation_engine


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """
    Get JSON request body with silent failure.

    Returns:
        dict: Parsed JSON body or empty dict if parsing fails
    """
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def parse_body(model: type[ModelT]) -> ModelT:
    """Validate the JSON body against *model*; pydantic errors map to 400."""
    return model.model_validate(get_json())


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Create a success response.

    Args:
        data: Response data
        status: HTTP status code (default 200)
        message: Optional message

    Returns:
        Flask Response with standardized format
    """
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """
    Create an error response.

    Args:
        message: Error message
        status: HTTP status code (default 400)
        details: Optional additional error details

    Returns:
        Flask Response with standardized error format
    """
    return error_response(message, status, details=details)
