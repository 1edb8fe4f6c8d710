"""
Plant Assistant Chat
====================

Conversation with the AI assistant about one plant, plus applying the
actions it suggests.
"""

from __future__ import annotations

import logging

from flask import Response, request

from app.blueprints.api._common import (
    get_chat_service as _chat_service,
    get_plant_service as _plant_service,
    login_required,
    parse_body,
    require_user_id,
    success as _success,
)
from app.domain.care.suggested_actions import parse_suggested_action
from app.schemas.care import ApplyActionRequest, ChatMessageRequest
from app.utils.http import safe_route

from . import plants_api

logger = logging.getLogger("plants_api.chat")


@plants_api.post("/<int:plant_id>/chat")
@login_required
@safe_route("Failed to send chat message")
def send_chat_message(plant_id: int) -> Response:
    """
    Send a message about a plant.

    Returns:
        {"response": str, "suggested_actions": [...], "provider": str}
    """
    body = parse_body(ChatMessageRequest)
    reply = _chat_service().send(require_user_id(), plant_id, body.message)
    return _success(reply)


@plants_api.get("/<int:plant_id>/chat")
@login_required
@safe_route("Failed to get chat history")
def get_chat_history(plant_id: int) -> Response:
    limit = request.args.get("limit", 50, type=int)
    messages = _chat_service().history(require_user_id(), plant_id, limit)
    return _success({"messages": messages, "count": len(messages)})


@plants_api.delete("/<int:plant_id>/chat")
@login_required
@safe_route("Failed to clear chat history")
def clear_chat_history(plant_id: int) -> Response:
    removed = _chat_service().clear_history(require_user_id(), plant_id)
    return _success({"removed": removed}, message="Chat history cleared")


@plants_api.post("/<int:plant_id>/apply-action")
@login_required
@safe_route("Failed to apply action")
def apply_suggested_action(plant_id: int) -> Response:
    body = parse_body(ApplyActionRequest)
    action = parse_suggested_action(body.action)
    result = _plant_service().apply_suggested_action(require_user_id(), plant_id, action)
    logger.info("Applied %s to plant %s", type(action).__name__, plant_id)
    return _success(result)
