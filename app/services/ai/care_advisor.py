"""
LLM Care Advisor
================
Talks to an :class:`~app.services.ai.llm_backends.LLMBackend` on behalf of
the care services: plan generation, plant chat, schedule adjustment and
per-task recommendations.

Every failure (no backend configured, SDK/network error, timeout,
non-JSON or schema-invalid reply) is raised as
:class:`~app.domain.exceptions.ExternalServiceError`. Callers that must
always produce a result catch it and use their deterministic fallback.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from app.domain.care.care_log_entity import CareLogEntry
from app.domain.care.care_plan_entity import CarePlanDraft, ProposedTask, SeasonalContext
from app.domain.care.plant_entity import Plant
from app.domain.care.suggested_actions import SuggestedAction, parse_suggested_actions
from app.domain.care.task_entity import Recurrence, Task
from app.domain.exceptions import ExternalServiceError, ValidationError
from app.enums import ResultSource, Season, TaskPriority
from app.schemas.ai import (
    CarePlanPayload,
    ChatPayload,
    ProposedTaskPayload,
    ScheduleSuggestionPayload,
    TaskRecommendationPayload,
)
from app.utils.time import coerce_date

if TYPE_CHECKING:
    from app.services.ai.llm_backends import LLMBackend
    from infrastructure.database.repositories.ai import AIUsageRepository

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Pull a JSON object out of a model reply.

    Handles markdown fences and prose around the object. Raises
    ValueError when no object can be decoded.
    """
    cleaned = (text or "").strip()
    match = _FENCE_RE.search(cleaned)
    if match:
        cleaned = match.group(1).strip()
    if not cleaned.startswith("{"):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("no JSON object in reply")
        cleaned = cleaned[start : end + 1]
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("reply is not a JSON object")
    return data


@dataclass
class ChatReply:
    content: str
    suggested_actions: list[SuggestedAction] = field(default_factory=list)
    provider: str | None = None


def describe_plant(plant: Plant) -> str:
    """Plain-text plant summary shared by all prompts."""
    lines = [
        f"Name: {plant.name}",
        f"Species: {plant.species or 'Unknown houseplant'}",
        f"Pot size: {plant.pot_size or 'medium'}",
        f"Soil type: {plant.soil_type or 'standard'}",
        f"Light condition: {plant.light_condition or 'medium'}",
        f"Location: {plant.location or 'Not specified'}",
        f"Current health: {plant.health_status or 'unknown'}",
    ]
    if plant.notes:
        lines.append(f"Owner's notes: {plant.notes}")
    if plant.is_propagation:
        lines.append("PROPAGATION: this is a cutting being rooted, not a mature plant")
        if plant.propagation_date:
            lines.append(f"Propagation started: {plant.propagation_date.isoformat()}")
        lines.append("Growing medium: " + ("water" if plant.in_water else (plant.soil_type or "rooting medium")))
    if plant.has_grow_light:
        hours = plant.grow_light_hours if plant.grow_light_hours is not None else "unspecified"
        lines.append(f"Grow light: yes, {hours} hours/day")
    if not plant.can_rotate:
        lines.append("Do not rotate this plant")
    return "\n".join(lines)


def describe_care_log(entries: list[CareLogEntry], limit: int = 10) -> str:
    lines = []
    for entry in entries[:limit]:
        line = f"- {entry.action} on {entry.performed_at}"
        if entry.notes:
            line += f" - {entry.notes}"
        if entry.outcome:
            line += f" (outcome: {entry.outcome.value})"
        lines.append(line)
    return "\n".join(lines) if lines else "- none recorded"


class LLMCareAdvisor:
    """AI provider for the care services."""

    _PLAN_SYSTEM_PROMPT = (
        "You are an experienced houseplant care specialist. You build practical, "
        "species-aware care schedules and always answer with a single JSON object."
    )

    _CHAT_SYSTEM_PROMPT = (
        "You are a friendly plant care assistant helping the owner of one specific plant. "
        "Answer concisely and base your advice on the plant details and care history given."
    )

    _PLAN_FORMAT = """Respond ONLY with valid JSON:
{
  "reasoning": "Brief explanation of the care plan rationale",
  "next_photo_check": "YYYY-MM-DD when to request a health photo",
  "photo_check_reason": "Why a photo is useful then",
  "tasks": [
    {
      "type": "water|fertilize|trim|repot|rotate|mist|check|change_water|check_roots|pot_up",
      "due_date": "YYYY-MM-DD",
      "recurrence": {"type": "days", "interval": 7},
      "instructions": "Specific instructions for this task",
      "priority": "low|normal|high|urgent"
    }
  ]
}

Include 3-5 different task types with intervals suited to the species and season.
Propagations in water use "change_water" instead of "water", add "check_roots" and a
"pot_up" task when roots should be ready, and skip fertilizing until roots are established.
More grow-light hours means more water is needed."""

    _CHAT_FORMAT = """Reply with JSON:
{
  "content": "Your answer to the owner",
  "suggested_actions": [
    {
      "type": "update_species|update_care_schedule|update_notes|update_health",
      "field": "the field to change",
      "current": "current value",
      "new": "suggested value",
      "reason": "why"
    }
  ]
}
Only include suggested_actions when you recommend a concrete change; otherwise use an empty list."""

    def __init__(
        self,
        backend: "LLMBackend" | None = None,
        *,
        usage_repo: "AIUsageRepository" | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> None:
        self._backend = backend
        self._usage = usage_repo
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def is_available(self) -> bool:
        return self._backend is not None and self._backend.is_available

    @property
    def provider_name(self) -> str | None:
        return self._backend.name if self._backend is not None else None

    # -- transport -----------------------------------------------------------

    def _call(
        self,
        action: str,
        system_prompt: str,
        user_prompt: str,
        *,
        user_id: int | None = None,
        history: list[dict[str, str]] | None = None,
        json_mode: bool = True,
    ) -> str:
        if not self.is_available:
            raise ExternalServiceError("No AI provider configured", detail={"action": action})

        backend = self._backend
        try:
            response = backend.generate(  # type: ignore[union-attr]
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                history=history,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                json_mode=json_mode,
            )
        except Exception as exc:
            self._record(action, user_id, success=False, error=str(exc))
            raise ExternalServiceError(
                f"AI provider call failed: {exc}", detail={"action": action, "provider": backend.name}
            ) from exc

        if not response.text.strip():
            self._record(action, user_id, success=False, error="empty reply")
            raise ExternalServiceError("AI provider returned an empty reply", detail={"action": action})

        logger.debug("AI %s via %s took %.0f ms", action, backend.name, response.latency_ms)
        self._record(action, user_id, success=True)
        return response.text

    def _record(self, action: str, user_id: int | None, *, success: bool, error: str | None = None) -> None:
        if self._usage is None:
            return
        self._usage.record(
            action,
            user_id=user_id,
            provider=self.provider_name,
            model=getattr(self._backend, "model", None),
            success=success,
            error_message=error,
        )

    @staticmethod
    def _parse(action: str, text: str, model: type) -> Any:
        try:
            return model.model_validate(extract_json_object(text))
        except (ValueError, PydanticValidationError) as exc:
            logger.warning("AI %s reply could not be parsed: %s", action, exc)
            raise ExternalServiceError(
                "AI provider returned malformed JSON", detail={"action": action}
            ) from exc

    # -- care plans ------------------------------------------------------------

    def generate_care_plan(
        self,
        plant: Plant,
        care_log: list[CareLogEntry],
        season: Season,
        *,
        today: date,
        completion_stats: dict[str, int] | None = None,
        user_id: int | None = None,
    ) -> CarePlanDraft:
        """Ask the provider for a care plan draft."""
        prompt_parts = [
            "Generate a care plan for this plant.",
            "",
            describe_plant(plant),
            f"Season: {season.value}",
            f"Today's date: {today.isoformat()}",
            "",
            "Recent care history:",
            describe_care_log(care_log),
        ]
        if completion_stats:
            stats = ", ".join(f"{task_type}: {count}" for task_type, count in sorted(completion_stats.items()))
            prompt_parts.append(f"Completed tasks by type: {stats}")
        prompt_parts += ["", self._PLAN_FORMAT]

        text = self._call(
            "care_plan", self._PLAN_SYSTEM_PROMPT, "\n".join(prompt_parts), user_id=user_id
        )
        payload: CarePlanPayload = self._parse("care_plan", text, CarePlanPayload)

        tasks = [task for task in (self._to_proposed_task(raw, today) for raw in payload.tasks) if task]
        return CarePlanDraft(
            reasoning=payload.reasoning,
            tasks=tasks,
            next_photo_check=coerce_date(payload.next_photo_check),
            photo_check_reason=payload.photo_check_reason,
            source=ResultSource.AI,
        )

    @staticmethod
    def _to_proposed_task(raw: dict[str, Any], today: date) -> ProposedTask | None:
        try:
            item = ProposedTaskPayload.model_validate(raw)
        except PydanticValidationError as exc:
            logger.warning("Dropping proposed task without a usable type: %s", exc.errors()[:1])
            return None

        due = today
        if item.due_date:
            due = coerce_date(item.due_date)
            if due is None:
                logger.warning("Dropping proposed %s task with unparsable due date %r", item.type, item.due_date)
                return None

        try:
            recurrence = Recurrence.from_value(item.recurrence)
        except ValidationError as exc:
            logger.warning("Dropping proposed %s task with bad recurrence: %s", item.type, exc)
            return None

        return ProposedTask(
            task_type=item.type,
            due_date=due,
            recurrence=recurrence,
            instructions=item.instructions,
            priority=TaskPriority.parse(item.priority),
        )

    # -- chat --------------------------------------------------------------------

    def chat(
        self,
        plant: Plant,
        messages: list[dict[str, str]],
        context: dict[str, Any] | None = None,
        *,
        user_id: int | None = None,
    ) -> ChatReply:
        """
        Continue a conversation about *plant*.

        ``messages`` are the prior turns plus the new user message as the
        last element.
        """
        if not messages or messages[-1].get("role") != "user":
            raise ValidationError("Chat requires a trailing user message")

        context = context or {}
        system_parts = [self._CHAT_SYSTEM_PROMPT, "", "Plant details:", describe_plant(plant)]
        care_log = context.get("care_log") or []
        if care_log:
            system_parts += ["", "Recent care history:", describe_care_log(care_log)]
        pending = context.get("pending_tasks") or []
        if pending:
            system_parts += ["", "Upcoming tasks:"]
            system_parts += [f"- {task.task_type} due {task.due_date} ({task.priority.value})" for task in pending]

        prompt = f"{messages[-1]['content']}\n\n{self._CHAT_FORMAT}"
        text = self._call(
            "chat",
            "\n".join(system_parts),
            prompt,
            user_id=user_id,
            history=messages[:-1],
            json_mode=False,
        )

        try:
            payload = ChatPayload.model_validate(extract_json_object(text))
        except (ValueError, PydanticValidationError):
            # A plain-text answer is still an answer
            return ChatReply(content=text.strip(), provider=self.provider_name)
        return ChatReply(
            content=payload.content,
            suggested_actions=parse_suggested_actions(payload.suggested_actions),
            provider=self.provider_name,
        )

    # -- schedules ------------------------------------------------------------------

    def suggest_schedule(
        self,
        plant: Plant,
        task: Task,
        reason: str,
        current_interval: int,
        skip_history: list[CareLogEntry],
        *,
        user_id: int | None = None,
    ) -> ScheduleSuggestionPayload:
        unit = task.recurrence.type.value if task.recurrence else "days"
        previous = "; ".join(entry.notes for entry in skip_history if entry.notes) or "None"
        prompt = f"""A user is skipping a {task.task_type} task for their plant.

{describe_plant(plant)}

Current schedule: every {current_interval} {unit}
Skip reason: {reason or 'not given'}
Skips of this task type in the last 30 days: {len(skip_history)}
Previous skip reasons: {previous}

Should the schedule change? Consider soil moisture, season, the skip pattern
(frequent skips suggest the schedule is too aggressive) and species needs.
Respond in JSON:
{{
  "should_adjust": true,
  "new_interval": <number of {unit}, or null if no change>,
  "suggestion": "<brief explanation for the user, 1-2 sentences>",
  "reasoning": "<internal reasoning>"
}}"""
        text = self._call("schedule_adjustment", self._PLAN_SYSTEM_PROMPT, prompt, user_id=user_id)
        return self._parse("schedule_adjustment", text, ScheduleSuggestionPayload)

    # -- recommendations ------------------------------------------------------------

    def recommend_task(
        self,
        plant: Plant,
        task: Task,
        *,
        care_history: list[CareLogEntry],
        health_history: list[CareLogEntry],
        seasonal: SeasonalContext,
        plan_reasoning: str | None = None,
        user_id: int | None = None,
    ) -> TaskRecommendationPayload:
        parts = ["## Plant Information", describe_plant(plant)]
        if plan_reasoning:
            parts += ["", "## Current Care Plan", plan_reasoning]
        parts += ["", "## Recent Care History", describe_care_log(care_history, limit=5)]
        if health_history:
            parts += ["", "## Recent Health Assessments"]
            parts += [f"- {entry.performed_at}: {entry.notes}" for entry in health_history]
        parts += [
            "",
            "## Current Conditions",
            f"- Season: {seasonal.season.value}",
            f"- Growth phase: {seasonal.growth_phase}",
            f"- Seasonal note: {seasonal.notes}",
            "",
            "## Task Details",
            f"- Task type: {task.task_type}",
            f"- Due date: {task.due_date}",
            f"- Priority: {task.priority.value}",
        ]
        if task.instructions:
            parts.append(f"- Current instructions: {task.instructions}")
        parts += [
            "",
            "Give specific, actionable recommendations for this task in JSON:",
            '{"summary": "1-2 sentences", "steps": ["..."], "amount": "amounts if applicable",',
            ' "timing": "best time or conditions", "warnings": ["..."], "tips": ["..."]}',
            "Be specific to this plant's species, health and conditions.",
        ]
        text = self._call("task_recommendation", self._PLAN_SYSTEM_PROMPT, "\n".join(parts), user_id=user_id)
        return self._parse("task_recommendation", text, TaskRecommendationPayload)
