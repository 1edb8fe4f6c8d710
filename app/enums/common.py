"""
Common Enumerations
====================

Application-wide enums for plants, care plans and tasks.
"""

from enum import Enum


class TaskType(str, Enum):
    """
    Built-in care task types.
    Users may also create custom types; those are stored as plain strings.
    """
    WATER = "water"
    FERTILIZE = "fertilize"
    MIST = "mist"
    ROTATE = "rotate"
    TRIM = "trim"
    PRUNE = "prune"
    REPOT = "repot"
    CHECK = "check"
    CHANGE_WATER = "change_water"
    CHECK_ROOTS = "check_roots"
    POT_UP = "pot_up"

    def __str__(self) -> str:
        return self.value


class TaskPriority(str, Enum):
    """
    Task priority, most pressing first.
    Used by: care plans, agenda ordering
    """
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, value: object, default: "TaskPriority | None" = None) -> "TaskPriority":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.NORMAL

    def __str__(self) -> str:
        return self.value


_PRIORITY_RANK = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.NORMAL: 2,
    TaskPriority.LOW: 3,
}


class TaskState(str, Enum):
    """Lifecycle state of a task. Completed and skipped are terminal."""
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    def __str__(self) -> str:
        return self.value


class RecurrenceType(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"

    def __str__(self) -> str:
        return self.value


class Season(str, Enum):
    """Meteorological seasons (northern hemisphere months)."""
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"

    def __str__(self) -> str:
        return self.value


class PlantHealthStatus(str, Enum):
    """
    User- or AI-reported plant health.
    Used by: plant service, recommendation engine
    """
    THRIVING = "thriving"
    HEALTHY = "healthy"
    STRUGGLING = "struggling"
    CRITICAL = "critical"

    @property
    def needs_attention(self) -> bool:
        return self in (PlantHealthStatus.STRUGGLING, PlantHealthStatus.CRITICAL)

    def __str__(self) -> str:
        return self.value


class CareOutcome(str, Enum):
    """Outcome recorded on a care log entry."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

    def __str__(self) -> str:
        return self.value


class PotSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"

    def __str__(self) -> str:
        return self.value


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"

    def __str__(self) -> str:
        return self.value


class SuggestedActionType(str, Enum):
    """
    Actions the chat assistant may propose for a plant.
    Used by: plant chat, suggested action parsing
    """
    UPDATE_SPECIES = "update_species"
    UPDATE_CARE_SCHEDULE = "update_care_schedule"
    UPDATE_NOTES = "update_notes"
    UPDATE_HEALTH = "update_health"

    def __str__(self) -> str:
        return self.value


class ResultSource(str, Enum):
    """Provenance of a generated plan, suggestion or recommendation."""
    AI = "ai"
    FALLBACK = "fallback"

    def __str__(self) -> str:
        return self.value
