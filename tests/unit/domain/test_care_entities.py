"""
Tests for the plant care domain entities.

Covers:
- Recurrence parsing and date arithmetic
- Task state derivation
- PlantPatch change tracking
- Suggested action parsing
- Season lookup
"""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.care import UNSET, Plant, PlantPatch, Recurrence, Task
from app.domain.care.care_plan_entity import season_for
from app.domain.care.suggested_actions import (
    UpdateCareSchedule,
    UpdateHealth,
    UpdateNotes,
    UpdateSpecies,
    action_to_dict,
    parse_suggested_action,
    parse_suggested_actions,
)
from app.domain.exceptions import ValidationError
from app.enums import PlantHealthStatus, RecurrenceType, Season, TaskState


class TestRecurrence:
    def test_days_advance(self):
        assert Recurrence(interval=7).advance(date(2024, 1, 1)) == date(2024, 1, 8)

    def test_weeks_advance(self):
        rule = Recurrence(type=RecurrenceType.WEEKS, interval=2)
        assert rule.advance(date(2024, 1, 1)) == date(2024, 1, 15)

    def test_months_advance_clamps_to_month_end(self):
        rule = Recurrence(type=RecurrenceType.MONTHS, interval=1)
        assert rule.advance(date(2024, 1, 31)) == date(2024, 2, 29)

    def test_from_json_string(self):
        rule = Recurrence.from_value('{"type": "weeks", "interval": 3}')
        assert rule == Recurrence(type=RecurrenceType.WEEKS, interval=3)

    def test_from_none_is_one_shot(self):
        assert Recurrence.from_value(None) is None
        assert Recurrence.from_value("") is None

    def test_unknown_type_falls_back_to_days(self):
        rule = Recurrence.from_value({"type": "fortnights", "interval": 2})
        assert rule.type == RecurrenceType.DAYS
        assert rule.interval == 2

    @pytest.mark.parametrize("interval", [0, -3, "soon"])
    def test_invalid_interval_rejected(self, interval):
        with pytest.raises(ValidationError):
            Recurrence.from_value({"type": "days", "interval": interval})

    def test_with_interval_keeps_type(self):
        rule = Recurrence(type=RecurrenceType.WEEKS, interval=1).with_interval(3)
        assert rule.type == RecurrenceType.WEEKS
        assert rule.interval == 3


class TestTaskState:
    def test_pending_by_default(self):
        task = Task(plant_id=1, task_type="water", due_date=date(2024, 1, 1))
        assert task.state == TaskState.PENDING
        assert task.is_pending

    def test_completed_and_skipped(self):
        done = Task(completed_at="2024-01-01T09:00:00+00:00")
        skipped = Task(skipped_at="2024-01-01T09:00:00+00:00")
        assert done.state == TaskState.COMPLETED
        assert skipped.state == TaskState.SKIPPED
        assert not done.is_pending and not skipped.is_pending

    def test_from_row_parses_recurrence_and_date(self):
        task = Task.from_row(
            {
                "task_id": 4,
                "plant_id": 2,
                "task_type": "mist",
                "due_date": "2024-03-05",
                "recurrence": '{"type": "days", "interval": 3}',
                "priority": "HIGH",
            }
        )
        assert task.due_date == date(2024, 3, 5)
        assert task.recurrence == Recurrence(interval=3)
        assert task.priority.value == "high"
        assert task.to_dict()["state"] == "pending"


class TestPlantPatch:
    def test_only_set_fields_are_changes(self):
        patch = PlantPatch(name="Fern", notes=None)
        assert patch.changes() == {"name": "Fern", "notes": None}
        assert patch.location is UNSET

    def test_empty_patch(self):
        assert PlantPatch().is_empty()

    def test_enum_and_dates_serialised(self):
        patch = PlantPatch(health_status=PlantHealthStatus.CRITICAL, propagation_date=date(2024, 5, 1))
        assert patch.changes() == {"health_status": "critical", "propagation_date": "2024-05-01"}

    def test_from_mapping_ignores_unknown_keys(self):
        patch = PlantPatch.from_mapping({"name": "Ivy", "owner_id": 9})
        assert patch.changes() == {"name": "Ivy"}

    def test_plant_in_water(self):
        assert Plant(soil_type="Water").in_water
        assert not Plant(soil_type="perlite").in_water


class TestSuggestedActions:
    def test_parse_each_variant(self):
        assert parse_suggested_action({"type": "update_species", "new": " Pothos "}) == UpdateSpecies("Pothos")
        assert parse_suggested_action({"type": "update_notes", "new": "Likes humidity"}) == UpdateNotes(
            "Likes humidity"
        )
        assert parse_suggested_action({"type": "update_health", "new": "Struggling"}) == UpdateHealth(
            PlantHealthStatus.STRUGGLING
        )
        assert isinstance(parse_suggested_action({"type": "update_care_schedule"}), UpdateCareSchedule)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError, match="Unknown action type"):
            parse_suggested_action({"type": "delete_plant"})

    def test_missing_value_rejected(self):
        with pytest.raises(ValidationError):
            parse_suggested_action({"type": "update_species", "new": "  "})

    def test_unknown_health_rejected(self):
        with pytest.raises(ValidationError, match="health status"):
            parse_suggested_action({"type": "update_health", "new": "zombie"})

    def test_parse_list_drops_invalid_entries(self):
        actions = parse_suggested_actions(
            [{"type": "update_notes", "new": "ok"}, {"type": "nope"}, "garbage", {"type": "update_health"}]
        )
        assert actions == [UpdateNotes("ok")]
        assert parse_suggested_actions(None) == []

    def test_action_to_dict(self):
        payload = action_to_dict(UpdateHealth(PlantHealthStatus.HEALTHY, reason="new leaves"))
        assert payload == {
            "type": "update_health",
            "reason": "new leaves",
            "field": "health_status",
            "new": "healthy",
        }


@pytest.mark.parametrize(
    ("day", "season"),
    [
        (date(2024, 1, 15), Season.WINTER),
        (date(2024, 4, 1), Season.SPRING),
        (date(2024, 7, 4), Season.SUMMER),
        (date(2024, 10, 31), Season.FALL),
        (date(2024, 12, 1), Season.WINTER),
    ],
)
def test_season_for(day, season):
    assert season_for(day) == season
