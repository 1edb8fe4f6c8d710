"""
Tests for TaskScheduler.

Covers:
- Next occurrence dates and idempotency
- Interval suggestions (heuristics and AI)
- Applying an adjustment
"""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.care import Recurrence, Task
from app.domain.care.care_log_entity import schedule_adjusted_action
from app.domain.exceptions import ConflictError, NotFoundError, ValidationError
from app.enums import RecurrenceType, ResultSource
from app.services.application.task_scheduler import TaskScheduler, heuristic_suggestion


class TestNextOccurrence:
    def test_next_due_is_one_interval_after_original_due_date(self, scheduler, task_repo, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)

        created = scheduler.compute_next_occurrence(task)

        assert created is not None
        assert created.due_date == date(2024, 1, 8)
        pending = [t for t in task_repo.list_pending_for_plant(plant.plant_id) if t.due_date == date(2024, 1, 8)]
        assert len(pending) == 1

    def test_generation_is_idempotent(self, scheduler, task_repo, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)

        first = scheduler.compute_next_occurrence(task)
        second = scheduler.compute_next_occurrence(task)

        assert first is not None
        assert second is None
        dates = [t.due_date for t in task_repo.list_pending_for_plant(plant.plant_id)]
        assert dates.count(date(2024, 1, 8)) == 1

    def test_duplicate_pending_occurrence_is_not_inserted(self, task_repo, seed):
        plant = seed.create_plant()
        seed.create_task(plant.plant_id, "water", date(2024, 1, 1))

        assert seed.create_task(plant.plant_id, "water", date(2024, 1, 1)) is None
        assert len(task_repo.list_pending_for_plant(plant.plant_id)) == 1

    def test_one_shot_task_has_no_next_occurrence(self, scheduler, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "repot", date(2024, 1, 1), interval=None)
        assert scheduler.compute_next_occurrence(task) is None

    def test_next_occurrence_copies_task_fields(self, scheduler, seed):
        plant = seed.create_plant()
        task = seed.create_task(
            plant.plant_id, "fertilize", date(2024, 1, 31), interval=1, recurrence_type="months",
            instructions="Half strength",
        )
        created = scheduler.compute_next_occurrence(task)
        assert created.due_date == date(2024, 2, 29)
        assert created.instructions == "Half strength"
        assert created.recurrence == Recurrence(type=RecurrenceType.MONTHS, interval=1)

    def test_next_due_date_ignores_missing_recurrence(self):
        assert TaskScheduler.next_due_date(Task(due_date=date(2024, 1, 1))) is None


class TestHeuristicSuggestion:
    def test_wet_soil_extends_interval(self):
        new_interval, should_adjust, rationale = heuristic_suggestion("soil still wet", 7)
        assert new_interval > 7
        assert new_interval == 9
        assert should_adjust
        assert "moist" in rationale

    def test_moist_small_interval_uses_ratio(self):
        assert heuristic_suggestion("still moist", 2)[0] == 3

    def test_recently_watered(self):
        assert heuristic_suggestion("Already watered yesterday", 5)[:2] == (6, True)

    def test_stressed_keeps_schedule(self):
        new_interval, should_adjust, _ = heuristic_suggestion("plant looks stressed", 7)
        assert (new_interval, should_adjust) == (7, False)

    def test_other_reason(self):
        assert heuristic_suggestion("on vacation", 7)[:2] == (8, True)


class TestAdjustInterval:
    def test_without_advisor_uses_heuristics(self, scheduler, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)

        suggestion = scheduler.adjust_interval(task.task_id, plant.owner_id, "soil still wet")

        assert suggestion.source == ResultSource.FALLBACK
        assert suggestion.current_interval == 7
        assert suggestion.new_interval > 7
        assert suggestion.to_dict()["suggestion"]

    def test_suggestion_writes_nothing(self, scheduler, task_repo, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)
        scheduler.adjust_interval(task.task_id, plant.owner_id, "soil still wet")
        assert task_repo.get(task.task_id).recurrence.interval == 7
        assert task_repo.get(task.task_id).is_pending

    def test_ai_suggestion(self, ai_scheduler, fake_backend, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)
        fake_backend.reply({"should_adjust": True, "new_interval": 10, "suggestion": "Water every 10 days."})

        suggestion = ai_scheduler.adjust_interval(task.task_id, plant.owner_id, "soil still wet")

        assert suggestion.source == ResultSource.AI
        assert suggestion.new_interval == 10
        assert suggestion.should_adjust
        assert "Skip reason: soil still wet" in fake_backend.calls[0]["user_prompt"]

    def test_ai_failure_falls_back(self, ai_scheduler, fake_backend, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)
        fake_backend.reply("not json at all")

        suggestion = ai_scheduler.adjust_interval(task.task_id, plant.owner_id, "still moist")

        assert suggestion.source == ResultSource.FALLBACK
        assert suggestion.new_interval == 9

    def test_skip_history_counts_only_same_type(self, lifecycle, scheduler, seed):
        plant = seed.create_plant()
        water = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=None)
        mist = seed.create_task(plant.plant_id, "mist", date(2024, 1, 1), interval=None)
        lifecycle.skip(water.task_id, plant.owner_id, "wet")
        lifecycle.skip(mist.task_id, plant.owner_id, "humid")

        history = scheduler.skip_history(water)

        assert [entry.notes for entry in history] == ["wet"]

    def test_inaccessible_task(self, scheduler, seed):
        plant = seed.create_plant(owner_id=1)
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        with pytest.raises(NotFoundError):
            scheduler.adjust_interval(task.task_id, 42, "wet")


class TestApplyAdjustment:
    def test_applies_interval_and_schedules_next(self, scheduler, task_repo, care_log_repo, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)
        other = seed.create_task(plant.plant_id, "water", date(2024, 1, 20), interval=7)

        next_task = scheduler.apply_adjustment(task.task_id, plant.owner_id, 10, "soil still wet")

        skipped = task_repo.get(task.task_id)
        assert skipped.skipped_at is not None
        assert skipped.skip_reason == "soil still wet (schedule adjusted)"
        assert next_task is not None
        assert next_task.due_date == date(2024, 1, 11)
        assert next_task.recurrence.interval == 10
        assert task_repo.get(other.task_id).recurrence.interval == 10

        entries = care_log_repo.recent(plant.plant_id, 5, schedule_adjusted_action("water"))
        assert len(entries) == 1
        assert entries[0].outcome.value == "positive"

    @pytest.mark.parametrize("interval", [0, -1])
    def test_rejects_non_positive_interval(self, scheduler, seed, interval):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        with pytest.raises(ValidationError):
            scheduler.apply_adjustment(task.task_id, plant.owner_id, interval)

    def test_resolved_task_conflicts(self, scheduler, lifecycle, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        lifecycle.complete(task.task_id, plant.owner_id)
        with pytest.raises(ConflictError):
            scheduler.apply_adjustment(task.task_id, plant.owner_id, 10)

    def test_one_shot_task_gets_no_next_occurrence(self, scheduler, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "check", date(2024, 1, 1), interval=None)
        assert scheduler.apply_adjustment(task.task_id, plant.owner_id, 5) is None
