"""
Tests for TaskLifecycle and TaskAgenda.

Covers:
- Complete / skip transitions and their care log entries
- Conflict on already-resolved tasks
- Household members resolving shared tasks
- Bulk completion
- Today / upcoming / per-plant agendas
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from app.domain.care.care_log_entity import skipped_action
from app.domain.exceptions import ConflictError, NotFoundError, ValidationError
from app.enums import TaskPriority, TaskState
from app.services.application.task_lifecycle import TaskLifecycle

MEMBER_ID = 2
STRANGER_ID = 3


class TestComplete:
    def test_complete_logs_and_schedules_next(self, lifecycle, care_log_repo, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=7)

        resolution = lifecycle.complete(task.task_id, plant.owner_id, "Gave 300ml")

        assert resolution.task.state == TaskState.COMPLETED
        assert resolution.task.completed_by == plant.owner_id
        assert resolution.task.notes == "Gave 300ml"
        assert resolution.next_task.due_date == date(2024, 1, 8)
        entries = care_log_repo.recent(plant.plant_id)
        assert [(e.action, e.task_id, e.notes) for e in entries] == [("water", task.task_id, "Gave 300ml")]

    def test_second_complete_conflicts(self, lifecycle, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        lifecycle.complete(task.task_id, plant.owner_id)

        with pytest.raises(ConflictError):
            lifecycle.complete(task.task_id, plant.owner_id)

    def test_complete_after_skip_conflicts(self, lifecycle, task_repo, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        lifecycle.skip(task.task_id, plant.owner_id, "wet")

        with pytest.raises(ConflictError):
            lifecycle.complete(task.task_id, plant.owner_id)
        stored = task_repo.get(task.task_id)
        assert stored.completed_at is None and stored.skipped_at is not None

    def test_household_member_completes_shared_task(self, lifecycle, seed):
        plant = seed.create_plant()
        seed.share_with(plant.plant_id, member_id=MEMBER_ID)
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))

        resolution = lifecycle.complete(task.task_id, MEMBER_ID)

        assert resolution.task.completed_by == MEMBER_ID

    def test_stranger_gets_not_found(self, lifecycle, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        with pytest.raises(NotFoundError):
            lifecycle.complete(task.task_id, STRANGER_ID)

    def test_missing_task(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.complete(999, 1)


class TestSkip:
    def test_skip_logs_skipped_action(self, lifecycle, care_log_repo, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "mist", date(2024, 1, 1), interval=3)

        resolution = lifecycle.skip(task.task_id, plant.owner_id, "humid today")

        assert resolution.task.state == TaskState.SKIPPED
        assert resolution.task.skip_reason == "humid today"
        assert resolution.next_task.due_date == date(2024, 1, 4)
        entry = care_log_repo.recent(plant.plant_id)[0]
        assert entry.action == skipped_action("mist")
        assert entry.outcome.value == "neutral"

    def test_future_task_can_be_skipped(self, lifecycle, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date.today() + timedelta(days=30))
        assert lifecycle.skip(task.task_id, plant.owner_id).task.state == TaskState.SKIPPED

    def test_skip_twice_conflicts(self, lifecycle, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        lifecycle.skip(task.task_id, plant.owner_id)
        with pytest.raises(ConflictError):
            lifecycle.skip(task.task_id, plant.owner_id)


class TestBulkComplete:
    def test_mixed_batch(self, lifecycle, care_log_repo, seed):
        plant = seed.create_plant()
        first = seed.create_task(plant.plant_id, "water", date(2024, 1, 1), interval=None)
        second = seed.create_task(plant.plant_id, "mist", date(2024, 1, 1), interval=None)
        skipped = seed.create_task(plant.plant_id, "rotate", date(2024, 1, 1), interval=None)
        lifecycle.complete(second.task_id, plant.owner_id)
        lifecycle.skip(skipped.task_id, plant.owner_id)

        result = lifecycle.bulk_complete(
            [first.task_id, first.task_id, second.task_id, skipped.task_id, 999], plant.owner_id
        )

        assert result.completed == [first.task_id, second.task_id]
        assert result.failed == [skipped.task_id, 999]
        assert set(result.errors) == {skipped.task_id, 999}
        assert result.to_dict()["count"] == 2
        # already-completed task was not logged twice
        mist_entries = [e for e in care_log_repo.recent(plant.plant_id) if e.action == "mist"]
        assert len(mist_entries) == 1

    def test_empty_batch_rejected(self, lifecycle):
        with pytest.raises(ValidationError):
            lifecycle.bulk_complete([], 1)

    def test_batch_limit(self, plant_repo, task_repo, care_log_repo, scheduler, seed):
        lifecycle = TaskLifecycle(plant_repo, task_repo, care_log_repo, scheduler, bulk_limit=2)
        plant = seed.create_plant()
        ids = [
            seed.create_task(plant.plant_id, task_type, date(2024, 1, 1), interval=None).task_id
            for task_type in ("water", "mist", "rotate")
        ]

        result = lifecycle.bulk_complete(ids, plant.owner_id)

        assert result.completed == ids[:2]
        assert result.failed == ids[2:]
        assert task_repo.get(ids[2]).is_pending


class TestAgenda:
    TODAY = date(2024, 6, 15)

    def test_today_includes_overdue_and_excludes_skipped(self, agenda, lifecycle, seed):
        plant = seed.create_plant()
        overdue = seed.create_task(plant.plant_id, "water", self.TODAY - timedelta(days=2), interval=None)
        due = seed.create_task(plant.plant_id, "mist", self.TODAY, interval=None, priority=TaskPriority.HIGH)
        skipped = seed.create_task(plant.plant_id, "rotate", self.TODAY, interval=None)
        seed.create_task(plant.plant_id, "check", self.TODAY + timedelta(days=1), interval=None)
        lifecycle.skip(skipped.task_id, plant.owner_id)

        tasks = agenda.today(plant.owner_id, today=self.TODAY)

        assert [task.task_id for task in tasks] == [due.task_id, overdue.task_id]
        assert tasks[0].plant_name == plant.name

    def test_archived_plants_hidden(self, agenda, plant_service, seed):
        plant = seed.create_plant()
        seed.create_task(plant.plant_id, "water", self.TODAY, interval=None)
        plant_service.archive_plant(plant.owner_id, plant.plant_id)

        assert agenda.today(plant.owner_id, today=self.TODAY) == []

    def test_shared_plants_visible_to_member(self, agenda, seed):
        plant = seed.create_plant()
        seed.share_with(plant.plant_id, member_id=MEMBER_ID)
        seed.create_task(plant.plant_id, "water", self.TODAY, interval=None)

        assert len(agenda.today(MEMBER_ID, today=self.TODAY)) == 1
        assert agenda.today(STRANGER_ID, today=self.TODAY) == []

    def test_upcoming_window(self, agenda, seed):
        plant = seed.create_plant()
        inside = seed.create_task(plant.plant_id, "water", self.TODAY + timedelta(days=3), interval=None)
        seed.create_task(plant.plant_id, "mist", self.TODAY + timedelta(days=10), interval=None)

        tasks = agenda.upcoming(plant.owner_id, today=self.TODAY)

        assert [task.task_id for task in tasks] == [inside.task_id]
        assert len(agenda.upcoming(plant.owner_id, 14, today=self.TODAY)) == 2

    @pytest.mark.parametrize("days", [-1, 91])
    def test_upcoming_days_bounds(self, agenda, days):
        with pytest.raises(ValidationError):
            agenda.upcoming(1, days, today=self.TODAY)

    def test_for_plant_requires_access(self, agenda, seed):
        plant = seed.create_plant()
        with pytest.raises(NotFoundError):
            agenda.for_plant(STRANGER_ID, plant.plant_id)
