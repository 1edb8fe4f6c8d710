"""
Tests for CarePlanEngine.

Covers:
- Default plan contents per season
- Task filters (disabled types, rotation, propagation)
- AI drafts and fallback on provider failure
- Regeneration: single active plan, pending tasks replaced, history kept
- Archived plants are never replanned
"""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.care import Plant, ProposedTask, Recurrence
from app.domain.exceptions import ConflictError, NotFoundError
from app.enums import ResultSource, Season

TODAY = date(2024, 4, 10)


def _types(tasks) -> list[str]:
    return [task.task_type for task in tasks]


class TestDefaultPlan:
    def test_has_water_due_today(self, care_plan_engine):
        draft = care_plan_engine.build_default_plan(Season.SPRING, TODAY)
        assert len(draft.tasks) >= 3
        water = next(task for task in draft.tasks if task.task_type == "water")
        assert water.due_date == TODAY
        assert water.recurrence == Recurrence(interval=7)
        assert draft.source == ResultSource.FALLBACK

    @pytest.mark.parametrize(
        ("season", "water_interval", "fertilize_interval"),
        [(Season.SUMMER, 5, 30), (Season.WINTER, 10, 60), (Season.FALL, 7, 30)],
    )
    def test_seasonal_intervals(self, care_plan_engine, season, water_interval, fertilize_interval):
        draft = care_plan_engine.build_default_plan(season, TODAY)
        by_type = {task.task_type: task for task in draft.tasks}
        assert by_type["water"].recurrence.interval == water_interval
        assert by_type["fertilize"].recurrence.interval == fertilize_interval


class TestFilterProposedTasks:
    @staticmethod
    def _proposed(*task_types: str) -> list[ProposedTask]:
        return [ProposedTask(task_type=task_type, due_date=TODAY) for task_type in task_types]

    def test_disabled_types_dropped(self, care_plan_engine):
        kept = care_plan_engine.filter_proposed_tasks(
            Plant(plant_id=1), self._proposed("water", "mist", "check"), {"mist"}
        )
        assert _types(kept) == ["water", "check"]

    def test_rotate_dropped_when_plant_cannot_rotate(self, care_plan_engine):
        kept = care_plan_engine.filter_proposed_tasks(
            Plant(plant_id=1, can_rotate=False), self._proposed("water", "rotate")
        )
        assert _types(kept) == ["water"]

    def test_water_propagation(self, care_plan_engine):
        plant = Plant(plant_id=1, is_propagation=True, soil_type="water")
        kept = care_plan_engine.filter_proposed_tasks(
            plant, self._proposed("water", "fertilize", "rotate", "change_water", "check_roots")
        )
        assert _types(kept) == ["change_water", "check_roots"]

    def test_medium_propagation_has_no_change_water(self, care_plan_engine):
        plant = Plant(plant_id=1, is_propagation=True, soil_type="perlite")
        kept = care_plan_engine.filter_proposed_tasks(plant, self._proposed("water", "change_water"))
        assert _types(kept) == ["water"]


class TestGenerate:
    def test_without_advisor_uses_default_plan(self, care_plan_engine, seed):
        plant = seed.create_plant()
        generated = care_plan_engine.generate(plant.plant_id, user_id=plant.owner_id, today=TODAY)

        assert generated.plan.is_active
        assert generated.plan.source == ResultSource.FALLBACK
        assert generated.plan.season == Season.SPRING
        assert generated.plan.valid_until == date(2024, 7, 10)
        assert generated.plan.next_photo_check == date(2024, 4, 24)
        assert {"water", "check", "fertilize"} <= set(_types(generated.tasks))
        assert all(task.care_plan_id == generated.plan.plan_id for task in generated.tasks)

    def test_inaccessible_plant_is_not_found(self, care_plan_engine, seed):
        plant = seed.create_plant(owner_id=1)
        with pytest.raises(NotFoundError):
            care_plan_engine.generate(plant.plant_id, user_id=99, today=TODAY)

    def test_missing_plant_is_not_found(self, care_plan_engine):
        with pytest.raises(NotFoundError):
            care_plan_engine.generate(12345, today=TODAY)

    def test_regeneration_keeps_single_active_plan(self, care_plan_engine, plan_repo, seed):
        plant = seed.create_plant()
        first = care_plan_engine.generate(plant.plant_id, today=TODAY)
        second = care_plan_engine.generate(plant.plant_id, today=TODAY)

        plans = plan_repo.list_for_plant(plant.plant_id)
        assert len(plans) == 2
        assert [plan.plan_id for plan in plans if plan.is_active] == [second.plan.plan_id]
        assert plan_repo.get_active(plant.plant_id).plan_id != first.plan.plan_id

    def test_regeneration_replaces_pending_but_keeps_history(
        self, care_plan_engine, lifecycle, task_repo, seed
    ):
        plant = seed.create_plant()
        first = care_plan_engine.generate(plant.plant_id, today=TODAY)
        water = next(task for task in first.tasks if task.task_type == "water")
        lifecycle.complete(water.task_id, plant.owner_id, "done")

        care_plan_engine.generate(plant.plant_id, today=TODAY)

        completed = task_repo.get(water.task_id)
        assert completed is not None and completed.completed_at is not None
        pending = task_repo.list_pending_for_plant(plant.plant_id)
        assert all(task.care_plan_id != first.plan.plan_id for task in pending)
        # one pending task per type after regeneration
        assert sorted(_types(pending)) == sorted(set(_types(pending)))

    def test_disabled_type_never_created(self, care_plan_engine, plant_repo, seed):
        plant = seed.create_plant()
        plant_repo.set_task_type_enabled(plant.owner_id, "fertilize", False)
        generated = care_plan_engine.generate(plant.plant_id, today=TODAY)
        assert "fertilize" not in _types(generated.tasks)


class TestArchivedPlant:
    def test_generate_conflicts(self, care_plan_engine, plant_service, plan_repo, seed):
        plant = seed.create_plant()
        care_plan_engine.generate(plant.plant_id, today=TODAY)
        plant_service.archive_plant(plant.owner_id, plant.plant_id)

        with pytest.raises(ConflictError):
            care_plan_engine.generate(plant.plant_id, today=TODAY)
        assert plan_repo.get_active(plant.plant_id) is None

    def test_get_active_plan_returns_last_plan_without_replanning(
        self, care_plan_engine, plant_service, plan_repo, task_repo, seed
    ):
        plant = seed.create_plant()
        generated = care_plan_engine.generate(plant.plant_id, today=TODAY)
        plant_service.archive_plant(plant.owner_id, plant.plant_id)

        result = care_plan_engine.get_active_plan(plant.plant_id, user_id=plant.owner_id, today=TODAY)

        assert result.plan.plan_id == generated.plan.plan_id
        assert result.plan.is_active is False
        assert result.tasks == []
        assert plan_repo.get_active(plant.plant_id) is None
        assert len(plan_repo.list_for_plant(plant.plant_id)) == 1
        assert task_repo.list_pending_for_plant(plant.plant_id) == []

    def test_never_planned_archived_plant_has_no_plan(self, care_plan_engine, plant_service, plan_repo, seed):
        plant = seed.create_plant()
        plant_service.archive_plant(plant.owner_id, plant.plant_id)

        result = care_plan_engine.get_active_plan(plant.plant_id, today=TODAY)

        assert result.plan is None
        assert result.to_dict() == {"care_plan": None, "tasks": []}
        assert plan_repo.list_for_plant(plant.plant_id) == []


class TestGenerateWithAdvisor:
    def test_ai_plan(self, ai_care_plan_engine, fake_backend, seed):
        plant = seed.create_plant(species="Monstera deliciosa")
        fake_backend.reply(
            {
                "reasoning": "Monstera likes to dry out a little",
                "next_photo_check": "2024-04-20",
                "photo_check_reason": "Check new leaf",
                "tasks": [
                    {"type": "water", "due_date": "2024-04-11", "recurrence": {"type": "days", "interval": 9}},
                    {"type": "mist", "recurrence": {"type": "days", "interval": 3}, "priority": "low"},
                    {"type": "", "due_date": "2024-04-11"},
                    {"type": "repot", "due_date": "next spring"},
                ],
            }
        )

        generated = ai_care_plan_engine.generate(plant.plant_id, today=TODAY)

        assert generated.plan.source == ResultSource.AI
        assert generated.plan.ai_reasoning == "Monstera likes to dry out a little"
        assert generated.plan.next_photo_check == date(2024, 4, 20)
        assert _types(generated.tasks) == ["water", "mist"]
        mist = generated.tasks[1]
        assert mist.due_date == TODAY
        assert mist.recurrence.interval == 3
        assert "Monstera deliciosa" in fake_backend.calls[0]["user_prompt"]

    def test_provider_error_falls_back(self, ai_care_plan_engine, fake_backend, seed):
        plant = seed.create_plant()
        fake_backend.error = TimeoutError("provider timed out")

        generated = ai_care_plan_engine.generate(plant.plant_id, today=TODAY)

        assert generated.plan.source == ResultSource.FALLBACK
        assert len(generated.tasks) >= 3

    def test_malformed_reply_falls_back(self, ai_care_plan_engine, fake_backend, seed):
        plant = seed.create_plant()
        fake_backend.reply("I would water it every week or so.")

        generated = ai_care_plan_engine.generate(plant.plant_id, today=TODAY)

        assert generated.plan.source == ResultSource.FALLBACK
        assert "water" in _types(generated.tasks)


def test_get_active_plan_generates_when_missing(care_plan_engine, seed):
    plant = seed.create_plant()
    generated = care_plan_engine.get_active_plan(plant.plant_id, user_id=plant.owner_id, today=TODAY)
    again = care_plan_engine.get_active_plan(plant.plant_id, user_id=plant.owner_id, today=TODAY)

    assert again.plan.plan_id == generated.plan.plan_id
    assert len(again.tasks) == len(generated.tasks)
