"""
Tests for RecommendationEngine and the rule-table fallback.
"""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.care import SEASONAL_CONTEXT, Plant, Task
from app.domain.exceptions import NotFoundError
from app.enums import ResultSource, Season
from app.services.application.recommendation_engine import fallback_recommendation


def _task(task_type: str) -> Task:
    return Task(task_id=1, plant_id=1, task_type=task_type, due_date=date(2024, 1, 1))


class TestFallbackRecommendation:
    @pytest.mark.parametrize(
        ("pot_size", "amount"),
        [("small", "100-200ml"), ("medium", "300-500ml"), ("large", "500-750ml"), ("xlarge", "1-1.5L")],
    )
    def test_water_amount_by_pot_size(self, pot_size, amount):
        rec = fallback_recommendation(_task("water"), Plant(name="Fern", pot_size=pot_size))
        assert rec.amount == amount
        assert rec.steps
        assert rec.source == ResultSource.FALLBACK

    def test_unknown_pot_size_treated_as_medium(self):
        rec = fallback_recommendation(_task("water"), Plant(name="Fern", pot_size="huge"))
        assert rec.amount == "300-500ml"

    def test_succulent_water_warning(self):
        rec = fallback_recommendation(_task("water"), Plant(name="Spike", species="Echeveria succulent"))
        assert any("dry out" in warning for warning in rec.warnings)

    def test_succulent_mist_warning(self):
        rec = fallback_recommendation(_task("mist"), Plant(name="Spike", species="Golden barrel cactus"))
        assert any("Skip misting" in warning for warning in rec.warnings)

    def test_winter_fertilize_warning(self):
        rec = fallback_recommendation(
            _task("fertilize"), Plant(name="Fern", pot_size="small"), SEASONAL_CONTEXT[Season.WINTER]
        )
        assert rec.amount == "1/4 strength dilution"
        assert any("winter" in warning for warning in rec.warnings)
        assert rec.tips[0].startswith("Seasonal note (winter)")

    def test_health_warning(self):
        rec = fallback_recommendation(_task("check"), Plant(name="Fern", health_status="critical"))
        assert "critical" in rec.warnings[0]

    def test_prune_matches_trim(self):
        plant = Plant(name="Fern")
        assert fallback_recommendation(_task("prune"), plant).steps == fallback_recommendation(
            _task("trim"), plant
        ).steps

    @pytest.mark.parametrize("task_type", ["repot", "rotate", "change_water", "check_roots", "pot_up"])
    def test_known_types_have_steps(self, task_type):
        rec = fallback_recommendation(_task(task_type), Plant(name="Fern"))
        assert rec.summary and rec.steps

    def test_custom_type_gets_generic_recommendation(self):
        rec = fallback_recommendation(_task("dust_leaves"), Plant(name="Fern"))
        assert "dust_leaves" in rec.summary
        assert rec.timing == "Morning is generally best"


class TestRecommend:
    def test_without_advisor(self, recommendation_engine, seed):
        plant = seed.create_plant(pot_size="large")
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))

        rec = recommendation_engine.recommend(task.task_id, plant.owner_id, today=date(2024, 1, 1))

        assert rec.source == ResultSource.FALLBACK
        assert rec.amount == "500-750ml"
        assert set(rec.to_dict()) == {"summary", "steps", "amount", "timing", "warnings", "tips", "source"}

    def test_ai_recommendation(self, ai_recommendation_engine, fake_backend, seed):
        plant = seed.create_plant(species="Calathea")
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        fake_backend.reply(
            "```json\n"
            '{"summary": "Use filtered water.", "steps": "Let tap water sit overnight", "amount": null,'
            ' "warnings": [], "tips": ["Calatheas dislike fluoride"]}\n'
            "```"
        )

        rec = ai_recommendation_engine.recommend(task.task_id, plant.owner_id, today=date(2024, 7, 1))

        assert rec.source == ResultSource.AI
        assert rec.summary == "Use filtered water."
        assert rec.steps == ["Let tap water sit overnight"]
        assert rec.amount == ""
        assert rec.timing == "Morning is generally best"
        assert "Season: summer" in fake_backend.calls[0]["user_prompt"]

    def test_ai_failure_uses_rule_table(self, ai_recommendation_engine, fake_backend, seed):
        plant = seed.create_plant()
        task = seed.create_task(plant.plant_id, "mist", date(2024, 1, 1))
        fake_backend.error = ConnectionError("network down")

        rec = ai_recommendation_engine.recommend(task.task_id, plant.owner_id)

        assert rec.source == ResultSource.FALLBACK
        assert "Mist" in rec.summary

    def test_inaccessible_task(self, recommendation_engine, seed):
        plant = seed.create_plant(owner_id=1)
        task = seed.create_task(plant.plant_id, "water", date(2024, 1, 1))
        with pytest.raises(NotFoundError):
            recommendation_engine.recommend(task.task_id, 77)
