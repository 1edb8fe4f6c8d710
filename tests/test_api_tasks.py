from __future__ import annotations

from datetime import timedelta

import pytest

from app import create_app
from app.domain.care import Recurrence, Task
from app.utils.time import today_utc

OWNER_ID = 1
STRANGER_ID = 3


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("PLANTCARE_SECRET_KEY", "test-secret")
    monkeypatch.setenv("LLM_PROVIDER", "none")
    app = create_app(
        {
            "database_path": str(tmp_path / "test.db"),
            "log_dir": str(tmp_path / "logs"),
            "TESTING": True,
        }
    )
    return app


@pytest.fixture()
def client(app):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["user_id"] = OWNER_ID
    return client


def _create_plant(client, name: str = "Monty") -> int:
    response = client.post("/api/v1/plants", json={"name": name})
    assert response.status_code == 201
    return int(response.get_json()["data"]["plant_id"])


def _create_task(app, plant_id: int, task_type: str = "water", offset_days: int = 0, interval: int | None = 7) -> int:
    with app.app_context():
        container = app.config["CONTAINER"]
        task = container.task_repo.create_if_absent(
            Task(
                plant_id=plant_id,
                task_type=task_type,
                due_date=today_utc() + timedelta(days=offset_days),
                recurrence=Recurrence.from_value({"type": "days", "interval": interval}) if interval else None,
            )
        )
    return int(task.task_id)


def test_complete_task_schedules_next(client, app):
    plant_id = _create_plant(client)
    task_id = _create_task(app, plant_id)

    response = client.post(f"/api/v1/tasks/{task_id}/complete", json={"notes": "300ml"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["task"]["state"] == "completed"
    assert data["next_task"]["due_date"] == (today_utc() + timedelta(days=7)).isoformat()

    again = client.post(f"/api/v1/tasks/{task_id}/complete", json={})
    assert again.status_code == 409


def test_skip_task_records_reason(client, app):
    plant_id = _create_plant(client)
    task_id = _create_task(app, plant_id, "mist", interval=None)

    response = client.post(f"/api/v1/tasks/{task_id}/skip", json={"reason": "humid today"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["task"]["state"] == "skipped"
    assert data["task"]["skip_reason"] == "humid today"
    assert data["next_task"] is None

    log = client.get(f"/api/v1/plants/{plant_id}/care-log?action=skipped_mist").get_json()["data"]
    assert log["count"] == 1


def test_stranger_cannot_complete(client, app):
    plant_id = _create_plant(client)
    task_id = _create_task(app, plant_id)
    with client.session_transaction() as sess:
        sess["user_id"] = STRANGER_ID

    response = client.post(f"/api/v1/tasks/{task_id}/complete", json={})

    assert response.status_code == 404


def test_bulk_complete_reports_failures(client, app):
    plant_id = _create_plant(client)
    first = _create_task(app, plant_id, "water")
    second = _create_task(app, plant_id, "mist")

    response = client.post("/api/v1/tasks/bulk-complete", json={"task_ids": [first, second, 99999]})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert sorted(data["completed"]) == sorted([first, second])
    assert data["failed"] == [99999]
    assert data["count"] == 2
    assert "99999" in data["errors"]


def test_bulk_complete_requires_ids(client):
    response = client.post("/api/v1/tasks/bulk-complete", json={"task_ids": []})
    assert response.status_code == 400


def test_today_and_upcoming(client, app):
    plant_id = _create_plant(client)
    overdue = _create_task(app, plant_id, "water", offset_days=-2)
    later = _create_task(app, plant_id, "fertilize", offset_days=3)

    today = client.get("/api/v1/tasks/today").get_json()["data"]
    upcoming = client.get("/api/v1/tasks/upcoming?days=5").get_json()["data"]

    assert [task["task_id"] for task in today["tasks"]] == [overdue]
    assert today["tasks"][0]["plant_name"] == "Monty"
    assert later in [task["task_id"] for task in upcoming["tasks"]]

    bad = client.get("/api/v1/tasks/upcoming?days=1000")
    assert bad.status_code == 400


def test_plant_tasks(client, app):
    plant_id = _create_plant(client)
    task_id = _create_task(app, plant_id)

    data = client.get(f"/api/v1/tasks/plant/{plant_id}").get_json()["data"]

    assert [task["task_id"] for task in data["tasks"]] == [task_id]


def test_recommendations_use_fallback(client, app):
    plant_id = _create_plant(client)
    task_id = _create_task(app, plant_id, "water")

    response = client.get(f"/api/v1/tasks/{task_id}/recommendations")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["source"] == "fallback"
    assert data["summary"]
    assert data["steps"]


def test_adjust_and_apply_schedule(client, app):
    plant_id = _create_plant(client)
    task_id = _create_task(app, plant_id, "water", interval=4)

    suggestion = client.post(
        f"/api/v1/tasks/{task_id}/adjust-schedule", json={"reason": "soil is still wet"}
    ).get_json()["data"]

    assert suggestion["source"] == "fallback"
    assert suggestion["current_interval"] == 4
    assert suggestion["should_adjust"] is True
    assert suggestion["new_interval"] == 6

    response = client.post(
        f"/api/v1/tasks/{task_id}/apply-adjustment",
        json={"adjustment": {"value": suggestion["new_interval"]}, "reason": "soil is still wet"},
    )

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["new_interval"] == 6
    assert data["next_task"]["recurrence"] == {"type": "days", "interval": 6}


def test_apply_adjustment_validates_interval(client, app):
    plant_id = _create_plant(client)
    task_id = _create_task(app, plant_id)

    response = client.post(f"/api/v1/tasks/{task_id}/apply-adjustment", json={"new_interval": 0})

    assert response.status_code == 400
