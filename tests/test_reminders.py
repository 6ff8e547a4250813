from datetime import datetime, timedelta

import pytest


@pytest.fixture()
def pet_id(user_client, enable_features):
    enable_features("reminders")
    return user_client.post("/api/pets", json={"name": "Rex", "species": "dog"}).json["id"]


def _create(c, pet_id, **overrides):
    payload = {
        "petId": pet_id,
        "title": "Flea treatment",
        "dueDate": "2030-06-01T08:00:00",
        "reminderType": "medication",
    }
    payload.update(overrides)
    return c.post("/api/reminders", json=payload)


def test_reminders_gated_by_feature(user_client):
    assert user_client.get("/api/reminders").status_code == 403


def test_create_and_complete(user_client, pet_id):
    r = _create(user_client, pet_id)
    assert r.status_code == 201
    assert r.json["notifyBefore"] == 24
    assert r.json["isCompleted"] is False
    rid = r.json["id"]

    r = user_client.patch(f"/api/reminders/{rid}", json={})
    assert r.status_code == 200
    assert r.json["isCompleted"] is True
    assert r.json["completedAt"]

    assert user_client.get("/api/reminders").json == []
    assert [x["id"] for x in user_client.get("/api/reminders?status=completed").json] == [rid]
    assert len(user_client.get("/api/reminders?status=all").json) == 1

    r = user_client.patch(f"/api/reminders/{rid}", json={"isCompleted": False})
    assert r.json["completedAt"] is None


def test_status_filter_validation(user_client, pet_id):
    assert user_client.get("/api/reminders?status=soon").status_code == 400


def test_create_validation(user_client, pet_id):
    r = user_client.post("/api/reminders", json={"petId": pet_id})
    assert r.status_code == 400
    assert len(r.json["errors"]) == 3


def test_due_window(user_client, pet_id):
    soon = (datetime.utcnow() + timedelta(hours=2)).isoformat(timespec="seconds")
    later = (datetime.utcnow() + timedelta(days=10)).isoformat(timespec="seconds")
    _create(user_client, pet_id, title="Soon", dueDate=soon)
    _create(user_client, pet_id, title="Later", dueDate=later)
    due = user_client.get("/api/reminders/due").json
    assert [r["title"] for r in due] == ["Soon"]


def test_scoped_to_owner(user_client, other_client, pet_id):
    rid = _create(user_client, pet_id).json["id"]
    assert other_client.patch(f"/api/reminders/{rid}", json={}).status_code == 404
    assert other_client.delete(f"/api/reminders/{rid}").status_code == 404
    assert user_client.delete(f"/api/reminders/{rid}").status_code == 200
