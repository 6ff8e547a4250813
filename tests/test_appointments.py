import pytest


@pytest.fixture()
def pet_id(user_client, enable_features):
    enable_features("appointments")
    return user_client.post("/api/pets", json={"name": "Whiskers", "species": "cat"}).json["id"]


def test_appointments_gated_by_feature(user_client):
    r = user_client.get("/api/appointments")
    assert r.status_code == 403
    assert r.json["error"] == "Feature 'appointments' is not enabled"


def test_create_defaults_title_and_accepts_aliases(user_client, pet_id):
    r = user_client.post(
        "/api/appointments",
        json={"petId": pet_id, "appointmentType": "checkup", "date": "2030-01-05T10:30:00Z", "vetName": "Dr. Lee"},
    )
    assert r.status_code == 201
    assert r.json["title"] == "checkup for Whiskers"
    assert r.json["appointmentDate"] == "2030-01-05T10:30:00"
    assert r.json["veterinarian"] == "Dr. Lee"
    assert r.json["status"] == "scheduled"
    assert r.json["duration"] == 60


def test_create_validation(user_client, pet_id):
    r = user_client.post("/api/appointments", json={"appointmentType": "checkup"})
    assert r.status_code == 400
    assert "petId is required." in r.json["errors"]
    assert "appointmentDate is required (ISO 8601)." in r.json["errors"]


def test_foreign_pet_rejected(other_client, pet_id):
    r = other_client.post(
        "/api/appointments",
        json={"petId": pet_id, "appointmentType": "checkup", "appointmentDate": "2030-01-05T10:30:00"},
    )
    assert r.status_code == 404
    assert r.json["error"] == "Pet not found or access denied"


def test_list_update_delete(user_client, other_client, pet_id):
    for day in ("2030-02-01T09:00:00", "2030-01-01T09:00:00"):
        user_client.post(
            "/api/appointments",
            json={"petId": pet_id, "appointmentType": "vaccination", "appointmentDate": day},
        )
    rows = user_client.get("/api/appointments").json
    assert [a["appointmentDate"][:10] for a in rows] == ["2030-01-01", "2030-02-01"]

    appt_id = rows[0]["id"]
    r = user_client.patch(f"/api/appointments/{appt_id}", json={"status": "completed", "notes": "All good"})
    assert r.status_code == 200
    assert r.json["status"] == "completed"
    assert r.json["notes"] == "All good"

    assert [a["id"] for a in user_client.get("/api/appointments?upcoming=1").json] == [rows[1]["id"]]

    assert user_client.patch(f"/api/appointments/{appt_id}", json={"status": "lost"}).status_code == 400
    assert other_client.patch(f"/api/appointments/{appt_id}", json={"status": "cancelled"}).status_code == 404

    assert user_client.delete(f"/api/appointments/{appt_id}").status_code == 200
    assert len(user_client.get("/api/appointments").json) == 1
