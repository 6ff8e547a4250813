from datetime import date

from app.petcare.db import session_scope
from app.petcare.models import User
from app.petcare.modules.settings.service import set_setting


def _create(c, **overrides):
    payload = {"name": "Rex", "species": "dog", "breed": "Beagle", "gender": "male"}
    payload.update(overrides)
    return c.post("/api/pets", json=payload)


def test_pets_require_login(client):
    assert client.get("/api/pets").status_code == 401


def test_create_and_list(user_client):
    r = _create(user_client, age=3, weight="12kg", notes="Friendly")
    assert r.status_code == 201
    assert r.json["name"] == "Rex"
    assert r.json["birthDate"] == date(date.today().year - 3, 1, 1).isoformat()
    assert "Weight: 12kg" in r.json["description"]

    r = user_client.get("/api/pets")
    assert [p["name"] for p in r.json] == ["Rex"]


def test_create_validation(user_client):
    r = user_client.post("/api/pets", json={"species": "dog"})
    assert r.status_code == 400
    assert "Name is required." in r.json["errors"]
    assert _create(user_client, gender="robot").status_code == 400
    assert _create(user_client, birthDate="yesterday").status_code == 400


def test_create_rejects_out_of_range_age(user_client):
    r = _create(user_client, age=5000)
    assert r.status_code == 400
    assert "age must be" in r.json["error"]
    assert _create(user_client, age=-1).status_code == 400
    assert _create(user_client, age=0).status_code == 201

    pet_id = user_client.get("/api/pets").json[0]["id"]
    assert user_client.put(f"/api/pets/{pet_id}", json={"age": 999}).status_code == 400


def test_pets_are_scoped_to_owner(user_client, other_client):
    pet_id = _create(user_client).json["id"]
    assert other_client.get(f"/api/pets/{pet_id}").status_code == 404
    assert other_client.put(f"/api/pets/{pet_id}", json={"name": "Mine"}).status_code == 404
    assert other_client.delete(f"/api/pets/{pet_id}").status_code == 404
    assert other_client.get("/api/pets").json == []


def test_update_and_soft_delete(user_client):
    pet_id = _create(user_client).json["id"]
    r = user_client.put(f"/api/pets/{pet_id}", json={"name": "Max", "birthDate": "2020-05-01"})
    assert r.status_code == 200
    assert r.json["name"] == "Max"
    assert r.json["birthDate"] == "2020-05-01"

    assert user_client.delete(f"/api/pets/{pet_id}").status_code == 200
    assert user_client.get(f"/api/pets/{pet_id}").status_code == 404
    assert user_client.get("/api/pets").json == []


def test_free_plan_pet_limit(app, user_client):
    with session_scope(app) as s:
        set_setting(s, "max_pets_free", 2)
    assert _create(user_client, name="A").status_code == 201
    assert _create(user_client, name="B").status_code == 201
    r = _create(user_client, name="C")
    assert r.status_code == 403
    assert r.json["error"] == "Pet limit reached for your plan (2)"


def test_premium_plan_uses_premium_limit(app, user_client):
    with session_scope(app) as s:
        set_setting(s, "max_pets_free", 1)
        u = s.query(User).filter(User.email == "user@example.com").one()
        u.subscription_tier = "premium"
    assert _create(user_client, name="A").status_code == 201
    assert _create(user_client, name="B").status_code == 201
