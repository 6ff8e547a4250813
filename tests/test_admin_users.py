from app.petcare.db import session_scope
from app.petcare.models import User
from app.petcare.modules.pets.models import Pet


def test_users_list(admin_client, user_client):
    assert user_client.get("/api/admin/users").status_code == 403
    user_client.post("/api/pets", json={"name": "Rex", "species": "dog"})

    r = admin_client.get("/api/admin/users")
    assert r.status_code == 200
    by_email = {u["email"]: u for u in r.json}
    assert by_email["user@example.com"]["petCount"] == 1
    assert by_email["admin@example.com"]["isAdmin"] is True


def test_update_subscription(app, admin_client, user_ids):
    uid = user_ids["user@example.com"]
    r = admin_client.patch(f"/api/admin/users/{uid}", json={"subscriptionTier": "lifetime"})
    assert r.status_code == 200
    assert r.json["subscriptionTier"] == "lifetime"
    assert r.json["subscriptionEndsAt"].startswith("2099-12-31")

    assert admin_client.patch(f"/api/admin/users/{uid}", json={"subscriptionTier": "gold"}).status_code == 400
    assert admin_client.patch(f"/api/admin/users/{uid}", json={"isAdmin": "yes"}).status_code == 400
    assert admin_client.patch("/api/admin/users/9999", json={"isAdmin": True}).status_code == 404


def test_revoked_admin_loses_access_immediately(admin_client, user_client, user_ids):
    uid = user_ids["user@example.com"]
    admin_client.patch(f"/api/admin/users/{uid}", json={"isAdmin": True})
    assert user_client.get("/api/admin/users").status_code == 200
    admin_client.patch(f"/api/admin/users/{uid}", json={"isAdmin": False})
    assert user_client.get("/api/admin/users").status_code == 403


def test_delete_user(app, admin_client, user_client, user_ids):
    user_client.post("/api/pets", json={"name": "Rex", "species": "dog"})
    uid = user_ids["user@example.com"]
    assert admin_client.delete(f"/api/admin/users/{uid}").status_code == 200
    with session_scope(app) as s:
        assert s.get(User, uid) is None
        assert s.query(Pet).filter(Pet.user_id == uid).count() == 0
    assert admin_client.delete(f"/api/admin/users/{uid}").status_code == 404


def test_cannot_delete_self(admin_client, user_ids):
    r = admin_client.delete(f"/api/admin/users/{user_ids['admin@example.com']}")
    assert r.status_code == 400


def test_stats(admin_client, user_client, enable_features):
    enable_features("expenses", "reminders")
    user_client.post("/api/pets", json={"name": "Rex", "species": "dog"})
    r = admin_client.get("/api/admin/stats")
    assert r.status_code == 200
    assert r.json["totalUsers"] == 3
    assert r.json["totalPets"] == 1
    assert r.json["activeFeatures"] == 5
    assert r.json["usersThisMonth"] == 3
    assert r.json["userGrowth"] == 100.0
