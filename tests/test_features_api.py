from app.petcare.db import session_scope
from app.petcare.models import AuditEvent
from app.petcare.modules.features.models import Feature


def _names(resp):
    return [f["name"] for f in resp.json["features"]]


def test_public_list_is_global_enabled_set(client):
    r = client.get("/api/features")
    assert r.status_code == 200
    assert _names(r) == ["dashboard", "pets", "settings"]
    assert r.json["features"][0]["displayName"] == "Dashboard"


def test_list_initializes_empty_table(app, client):
    with session_scope(app) as s:
        s.query(Feature).delete()
    r = client.get("/api/features")
    assert _names(r) == ["dashboard", "pets", "settings"]
    with session_scope(app) as s:
        assert s.query(Feature).count() == 14


def test_user_view_applies_overrides(admin_client, user_client, user_ids):
    uid = user_ids["user@example.com"]
    r = admin_client.post("/api/features", json={"featureName": "expenses", "enabled": True, "userId": uid})
    assert r.status_code == 200
    assert r.json == {"success": True}

    r = user_client.get(f"/api/features?userId={uid}")
    assert "expenses" in _names(r)

    # no userId, or somebody else's id, returns the global set
    assert "expenses" not in _names(user_client.get("/api/features"))
    assert "expenses" not in _names(user_client.get(f"/api/features?userId={user_ids['other@example.com']}"))


def test_update_requires_admin(client, user_client):
    r = client.post("/api/features", json={"featureName": "expenses", "enabled": True})
    assert r.status_code == 401

    r = user_client.post("/api/features", json={"featureName": "expenses", "enabled": True})
    assert r.status_code == 401


def test_update_validation(admin_client):
    assert admin_client.post("/api/features", json={"enabled": True}).status_code == 400
    assert admin_client.post("/api/features", json={"featureName": "expenses", "enabled": "yes"}).status_code == 400
    r = admin_client.post("/api/features", json={"featureName": "expenses", "enabled": True, "userId": "abc"})
    assert r.status_code == 400


def test_update_refuses_core_disable(admin_client):
    r = admin_client.post("/api/features", json={"featureName": "pets", "enabled": False})
    assert r.status_code == 400
    assert r.json == {"error": "Core features cannot be disabled"}


def test_update_unknown_feature_is_500(admin_client):
    r = admin_client.post("/api/features", json={"featureName": "nope", "enabled": True})
    assert r.status_code == 500
    assert r.json == {"error": "Failed to update feature"}


def test_update_is_audited(app, admin_client):
    admin_client.post("/api/features", json={"featureName": "expenses", "enabled": True})
    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "feature.enable").one()
        assert ev.entity_id == "expenses"
        assert ev.actor_user_email == "admin@example.com"
