from app.petcare.db import session_scope
from app.petcare.modules.features.models import Feature, UserFeature
from app.petcare.modules.features.service import get_feature_by_name


def _feature_id(app, name):
    with session_scope(app) as s:
        return get_feature_by_name(s, name).id


def test_admin_routes_require_auth(client, user_client):
    assert client.get("/api/admin/features").status_code == 401
    r = user_client.get("/api/admin/features")
    assert r.status_code == 403
    assert r.json["error"] == "Admin access required"


def test_anonymous_mutation_without_token_is_401(client):
    r = client.post("/api/admin/features/bulk", json={"action": "enable-all-non-core"})
    assert r.status_code == 401
    assert client.patch("/api/admin/features/1", json={"isEnabled": True}).status_code == 401


def test_list_is_ordered_array(admin_client):
    r = admin_client.get("/api/admin/features")
    assert r.status_code == 200
    assert isinstance(r.json, list)
    assert len(r.json) == 14
    assert [f["name"] for f in r.json[:3]] == ["dashboard", "pets", "settings"]
    assert all(not f["isCore"] for f in r.json[3:])


def test_patch_core_feature_rejected(app, admin_client):
    fid = _feature_id(app, "pets")
    r = admin_client.patch(f"/api/admin/features/{fid}", json={"isEnabled": False})
    assert r.status_code == 400
    assert r.json == {"error": "Core features cannot be disabled"}


def test_patch_toggles_optional_feature(app, admin_client):
    fid = _feature_id(app, "expenses")
    r = admin_client.patch(f"/api/admin/features/{fid}", json={"isEnabled": True})
    assert r.status_code == 200
    assert r.json["isEnabled"] is True

    assert admin_client.patch(f"/api/admin/features/{fid}", json={}).status_code == 400
    assert admin_client.patch("/api/admin/features/9999", json={"isEnabled": True}).status_code == 404


def test_put_edits_metadata(app, admin_client):
    fid = _feature_id(app, "expenses")
    r = admin_client.put(
        f"/api/admin/features/{fid}",
        json={"displayName": "Spending", "description": "Money out", "category": "finance"},
    )
    assert r.status_code == 200
    assert r.json["displayName"] == "Spending"

    r = admin_client.put(f"/api/admin/features/{fid}", json={"category": "bogus"})
    assert r.status_code == 400


def test_delete_optional_cascades_and_core_refused(app, admin_client, user_ids):
    admin_client.post(
        "/api/admin/features/toggle",
        json={"featureName": "expenses", "enable": True, "userId": user_ids["user@example.com"]},
    )
    fid = _feature_id(app, "expenses")
    r = admin_client.delete(f"/api/admin/features/{fid}")
    assert r.status_code == 200
    with session_scope(app) as s:
        assert s.query(UserFeature).count() == 0

    r = admin_client.delete(f"/api/admin/features/{_feature_id(app, 'dashboard')}")
    assert r.status_code == 400


def test_bulk_enable_all_non_core(admin_client):
    r = admin_client.post("/api/admin/features/bulk", json={"action": "enable-all-non-core"})
    assert r.status_code == 200
    assert r.json["success"] is True
    assert r.json["enabledCount"] == 14
    assert r.json["disabledCount"] == 0


def test_bulk_counts_with_small_catalogue(app, admin_client):
    # 3 core + 5 optional rows
    keep = {"dashboard", "pets", "settings", "expenses", "appointments", "reminders", "documents", "activities"}
    with session_scope(app) as s:
        for f in s.query(Feature).all():
            if f.name not in keep:
                s.delete(f)

    r = admin_client.post("/api/admin/features/bulk", json={"action": "enable-all-non-core"})
    assert (r.json["enabledCount"], r.json["disabledCount"]) == (8, 0)
    r = admin_client.post("/api/admin/features/bulk", json={"action": "reset-to-defaults"})
    assert (r.json["enabledCount"], r.json["disabledCount"]) == (3, 5)


def test_bulk_invalid_action(admin_client):
    r = admin_client.post("/api/admin/features/bulk", json={"action": "explode"})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid action"


def test_toggle_route(admin_client, user_client, user_ids, enable_features):
    enable_features("reminders")
    uid = user_ids["user@example.com"]
    r = admin_client.post("/api/admin/features/toggle", json={"featureName": "reminders", "enable": False, "userId": uid})
    assert r.status_code == 200
    assert "reminders" not in [f["name"] for f in user_client.get(f"/api/features?userId={uid}").json["features"]]

    r = admin_client.post("/api/admin/features/toggle", json={"featureName": "settings", "enable": False})
    assert r.status_code == 400
    assert admin_client.post("/api/admin/features/toggle", json={}).status_code == 400


def test_initialize_route(admin_client):
    r = admin_client.post("/api/admin/features/initialize")
    assert r.status_code == 200
    assert r.json["created"] == 0
    assert len(r.json["features"]) == 14
