def test_plugins_list(admin_client, user_client):
    assert user_client.get("/api/admin/plugins").status_code == 403
    r = admin_client.get("/api/admin/plugins")
    assert r.status_code == 200
    by_id = {p["id"]: p for p in r.json}
    assert by_id["ai-vet"]["isEnabled"] is True
    assert by_id["health-analytics"]["isEnabled"] is False


def test_unknown_plugin_404(admin_client):
    assert admin_client.get("/api/admin/plugins/nope").status_code == 404
    assert admin_client.patch("/api/admin/plugins/nope", json={"isEnabled": True}).status_code == 404


def test_core_plugin_cannot_be_disabled(admin_client):
    r = admin_client.patch("/api/admin/plugins/ai-vet", json={"isEnabled": False})
    assert r.status_code == 400
    assert "cannot be disabled" in r.json["error"]


def test_enable_plugin_persists(admin_client):
    r = admin_client.patch("/api/admin/plugins/health-analytics", json={"isEnabled": True})
    assert r.status_code == 200
    assert r.json["isEnabled"] is True
    assert admin_client.get("/api/admin/plugins/health-analytics").json["isEnabled"] is True

    settings = {row["key"]: row["value"] for row in admin_client.get("/api/admin/settings").json}
    assert settings["plugin.health-analytics.enabled"] == "true"


def test_toggle_requires_boolean(admin_client):
    r = admin_client.patch("/api/admin/plugins/health-analytics", json={"isEnabled": "on"})
    assert r.status_code == 400


def test_plugin_settings_merge_with_defaults(admin_client):
    r = admin_client.get("/api/admin/plugins/health-analytics/settings")
    assert r.json["settings"] == {"alertThreshold": 70, "trackWeight": True}

    r = admin_client.put("/api/admin/plugins/health-analytics/settings", json={"settings": {"alertThreshold": 50}})
    assert r.status_code == 200
    assert r.json["settings"] == {"alertThreshold": 50, "trackWeight": True}

    r = admin_client.get("/api/admin/plugins/health-analytics/settings")
    assert r.json["settings"]["alertThreshold"] == 50

    assert admin_client.put("/api/admin/plugins/health-analytics/settings", json={"settings": [1]}).status_code == 400
