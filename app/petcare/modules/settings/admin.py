from __future__ import annotations

from flask import Blueprint, jsonify

from app.petcare.audit import record_event
from app.petcare.db import db_session
from app.petcare.modules.settings.service import (
    list_settings,
    seed_default_settings,
    serialize_setting,
    upsert_settings,
    validate_settings_payload,
)
from app.petcare.rbac import current_user, require_admin
from app.petcare.utils import json_body

bp = Blueprint("admin_settings", __name__)


@bp.get("/settings")
@require_admin
def settings_list():
    s = db_session()
    return jsonify([serialize_setting(r) for r in list_settings(s)])


@bp.post("/settings")
@require_admin
def settings_update():
    s = db_session()
    items = json_body().get("settings")
    errors = validate_settings_payload(items)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    rows = upsert_settings(s, items, current_user())
    s.commit()
    return jsonify({"message": "Settings updated successfully", "settings": [serialize_setting(r) for r in rows]})


@bp.put("/settings")
@require_admin
def settings_seed_defaults():
    s = db_session()
    created = seed_default_settings(s)
    if created:
        record_event(s, actor=current_user(), action="setting.seed_defaults", entity_type="SystemSetting", metadata={"created": created})
    s.commit()
    return jsonify(
        {
            "message": "Default settings initialized",
            "created": created,
            "settings": [serialize_setting(r) for r in list_settings(s)],
        }
    )
