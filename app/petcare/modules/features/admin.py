from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify

from app.petcare.audit import record_event
from app.petcare.db import db_session
from app.petcare.modules.features.models import Feature
from app.petcare.modules.features.registry import is_core_feature
from app.petcare.modules.features.service import (
    BULK_ACTIONS,
    CORE_DELETE_ERROR,
    CORE_DISABLE_ERROR,
    apply_bulk_action,
    disable_feature,
    enable_feature,
    initialize_features,
    list_feature_rows,
    serialize_feature,
    update_feature,
    validate_feature_update,
)
from app.petcare.rbac import current_user, require_admin
from app.petcare.utils import json_body, parse_int

bp = Blueprint("admin_features", __name__)


def _get_feature_or_404(feature_id: int) -> Feature:
    feature = db_session().get(Feature, feature_id)
    if not feature:
        abort(404, description="Feature not found")
    return feature


# ---------- List ----------
@bp.get("/features")
@require_admin
def features_list():
    s = db_session()
    return jsonify([serialize_feature(f) for f in list_feature_rows(s)])


@bp.post("/features/initialize")
@require_admin
def features_initialize():
    s = db_session()
    created = initialize_features(s)
    record_event(s, actor=current_user(), action="feature.initialize", entity_type="Feature", metadata={"created": created})
    s.commit()
    return jsonify({"created": created, "features": [serialize_feature(f) for f in list_feature_rows(s)]})


# ---------- Detail ----------
@bp.get("/features/<int:feature_id>")
@require_admin
def feature_detail(feature_id: int):
    return jsonify(serialize_feature(_get_feature_or_404(feature_id)))


@bp.put("/features/<int:feature_id>")
@require_admin
def feature_put(feature_id: int):
    s = db_session()
    feature = _get_feature_or_404(feature_id)
    payload = json_body()

    errors = validate_feature_update(feature, payload)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    update_feature(s, feature, payload, current_user())
    s.commit()
    return jsonify(serialize_feature(feature))


@bp.patch("/features/<int:feature_id>")
@require_admin
def feature_patch(feature_id: int):
    s = db_session()
    feature = _get_feature_or_404(feature_id)
    payload = json_body()
    if "isEnabled" not in payload:
        return jsonify({"error": "isEnabled is required"}), 400

    # This route writes the row directly, so the core check lives here too.
    errors = validate_feature_update(feature, {"isEnabled": payload["isEnabled"]})
    if errors:
        return jsonify({"error": errors[0]}), 400

    update_feature(s, feature, {"isEnabled": payload["isEnabled"]}, current_user())
    s.commit()
    return jsonify(serialize_feature(feature))


@bp.delete("/features/<int:feature_id>")
@require_admin
def feature_delete(feature_id: int):
    s = db_session()
    feature = _get_feature_or_404(feature_id)
    if feature.is_core:
        return jsonify({"error": CORE_DELETE_ERROR}), 400

    record_event(
        s,
        actor=current_user(),
        action="feature.delete",
        entity_type="Feature",
        entity_id=str(feature.id),
        metadata={"name": feature.name, "overrides": len(feature.user_overrides)},
    )
    # user_features rows go with it (ON DELETE CASCADE + delete-orphan).
    s.delete(feature)
    s.commit()
    return jsonify({"message": "Feature deleted successfully"})


# ---------- Bulk ----------
@bp.post("/features/bulk")
@require_admin
def features_bulk():
    s = db_session()
    action = (json_body().get("action") or "").strip()
    if action not in BULK_ACTIONS:
        return jsonify({"error": "Invalid action", "allowed": list(BULK_ACTIONS)}), 400

    enabled_count, disabled_count = apply_bulk_action(s, action)
    record_event(
        s,
        actor=current_user(),
        action="feature.bulk",
        entity_type="Feature",
        metadata={"action": action, "enabled": enabled_count, "disabled": disabled_count},
    )
    s.commit()
    current_app.logger.info("Bulk feature action %s: enabled=%s disabled=%s", action, enabled_count, disabled_count)
    return jsonify(
        {
            "success": True,
            "message": f"Bulk action '{action}' completed successfully",
            "enabledCount": enabled_count,
            "disabledCount": disabled_count,
        }
    )


# ---------- Toggle ----------
@bp.post("/features/toggle")
@require_admin
def features_toggle():
    s = db_session()
    payload = json_body()
    feature_name = (payload.get("featureName") or "").strip()
    if not feature_name:
        return jsonify({"error": "Feature name is required"}), 400
    enable = bool(payload.get("enable"))

    user_id = None
    if payload.get("userId") is not None:
        user_id = parse_int(payload.get("userId"))
        if user_id is None:
            return jsonify({"error": "userId must be an integer"}), 400

    if not enable and is_core_feature(feature_name):
        return jsonify({"error": CORE_DISABLE_ERROR}), 400

    ok = enable_feature(s, feature_name, user_id) if enable else disable_feature(s, feature_name, user_id)
    if not ok:
        return jsonify({"error": "Failed to toggle feature"}), 500

    record_event(
        s,
        actor=current_user(),
        action="feature.enable" if enable else "feature.disable",
        entity_type="Feature",
        entity_id=feature_name,
        metadata={"user_id": user_id},
    )
    s.commit()
    return jsonify(
        {
            "success": True,
            "message": f"Feature {feature_name} {'enabled' if enable else 'disabled'} successfully",
        }
    )
