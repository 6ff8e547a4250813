from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request

from app.petcare.audit import record_event
from app.petcare.db import db_session
from app.petcare.modules.features.registry import is_core_feature
from app.petcare.modules.features.service import (
    CORE_DISABLE_ERROR,
    describe_features,
    disable_feature,
    enable_feature,
    ensure_features_initialized,
    get_enabled_features,
    get_user_enabled_features,
)
from app.petcare.rbac import current_claims, current_user
from app.petcare.utils import json_body, parse_int

bp = Blueprint("features", __name__)


@bp.get("/features")
def features_list():
    s = db_session()
    ensure_features_initialized(s)

    claims = current_claims()
    requested = (request.args.get("userId") or "").strip()
    if requested and claims is not None and requested == str(claims.user_id):
        names = get_user_enabled_features(s, claims.user_id)
    else:
        names = get_enabled_features(s)

    return jsonify({"features": describe_features(s, names)})


@bp.post("/features")
def features_update():
    claims = current_claims()
    if claims is None or not claims.is_admin:
        abort(401)

    payload = json_body()
    feature_name = (payload.get("featureName") or "").strip()
    enabled = payload.get("enabled")
    if not feature_name:
        return jsonify({"error": "featureName is required"}), 400
    if not isinstance(enabled, bool):
        return jsonify({"error": "enabled must be a boolean"}), 400

    user_id = None
    if payload.get("userId") is not None:
        user_id = parse_int(payload.get("userId"))
        if user_id is None:
            return jsonify({"error": "userId must be an integer"}), 400

    if not enabled and is_core_feature(feature_name):
        return jsonify({"error": CORE_DISABLE_ERROR}), 400

    s = db_session()
    ok = enable_feature(s, feature_name, user_id) if enabled else disable_feature(s, feature_name, user_id)
    if not ok:
        current_app.logger.warning("Feature update failed (feature=%s user_id=%s)", feature_name, user_id)
        return jsonify({"error": "Failed to update feature"}), 500

    record_event(
        s,
        actor=current_user(),
        action="feature.enable" if enabled else "feature.disable",
        entity_type="Feature",
        entity_id=feature_name,
        metadata={"user_id": user_id},
    )
    s.commit()
    return jsonify({"success": True})
