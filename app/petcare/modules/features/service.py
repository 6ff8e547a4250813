from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.petcare.audit import record_event
from app.petcare.modules.features.models import Feature, UserFeature
from app.petcare.modules.features.registry import (
    CATEGORIES,
    core_feature_names,
    is_core_feature,
    list_features,
    resolve_feature,
    sort_key,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.petcare.models import User

logger = logging.getLogger(__name__)

BULK_ACTIONS = ("enable-all-non-core", "disable-all-optional", "reset-to-defaults")
CORE_DISABLE_ERROR = "Core features cannot be disabled"
CORE_DELETE_ERROR = "Core features cannot be deleted"


def serialize_feature(f: Feature) -> dict[str, Any]:
    return {
        "id": f.id,
        "name": f.name,
        "displayName": f.display_name,
        "description": f.description,
        "category": f.category,
        "isCore": f.is_core,
        "isEnabled": f.is_enabled,
        "version": f.version,
        "updatedAt": f.updated_at.isoformat() if f.updated_at else None,
    }


def get_feature_by_name(s: "Session", name: str) -> Feature | None:
    return s.query(Feature).filter(Feature.name == name).one_or_none()


def list_feature_rows(s: "Session") -> list[Feature]:
    rows = s.query(Feature).all()
    return sorted(rows, key=lambda f: sort_key(f.is_core, f.category, f.display_name))


def initialize_features(s: "Session") -> int:
    """
    Upsert every registry entry into the features table.
    New rows start enabled only if core; existing rows keep their admin-chosen
    state but pick up registry metadata, and core rows are re-enabled.
    Returns the number of rows created.
    """
    created = 0
    now = datetime.utcnow()
    for desc in list_features():
        row = get_feature_by_name(s, desc.name)
        if row is None:
            s.add(
                Feature(
                    name=desc.name,
                    display_name=desc.display_name,
                    description=desc.description,
                    category=desc.category,
                    is_core=desc.is_core,
                    is_enabled=desc.is_core,
                    version=desc.version,
                    created_at=now,
                    updated_at=now,
                )
            )
            created += 1
            continue
        row.display_name = desc.display_name
        row.description = desc.description
        row.category = desc.category
        row.version = desc.version
        row.is_core = desc.is_core
        if desc.is_core and not row.is_enabled:
            logger.warning("Re-enabling core feature %s found disabled", desc.name)
            row.is_enabled = True
            row.updated_at = now
    s.flush()
    if created:
        logger.info("Seeded %d feature(s) from registry", created)
    return created


def ensure_features_initialized(s: "Session") -> None:
    if not s.query(func.count(Feature.id)).scalar():
        initialize_features(s)
        s.commit()


def get_enabled_features(s: "Session") -> set[str]:
    return {name for (name,) in s.query(Feature.name).filter(Feature.is_enabled.is_(True)).all()}


def get_user_overrides(s: "Session", user_id: int) -> dict[str, bool]:
    rows = (
        s.query(Feature.name, UserFeature.is_enabled)
        .join(UserFeature, UserFeature.feature_id == Feature.id)
        .filter(UserFeature.user_id == user_id)
        .all()
    )
    return {name: bool(on) for name, on in rows}


def get_user_enabled_features(s: "Session", user_id: int) -> set[str]:
    """Global enabled set with this user's overrides applied. Core features always included."""
    try:
        enabled = get_enabled_features(s)
        for name, on in get_user_overrides(s, user_id).items():
            if on:
                enabled.add(name)
            else:
                enabled.discard(name)
    except SQLAlchemyError:
        logger.exception("Failed to resolve features for user_id=%s; falling back to core", user_id)
        s.rollback()
        return set(core_feature_names())
    return enabled | core_feature_names()


def _user_exists(s: "Session", user_id: int) -> bool:
    from app.petcare.models import User

    return s.get(User, user_id) is not None


def _set_override(s: "Session", feature: Feature, user_id: int, enabled: bool) -> bool:
    if not _user_exists(s, user_id):
        logger.warning("Feature override for unknown user_id=%s feature=%s", user_id, feature.name)
        return False
    now = datetime.utcnow()
    row = (
        s.query(UserFeature)
        .filter(UserFeature.user_id == user_id, UserFeature.feature_id == feature.id)
        .one_or_none()
    )
    if row is None:
        s.add(UserFeature(user_id=user_id, feature_id=feature.id, is_enabled=enabled, created_at=now, updated_at=now))
    else:
        row.is_enabled = enabled
        row.updated_at = now
    s.flush()
    return True


def _set_global(s: "Session", feature: Feature, enabled: bool) -> bool:
    feature.is_enabled = enabled
    feature.updated_at = datetime.utcnow()
    s.flush()
    return True


def enable_feature(s: "Session", name: str, user_id: int | None = None) -> bool:
    try:
        feature = get_feature_by_name(s, name)
        if feature is None:
            logger.warning("enable_feature: unknown feature %s", name)
            return False
        if user_id is not None:
            return _set_override(s, feature, user_id, True)
        return _set_global(s, feature, True)
    except SQLAlchemyError:
        logger.exception("enable_feature failed (feature=%s user_id=%s)", name, user_id)
        s.rollback()
        return False


def disable_feature(s: "Session", name: str, user_id: int | None = None) -> bool:
    try:
        feature = get_feature_by_name(s, name)
        if feature is None:
            logger.warning("disable_feature: unknown feature %s", name)
            return False
        if feature.is_core or is_core_feature(name):
            logger.warning("disable_feature: refused for core feature %s (user_id=%s)", name, user_id)
            return False
        if user_id is not None:
            return _set_override(s, feature, user_id, False)
        return _set_global(s, feature, False)
    except SQLAlchemyError:
        logger.exception("disable_feature failed (feature=%s user_id=%s)", name, user_id)
        s.rollback()
        return False


def clear_user_override(s: "Session", name: str, user_id: int) -> bool:
    """Drop a user's override so the feature inherits global state again."""
    try:
        feature = get_feature_by_name(s, name)
        if feature is None:
            return False
        (
            s.query(UserFeature)
            .filter(UserFeature.user_id == user_id, UserFeature.feature_id == feature.id)
            .delete(synchronize_session=False)
        )
        s.flush()
        return True
    except SQLAlchemyError:
        logger.exception("clear_user_override failed (feature=%s user_id=%s)", name, user_id)
        s.rollback()
        return False


def feature_counts(s: "Session") -> tuple[int, int]:
    enabled = s.query(func.count(Feature.id)).filter(Feature.is_enabled.is_(True)).scalar() or 0
    disabled = s.query(func.count(Feature.id)).filter(Feature.is_enabled.is_(False)).scalar() or 0
    return int(enabled), int(disabled)


def apply_bulk_action(s: "Session", action: str) -> tuple[int, int]:
    """Apply a bulk toggle and return (enabled_count, disabled_count)."""
    if action not in BULK_ACTIONS:
        raise ValueError(f"Invalid action: {action}")
    now = datetime.utcnow()
    optional_state = action == "enable-all-non-core"
    s.query(Feature).filter(Feature.is_core.is_(True)).update(
        {Feature.is_enabled: True, Feature.updated_at: now}, synchronize_session=False
    )
    s.query(Feature).filter(Feature.is_core.is_(False)).update(
        {Feature.is_enabled: optional_state, Feature.updated_at: now}, synchronize_session=False
    )
    s.expire_all()
    return feature_counts(s)


def validate_feature_update(feature: Feature, payload: dict) -> list[str]:
    errors = []
    if "isEnabled" in payload and not isinstance(payload["isEnabled"], bool):
        errors.append("isEnabled must be a boolean.")
    if feature.is_core and payload.get("isEnabled") is False:
        errors.append(CORE_DISABLE_ERROR)
    category = payload.get("category")
    if category is not None and category not in CATEGORIES:
        errors.append(f"Invalid category. Must be one of: {', '.join(CATEGORIES)}")
    if "displayName" in payload and not (payload.get("displayName") or "").strip():
        errors.append("displayName cannot be empty.")
    return errors


def update_feature(s: "Session", feature: Feature, payload: dict, user: "User") -> Feature:
    """Write admin edits straight to the row; callers validate first."""
    changes = {}
    if "displayName" in payload:
        new_name = (payload.get("displayName") or "").strip()
        if new_name != feature.display_name:
            changes["displayName"] = {"old": feature.display_name, "new": new_name}
            feature.display_name = new_name
    if "description" in payload:
        new_desc = (payload.get("description") or "").strip() or None
        if new_desc != feature.description:
            changes["description"] = {"old": feature.description, "new": new_desc}
            feature.description = new_desc
    if payload.get("category") is not None and payload["category"] != feature.category:
        changes["category"] = {"old": feature.category, "new": payload["category"]}
        feature.category = payload["category"]
    if "isEnabled" in payload and payload["isEnabled"] != feature.is_enabled:
        changes["isEnabled"] = {"old": feature.is_enabled, "new": payload["isEnabled"]}
        feature.is_enabled = bool(payload["isEnabled"])

    feature.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="feature.edit",
        entity_type="Feature",
        entity_id=str(feature.id),
        metadata={"name": feature.name, "changes": changes},
    )
    return feature


def describe_features(s: "Session", names: Iterable[str]) -> list[dict[str, Any]]:
    """FeatureConfig payloads for the given names, registry metadata first."""
    wanted = set(names)
    rows = {f.name: f for f in s.query(Feature).filter(Feature.name.in_(wanted)).all()} if wanted else {}
    out = []
    for name in wanted:
        desc = resolve_feature(name)
        if desc is not None:
            out.append((sort_key(desc.is_core, desc.category, desc.display_name), desc.to_dict()))
            continue
        row = rows.get(name)
        if row is None:
            continue
        payload = {
            "id": row.name,
            "name": row.name,
            "displayName": row.display_name,
            "description": row.description,
            "category": row.category,
            "isCore": row.is_core,
            "version": row.version,
            "routes": [],
            "dependencies": [],
        }
        out.append((sort_key(row.is_core, row.category, row.display_name), payload))
    return [payload for _, payload in sorted(out, key=lambda pair: pair[0])]
