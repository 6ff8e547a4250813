from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.petcare.audit import record_event
from app.petcare.modules.settings.models import SystemSetting

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.petcare.models import User

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: tuple[dict[str, str], ...] = (
    {
        "key": "ai_daily_limit_free",
        "value": "3",
        "description": "Daily AI consultation limit for free users",
        "category": "ai_vet",
    },
    {
        "key": "ai_daily_limit_premium",
        "value": "999",
        "description": "Daily AI consultation limit for premium users",
        "category": "ai_vet",
    },
    {
        "key": "premium_price_monthly",
        "value": "9.99",
        "description": "Monthly premium subscription price",
        "category": "subscription",
    },
    {
        "key": "ai_enabled",
        "value": "true",
        "description": "Enable/disable AI vet consultations",
        "category": "ai_vet",
    },
    {
        "key": "max_pets_free",
        "value": "5",
        "description": "Maximum pets for free users",
        "category": "limits",
    },
    {
        "key": "max_pets_premium",
        "value": "999",
        "description": "Maximum pets for premium users",
        "category": "limits",
    },
)

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def serialize_setting(row: SystemSetting) -> dict[str, Any]:
    return {
        "id": row.id,
        "key": row.key,
        "value": row.value,
        "description": row.description,
        "category": row.category,
        "updatedAt": row.updated_at.isoformat() if row.updated_at else None,
    }


def stringify_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def list_settings(s: "Session") -> list[SystemSetting]:
    rows = s.query(SystemSetting).all()
    return sorted(rows, key=lambda r: (r.category or "", r.key))


def validate_settings_payload(items: Any) -> list[str]:
    """Validate a batch update body (`settings: [{key, value, ...}]`). Returns list of errors."""
    if not isinstance(items, list) or not items:
        return ["settings must be a non-empty list."]
    errors = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            errors.append(f"settings[{i}] must be an object.")
            continue
        if not str(item.get("key") or "").strip():
            errors.append(f"settings[{i}].key is required.")
        if item.get("value") is None or isinstance(item.get("value"), (dict, list)):
            errors.append(f"settings[{i}].value must be a string, number or boolean.")
    return errors


def get_setting(s: "Session", key: str) -> SystemSetting | None:
    return s.query(SystemSetting).filter(SystemSetting.key == key).one_or_none()


def set_setting(
    s: "Session",
    key: str,
    value: Any,
    *,
    description: str | None = None,
    category: str | None = None,
) -> SystemSetting:
    """Upsert one setting. Last write wins; no concurrency token."""
    now = datetime.utcnow()
    row = get_setting(s, key)
    if row is None:
        row = SystemSetting(
            key=key,
            value=stringify_value(value),
            description=description,
            category=category,
            created_at=now,
            updated_at=now,
        )
        s.add(row)
    else:
        row.value = stringify_value(value)
        if description is not None:
            row.description = description
        if category is not None:
            row.category = category
        row.updated_at = now
    s.flush()
    return row


def upsert_settings(s: "Session", items: list[dict[str, Any]], user: "User") -> list[SystemSetting]:
    rows = []
    for item in items:
        key = str(item["key"]).strip()
        old = get_setting(s, key)
        old_value = old.value if old else None
        row = set_setting(s, key, item["value"], description=item.get("description"), category=item.get("category"))
        rows.append(row)
        record_event(
            s,
            actor=user,
            action="setting.update",
            entity_type="SystemSetting",
            entity_id=key,
            metadata={"old": old_value, "new": row.value},
        )
    return rows


def seed_default_settings(s: "Session") -> int:
    """Create any missing default settings; existing values are left alone."""
    created = 0
    for default in DEFAULT_SETTINGS:
        if get_setting(s, default["key"]) is None:
            set_setting(s, default["key"], default["value"], description=default["description"], category=default["category"])
            created += 1
    return created


def _default_for(key: str) -> str | None:
    for default in DEFAULT_SETTINGS:
        if default["key"] == key:
            return default["value"]
    return None


def get_value(s: "Session", key: str, default: str | None = None) -> str | None:
    row = get_setting(s, key)
    if row is not None:
        return row.value
    return default if default is not None else _default_for(key)


def get_int(s: "Session", key: str, default: int = 0) -> int:
    raw = get_value(s, key)
    try:
        return int(str(raw).strip()) if raw is not None else default
    except ValueError:
        logger.warning("Setting %s=%r is not an int; using %s", key, raw, default)
        return default


def get_float(s: "Session", key: str, default: float = 0.0) -> float:
    raw = get_value(s, key)
    try:
        return float(str(raw).strip()) if raw is not None else default
    except ValueError:
        logger.warning("Setting %s=%r is not a number; using %s", key, raw, default)
        return default


def get_bool(s: "Session", key: str, default: bool = False) -> bool:
    raw = get_value(s, key)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    logger.warning("Setting %s=%r is not a boolean; using %s", key, raw, default)
    return default
