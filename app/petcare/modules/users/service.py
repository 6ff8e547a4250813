from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func

from app.petcare.audit import record_event
from app.petcare.models import SUBSCRIPTION_STATUSES, SUBSCRIPTION_TIERS, User
from app.petcare.modules.features.models import Feature
from app.petcare.modules.pets.models import Pet
from app.petcare.utils import iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


LIFETIME_ENDS_AT = datetime(2099, 12, 31)


def serialize_user(u: User, pet_count: int = 0) -> dict[str, Any]:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "isAdmin": u.is_admin,
        "isActive": u.is_active,
        "subscriptionTier": u.subscription_tier,
        "subscriptionStatus": u.subscription_status,
        "subscriptionEndsAt": iso(u.subscription_ends_at),
        "petCount": pet_count,
        "createdAt": iso(u.created_at),
    }


def list_users_with_pet_counts(s: "Session") -> list[tuple[User, int]]:
    counts = dict(
        s.query(Pet.user_id, func.count(Pet.id))
        .filter(Pet.is_active.is_(True))
        .group_by(Pet.user_id)
        .all()
    )
    users = s.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return [(u, counts.get(u.id, 0)) for u in users]


def validate_user_update(payload: dict) -> list[str]:
    errors = []
    if "subscriptionTier" in payload and payload.get("subscriptionTier") not in SUBSCRIPTION_TIERS:
        errors.append(f"Invalid subscriptionTier. Must be one of: {', '.join(SUBSCRIPTION_TIERS)}")
    if "subscriptionStatus" in payload and payload.get("subscriptionStatus") not in SUBSCRIPTION_STATUSES:
        errors.append(f"Invalid subscriptionStatus. Must be one of: {', '.join(SUBSCRIPTION_STATUSES)}")
    if "isAdmin" in payload and not isinstance(payload.get("isAdmin"), bool):
        errors.append("isAdmin must be a boolean.")
    return errors


def update_user(s: "Session", target: User, payload: dict, actor: User) -> User:
    before = {
        "subscription_tier": target.subscription_tier,
        "subscription_status": target.subscription_status,
        "is_admin": target.is_admin,
    }
    if "subscriptionTier" in payload:
        target.subscription_tier = payload["subscriptionTier"]
        if target.subscription_tier == "lifetime":
            target.subscription_ends_at = LIFETIME_ENDS_AT
    if "subscriptionStatus" in payload:
        target.subscription_status = payload["subscriptionStatus"]
    if "isAdmin" in payload:
        target.is_admin = payload["isAdmin"]
    target.updated_at = datetime.utcnow()

    after = {
        "subscription_tier": target.subscription_tier,
        "subscription_status": target.subscription_status,
        "is_admin": target.is_admin,
    }
    record_event(
        s,
        actor=actor,
        action="user.update",
        entity_type="User",
        entity_id=str(target.id),
        metadata={"before": before, "after": after},
    )
    return target


def delete_user(s: "Session", target: User, actor: User) -> None:
    record_event(
        s,
        actor=actor,
        action="user.delete",
        entity_type="User",
        entity_id=str(target.id),
        metadata={"email": target.email},
    )
    s.delete(target)


def _month_start(d: datetime) -> datetime:
    return datetime(d.year, d.month, 1)


def _previous_month_start(d: datetime) -> datetime:
    if d.month == 1:
        return datetime(d.year - 1, 12, 1)
    return datetime(d.year, d.month - 1, 1)


def _growth(this_month: int, last_month: int) -> float:
    if last_month == 0:
        return 100.0 if this_month > 0 else 0.0
    return round((this_month - last_month) / last_month * 100, 1)


def _created_between(s: "Session", model, start: datetime, end: datetime | None = None) -> int:
    q = s.query(func.count(model.id)).filter(model.created_at >= start)
    if end is not None:
        q = q.filter(model.created_at < end)
    return q.scalar() or 0


def admin_stats(s: "Session", *, now: datetime | None = None) -> dict[str, Any]:
    """Dashboard counters plus month-over-month growth percentages."""
    now = now or datetime.utcnow()
    this_start = _month_start(now)
    last_start = _previous_month_start(now)

    users_this = _created_between(s, User, this_start)
    users_last = _created_between(s, User, last_start, this_start)
    pets_this = _created_between(s, Pet, this_start)
    pets_last = _created_between(s, Pet, last_start, this_start)

    return {
        "totalUsers": s.query(func.count(User.id)).scalar() or 0,
        "totalPets": s.query(func.count(Pet.id)).filter(Pet.is_active.is_(True)).scalar() or 0,
        "activeFeatures": s.query(func.count(Feature.id)).filter(Feature.is_enabled.is_(True)).scalar() or 0,
        "usersThisMonth": users_this,
        "petsThisMonth": pets_this,
        "userGrowth": _growth(users_this, users_last),
        "petGrowth": _growth(pets_this, pets_last),
    }
