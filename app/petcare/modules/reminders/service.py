from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from app.petcare.modules.pets.service import get_owned_pet
from app.petcare.modules.reminders.models import Reminder
from app.petcare.utils import iso, parse_datetime, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.petcare.models import User


STATUS_FILTERS = ("active", "completed", "all")


def serialize_reminder(r: Reminder) -> dict[str, Any]:
    return {
        "id": r.id,
        "petId": r.pet_id,
        "title": r.title,
        "description": r.description,
        "dueDate": iso(r.due_date),
        "reminderType": r.reminder_type,
        "notifyBefore": r.notify_before,
        "isCompleted": r.is_completed,
        "completedAt": iso(r.completed_at),
        "pet": {"name": r.pet.name, "species": r.pet.species} if r.pet else None,
    }


def validate_reminder_payload(payload: dict) -> list[str]:
    errors = []
    if payload.get("petId") in (None, ""):
        errors.append("petId is required.")
    if not str(payload.get("title") or "").strip():
        errors.append("Title is required.")
    if parse_datetime(payload.get("dueDate")) is None:
        errors.append("dueDate is required (ISO 8601).")
    if not str(payload.get("reminderType") or "").strip():
        errors.append("reminderType is required.")
    if payload.get("notifyBefore") not in (None, ""):
        n = parse_int(payload.get("notifyBefore"))
        if n is None or n < 0:
            errors.append("notifyBefore must be a non-negative number of hours.")
    return errors


def list_reminders(s: "Session", user_id: int, status: str = "active") -> list[Reminder]:
    q = s.query(Reminder).filter(Reminder.user_id == user_id)
    if status == "active":
        q = q.filter(Reminder.is_completed.is_(False))
    elif status == "completed":
        q = q.filter(Reminder.is_completed.is_(True))
    return q.order_by(Reminder.due_date.asc()).all()


def due_for_notification(s: "Session", user_id: int, *, now: datetime | None = None) -> list[Reminder]:
    """Open reminders whose notify window (due_date - notify_before hours) has started."""
    now = now or datetime.utcnow()
    return [
        r
        for r in list_reminders(s, user_id, "active")
        if r.due_date - timedelta(hours=r.notify_before) <= now
    ]


def get_owned_reminder(s: "Session", user_id: int, reminder_id: int) -> Reminder | None:
    return s.query(Reminder).filter(Reminder.id == reminder_id, Reminder.user_id == user_id).one_or_none()


def create_reminder(s: "Session", payload: dict, user: "User") -> Reminder:
    """Raises LookupError when petId is not one of the user's pets."""
    pet = get_owned_pet(s, user.id, payload.get("petId"))
    if pet is None:
        raise LookupError("Pet not found or access denied")

    notify = parse_int(payload.get("notifyBefore"))
    r = Reminder(
        user_id=user.id,
        pet_id=pet.id,
        title=str(payload.get("title")).strip(),
        description=str(payload.get("description") or "").strip() or None,
        due_date=parse_datetime(payload.get("dueDate")),
        reminder_type=str(payload.get("reminderType")).strip(),
        notify_before=24 if notify is None else notify,
        is_completed=False,
        created_at=datetime.utcnow(),
    )
    s.add(r)
    s.flush()
    return r


def set_completed(r: Reminder, completed: bool) -> Reminder:
    r.is_completed = completed
    r.completed_at = datetime.utcnow() if completed else None
    return r
