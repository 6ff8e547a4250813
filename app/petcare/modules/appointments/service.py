from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.petcare.modules.appointments.models import Appointment
from app.petcare.modules.pets.service import get_owned_pet
from app.petcare.utils import iso, parse_datetime, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.petcare.models import User


APPOINTMENT_STATUSES = ("scheduled", "completed", "cancelled")


def serialize_appointment(a: Appointment) -> dict[str, Any]:
    return {
        "id": a.id,
        "petId": a.pet_id,
        "title": a.title,
        "appointmentType": a.appointment_type,
        "appointmentDate": iso(a.date),
        "duration": a.duration,
        "location": a.location,
        "veterinarian": a.vet_name,
        "status": a.status,
        "notes": a.description,
        "pet": {"name": a.pet.name, "species": a.pet.species} if a.pet else None,
        "createdAt": iso(a.created_at),
    }


def _date_from(payload: dict) -> datetime | None:
    return parse_datetime(payload.get("appointmentDate") or payload.get("date"))


def validate_appointment_payload(payload: dict) -> list[str]:
    errors = []
    if payload.get("petId") in (None, ""):
        errors.append("petId is required.")
    if not str(payload.get("appointmentType") or "").strip():
        errors.append("appointmentType is required.")
    if _date_from(payload) is None:
        errors.append("appointmentDate is required (ISO 8601).")
    if payload.get("duration") not in (None, ""):
        d = parse_int(payload.get("duration"))
        if d is None or d <= 0:
            errors.append("duration must be a positive number of minutes.")
    return errors


def validate_appointment_update(payload: dict) -> list[str]:
    errors = []
    if "status" in payload and payload.get("status") not in APPOINTMENT_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(APPOINTMENT_STATUSES)}")
    if ("appointmentDate" in payload or "date" in payload) and _date_from(payload) is None:
        errors.append("appointmentDate must be ISO 8601.")
    if "duration" in payload:
        d = parse_int(payload.get("duration"))
        if d is None or d <= 0:
            errors.append("duration must be a positive number of minutes.")
    return errors


def list_appointments(s: "Session", user_id: int, *, upcoming_only: bool = False) -> list[Appointment]:
    q = s.query(Appointment).filter(Appointment.user_id == user_id)
    if upcoming_only:
        q = q.filter(Appointment.date >= datetime.utcnow(), Appointment.status == "scheduled")
    return q.order_by(Appointment.date.asc()).all()


def get_owned_appointment(s: "Session", user_id: int, appointment_id: int) -> Appointment | None:
    return (
        s.query(Appointment)
        .filter(Appointment.id == appointment_id, Appointment.user_id == user_id)
        .one_or_none()
    )


def create_appointment(s: "Session", payload: dict, user: "User") -> Appointment:
    """Raises LookupError when petId is not one of the user's pets."""
    pet = get_owned_pet(s, user.id, payload.get("petId"))
    if pet is None:
        raise LookupError("Pet not found or access denied")

    appointment_type = str(payload.get("appointmentType")).strip()
    title = str(payload.get("title") or "").strip() or f"{appointment_type} for {pet.name}"
    now = datetime.utcnow()
    a = Appointment(
        user_id=user.id,
        pet_id=pet.id,
        title=title,
        appointment_type=appointment_type,
        date=_date_from(payload),
        duration=parse_int(payload.get("duration")) or 60,
        location=str(payload.get("location") or "").strip() or None,
        vet_name=str(payload.get("veterinarian") or payload.get("vetName") or "").strip() or None,
        status="scheduled",
        description=str(payload.get("notes") or payload.get("description") or "").strip() or None,
        created_at=now,
        updated_at=now,
    )
    s.add(a)
    s.flush()
    return a


def update_appointment(s: "Session", a: Appointment, payload: dict) -> Appointment:
    if "status" in payload:
        a.status = payload["status"]
    if "appointmentDate" in payload or "date" in payload:
        a.date = _date_from(payload)
    if "duration" in payload:
        a.duration = parse_int(payload["duration"])
    if "title" in payload and str(payload["title"] or "").strip():
        a.title = str(payload["title"]).strip()
    if "location" in payload:
        a.location = str(payload["location"] or "").strip() or None
    if "veterinarian" in payload or "vetName" in payload:
        a.vet_name = str(payload.get("veterinarian") or payload.get("vetName") or "").strip() or None
    if "notes" in payload:
        a.description = str(payload["notes"] or "").strip() or None
    a.updated_at = datetime.utcnow()
    return a
