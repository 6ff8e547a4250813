from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func

from app.petcare.audit import record_event
from app.petcare.modules.pets.models import Pet
from app.petcare.modules.settings.service import get_int
from app.petcare.utils import iso, parse_date, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.petcare.models import User


VALID_GENDERS = ("male", "female", "unknown")
MAX_PET_AGE_YEARS = 100


def serialize_pet(p: Pet) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "species": p.species,
        "breed": p.breed,
        "gender": p.gender,
        "birthDate": iso(p.birth_date),
        "microchipNumber": p.microchip_number,
        "description": p.description,
        "createdAt": iso(p.created_at),
    }


def validate_pet_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors = []
    if not partial or "name" in payload:
        if not str(payload.get("name") or "").strip():
            errors.append("Name is required.")
    if not partial or "species" in payload:
        if not str(payload.get("species") or "").strip():
            errors.append("Species is required.")
    gender = str(payload.get("gender") or "").strip().lower()
    if gender and gender not in VALID_GENDERS:
        errors.append(f"Invalid gender. Must be one of: {', '.join(VALID_GENDERS)}")
    if payload.get("birthDate") and parse_date(payload.get("birthDate")) is None:
        errors.append("birthDate must be YYYY-MM-DD.")
    if payload.get("age") not in (None, ""):
        age = parse_int(payload.get("age"))
        if age is None or not 0 <= age <= MAX_PET_AGE_YEARS:
            errors.append(f"age must be a whole number of years between 0 and {MAX_PET_AGE_YEARS}.")
    return errors


def get_owned_pet(s: "Session", user_id: int, pet_id: Any, *, include_inactive: bool = False) -> Pet | None:
    """Pet lookup scoped to its owner; other tenants' pets read as missing."""
    pid = parse_int(pet_id)
    if pid is None:
        return None
    q = s.query(Pet).filter(Pet.id == pid, Pet.user_id == user_id)
    if not include_inactive:
        q = q.filter(Pet.is_active.is_(True))
    return q.one_or_none()


def list_pets(s: "Session", user_id: int) -> list[Pet]:
    return (
        s.query(Pet)
        .filter(Pet.user_id == user_id, Pet.is_active.is_(True))
        .order_by(Pet.name.asc())
        .all()
    )


def active_pet_count(s: "Session", user_id: int) -> int:
    return s.query(func.count(Pet.id)).filter(Pet.user_id == user_id, Pet.is_active.is_(True)).scalar() or 0


def pet_limit_for(s: "Session", user: "User") -> int:
    if user.is_premium:
        return get_int(s, "max_pets_premium", 999)
    return get_int(s, "max_pets_free", 5)


def _birth_date_from(payload: dict) -> date | None:
    birth = parse_date(payload.get("birthDate"))
    if birth is None and payload.get("age") not in (None, ""):
        age = parse_int(payload.get("age"))
        if age is not None:
            birth = date(date.today().year - age, 1, 1)
    return birth


def _description_from(payload: dict) -> str | None:
    lines = [str(payload.get("notes") or payload.get("description") or "").strip()]
    if payload.get("weight"):
        lines.append(f"Weight: {payload['weight']}")
    if payload.get("color"):
        lines.append(f"Color: {payload['color']}")
    text = "\n".join(line for line in lines if line)
    return text or None


def create_pet(s: "Session", payload: dict, user: "User") -> Pet:
    now = datetime.utcnow()
    pet = Pet(
        user_id=user.id,
        name=str(payload.get("name")).strip(),
        species=str(payload.get("species")).strip(),
        breed=str(payload.get("breed") or "").strip() or None,
        gender=str(payload.get("gender") or "").strip().lower() or None,
        birth_date=_birth_date_from(payload),
        microchip_number=str(payload.get("microchipNumber") or "").strip() or None,
        description=_description_from(payload),
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    s.add(pet)
    s.flush()

    record_event(
        s,
        actor=user,
        action="pet.create",
        entity_type="Pet",
        entity_id=str(pet.id),
        metadata={"name": pet.name, "species": pet.species},
    )
    return pet


def update_pet(s: "Session", pet: Pet, payload: dict) -> Pet:
    for field, attr in (("name", "name"), ("species", "species")):
        if field in payload:
            setattr(pet, attr, str(payload[field]).strip())
    for field, attr in (("breed", "breed"), ("microchipNumber", "microchip_number"), ("description", "description")):
        if field in payload:
            setattr(pet, attr, str(payload[field] or "").strip() or None)
    if "gender" in payload:
        pet.gender = str(payload["gender"] or "").strip().lower() or None
    if "birthDate" in payload:
        pet.birth_date = parse_date(payload["birthDate"])
    pet.updated_at = datetime.utcnow()
    return pet


def deactivate_pet(s: "Session", pet: Pet, user: "User") -> None:
    pet.is_active = False
    pet.updated_at = datetime.utcnow()
    record_event(s, actor=user, action="pet.deactivate", entity_type="Pet", entity_id=str(pet.id), metadata={"name": pet.name})
