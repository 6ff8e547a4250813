from __future__ import annotations

from flask import Blueprint, abort, jsonify

from app.petcare.db import db_session
from app.petcare.modules.pets.models import Pet
from app.petcare.modules.pets.service import (
    active_pet_count,
    create_pet,
    deactivate_pet,
    get_owned_pet,
    list_pets,
    pet_limit_for,
    serialize_pet,
    update_pet,
    validate_pet_payload,
)
from app.petcare.rbac import current_user, require_login
from app.petcare.utils import json_body

bp = Blueprint("pets", __name__)


def _owned_pet_or_404(pet_id: int) -> Pet:
    pet = get_owned_pet(db_session(), current_user().id, pet_id)
    if not pet:
        abort(404, description="Pet not found")
    return pet


@bp.get("/pets")
@require_login
def pets_list():
    s = db_session()
    return jsonify([serialize_pet(p) for p in list_pets(s, current_user().id)])


@bp.post("/pets")
@require_login
def pets_create():
    s = db_session()
    u = current_user()
    payload = json_body()

    errors = validate_pet_payload(payload)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    limit = pet_limit_for(s, u)
    if active_pet_count(s, u.id) >= limit:
        return jsonify({"error": f"Pet limit reached for your plan ({limit})"}), 403

    pet = create_pet(s, payload, u)
    s.commit()
    return jsonify(serialize_pet(pet)), 201


@bp.get("/pets/<int:pet_id>")
@require_login
def pet_detail(pet_id: int):
    return jsonify(serialize_pet(_owned_pet_or_404(pet_id)))


@bp.put("/pets/<int:pet_id>")
@require_login
def pet_update(pet_id: int):
    s = db_session()
    pet = _owned_pet_or_404(pet_id)
    payload = json_body()

    errors = validate_pet_payload(payload, partial=True)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    update_pet(s, pet, payload)
    s.commit()
    return jsonify(serialize_pet(pet))


@bp.delete("/pets/<int:pet_id>")
@require_login
def pet_delete(pet_id: int):
    s = db_session()
    pet = _owned_pet_or_404(pet_id)
    deactivate_pet(s, pet, current_user())
    s.commit()
    return jsonify({"message": "Pet deleted successfully"})
