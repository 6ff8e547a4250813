from __future__ import annotations

from flask import Blueprint, abort, jsonify, request

from app.petcare.db import db_session
from app.petcare.modules.appointments.models import Appointment
from app.petcare.modules.appointments.service import (
    create_appointment,
    get_owned_appointment,
    list_appointments,
    serialize_appointment,
    update_appointment,
    validate_appointment_payload,
    validate_appointment_update,
)
from app.petcare.rbac import current_user, require_feature
from app.petcare.utils import json_body

bp = Blueprint("appointments", __name__)


def _owned_appointment_or_404(appointment_id: int) -> Appointment:
    a = get_owned_appointment(db_session(), current_user().id, appointment_id)
    if not a:
        abort(404, description="Appointment not found")
    return a


@bp.get("/appointments")
@require_feature("appointments")
def appointments_list():
    s = db_session()
    upcoming = (request.args.get("upcoming") or "").strip().lower() in ("1", "true", "yes")
    rows = list_appointments(s, current_user().id, upcoming_only=upcoming)
    return jsonify([serialize_appointment(a) for a in rows])


@bp.post("/appointments")
@require_feature("appointments")
def appointments_create():
    s = db_session()
    payload = json_body()

    errors = validate_appointment_payload(payload)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    try:
        a = create_appointment(s, payload, current_user())
    except LookupError as e:
        return jsonify({"error": str(e)}), 404
    s.commit()
    return jsonify(serialize_appointment(a)), 201


@bp.patch("/appointments/<int:appointment_id>")
@require_feature("appointments")
def appointment_update(appointment_id: int):
    s = db_session()
    a = _owned_appointment_or_404(appointment_id)
    payload = json_body()

    errors = validate_appointment_update(payload)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    update_appointment(s, a, payload)
    s.commit()
    return jsonify(serialize_appointment(a))


@bp.delete("/appointments/<int:appointment_id>")
@require_feature("appointments")
def appointment_delete(appointment_id: int):
    s = db_session()
    a = _owned_appointment_or_404(appointment_id)
    s.delete(a)
    s.commit()
    return jsonify({"message": "Appointment deleted successfully"})
