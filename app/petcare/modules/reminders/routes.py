from __future__ import annotations

from flask import Blueprint, abort, jsonify, request

from app.petcare.db import db_session
from app.petcare.modules.reminders.models import Reminder
from app.petcare.modules.reminders.service import (
    STATUS_FILTERS,
    create_reminder,
    due_for_notification,
    get_owned_reminder,
    list_reminders,
    serialize_reminder,
    set_completed,
    validate_reminder_payload,
)
from app.petcare.rbac import current_user, require_feature
from app.petcare.utils import json_body

bp = Blueprint("reminders", __name__)


def _owned_reminder_or_404(reminder_id: int) -> Reminder:
    r = get_owned_reminder(db_session(), current_user().id, reminder_id)
    if not r:
        abort(404, description="Reminder not found")
    return r


@bp.get("/reminders")
@require_feature("reminders")
def reminders_list():
    s = db_session()
    status = (request.args.get("status") or "active").strip().lower()
    if status not in STATUS_FILTERS:
        return jsonify({"error": f"Invalid status. Must be one of: {', '.join(STATUS_FILTERS)}"}), 400
    return jsonify([serialize_reminder(r) for r in list_reminders(s, current_user().id, status)])


@bp.get("/reminders/due")
@require_feature("reminders")
def reminders_due():
    s = db_session()
    return jsonify([serialize_reminder(r) for r in due_for_notification(s, current_user().id)])


@bp.post("/reminders")
@require_feature("reminders")
def reminders_create():
    s = db_session()
    payload = json_body()

    errors = validate_reminder_payload(payload)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    try:
        r = create_reminder(s, payload, current_user())
    except LookupError as e:
        return jsonify({"error": str(e)}), 404
    s.commit()
    return jsonify(serialize_reminder(r)), 201


@bp.patch("/reminders/<int:reminder_id>")
@require_feature("reminders")
def reminder_update(reminder_id: int):
    s = db_session()
    r = _owned_reminder_or_404(reminder_id)
    completed = json_body().get("isCompleted", True)
    if not isinstance(completed, bool):
        return jsonify({"error": "isCompleted must be a boolean"}), 400
    set_completed(r, completed)
    s.commit()
    return jsonify(serialize_reminder(r))


@bp.delete("/reminders/<int:reminder_id>")
@require_feature("reminders")
def reminder_delete(reminder_id: int):
    s = db_session()
    r = _owned_reminder_or_404(reminder_id)
    s.delete(r)
    s.commit()
    return jsonify({"message": "Reminder deleted successfully"})
