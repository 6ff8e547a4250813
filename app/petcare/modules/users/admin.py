from __future__ import annotations

from flask import Blueprint, abort, jsonify

from app.petcare.db import db_session
from app.petcare.models import User
from app.petcare.modules.pets.service import active_pet_count
from app.petcare.modules.users.service import (
    admin_stats,
    delete_user,
    list_users_with_pet_counts,
    serialize_user,
    update_user,
    validate_user_update,
)
from app.petcare.rbac import current_user, require_admin
from app.petcare.utils import json_body

bp = Blueprint("admin_users", __name__)


def _user_or_404(user_id: int) -> User:
    u = db_session().get(User, user_id)
    if not u:
        abort(404, description="User not found")
    return u


@bp.get("/users")
@require_admin
def users_list():
    s = db_session()
    return jsonify([serialize_user(u, n) for u, n in list_users_with_pet_counts(s)])


@bp.patch("/users/<int:user_id>")
@require_admin
def user_update(user_id: int):
    s = db_session()
    target = _user_or_404(user_id)
    payload = json_body()

    errors = validate_user_update(payload)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    update_user(s, target, payload, current_user())
    s.commit()
    return jsonify(serialize_user(target, active_pet_count(s, target.id)))


@bp.delete("/users/<int:user_id>")
@require_admin
def user_delete(user_id: int):
    s = db_session()
    actor = current_user()
    if actor.id == user_id:
        return jsonify({"error": "Cannot delete your own account"}), 400
    target = _user_or_404(user_id)
    delete_user(s, target, actor)
    s.commit()
    return jsonify({"message": "User deleted successfully"})


@bp.get("/stats")
@require_admin
def stats():
    return jsonify(admin_stats(db_session()))
