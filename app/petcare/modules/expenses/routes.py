from __future__ import annotations

from flask import Blueprint, abort, jsonify

from app.petcare.db import db_session
from app.petcare.modules.expenses.service import (
    create_expense,
    get_owned_expense,
    list_expenses,
    serialize_expense,
    summarize_expenses,
    validate_expense_payload,
)
from app.petcare.rbac import current_user, require_feature
from app.petcare.utils import json_body

bp = Blueprint("expenses", __name__)


@bp.get("/expenses")
@require_feature("expenses")
def expenses_list():
    s = db_session()
    return jsonify([serialize_expense(e) for e in list_expenses(s, current_user().id)])


@bp.get("/expenses/summary")
@require_feature("expenses")
def expenses_summary():
    s = db_session()
    return jsonify(summarize_expenses(list_expenses(s, current_user().id)))


@bp.post("/expenses")
@require_feature("expenses")
def expenses_create():
    s = db_session()
    payload = json_body()

    errors = validate_expense_payload(payload)
    if errors:
        return jsonify({"error": errors[0], "errors": errors}), 400

    try:
        expense = create_expense(s, payload, current_user())
    except LookupError as e:
        return jsonify({"error": str(e)}), 404
    s.commit()
    return jsonify(serialize_expense(expense)), 201


@bp.delete("/expenses/<int:expense_id>")
@require_feature("expenses")
def expense_delete(expense_id: int):
    s = db_session()
    expense = get_owned_expense(s, current_user().id, expense_id)
    if not expense:
        abort(404, description="Expense not found")
    s.delete(expense)
    s.commit()
    return jsonify({"message": "Expense deleted successfully"})
