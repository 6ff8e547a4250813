from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from app.petcare.modules.expenses.models import Expense
from app.petcare.modules.pets.service import get_owned_pet
from app.petcare.utils import iso, parse_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.petcare.models import User


VALID_CATEGORIES = ("food", "vet", "grooming", "toys", "insurance", "medication", "training", "other")


def parse_amount(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount.quantize(Decimal("0.01"))


def serialize_expense(e: Expense) -> dict[str, Any]:
    return {
        "id": e.id,
        "title": e.title,
        "amount": float(e.amount),
        "category": e.category,
        "date": iso(e.date),
        "description": e.description,
        "petId": e.pet_id,
        "pet": {"name": e.pet.name, "species": e.pet.species} if e.pet else None,
    }


def validate_expense_payload(payload: dict) -> list[str]:
    errors = []
    if not str(payload.get("title") or "").strip():
        errors.append("Title is required.")
    if parse_amount(payload.get("amount")) is None:
        errors.append("Amount must be a valid positive number.")
    category = str(payload.get("category") or "").strip().lower()
    if not category:
        errors.append("Category is required.")
    elif category not in VALID_CATEGORIES:
        errors.append(f"Invalid category. Must be one of: {', '.join(VALID_CATEGORIES)}")
    if parse_date(payload.get("date")) is None:
        errors.append("Date is required (YYYY-MM-DD).")
    return errors


def list_expenses(s: "Session", user_id: int) -> list[Expense]:
    return (
        s.query(Expense)
        .filter(Expense.user_id == user_id)
        .order_by(Expense.date.desc(), Expense.id.desc())
        .all()
    )


def get_owned_expense(s: "Session", user_id: int, expense_id: int) -> Expense | None:
    return s.query(Expense).filter(Expense.id == expense_id, Expense.user_id == user_id).one_or_none()


def create_expense(s: "Session", payload: dict, user: "User") -> Expense:
    """Create an expense. Raises LookupError if petId is not one of the user's pets."""
    pet = None
    if payload.get("petId") not in (None, ""):
        pet = get_owned_pet(s, user.id, payload.get("petId"))
        if pet is None:
            raise LookupError("Pet not found or access denied")

    expense = Expense(
        user_id=user.id,
        pet_id=pet.id if pet else None,
        title=str(payload.get("title")).strip(),
        amount=parse_amount(payload.get("amount")),
        category=str(payload.get("category")).strip().lower(),
        date=parse_date(payload.get("date")),
        description=str(payload.get("description") or "").strip() or None,
        created_at=datetime.utcnow(),
    )
    s.add(expense)
    s.flush()
    return expense


def summarize_expenses(expenses: list[Expense]) -> dict[str, Any]:
    """Totals overall, per category and per month (YYYY-MM)."""
    total = Decimal("0")
    by_category: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    by_month: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for e in expenses:
        total += e.amount
        by_category[e.category] += e.amount
        by_month[e.date.strftime("%Y-%m")] += e.amount
    return {
        "total": float(total),
        "count": len(expenses),
        "byCategory": {k: float(v) for k, v in sorted(by_category.items())},
        "byMonth": {k: float(v) for k, v in sorted(by_month.items())},
    }
