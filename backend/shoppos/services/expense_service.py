# Overview: Service-layer operations for operating expenses.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Expense
from ..validation import ValidationError, parse_amount_cents, parse_datetime_field
from shoppos.time_utils import utcnow
from .permission_service import AuthContext


class ExpenseNotFoundError(Exception):
    """Raised when an expense is not found."""
    pass


class ExpenseValidationError(Exception):
    """Raised when expense data fails validation."""
    pass


def _fields(amount_cents, category, description, date) -> dict:
    if amount_cents in (None, "") or not category or not str(category).strip():
        raise ExpenseValidationError("Missing required fields")
    try:
        amount = parse_amount_cents("amount_cents", amount_cents)
        spent_at = parse_datetime_field("date", date) if date else utcnow()
    except ValidationError as e:
        raise ExpenseValidationError(str(e))
    return {
        "amount_cents": amount,
        "category": str(category).strip(),
        "description": (str(description).strip() or None) if description is not None else None,
        "date": spent_at,
    }


def list_expenses() -> list[Expense]:
    return db.session.query(Expense).order_by(Expense.created_at.desc(), Expense.id.desc()).all()


def get_expense(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if not expense:
        raise ExpenseNotFoundError("Expense not found")
    return expense


def create_expense(auth: AuthContext, *, amount_cents, category, description=None, date=None) -> Expense:
    """Record an expense against the acting user. date defaults to now."""
    expense = Expense(user_id=auth.user_id, **_fields(amount_cents, category, description, date))
    db.session.add(expense)
    db.session.commit()
    current_app.logger.info("Expense %s recorded by %s", expense.id, auth.user_id)
    return expense


def update_expense(auth: AuthContext, expense_id: int, *, amount_cents, category, description=None, date=None) -> Expense:
    expense = get_expense(expense_id)
    for key, value in _fields(amount_cents, category, description, date).items():
        setattr(expense, key, value)
    db.session.commit()
    return expense


def delete_expense(auth: AuthContext, expense_id: int) -> None:
    expense = get_expense(expense_id)
    db.session.delete(expense)
    db.session.commit()
    current_app.logger.info("Expense %s deleted by %s", expense_id, auth.user_id)
