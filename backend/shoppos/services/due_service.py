# Overview: Service-layer operations for customer dues and their payments.

"""
Due Service

A due is the unpaid part of one sale. Every change to its totals goes through
ledger_service so paid + pending == total and status stay consistent, and a
payment row and the totals it moves are committed together.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Due, DuePayment, Sale
from ..models.ledger import LEDGER_STATUSES
from ..validation import ValidationError, parse_amount_cents, parse_datetime_field, parse_int
from .concurrency import begin_write, lock_for_update, run_with_retry
from .ledger_service import LedgerError, apply_payment, open_account, retotal
from .permission_service import AuthContext, require_admin


class DueNotFoundError(Exception):
    """Raised when a due (or the sale it is raised against) is not found."""
    pass


class DueValidationError(Exception):
    """Raised when due or payment data fails validation."""
    pass


def _clean_notes(notes) -> str | None:
    if notes is None:
        return None
    return str(notes).strip() or None


def _amount(field: str, value) -> int:
    try:
        return parse_amount_cents(field, value)
    except ValidationError as e:
        raise DueValidationError(str(e))


def payments_sum_cents(due_id: int) -> int:
    return (
        db.session.query(func.coalesce(func.sum(DuePayment.amount_cents), 0))
        .filter(DuePayment.due_id == due_id)
        .scalar()
    )


def list_dues(status: str | None = None, customer_id: int | None = None) -> list[Due]:
    """Newest first, optionally filtered by status and customer."""
    query = db.session.query(Due)
    if status:
        if status not in LEDGER_STATUSES:
            raise DueValidationError("Invalid status. Must be 'pending', 'partial' or 'paid'")
        query = query.filter(Due.status == status)
    if customer_id is not None:
        query = query.filter(Due.customer_id == customer_id)
    return query.order_by(Due.created_at.desc(), Due.id.desc()).all()


def get_due(due_id: int) -> Due:
    due = db.session.get(Due, due_id)
    if not due:
        raise DueNotFoundError("Due not found")
    return due


def create_due(auth: AuthContext, *, sale_id, total_amount_cents, notes=None) -> Due:
    """
    Open a due against a sale. The customer is copied from the sale.

    Raises:
        DueValidationError: missing fields, non-positive total, sale already has a due
        DueNotFoundError: sale does not exist
    """
    require_admin(auth, "create dues")
    if sale_id in (None, "") or total_amount_cents in (None, ""):
        raise DueValidationError("Sale ID and total amount are required")
    total_amount_cents = _amount("total_amount_cents", total_amount_cents)
    try:
        sale_id = parse_int("sale_id", sale_id)
    except ValidationError as e:
        raise DueValidationError(str(e))

    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise DueNotFoundError("Sale not found")
    if sale.due is not None:
        raise DueValidationError("A due already exists for this sale")

    due = Due(sale_id=sale.id, customer_id=sale.customer_id, notes=_clean_notes(notes))
    try:
        open_account(due, total_amount_cents)
    except LedgerError as e:
        raise DueValidationError(str(e))

    db.session.add(due)
    db.session.commit()
    current_app.logger.info("Due %s opened for sale %s by %s", due.id, sale.id, auth.user_id)
    return due


def update_due(auth: AuthContext, due_id: int, *, total_amount_cents=None, notes=None) -> Due:
    """
    Replace notes and optionally re-total.

    A new total re-derives paid from the payment rows and clamps pending at 0.
    """
    require_admin(auth, "update dues")
    if total_amount_cents is not None:
        total_amount_cents = _amount("total_amount_cents", total_amount_cents)

    def _op():
        begin_write()
        due = lock_for_update(db.session.query(Due).filter_by(id=due_id)).first()
        if not due:
            raise DueNotFoundError("Due not found")

        due.notes = _clean_notes(notes)
        if total_amount_cents is not None:
            try:
                retotal(due, total_amount_cents, payments_sum_cents(due.id))
            except LedgerError as e:
                raise DueValidationError(str(e))

        db.session.commit()
        return due

    return run_with_retry(_op)


def delete_due(auth: AuthContext, due_id: int) -> None:
    """Delete a due together with its payments."""
    require_admin(auth, "delete dues")
    due = get_due(due_id)
    db.session.delete(due)
    db.session.commit()
    current_app.logger.info("Due %s deleted by %s", due_id, auth.user_id)


def add_due_payment(
    auth: AuthContext,
    due_id: int,
    *,
    amount_cents,
    payment_date,
    payment_method: str | None = "cash",
    reference: str | None = None,
    notes: str | None = None,
) -> tuple[DuePayment, Due]:
    """
    Record a payment against a due.

    The payment row and the due's new totals are committed together; an
    amount above the pending balance is refused and nothing changes.

    Raises:
        DueValidationError: missing/invalid amount or date, overpayment
        DueNotFoundError: unknown due
    """
    require_admin(auth, "record due payments")
    if amount_cents in (None, "") or payment_date in (None, ""):
        raise DueValidationError("Amount and payment date are required")
    amount_cents = _amount("amount_cents", amount_cents)
    try:
        paid_at = parse_datetime_field("payment_date", payment_date)
    except ValidationError as e:
        raise DueValidationError(str(e))

    def _op():
        begin_write()
        due = lock_for_update(db.session.query(Due).filter_by(id=due_id)).first()
        if not due:
            raise DueNotFoundError("Due not found")

        try:
            apply_payment(due, amount_cents)
        except LedgerError as e:
            raise DueValidationError(str(e))

        payment = DuePayment(
            due_id=due.id,
            amount_cents=amount_cents,
            payment_date=paid_at,
            payment_method=(payment_method or "").strip() or "cash",
            reference=_clean_notes(reference),
            notes=_clean_notes(notes),
        )
        db.session.add(payment)
        db.session.commit()
        return payment, due

    payment, due = run_with_retry(_op)
    current_app.logger.info(
        "Payment %s of %s recorded on due %s (status=%s) by %s",
        payment.id, amount_cents, due.id, due.status, auth.user_id,
    )
    return payment, due
