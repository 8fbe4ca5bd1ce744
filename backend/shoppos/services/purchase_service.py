# Overview: Service-layer operations for supplier purchases and their payments.

"""
Purchase Service

Purchases mirror dues: same balance columns, same payment rules, same status
derivation via ledger_service. Updating a purchase replaces its header and
re-totals against the payments already recorded.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Purchase, PurchasePayment, Supplier
from ..validation import ValidationError, parse_amount_cents, parse_datetime_field, parse_int
from shoppos.time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_with_retry
from .ledger_service import LedgerError, apply_payment, open_account, retotal
from .permission_service import AuthContext, require_admin


class PurchaseNotFoundError(Exception):
    """Raised when a purchase is not found."""
    pass


class PurchaseValidationError(Exception):
    """Raised when purchase or payment data fails validation."""
    pass


def _opt(value) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _header(supplier_id, total_amount_cents, purchase_date) -> tuple[Supplier, int, object]:
    if supplier_id in (None, "") or total_amount_cents in (None, ""):
        raise PurchaseValidationError("Supplier and total amount are required")
    try:
        supplier_id = parse_int("supplier_id", supplier_id)
        total = parse_amount_cents("total_amount_cents", total_amount_cents)
        purchased_at = parse_datetime_field("purchase_date", purchase_date) if purchase_date else utcnow()
    except ValidationError as e:
        raise PurchaseValidationError(str(e))

    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        raise PurchaseValidationError("Supplier not found")
    return supplier, total, purchased_at


def payments_sum_cents(purchase_id: int) -> int:
    return (
        db.session.query(func.coalesce(func.sum(PurchasePayment.amount_cents), 0))
        .filter(PurchasePayment.purchase_id == purchase_id)
        .scalar()
    )


def list_purchases(supplier_id: int | None = None) -> list[Purchase]:
    """Most recent purchase date first."""
    query = db.session.query(Purchase)
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)
    return query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()).all()


def get_purchase(purchase_id: int) -> Purchase:
    purchase = db.session.get(Purchase, purchase_id)
    if not purchase:
        raise PurchaseNotFoundError("Purchase not found")
    return purchase


def create_purchase(
    auth: AuthContext,
    *,
    supplier_id,
    total_amount_cents,
    purchase_date=None,
    invoice_number: str | None = None,
    notes: str | None = None,
) -> Purchase:
    """
    Record a supplier invoice with nothing paid yet.

    Raises:
        PurchaseValidationError: missing supplier/total, unknown supplier, bad amount or date
    """
    require_admin(auth, "create purchases")
    supplier, total, purchased_at = _header(supplier_id, total_amount_cents, purchase_date)

    purchase = Purchase(
        supplier_id=supplier.id,
        purchase_date=purchased_at,
        invoice_number=_opt(invoice_number),
        notes=_opt(notes),
    )
    try:
        open_account(purchase, total)
    except LedgerError as e:
        raise PurchaseValidationError(str(e))

    db.session.add(purchase)
    db.session.commit()
    current_app.logger.info("Purchase %s created for supplier %s by %s", purchase.id, supplier.id, auth.user_id)
    return purchase


def update_purchase(
    auth: AuthContext,
    purchase_id: int,
    *,
    supplier_id,
    total_amount_cents,
    purchase_date=None,
    invoice_number: str | None = None,
    notes: str | None = None,
) -> Purchase:
    require_admin(auth, "update purchases")
    supplier, total, purchased_at = _header(supplier_id, total_amount_cents, purchase_date)

    def _op():
        begin_write()
        purchase = lock_for_update(db.session.query(Purchase).filter_by(id=purchase_id)).first()
        if not purchase:
            raise PurchaseNotFoundError("Purchase not found")

        purchase.supplier_id = supplier.id
        purchase.purchase_date = purchased_at
        purchase.invoice_number = _opt(invoice_number)
        purchase.notes = _opt(notes)
        try:
            retotal(purchase, total, payments_sum_cents(purchase.id))
        except LedgerError as e:
            raise PurchaseValidationError(str(e))

        db.session.commit()
        return purchase

    return run_with_retry(_op)


def delete_purchase(auth: AuthContext, purchase_id: int) -> None:
    """Delete a purchase together with its payments."""
    require_admin(auth, "delete purchases")
    purchase = get_purchase(purchase_id)
    db.session.delete(purchase)
    db.session.commit()
    current_app.logger.info("Purchase %s deleted by %s", purchase_id, auth.user_id)


def list_purchase_payments(purchase_id: int) -> list[PurchasePayment]:
    get_purchase(purchase_id)
    return (
        db.session.query(PurchasePayment)
        .filter(PurchasePayment.purchase_id == purchase_id)
        .order_by(PurchasePayment.payment_date.desc(), PurchasePayment.id.desc())
        .all()
    )


def add_purchase_payment(
    auth: AuthContext,
    purchase_id: int,
    *,
    amount_cents,
    payment_date=None,
    payment_method: str | None = "cash",
    reference: str | None = None,
    notes: str | None = None,
) -> tuple[PurchasePayment, Purchase]:
    """
    Record a payment to a supplier. payment_date defaults to now.

    Raises:
        PurchaseValidationError: invalid amount, overpayment
        PurchaseNotFoundError: unknown purchase
    """
    require_admin(auth, "record purchase payments")
    if amount_cents in (None, ""):
        raise PurchaseValidationError("Valid payment amount is required")
    try:
        amount_cents = parse_amount_cents("amount_cents", amount_cents)
        paid_at = parse_datetime_field("payment_date", payment_date) if payment_date else utcnow()
    except ValidationError as e:
        raise PurchaseValidationError(str(e))

    def _op():
        begin_write()
        purchase = lock_for_update(db.session.query(Purchase).filter_by(id=purchase_id)).first()
        if not purchase:
            raise PurchaseNotFoundError("Purchase not found")

        try:
            apply_payment(purchase, amount_cents)
        except LedgerError as e:
            raise PurchaseValidationError(str(e))

        payment = PurchasePayment(
            purchase_id=purchase.id,
            amount_cents=amount_cents,
            payment_date=paid_at,
            payment_method=(payment_method or "").strip() or "cash",
            reference=_opt(reference),
            notes=_opt(notes),
        )
        db.session.add(payment)
        db.session.commit()
        return payment, purchase

    payment, purchase = run_with_retry(_op)
    current_app.logger.info(
        "Payment %s of %s recorded on purchase %s (status=%s) by %s",
        payment.id, amount_cents, purchase.id, purchase.status, auth.user_id,
    )
    return payment, purchase
