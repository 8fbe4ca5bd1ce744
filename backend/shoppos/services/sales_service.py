# Overview: Service-layer operations for sales; atomic checkout and reversal.

"""
Sales Service

A sale is written in one unit of work: optional customer, the sale row, its
lines, and the stock decrements. Deleting a sale is the mirror image: stock
goes back, lines go, the sale goes, all in one commit.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Sale, SaleItem, Product, Customer
from ..validation import ValidationError, parse_int, MAX_AMOUNT_CENTS
from .concurrency import begin_write, lock_for_update, run_with_retry
from .inventory_service import decrement_stock, restore_stock
from .permission_service import AuthContext, require_admin


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(Exception):
    """Raised when a sale is not found."""
    pass


def _clean_items(items) -> list[dict]:
    if not items or not isinstance(items, list):
        raise SaleError("No items in sale")

    cleaned = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise SaleError("Invalid sale item", details={"index": idx})
        try:
            product_id = parse_int("product_id", item.get("product_id"))
            quantity = parse_int("quantity", item.get("quantity"))
            price_cents = parse_int("price_cents", item.get("price_cents"))
        except ValidationError as e:
            raise SaleError(str(e), details={"index": idx})
        if quantity <= 0:
            raise SaleError("quantity must be greater than 0", details={"index": idx})
        if price_cents < 0 or price_cents > MAX_AMOUNT_CENTS:
            raise SaleError("Invalid item price", details={"index": idx})
        cleaned.append({"product_id": product_id, "quantity": quantity, "price_cents": price_cents})
    return cleaned


def _clean_customer(customer) -> dict | None:
    if customer is None:
        return None
    if not isinstance(customer, dict):
        raise SaleError("Invalid customer")

    phone = customer.get("phone")
    if not phone or not isinstance(phone, str) or not phone.strip():
        raise SaleError("Customer phone is required")

    def _opt(key):
        value = customer.get(key)
        if value is None:
            return None
        return str(value).strip() or None

    return {"phone": phone.strip(), "name": _opt("name"), "address": _opt("address")}


def _check_stock(items: list[dict]) -> dict[int, Product]:
    """
    Load every product in the cart and verify stock for the summed quantity.
    Nothing is written here.
    """
    totals: dict[int, int] = {}
    for item in items:
        totals[item["product_id"]] = totals.get(item["product_id"], 0) + item["quantity"]

    products: dict[int, Product] = {}
    for product_id, qty in totals.items():
        product = db.session.get(Product, product_id)
        if not product:
            raise SaleError(f"Product not found: {product_id}", details={"product_id": product_id})
        if product.stock < qty:
            raise SaleError(
                f"Insufficient stock for {product.name}",
                details={
                    "product_id": product_id,
                    "requested_quantity": qty,
                    "on_hand": product.stock,
                },
            )
        products[product_id] = product
    return products


def create_sale(
    auth: AuthContext,
    items,
    total_cents,
    discount_cents=0,
    customer=None,
) -> Sale:
    """
    Record a completed sale and take its quantities off stock.

    All input is validated and every line's stock checked before anything is
    written. The decrement itself is conditional on stock, so a competing
    sale that empties a shelf between the check and the write aborts this
    one with the same insufficient-stock error instead of going negative.

    Raises:
        SaleError: empty cart, bad amounts, unknown product, insufficient stock,
            customer without phone
    """
    items = _clean_items(items)

    try:
        total_cents = parse_int("total_cents", total_cents)
    except ValidationError:
        raise SaleError("Invalid total amount")
    if total_cents <= 0 or total_cents > MAX_AMOUNT_CENTS:
        raise SaleError("Invalid total amount")

    if discount_cents is None:
        discount_cents = 0
    try:
        discount_cents = parse_int("discount_cents", discount_cents)
    except ValidationError:
        raise SaleError("Invalid discount amount")
    if discount_cents < 0 or discount_cents > MAX_AMOUNT_CENTS:
        raise SaleError("Invalid discount amount")

    customer = _clean_customer(customer)

    def _op():
        begin_write()
        products = _check_stock(items)

        customer_id = None
        if customer is not None:
            row = Customer(**customer)
            db.session.add(row)
            db.session.flush()
            customer_id = row.id

        sale = Sale(
            user_id=auth.user_id,
            customer_id=customer_id,
            total_cents=total_cents,
            discount_cents=discount_cents,
        )
        db.session.add(sale)
        db.session.flush()

        for item in items:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=item["product_id"],
                quantity=item["quantity"],
                price_cents=item["price_cents"],
            ))
            if not decrement_stock(item["product_id"], item["quantity"]):
                product = products[item["product_id"]]
                raise SaleError(
                    f"Insufficient stock for {product.name}",
                    details={"product_id": product.id, "requested_quantity": item["quantity"]},
                )

        db.session.commit()
        return sale

    sale = run_with_retry(_op)
    current_app.logger.info(
        "Sale %s created by user %s (%s items, total_cents=%s)",
        sale.id, auth.user_id, len(items), sale.total_cents,
    )
    return sale


def list_sales() -> list[Sale]:
    """Newest first."""
    return db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise SaleNotFoundError("Sale not found")
    return sale


def delete_sale(auth: AuthContext, sale_id: int) -> None:
    """
    Delete a sale and put its quantities back on stock.

    A sale that still has a due is refused; the due must be removed first.

    Raises:
        PermissionDeniedError: caller is not an admin
        SaleNotFoundError: unknown id (nothing changes)
        SaleError: a due references the sale
    """
    require_admin(auth, "delete sales")

    def _op():
        begin_write()
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise SaleNotFoundError("Sale not found")
        if sale.due is not None:
            raise SaleError(
                "Sale has an associated due; delete the due first",
                details={"due_id": sale.due.id},
            )

        for item in sale.items:
            restore_stock(item.product_id, item.quantity)

        # Lines go with the sale (delete-orphan cascade), children first
        db.session.delete(sale)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Sale %s deleted by user %s, stock restored", sale_id, auth.user_id)
