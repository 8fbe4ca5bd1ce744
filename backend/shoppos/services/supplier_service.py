# Overview: Service-layer operations for suppliers.

"""
Supplier Service

Suppliers own purchases. A supplier with purchase history cannot be removed;
its purchases have to be deleted first.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Supplier, Purchase
from .permission_service import AuthContext, require_admin


class SupplierNotFoundError(Exception):
    """Raised when a supplier is not found."""
    pass


class SupplierValidationError(Exception):
    """Raised when supplier data fails validation."""
    pass


def _opt(value) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _fields(
    name: str | None,
    email: str | None,
    phone: str | None,
    address: str | None,
    contact_person: str | None,
) -> dict:
    if not name or not str(name).strip():
        raise SupplierValidationError("Supplier name is required")
    email = _opt(email)
    return {
        "name": str(name).strip(),
        "email": email.lower() if email else None,
        "phone": _opt(phone),
        "address": _opt(address),
        "contact_person": _opt(contact_person),
    }


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        raise SupplierNotFoundError("Supplier not found")
    return supplier


def create_supplier(
    auth: AuthContext,
    *,
    name: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    contact_person: str | None = None,
) -> Supplier:
    """
    Create a new supplier.

    Raises:
        SupplierValidationError: name missing
    """
    require_admin(auth, "create suppliers")
    supplier = Supplier(**_fields(name, email, phone, address, contact_person))
    db.session.add(supplier)
    db.session.commit()
    return supplier


def update_supplier(
    auth: AuthContext,
    supplier_id: int,
    *,
    name: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    contact_person: str | None = None,
) -> Supplier:
    require_admin(auth, "update suppliers")
    supplier = get_supplier(supplier_id)
    for key, value in _fields(name, email, phone, address, contact_person).items():
        setattr(supplier, key, value)
    db.session.commit()
    return supplier


def delete_supplier(auth: AuthContext, supplier_id: int) -> None:
    require_admin(auth, "delete suppliers")
    supplier = get_supplier(supplier_id)

    has_purchases = db.session.query(Purchase.id).filter(Purchase.supplier_id == supplier_id).first()
    if has_purchases:
        raise SupplierValidationError(
            "Cannot delete supplier with associated purchases. "
            "Please delete the purchases first."
        )

    db.session.delete(supplier)
    db.session.commit()
    current_app.logger.info("Supplier %s deleted by %s", supplier_id, auth.user_id)
