from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z, utcnow

STATUS_PENDING = "pending"
STATUS_PARTIAL = "partial"
STATUS_PAID = "paid"
LEDGER_STATUSES = (STATUS_PENDING, STATUS_PARTIAL, STATUS_PAID)


class Due(db.Model):
    """
    Outstanding customer balance for one sale.

    Invariants (kept by ledger_service):
    - paid_amount_cents + pending_amount_cents == total_amount_cents
      (pending is clamped at 0 if the total is lowered below what was paid)
    - paid_amount_cents == sum of payments
    - status == derive_status(paid, pending)
    """
    __tablename__ = "dues"
    __table_args__ = (
        db.UniqueConstraint("sale_id", name="uq_dues_sale"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    total_amount_cents = db.Column(db.BigInteger, nullable=False)
    paid_amount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    pending_amount_cents = db.Column(db.BigInteger, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    sale = db.relationship("Sale", backref=db.backref("due", uselist=False, lazy=True))
    customer = db.relationship("Customer")
    payments = db.relationship(
        "DuePayment",
        back_populates="due",
        cascade="all, delete-orphan",
        order_by=lambda: DuePayment.payment_date.desc(),
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_sale: bool = True) -> dict:
        data = {
            "id": self.id,
            "sale_id": self.sale_id,
            "customer_id": self.customer_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "total_amount_cents": self.total_amount_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "pending_amount_cents": self.pending_amount_cents,
            "status": self.status,
            "notes": self.notes,
            "payments": [p.to_dict() for p in self.payments],
            "payment_count": len(self.payments),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_sale and self.sale is not None:
            data["sale"] = self.sale.to_dict()
        return data


class DuePayment(db.Model):
    """Append-only payment against a Due."""
    __tablename__ = "due_payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    due_id = db.Column(db.Integer, db.ForeignKey("dues.id"), nullable=False, index=True)

    amount_cents = db.Column(db.BigInteger, nullable=False)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default="cash")
    reference = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    due = db.relationship("Due", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "due_id": self.due_id,
            "amount_cents": self.amount_cents,
            "payment_date": to_utc_z(self.payment_date),
            "payment_method": self.payment_method,
            "reference": self.reference,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Supplier(db.Model):
    """Vendor we buy stock from. Owns purchases."""
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    contact_person = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def summary(self) -> dict:
        purchases = self.purchases
        return {
            "total_purchases": len(purchases),
            "total_amount_cents": sum(p.total_amount_cents for p in purchases),
            "total_paid_cents": sum(p.paid_amount_cents for p in purchases),
            "total_pending_cents": sum(p.pending_amount_cents for p in purchases),
        }

    def to_dict(self, include_summary: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "contact_person": self.contact_person,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_summary:
            data["summary"] = self.summary()
        return data


class Purchase(db.Model):
    """
    Supplier invoice. Same balance invariants as Due.
    """
    __tablename__ = "purchases"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    total_amount_cents = db.Column(db.BigInteger, nullable=False)
    paid_amount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    pending_amount_cents = db.Column(db.BigInteger, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)
    invoice_number = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True, order_by=lambda: Purchase.purchase_date.desc()))
    payments = db.relationship(
        "PurchasePayment",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by=lambda: PurchasePayment.payment_date.desc(),
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "supplier": {
                "id": self.supplier.id,
                "name": self.supplier.name,
                "email": self.supplier.email,
                "phone": self.supplier.phone,
            } if self.supplier else None,
            "purchase_date": to_utc_z(self.purchase_date),
            "total_amount_cents": self.total_amount_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "pending_amount_cents": self.pending_amount_cents,
            "status": self.status,
            "invoice_number": self.invoice_number,
            "notes": self.notes,
            "payments": [p.to_dict() for p in self.payments],
            "payment_count": len(self.payments),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchasePayment(db.Model):
    """Append-only payment against a Purchase."""
    __tablename__ = "purchase_payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)

    amount_cents = db.Column(db.BigInteger, nullable=False)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default="cash")
    reference = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    purchase = db.relationship("Purchase", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "amount_cents": self.amount_cents,
            "payment_date": to_utc_z(self.payment_date),
            "payment_method": self.payment_method,
            "reference": self.reference,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
