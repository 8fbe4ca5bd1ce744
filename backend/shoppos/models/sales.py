from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """
    Walk-in customer captured at the till.

    A new row is created for every sale that carries customer details; the
    phone number is the only required field and is not used for de-duplication.
    """
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=False, index=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class Sale(db.Model):
    """
    Completed sale.

    total_cents is computed by the till (after discount); discount_cents is
    what was taken off the line subtotal. Line items snapshot the unit price.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    total_cents = db.Column(db.BigInteger, nullable=False)
    discount_cents = db.Column(db.BigInteger, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem", back_populates="sale", lazy=True, order_by="SaleItem.id", cascade="all, delete-orphan"
    )

    @property
    def subtotal_cents(self) -> int:
        return self.total_cents + (self.discount_cents or 0)

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "cashier": self.user.name if self.user else None,
            "customer_id": self.customer_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "total_cents": self.total_cents,
            "discount_cents": self.discount_cents,
            "subtotal_cents": self.subtotal_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Individual line on a sale. price_cents is the unit price at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.BigInteger, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.line_total_cents,
        }
