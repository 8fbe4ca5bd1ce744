from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


class Category(db.Model):
    """Product category. Names are globally unique."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self, product_count: int | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if product_count is not None:
            data["product_count"] = product_count
        return data


class Product(db.Model):
    """
    Sellable product with its current stock.

    stock is the live on-hand count: decremented by sales, restored when a
    sale is deleted. initial_stock records the quantity the product was
    introduced with. Prices are authoritative in cents.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    purchase_price_cents = db.Column(db.BigInteger, nullable=False, default=0)
    selling_price_cents = db.Column(db.BigInteger, nullable=False)

    initial_stock = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    barcode = db.Column(db.String(64), nullable=True, unique=True)
    image = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "purchase_price_cents": self.purchase_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "initial_stock": self.initial_stock,
            "stock": self.stock,
            "category_id": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "barcode": self.barcode,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
