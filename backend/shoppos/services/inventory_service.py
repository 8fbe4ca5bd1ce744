# Overview: Service-layer operations for products and stock levels.

"""
Inventory Service

Products carry their own live stock count. Sales move stock through
decrement_stock/restore_stock only, so every stock change made by the sale
workflow is a single guarded UPDATE statement.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Product, Category, SaleItem
from .permission_service import AuthContext, require_admin

PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "purchase_price_cents", "selling_price_cents",
    "initial_stock", "stock", "category_id", "barcode", "image",
}


class ProductNotFoundError(Exception):
    """Raised when a product is not found."""
    pass


class ProductValidationError(Exception):
    """Raised when product data fails validation or a guarded delete is refused."""
    def __init__(self, message: str, error: str | None = None):
        super().__init__(message)
        # Short headline for clients ("Duplicate product", "Cannot delete product")
        self.error = error or message


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_unique(patch: dict, exclude_id: int | None = None) -> None:
    name = patch.get("name")
    if name:
        query = db.session.query(Product).filter(Product.name == name)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ProductValidationError(
                "A product with this name already exists. Please choose a different name.",
                error="Duplicate product",
            )

    barcode = patch.get("barcode")
    if barcode:
        query = db.session.query(Product).filter(Product.barcode == barcode)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ProductValidationError(
                "A product with this barcode already exists. Please use a different barcode.",
                error="Duplicate barcode",
            )


def _check_category(patch: dict) -> None:
    category_id = patch.get("category_id")
    if category_id is not None and not db.session.get(Category, category_id):
        raise ProductValidationError("Category not found")


def list_products(category_id: int | None = None, search: str | None = None) -> list[Product]:
    """Newest first."""
    query = db.session.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(Product.name.ilike(like), Product.barcode.ilike(like)))
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise ProductNotFoundError("Product not found")
    return product


def create_product(auth: AuthContext, *, patch: dict) -> Product:
    """
    Create product from a validated patch.

    stock defaults to initial_stock when not given.

    Raises:
        ProductValidationError: duplicate name/barcode, unknown category
    """
    require_admin(auth, "create products")
    _check_unique(patch)
    _check_category(patch)

    product = Product()
    apply_product_patch(product, patch)
    if product.initial_stock is None:
        product.initial_stock = patch.get("stock", 0) or 0
    if product.stock is None:
        product.stock = product.initial_stock
    if product.purchase_price_cents is None:
        product.purchase_price_cents = 0

    db.session.add(product)
    db.session.commit()
    current_app.logger.info("Product %s created by %s", product.id, auth.user_id)
    return product


def update_product(auth: AuthContext, product_id: int, *, patch: dict) -> Product:
    require_admin(auth, "update products")
    product = get_product(product_id)
    _check_unique(patch, exclude_id=product_id)
    _check_category(patch)

    apply_product_patch(product, patch)
    db.session.commit()
    return product


def delete_product(auth: AuthContext, product_id: int) -> None:
    """
    Delete a product that has never been sold.

    Raises:
        ProductNotFoundError: unknown id
        ProductValidationError: sale lines reference the product
    """
    require_admin(auth, "delete products")
    product = get_product(product_id)

    in_sales = db.session.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
    if in_sales:
        raise ProductValidationError(
            "This product is associated with existing sales and cannot be deleted. "
            "Consider deactivating it instead.",
            error="Cannot delete product",
        )

    db.session.delete(product)
    db.session.commit()
    current_app.logger.info("Product %s deleted by %s", product_id, auth.user_id)


def _expire_cached(product_id: int) -> None:
    """Drop a stale in-session copy so the next access re-reads stock."""
    product = db.session.identity_map.get(db.session.identity_key(Product, product_id))
    if product is not None:
        db.session.expire(product, ["stock"])


def decrement_stock(product_id: int, quantity: int) -> bool:
    """
    Take quantity off the product's stock iff enough is on hand.

    Single conditional UPDATE; returns False (and changes nothing) when the
    row is missing or stock < quantity. Does not commit.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    _expire_cached(product_id)
    return result.rowcount == 1


def restore_stock(product_id: int, quantity: int) -> None:
    """Put quantity back on the product's stock. Does not commit."""
    db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    _expire_cached(product_id)
