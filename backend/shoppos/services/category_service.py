# Overview: Service-layer operations for product categories.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Category, Product
from .permission_service import AuthContext, require_admin


class CategoryNotFoundError(Exception):
    """Raised when a category is not found."""
    pass


class CategoryValidationError(Exception):
    """Raised when category data fails validation or a guarded delete is refused."""
    pass


def _clean_name(name) -> str:
    if not name or not isinstance(name, str) or not name.strip():
        raise CategoryValidationError("Category name is required")
    return name.strip()


def _clean_description(description) -> str | None:
    if description is None:
        return None
    return str(description).strip() or None


def _ensure_name_free(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise CategoryValidationError("Category with this name already exists")


def product_count(category_id: int) -> int:
    return db.session.query(func.count(Product.id)).filter(Product.category_id == category_id).scalar() or 0


def list_categories() -> list[tuple[Category, int]]:
    """Categories ordered by name, each with its product count."""
    counts = dict(
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.category_id.isnot(None))
        .group_by(Product.category_id)
        .all()
    )
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [(c, counts.get(c.id, 0)) for c in categories]


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if not category:
        raise CategoryNotFoundError("Category not found")
    return category


def create_category(auth: AuthContext, *, name, description=None) -> Category:
    require_admin(auth, "create categories")
    name = _clean_name(name)
    _ensure_name_free(name)

    category = Category(name=name, description=_clean_description(description))
    db.session.add(category)
    db.session.commit()
    return category


def update_category(auth: AuthContext, category_id: int, *, name, description=None) -> Category:
    require_admin(auth, "update categories")
    category = get_category(category_id)
    name = _clean_name(name)
    _ensure_name_free(name, exclude_id=category_id)

    category.name = name
    category.description = _clean_description(description)
    db.session.commit()
    return category


def delete_category(auth: AuthContext, category_id: int) -> None:
    """
    Delete an empty category.

    Raises:
        CategoryNotFoundError: unknown id
        CategoryValidationError: products still reference the category
    """
    require_admin(auth, "delete categories")
    category = get_category(category_id)

    count = product_count(category_id)
    if count > 0:
        raise CategoryValidationError(
            f"This category has {count} product(s). "
            "Please reassign or delete the products first."
        )

    db.session.delete(category)
    db.session.commit()
    current_app.logger.info("Category %s deleted by %s", category_id, auth.user_id)
