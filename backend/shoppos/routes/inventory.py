# Overview: Flask API routes for products and stock; parses input and returns JSON responses.

"""
Inventory routes

SECURITY: All routes require authentication.
- Read operations are open to every signed-in user
- Create/update/delete require the admin role
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import require_auth, require_admin
from ..services import inventory_service
from ..services.inventory_service import ProductNotFoundError, ProductValidationError

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(inventory_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"name", "selling_price_cents", "initial_stock"},
    ignored_fields={"id", "category", "created_at", "updated_at"},
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _product_error(e: ProductValidationError):
    return jsonify({"error": e.error, "message": str(e)}), 400


@inventory_bp.get("")
@require_auth
def list_products_route():
    """
    List products, newest first.

    Query params:
    - category_id: int (optional)
    - search: str (optional) - matches name or barcode
    """
    try:
        products = inventory_service.list_products(
            category_id=request.args.get("category_id", type=int),
            search=request.args.get("search"),
        )
        return jsonify([p.to_dict() for p in products])
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("")
@require_auth
@require_admin("create products")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = inventory_service.create_product(g.auth, patch=patch)
        return jsonify(product.to_dict()), 201
    except ProductValidationError as e:
        return _product_error(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return jsonify(inventory_service.get_product(product_id).to_dict())
    except ProductNotFoundError:
        return jsonify({"error": "Product not found"}), 404


@inventory_bp.put("/<int:product_id>")
@require_auth
@require_admin("update products")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = inventory_service.update_product(g.auth, product_id, patch=patch)
        return jsonify(product.to_dict())
    except ProductNotFoundError:
        return jsonify({"error": "Product not found"}), 404
    except ProductValidationError as e:
        return _product_error(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/<int:product_id>")
@require_auth
@require_admin("delete products")
def delete_product_route(product_id: int):
    try:
        inventory_service.delete_product(g.auth, product_id)
        return jsonify({"message": "Product deleted successfully"})
    except ProductNotFoundError:
        return jsonify({"error": "Product not found"}), 404
    except ProductValidationError as e:
        return _product_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500
