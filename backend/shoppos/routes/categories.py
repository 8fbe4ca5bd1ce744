# Overview: Flask API routes for product categories; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import category_service
from ..services.category_service import CategoryNotFoundError, CategoryValidationError


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    """Categories by name, each with product_count."""
    try:
        rows = category_service.list_categories()
        return jsonify([c.to_dict(product_count=count) for c, count in rows])
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.post("")
@require_auth
@require_admin("create categories")
def create_category_route():
    data = request.get_json(silent=True) or {}
    try:
        category = category_service.create_category(
            g.auth,
            name=data.get("name"),
            description=data.get("description"),
        )
        return jsonify(category.to_dict(product_count=0)), 201
    except CategoryValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    try:
        category = category_service.get_category(category_id)
        return jsonify(category.to_dict(product_count=category_service.product_count(category_id)))
    except CategoryNotFoundError:
        return jsonify({"error": "Category not found"}), 404


@categories_bp.put("/<int:category_id>")
@require_auth
@require_admin("update categories")
def update_category_route(category_id: int):
    data = request.get_json(silent=True) or {}
    try:
        category = category_service.update_category(
            g.auth,
            category_id,
            name=data.get("name"),
            description=data.get("description"),
        )
        return jsonify(category.to_dict(product_count=category_service.product_count(category_id)))
    except CategoryNotFoundError:
        return jsonify({"error": "Category not found"}), 404
    except CategoryValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_admin("delete categories")
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(g.auth, category_id)
        return jsonify({"message": "Category deleted successfully"})
    except CategoryNotFoundError:
        return jsonify({"error": "Category not found"}), 404
    except CategoryValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500
