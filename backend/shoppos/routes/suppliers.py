# Overview: Flask API routes for suppliers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import supplier_service
from ..services.supplier_service import SupplierNotFoundError, SupplierValidationError


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


def _fields(data: dict) -> dict:
    return {
        "name": data.get("name"),
        "email": data.get("email"),
        "phone": data.get("phone"),
        "address": data.get("address"),
        "contact_person": data.get("contact_person"),
    }


@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    """Suppliers with their purchase summary (count, total, paid, pending)."""
    try:
        suppliers = supplier_service.list_suppliers()
        return jsonify([s.to_dict(include_summary=True) for s in suppliers])
    except Exception:
        current_app.logger.exception("Failed to list suppliers")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.post("")
@require_auth
@require_admin("create suppliers")
def create_supplier_route():
    data = request.get_json(silent=True) or {}
    try:
        supplier = supplier_service.create_supplier(g.auth, **_fields(data))
        return jsonify(supplier.to_dict(include_summary=True)), 201
    except SupplierValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(supplier_id)
        data = supplier.to_dict(include_summary=True)
        data["purchases"] = [p.to_dict() for p in supplier.purchases]
        return jsonify(data)
    except SupplierNotFoundError:
        return jsonify({"error": "Supplier not found"}), 404


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_admin("update suppliers")
def update_supplier_route(supplier_id: int):
    data = request.get_json(silent=True) or {}
    try:
        supplier = supplier_service.update_supplier(g.auth, supplier_id, **_fields(data))
        return jsonify(supplier.to_dict(include_summary=True))
    except SupplierNotFoundError:
        return jsonify({"error": "Supplier not found"}), 404
    except SupplierValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_admin("delete suppliers")
def delete_supplier_route(supplier_id: int):
    try:
        supplier_service.delete_supplier(g.auth, supplier_id)
        return jsonify({"message": "Supplier deleted successfully"})
    except SupplierNotFoundError:
        return jsonify({"error": "Supplier not found"}), 404
    except SupplierValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete supplier")
        return jsonify({"error": "Internal server error"}), 500
