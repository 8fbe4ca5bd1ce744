# Overview: Flask API routes for supplier purchases and payments; parses input and returns JSON responses.

"""
Purchase routes

Reads are open to every signed-in user; creating, editing, deleting and
paying purchases require the admin role.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import purchase_service
from ..services.purchase_service import PurchaseNotFoundError, PurchaseValidationError
from ..validation import ValidationError, parse_money


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


def _fields(data: dict) -> dict:
    return {
        "supplier_id": data.get("supplier_id"),
        "total_amount_cents": data.get("total_amount_cents"),
        "purchase_date": data.get("purchase_date"),
        "invoice_number": data.get("invoice_number"),
        "notes": data.get("notes"),
    }


@purchases_bp.get("")
@require_auth
def list_purchases_route():
    """Query params: supplier_id (optional)."""
    try:
        purchases = purchase_service.list_purchases(
            supplier_id=request.args.get("supplier_id", type=int),
        )
        return jsonify([p.to_dict() for p in purchases])
    except Exception:
        current_app.logger.exception("Failed to list purchases")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.post("")
@require_auth
@require_admin("create purchases")
def create_purchase_route():
    data = request.get_json(silent=True) or {}
    try:
        purchase = purchase_service.create_purchase(g.auth, **_fields(data))
        return jsonify(purchase.to_dict()), 201
    except PurchaseValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/<int:purchase_id>")
@require_auth
def get_purchase_route(purchase_id: int):
    try:
        return jsonify(purchase_service.get_purchase(purchase_id).to_dict())
    except PurchaseNotFoundError:
        return jsonify({"error": "Purchase not found"}), 404


@purchases_bp.put("/<int:purchase_id>")
@require_auth
@require_admin("update purchases")
def update_purchase_route(purchase_id: int):
    data = request.get_json(silent=True) or {}
    try:
        purchase = purchase_service.update_purchase(g.auth, purchase_id, **_fields(data))
        return jsonify(purchase.to_dict())
    except PurchaseNotFoundError:
        return jsonify({"error": "Purchase not found"}), 404
    except PurchaseValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.delete("/<int:purchase_id>")
@require_auth
@require_admin("delete purchases")
def delete_purchase_route(purchase_id: int):
    try:
        purchase_service.delete_purchase(g.auth, purchase_id)
        return jsonify({"message": "Purchase deleted successfully"})
    except PurchaseNotFoundError:
        return jsonify({"error": "Purchase not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/<int:purchase_id>/payments")
@require_auth
def list_purchase_payments_route(purchase_id: int):
    try:
        payments = purchase_service.list_purchase_payments(purchase_id)
        return jsonify([p.to_dict() for p in payments])
    except PurchaseNotFoundError:
        return jsonify({"error": "Purchase not found"}), 404


@purchases_bp.post("/<int:purchase_id>/payments")
@require_auth
@require_admin("record purchase payments")
def add_purchase_payment_route(purchase_id: int):
    """
    Request body:
    {
        "amount": 400,                  // required, Taka, <= pending balance
        "paymentDate": "2025-03-01",    // optional, defaults to now
        "paymentMethod": "cash",        // optional
        "reference": "...",             // optional
        "notes": "..."                  // optional
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        payment, purchase = purchase_service.add_purchase_payment(
            g.auth,
            purchase_id,
            amount_cents=parse_money("amount", data.get("amount")),
            payment_date=data.get("paymentDate"),
            payment_method=data.get("paymentMethod"),
            reference=data.get("reference"),
            notes=data.get("notes"),
        )
        return jsonify({
            "payment": payment.to_dict(),
            "purchase": purchase.to_dict(),
            "message": "Payment added successfully",
        }), 201
    except PurchaseNotFoundError:
        return jsonify({"error": "Purchase not found"}), 404
    except (PurchaseValidationError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add purchase payment")
        return jsonify({"error": "Internal server error"}), 500
