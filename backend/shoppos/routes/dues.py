# Overview: Flask API routes for customer dues and payments; parses input and returns JSON responses.

"""
Due routes

Dues are admin-only end to end.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import due_service
from ..services.due_service import DueNotFoundError, DueValidationError
from ..validation import ValidationError, parse_money


dues_bp = Blueprint("dues", __name__, url_prefix="/api/dues")


@dues_bp.get("")
@require_auth
@require_admin("view dues")
def list_dues_route():
    """Query params: status (pending|partial|paid), customer_id."""
    try:
        dues = due_service.list_dues(
            status=request.args.get("status"),
            customer_id=request.args.get("customer_id", type=int),
        )
        return jsonify([d.to_dict() for d in dues])
    except DueValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list dues")
        return jsonify({"error": "Internal server error"}), 500


@dues_bp.post("")
@require_auth
@require_admin("create dues")
def create_due_route():
    """Request body: {sale_id, total_amount_cents, notes?}"""
    data = request.get_json(silent=True) or {}
    try:
        due = due_service.create_due(
            g.auth,
            sale_id=data.get("sale_id"),
            total_amount_cents=data.get("total_amount_cents"),
            notes=data.get("notes"),
        )
        return jsonify(due.to_dict()), 201
    except DueNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except DueValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create due")
        return jsonify({"error": "Internal server error"}), 500


@dues_bp.get("/<int:due_id>")
@require_auth
@require_admin("view dues")
def get_due_route(due_id: int):
    try:
        return jsonify(due_service.get_due(due_id).to_dict())
    except DueNotFoundError:
        return jsonify({"error": "Due not found"}), 404


@dues_bp.put("/<int:due_id>")
@require_auth
@require_admin("update dues")
def update_due_route(due_id: int):
    """Request body: {total_amount_cents?, notes?}"""
    data = request.get_json(silent=True) or {}
    try:
        due = due_service.update_due(
            g.auth,
            due_id,
            total_amount_cents=data.get("total_amount_cents"),
            notes=data.get("notes"),
        )
        return jsonify(due.to_dict())
    except DueNotFoundError:
        return jsonify({"error": "Due not found"}), 404
    except DueValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update due")
        return jsonify({"error": "Internal server error"}), 500


@dues_bp.delete("/<int:due_id>")
@require_auth
@require_admin("delete dues")
def delete_due_route(due_id: int):
    try:
        due_service.delete_due(g.auth, due_id)
        return jsonify({"message": "Due deleted successfully"})
    except DueNotFoundError:
        return jsonify({"error": "Due not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete due")
        return jsonify({"error": "Internal server error"}), 500


@dues_bp.post("/<int:due_id>/payments")
@require_auth
@require_admin("record due payments")
def add_due_payment_route(due_id: int):
    """
    Request body:
    {
        "amount": 400,                  // required, Taka, <= pending balance
        "paymentDate": "2025-03-01",    // required
        "paymentMethod": "cash",        // optional
        "reference": "...",             // optional
        "notes": "..."                  // optional
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        payment, due = due_service.add_due_payment(
            g.auth,
            due_id,
            amount_cents=parse_money("amount", data.get("amount")),
            payment_date=data.get("paymentDate"),
            payment_method=data.get("paymentMethod"),
            reference=data.get("reference"),
            notes=data.get("notes"),
        )
        return jsonify({
            "payment": payment.to_dict(),
            "due": due.to_dict(),
            "message": "Payment added successfully",
        }), 201
    except DueNotFoundError:
        return jsonify({"error": "Due not found"}), 404
    except (DueValidationError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add due payment")
        return jsonify({"error": "Internal server error"}), 500
