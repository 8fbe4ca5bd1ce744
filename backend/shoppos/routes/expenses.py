# Overview: Flask API routes for expenses; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import expense_service
from ..services.expense_service import ExpenseNotFoundError, ExpenseValidationError


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


def _fields(data: dict) -> dict:
    return {
        "amount_cents": data.get("amount_cents"),
        "category": data.get("category"),
        "description": data.get("description"),
        "date": data.get("date"),
    }


@expenses_bp.get("")
@require_auth
def list_expenses_route():
    try:
        return jsonify([e.to_dict() for e in expense_service.list_expenses()])
    except Exception:
        current_app.logger.exception("Failed to list expenses")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.post("")
@require_auth
def create_expense_route():
    data = request.get_json(silent=True) or {}
    try:
        expense = expense_service.create_expense(g.auth, **_fields(data))
        return jsonify(expense.to_dict()), 201
    except ExpenseValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.put("/<int:expense_id>")
@require_auth
def update_expense_route(expense_id: int):
    data = request.get_json(silent=True) or {}
    try:
        expense = expense_service.update_expense(g.auth, expense_id, **_fields(data))
        return jsonify(expense.to_dict())
    except ExpenseNotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except ExpenseValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.delete("/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int):
    try:
        expense_service.delete_expense(g.auth, expense_id)
        return jsonify({"message": "Expense deleted successfully"})
    except ExpenseNotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": "Internal server error"}), 500
