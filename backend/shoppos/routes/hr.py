# Overview: Flask API routes for employee records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import employee_service
from ..services.employee_service import EmployeeNotFoundError, EmployeeValidationError


hr_bp = Blueprint("hr", __name__, url_prefix="/api/hr")


def _fields(data: dict) -> dict:
    return {
        "name": data.get("name"),
        "email": data.get("email"),
        "position": data.get("position"),
        "salary_cents": data.get("salary_cents"),
        "hire_date": data.get("hire_date"),
    }


@hr_bp.get("")
@require_auth
def list_employees_route():
    try:
        return jsonify([e.to_dict() for e in employee_service.list_employees()])
    except Exception:
        current_app.logger.exception("Failed to list employees")
        return jsonify({"error": "Internal server error"}), 500


@hr_bp.post("")
@require_auth
@require_admin("create employees")
def create_employee_route():
    data = request.get_json(silent=True) or {}
    try:
        employee = employee_service.create_employee(g.auth, **_fields(data))
        return jsonify(employee.to_dict()), 201
    except EmployeeValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@hr_bp.put("/<int:employee_id>")
@require_auth
@require_admin("update employees")
def update_employee_route(employee_id: int):
    data = request.get_json(silent=True) or {}
    try:
        employee = employee_service.update_employee(g.auth, employee_id, **_fields(data))
        return jsonify(employee.to_dict())
    except EmployeeNotFoundError:
        return jsonify({"error": "Employee not found"}), 404
    except EmployeeValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update employee")
        return jsonify({"error": "Internal server error"}), 500


@hr_bp.delete("/<int:employee_id>")
@require_auth
@require_admin("delete employees")
def delete_employee_route(employee_id: int):
    try:
        employee_service.delete_employee(g.auth, employee_id)
        return jsonify({"message": "Employee deleted successfully"})
    except EmployeeNotFoundError:
        return jsonify({"error": "Employee not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete employee")
        return jsonify({"error": "Internal server error"}), 500
