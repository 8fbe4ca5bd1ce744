# Overview: Flask API routes for staff accounts; parses input and returns JSON responses.

"""
User administration routes

SECURITY: Admin only. Passwords are never returned; deactivating a user or
resetting their password revokes their open sessions.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import auth_service
from ..services.auth_service import (
    PasswordValidationError,
    UserNotFoundError,
    UserValidationError,
)
from ..models.auth import ROLE_USER, STATUS_ACTIVE


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _user_payload(user, sales: int, expenses: int) -> dict:
    data = user.to_dict()
    data["counts"] = {"sales": sales, "expenses": expenses}
    return data


@users_bp.get("")
@require_auth
@require_admin("manage users")
def list_users_route():
    try:
        rows = auth_service.list_users()
        return jsonify([_user_payload(u, s, e) for u, s, e in rows])
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("")
@require_auth
@require_admin("manage users")
def create_user_route():
    """Request body: {name, email, password, role?, status?}"""
    data = request.get_json(silent=True) or {}
    if not all([data.get("name"), data.get("email"), data.get("password")]):
        return jsonify({"error": "Name, email and password are required"}), 400

    try:
        user = auth_service.create_user(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
            role=data.get("role") or ROLE_USER,
            status=data.get("status") or STATUS_ACTIVE,
        )
        current_app.logger.info("User %s created by %s", user.id, g.auth.user_id)
        return jsonify(_user_payload(user, 0, 0)), 201
    except (UserValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/<int:user_id>")
@require_auth
@require_admin("manage users")
def get_user_route(user_id: int):
    try:
        user = auth_service.get_user(user_id)
        counts = auth_service.user_activity_counts(user_id)
        return jsonify(_user_payload(user, counts["sales"], counts["expenses"]))
    except UserNotFoundError:
        return jsonify({"error": "User not found"}), 404


@users_bp.put("/<int:user_id>")
@require_auth
@require_admin("manage users")
def update_user_route(user_id: int):
    """Request body: {name, email, password?, role?, status?}"""
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.update_user(
            g.auth,
            user_id,
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password") or None,
            role=data.get("role"),
            status=data.get("status"),
        )
        counts = auth_service.user_activity_counts(user_id)
        return jsonify(_user_payload(user, counts["sales"], counts["expenses"]))
    except UserNotFoundError:
        return jsonify({"error": "User not found"}), 404
    except (UserValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<int:user_id>")
@require_auth
@require_admin("manage users")
def delete_user_route(user_id: int):
    try:
        auth_service.delete_user(g.auth, user_id)
        return jsonify({"message": "User deleted successfully"})
    except UserNotFoundError:
        return jsonify({"error": "User not found"}), 404
    except UserValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/<int:user_id>/reset-password")
@require_auth
@require_admin("manage users")
def reset_password_route(user_id: int):
    """Request body: {password}"""
    data = request.get_json(silent=True) or {}
    try:
        auth_service.reset_password(g.auth, user_id, data.get("password"))
        return jsonify({"message": "Password reset successfully"})
    except UserNotFoundError:
        return jsonify({"error": "User not found"}), 404
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to reset password")
        return jsonify({"error": "Internal server error"}), 500
