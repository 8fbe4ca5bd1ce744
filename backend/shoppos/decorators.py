# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service
from .models.auth import ROLE_ADMIN


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'auth')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.auth: AuthContext(user_id, role) handed to services
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.auth = context.auth
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(role: str, action: str | None = None):
    """
    Require the authenticated user to carry a role. Stack under require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.auth.role != role:
                current_app.logger.warning(
                    "Forbidden: user_id=%s role=%s %s %s",
                    g.auth.user_id, g.auth.role, request.method, request.path,
                )
                message = f"Only admins can {action}" if action else "Admin access required"
                return jsonify({"error": "Forbidden", "message": message}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_admin(action: str | None = None):
    return require_role(ROLE_ADMIN, action)
