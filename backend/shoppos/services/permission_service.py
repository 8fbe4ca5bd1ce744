# Overview: Role checks for service-layer operations.

"""
Role-based access

Two roles: admin and user. Routes gate on the role before calling a service,
and role-sensitive services check again against the AuthContext they are
handed, so the rule holds for CLI and test callers too.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, has_app_context

from ..models.auth import ROLE_ADMIN


class PermissionDeniedError(Exception):
    """Raised when the caller's role does not allow an operation."""
    pass


@dataclass(frozen=True)
class AuthContext:
    """Who is acting. Built once per request by require_auth."""
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def require_role(auth: AuthContext | None, role: str, action: str) -> None:
    """Raise PermissionDeniedError unless auth carries the role."""
    if auth is None or auth.role != role:
        if has_app_context():
            current_app.logger.warning(
                "Permission denied: user_id=%s role=%s action=%s",
                auth.user_id if auth else None,
                auth.role if auth else None,
                action,
            )
        raise PermissionDeniedError(f"Only admins can {action}")


def require_admin(auth: AuthContext | None, action: str) -> None:
    require_role(auth, ROLE_ADMIN, action)
