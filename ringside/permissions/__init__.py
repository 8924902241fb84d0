"""Roles, permission tokens and the static role matrix."""

from .tokens import CoachScope, Permission, Role
from .matrix import (
    ALL_PERMISSIONS,
    ROLE_PERMISSIONS,
    permissions_for,
    role_has_all,
    role_has_any,
    role_has_permission,
)

__all__ = [
    "CoachScope",
    "Permission",
    "Role",
    "ALL_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "permissions_for",
    "role_has_all",
    "role_has_any",
    "role_has_permission",
]
