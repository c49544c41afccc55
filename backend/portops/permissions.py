"""
Permission constants and the static role -> permission map.

DESIGN PRINCIPLES:
- Permissions are granular (one action per permission)
- Read endpoints only need a known, active operator
- Admin has all permissions
"""

from .models.auth import ROLE_ADMIN, ROLE_LANDING_CLERK, ROLE_MANAGER, ROLE_YARD_OPERATOR


# Each permission is defined as: (code, name, description)
PERMISSION_DEFINITIONS = [
    (
        "REGISTER_LANDING",
        "Register Landing",
        "Record goods arriving at the port",
    ),
    (
        "PLACE_GOODS",
        "Place Goods",
        "Place landed goods into a storage zone",
    ),
    (
        "MOVE_GOODS",
        "Move Goods",
        "Relocate placed goods between zones",
    ),
    (
        "VIEW_DASHBOARD",
        "View Dashboard",
        "View KPIs and zone utilization",
    ),
    (
        "MANAGE_ZONES",
        "Manage Zones",
        "Create zones and change capacity, type or status",
    ),
]

ALL_PERMISSIONS = frozenset(code for code, _, _ in PERMISSION_DEFINITIONS)

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: ALL_PERMISSIONS,
    ROLE_MANAGER: frozenset({
        "REGISTER_LANDING",
        "PLACE_GOODS",
        "MOVE_GOODS",
        "VIEW_DASHBOARD",
    }),
    ROLE_YARD_OPERATOR: frozenset({
        "PLACE_GOODS",
        "MOVE_GOODS",
    }),
    ROLE_LANDING_CLERK: frozenset({
        "REGISTER_LANDING",
    }),
}


def role_has_permission(role: str, permission_code: str) -> bool:
    return permission_code in DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())
