"""Role to permission table.

Used to decide which actions a user is offered. The HTTP layer also checks
it before running a mutation; nothing below the HTTP layer does.
"""

from typing import Dict, Any, Optional

ROLES = ("Admin", "Inspector", "Engineer")

PERMISSIONS = (
    "canCreateShip",
    "canEditShip",
    "canDeleteShip",
    "canCreateComponent",
    "canEditComponent",
    "canDeleteComponent",
    "canCreateJob",
    "canEditJob",
    "canDeleteJob",
    "canAssignJob",
    "canViewReports",
)

ROLE_PERMISSIONS: Dict[str, Dict[str, bool]] = {
    "Admin": {p: True for p in PERMISSIONS},
    "Inspector": {
        "canCreateShip": False,
        "canEditShip": False,
        "canDeleteShip": False,
        "canCreateComponent": True,
        "canEditComponent": True,
        "canDeleteComponent": False,
        "canCreateJob": True,
        "canEditJob": True,
        "canDeleteJob": False,
        "canAssignJob": True,
        "canViewReports": True,
    },
    "Engineer": {
        "canCreateShip": False,
        "canEditShip": False,
        "canDeleteShip": False,
        "canCreateComponent": False,
        "canEditComponent": False,
        "canDeleteComponent": False,
        "canCreateJob": False,
        # engineers update job status
        "canEditJob": True,
        "canDeleteJob": False,
        "canAssignJob": False,
        "canViewReports": False,
    },
}


def has_permission(user: Optional[Dict[str, Any]], permission: str) -> bool:
    if not user:
        return False
    return bool(ROLE_PERMISSIONS.get(user.get("role"), {}).get(permission, False))


def get_user_permissions(user: Optional[Dict[str, Any]]) -> Dict[str, bool]:
    if not user:
        return {}
    return dict(ROLE_PERMISSIONS.get(user.get("role"), {}))


def format_role_name(role: str) -> str:
    if not role:
        return role
    return role[:1].upper() + role[1:].lower()
