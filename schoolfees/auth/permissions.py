"""Default capabilities per role when the token carries no explicit permission map."""

from typing import Dict

ADMIN_ROLES = ("SUPER_ADMIN", "PLATFORM_ADMIN")

_READ_ONLY = {"create": False, "read": True, "update": False, "delete": False}

DEFAULT_ROLE_PERMISSIONS: Dict[str, Dict[str, Dict[str, bool]]] = {
    "ADMIN": {"fees": {"create": True, "read": True, "update": True, "delete": True}},
    # Finance office staff collect payments but cannot delete catalog rows.
    "STAFF": {"fees": {"create": True, "read": True, "update": True, "delete": False}},
    "TEACHER": {"fees": dict(_READ_ONLY)},
    "STUDENT": {"fees": dict(_READ_ONLY)},
    "PARENT": {"fees": dict(_READ_ONLY)},
}


def permissions_for_role(role: str) -> Dict[str, Dict[str, bool]]:
    return {module: dict(actions) for module, actions in DEFAULT_ROLE_PERMISSIONS.get(role, {}).items()}
