"""
Role based permission classes.
"""
from rest_framework.permissions import BasePermission

from .exceptions import Forbidden


class RolePermission(BasePermission):
    """Allow access only to authenticated users whose role is in ``roles``."""
    roles: frozenset = frozenset()

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if getattr(user, "role", None) not in self.roles:
            raise Forbidden()
        return True


def restrict_to(*roles: str) -> type[RolePermission]:
    """Build a permission class that admits the given roles."""
    name = "RestrictTo" + "".join(r.title() for r in roles)
    return type(name, (RolePermission,), {"roles": frozenset(roles)})


IsAdminRole = restrict_to("admin")
IsClinician = restrict_to("admin", "doctor")


def require_role(user, *roles: str) -> None:
    """Raise :class:`Forbidden` unless ``user`` holds one of ``roles``."""
    if getattr(user, "role", None) not in roles:
        raise Forbidden()
