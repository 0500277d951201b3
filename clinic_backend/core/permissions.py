"""Core permissions for RBAC (role-based access control).

Every API permission in the project derives from ``RBACPermission`` and only
declares which roles may read and which may write.

Standard roles: admin, doctor, nurse, midwife, pharmacist, staff
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS


ALL_ROLES = frozenset({"admin", "doctor", "nurse", "midwife", "pharmacist", "staff"})


class RBACPermission(BasePermission):
    """Base class for RBAC permissions with read_roles/write_roles pattern.

    Example:
        class MyPermission(RBACPermission):
            read_roles = {"admin", "doctor"}
            write_roles = {"admin"}
    """

    read_roles: set = set()
    write_roles: set = set()

    def _role_name(self, request):
        user = getattr(request, "user", None)
        role = getattr(user, "role", None)
        return getattr(role, "name", None)

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False

        role_name = self._role_name(request)
        if not role_name:
            return False

        if request.method in SAFE_METHODS:
            return role_name in self.read_roles

        return role_name in self.write_roles
