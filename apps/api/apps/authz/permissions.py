"""
Route-level role permissions.

Object-level ownership checks live in ``apps.authz.policy``.
"""
from rest_framework import permissions
from apps.authz.models import RoleChoices


class RolePermission(permissions.BasePermission):
    """Allow authenticated users whose role is in ``allowed_roles``."""

    allowed_roles = frozenset()

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.role in self.allowed_roles


class IsAdmin(RolePermission):
    allowed_roles = frozenset({RoleChoices.ADMIN})


class IsDoctor(RolePermission):
    allowed_roles = frozenset({RoleChoices.DOCTOR})


class IsDoctorOrAdmin(RolePermission):
    allowed_roles = frozenset({RoleChoices.DOCTOR, RoleChoices.ADMIN})


class IsPatient(RolePermission):
    allowed_roles = frozenset({RoleChoices.PATIENT})


class ReadAnyWriteRoles(permissions.BasePermission):
    """
    Any authenticated user may read; writes need one of ``write_roles``.

    - GET/HEAD/OPTIONS: authenticated
    - POST/PUT/PATCH/DELETE: role in write_roles
    """

    write_roles = frozenset({RoleChoices.ADMIN})

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.role in self.write_roles


class CatalogWritePermission(ReadAnyWriteRoles):
    """Medicines: doctors and admins maintain the catalog."""
    write_roles = frozenset({RoleChoices.DOCTOR, RoleChoices.ADMIN})


class AdminWritePermission(ReadAnyWriteRoles):
    """Hospitals: admins only."""
    write_roles = frozenset({RoleChoices.ADMIN})
