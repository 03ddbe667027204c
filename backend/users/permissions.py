# backend/users/permissions.py
from rest_framework.permissions import BasePermission

from .models import DivisionMembership, DivisionRole


def role_name(user):
    return getattr(user, "get_active_role_name", lambda: None)() if user and user.is_authenticated else None


class IsAuthenticatedAndHasRole(BasePermission):
    required_roles = ()  # override per subclass

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        # Staff bypass = treat as admin
        if request.user.is_staff:
            return True
        rn = role_name(request.user)
        return rn in self.required_roles if self.required_roles else True


# ---- Role gates --------------------------------------------------------------

class IsAdminRole(IsAuthenticatedAndHasRole):
    required_roles = ("Admin",)

class IsDeanRole(IsAuthenticatedAndHasRole):
    required_roles = ("Dean", "Admin")

class IsLecturerRole(IsAuthenticatedAndHasRole):
    required_roles = ("Lecturer", "Dean", "Admin")

class IsStudentRole(IsAuthenticatedAndHasRole):
    required_roles = ("Student",)


# ---- App-specific policy -----------------------------------------------------

class IsDivisionHead(BasePermission):
    """Faculty members heading at least one division."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return DivisionMembership.objects.filter(
            user=request.user, role=DivisionRole.HEAD
        ).exists()


class CanManageAllocations(BasePermission):
    """
    Deans, division heads and admins can persist and approve allocations.
    Fine-grained faculty scoping happens in the service layer.
    """
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.user.is_staff:
            return True
        if role_name(request.user) in ("Admin", "Dean"):
            return True
        return IsDivisionHead().has_permission(request, view)
