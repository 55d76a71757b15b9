# users/permissions.py

from rest_framework.permissions import BasePermission


# ---------------- BASE ROLE PERMISSION ----------------
class HasRole(BasePermission):
    """
    Base permission to check user role safely.
    """

    allowed_roles = set()

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated and user.role in self.allowed_roles
        )


# ---------------- ROLE PERMISSIONS ----------------
class IsCustomer(HasRole):
    """Cart and checkout belong to shoppers only."""

    allowed_roles = {"customer"}


class IsStaff(HasRole):
    """
    Fulfilment team:
    - admin
    - staff
    """

    allowed_roles = {"admin", "staff"}
