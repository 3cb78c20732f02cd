# users/permissions.py

from rest_framework.permissions import BasePermission

from users.models import User


# ---------------- BASE ROLE PERMISSION ----------------
class HasRole(BasePermission):
    """
    Base permission to check user role safely.
    """

    allowed_roles = set()

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role in self.allowed_roles)


# ---------------- ROLE PERMISSIONS ----------------
class IsStoreOwner(HasRole):
    allowed_roles = {User.ROLE_OWNER, User.ROLE_ADMIN}


class IsStoreStaff(HasRole):
    """
    Anyone allowed to ring up sales:
    - owner
    - cashier
    - admin
    """

    allowed_roles = {User.ROLE_OWNER, User.ROLE_CASHIER, User.ROLE_ADMIN}
