from rest_framework.permissions import BasePermission

from core.policies import is_admin


class IsAdminRole(BasePermission):
    """Lets through authenticated users whose role is admin."""
    message = 'Access denied. Admin privileges required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and is_admin(user))
