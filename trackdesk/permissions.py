from rest_framework.permissions import BasePermission

from .jwt_utils import StaffIdentity

MANAGE_CHATS = 'canManageChats'


class HasStaffPermission(BasePermission):
    """Allow staff whose credential grants ``required_permission``; superadmins always pass."""

    required_permission = None
    message = 'Not authorized, staff credentials required'

    def __init__(self, required_permission=None):
        if required_permission is not None:
            self.required_permission = required_permission

    def has_permission(self, request, view):
        staff = request.auth
        if not isinstance(staff, StaffIdentity):
            return False

        if self.required_permission and not staff.has_permission(self.required_permission):
            self.message = f"Not authorized, permission '{self.required_permission}' required"
            return False
        return True


class CanManageChats(HasStaffPermission):
    required_permission = MANAGE_CHATS
