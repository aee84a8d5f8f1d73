"""
JWT utilities for the trackdesk application.

Staff credentials are minted by the auth service with the shared
``JWT_SECRET``. This module validates them and exposes the staff identity
they carry; ``generate_token`` exists so tests and local tooling can mint
credentials the same way.
"""

import logging
import time
from dataclasses import dataclass, field

import jwt
from django.conf import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaffIdentity:
    """Staff member asserted by a verified credential"""
    staff_id: str
    name: str
    role: str = 'staff'
    permissions: tuple = field(default_factory=tuple)

    @property
    def is_superadmin(self):
        return self.role == 'superadmin'

    def has_permission(self, permission):
        return self.is_superadmin or permission in self.permissions


class JWTManager:
    """
    JWT Manager for token generation and validation.
    """

    def __init__(self):
        # Don't access settings immediately
        self._secret = None
        self._algorithm = None

    def _get_secret(self):
        """Get the signing secret, with lazy loading."""
        if self._secret is None:
            self._secret = getattr(settings, 'JWT_SECRET', 'trackdesk_jwt_secret_key')
        return self._secret

    def _get_algorithm(self):
        """Get the JWT algorithm, with lazy loading."""
        if self._algorithm is None:
            self._algorithm = getattr(settings, 'JWT_ALGORITHM', 'HS256')
        return self._algorithm

    def generate_token(self, staff_id, name, role='staff', permissions=None, expires_in_hours=None):
        """
        Generate a staff JWT.

        Args:
            staff_id (str): The staff ID to include in the token
            name (str): Display name shown next to staff messages
            role (str): One of superadmin, admin, staff
            permissions (list): Granted permission names, e.g. ``canManageChats``
            expires_in_hours (int): Token expiration time in hours

        Returns:
            str: JWT token string
        """
        if expires_in_hours is None:
            expires_in_hours = getattr(settings, 'JWT_EXPIRES_IN_HOURS', 168)

        now = int(time.time())
        payload = {
            'sub': str(staff_id),
            'name': name,
            'role': role,
            'permissions': list(permissions or []),
            'iat': now,
            'exp': now + int(expires_in_hours * 3600),
        }

        return jwt.encode(payload, self._get_secret(), algorithm=self._get_algorithm())

    def validate_token(self, token):
        """
        Validate a JWT token and extract the payload.

        Raises:
            jwt.InvalidTokenError: If token is invalid or expired
        """
        if not token:
            raise jwt.InvalidTokenError("Token required")

        try:
            return jwt.decode(
                token,
                self._get_secret(),
                algorithms=[self._get_algorithm()],
                options={'require': ['sub', 'exp']},
            )
        except jwt.ExpiredSignatureError:
            raise jwt.InvalidTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected staff token: %s", e)
            raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")

    def extract_staff(self, token):
        """
        Validate a token and build the StaffIdentity it carries.

        Raises:
            jwt.InvalidTokenError: If token is invalid or carries no name
        """
        payload = self.validate_token(token)
        name = payload.get('name')
        if not name:
            raise jwt.InvalidTokenError("Invalid token: missing staff name")

        permissions = payload.get('permissions') or []
        if isinstance(permissions, dict):
            permissions = [key for key, granted in permissions.items() if granted]

        return StaffIdentity(
            staff_id=str(payload['sub']),
            name=name,
            role=payload.get('role', 'staff'),
            permissions=tuple(permissions),
        )


# Global JWT manager instance - create lazily
_jwt_manager = None


def get_jwt_manager():
    """Get the global JWT manager instance, creating it if needed."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def generate_staff_token(staff_id, name, role='staff', permissions=None, expires_in_hours=None):
    """Mint a staff JWT for the given staff member."""
    return get_jwt_manager().generate_token(staff_id, name, role, permissions, expires_in_hours)


def get_staff_from_token(token):
    """Return the StaffIdentity for a valid token, or None."""
    try:
        return get_jwt_manager().extract_staff(token)
    except jwt.InvalidTokenError:
        return None
