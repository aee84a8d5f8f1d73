import jwt
from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from .jwt_utils import get_jwt_manager


class StaffJWTAuthentication(BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        """
        Authenticate a staff request using the JWT in the Authorization header.

        Requests without an Authorization header are left anonymous so public
        customer endpoints keep working; permission classes decide whether a
        staff identity is required. On success the StaffIdentity is attached to
        ``request.staff`` and returned as the auth part of the tuple.

        Raises:
            AuthenticationFailed: If the header is not "Bearer <token>" or the
                token does not verify.
        """
        auth_header = request.headers.get('Authorization', '')
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0] != self.keyword:
            raise AuthenticationFailed("Not authorized, expected 'Bearer <token>'")

        try:
            staff = get_jwt_manager().extract_staff(parts[1])
        except jwt.InvalidTokenError as e:
            raise AuthenticationFailed(f"Not authorized, {e}")

        request.staff = staff
        return (AnonymousUser(), staff)

    def authenticate_header(self, request):
        return self.keyword
