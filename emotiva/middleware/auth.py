"""
Authentication middleware for protected routes.

Verifies bearer access tokens and attaches the identity to requests.
"""

import logging
from typing import Optional

from fastapi import Request

from common.auth.base import AuthProvider
from common.utils.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    Middleware that verifies the access token and attaches the identity
    to the request.
    """

    def __init__(self, auth_provider: AuthProvider):
        """
        Initialize AuthMiddleware.

        Args:
            auth_provider: Verifies tokens issued by the identity provider
        """
        self._auth_provider = auth_provider

    async def require_auth(self, request: Request) -> dict:
        """
        Validate request is authenticated.

        Args:
            request: HTTP request object

        Returns:
            Identity dict with _id and email

        Raises:
            UnauthorizedException: No header, or invalid/expired token
        """
        token = self._extract_token(request)

        if not token:
            raise UnauthorizedException(
                message="Authentication required",
                code="AUTH_REQUIRED"
            )

        try:
            claims = await self._auth_provider.verify_token(token)
        except ValueError as e:
            logger.debug(f"Token rejected: {e}")
            raise UnauthorizedException(
                message="Invalid or expired token",
                code="AUTH_REQUIRED"
            )

        user = {
            "_id": claims["sub"],
            "email": claims.get("email"),
        }
        request.state.user = user

        return user

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract bearer token from Authorization header.

        Expected format: "Authorization: Bearer <token>"
        """
        auth_header = request.headers.get("Authorization")

        if not auth_header:
            return None

        parts = auth_header.split()

        if len(parts) != 2:
            return None

        scheme, token = parts

        if scheme.lower() != "bearer":
            return None

        return token
