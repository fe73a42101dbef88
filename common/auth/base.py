"""
Abstract authentication provider interface.

Accounts, sessions and password flows live in the external identity
provider. This backend only needs to turn a bearer token into claims,
so the contract is a single verification method.

Example:
    from common.auth import AuthProvider, JWTAuth

    def get_auth_provider(settings) -> AuthProvider:
        return JWTAuth(secret=settings.JWT_SECRET)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any


class AuthProvider(ABC):
    """
    Abstract authentication provider.

    All methods are async to support both local and remote verification.
    """

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify an access token and return its claims.

        Args:
            token: Raw bearer token

        Returns:
            Decoded claims; "sub" holds the identity id

        Raises:
            ValueError: If the token is invalid or expired
        """
        pass
