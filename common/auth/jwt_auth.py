"""
JWT access token verification.

Tokens are issued by the identity provider and signed with a shared
secret (HS256 by default).

Example:
    auth = JWTAuth(secret="your-secret-key")

    claims = await auth.verify_token(token)
    print(claims["sub"])  # identity id
"""

from typing import Dict, Any, Optional

from jose import jwt, JWTError

from common.auth.base import AuthProvider


class JWTAuth(AuthProvider):
    """
    Verifies JWT access tokens issued by an external identity provider.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
    ):
        """
        Initialize JWT auth provider.

        Args:
            secret: Secret key used to sign tokens
            algorithm: JWT algorithm (default: HS256)
            audience: Expected "aud" claim, if the provider sets one
        """
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode a JWT token."""
        options = {"verify_aud": self.audience is not None}

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")

        if not payload.get("sub"):
            raise ValueError("Invalid token: missing subject")

        return payload
