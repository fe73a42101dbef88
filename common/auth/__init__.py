"""
Authentication module - Pluggable token verification providers.
"""

from common.auth.base import AuthProvider
from common.auth.jwt_auth import JWTAuth

__all__ = ["AuthProvider", "JWTAuth"]
