"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection with Beanie ODM
- auth: Bearer token verification (JWT)
- utils: Standard responses and exceptions
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import AuthProvider, JWTAuth
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    PaymentRequiredException,
    NotFoundException,
    ConflictException,
    ValidationException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "AuthProvider",
    "JWTAuth",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "PaymentRequiredException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    # Config
    "BaseAppSettings",
]
