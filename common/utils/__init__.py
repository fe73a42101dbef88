"""
Utilities module - Common helpers for API responses and exceptions.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import (
    APIException,
    UnauthorizedException,
    ForbiddenException,
    PaymentRequiredException,
    NotFoundException,
    ConflictException,
    ValidationException,
)

__all__ = [
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "PaymentRequiredException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
]
