"""
HTTP exceptions carrying a machine-readable error code.

Every exception renders as {"detail": {"message", "code", "details"}}
through FastAPI's HTTPException handling. Subclasses only declare their
status and defaults.

Example:
    from common.utils import NotFoundException

    child = await children.find_one({"_id": oid, "guardianId": guardian_id})
    if not child:
        raise NotFoundException(message="Child not found", code="CHILD_NOT_FOUND")
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception.

    Raise a subclass; the status code and the default message and code
    come from its class attributes.
    """

    status = 500
    default_message = "Internal error"
    default_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            message: Human-readable error message
            code: Machine-readable error code, e.g. "SHARE_EXISTS"
            details: Extra context for the client (field index, current status)
            headers: Optional response headers
        """
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details

        detail: Dict[str, Any] = {"message": self.message, "code": self.code}
        if details is not None:
            detail["details"] = details

        super().__init__(status_code=self.status, detail=detail, headers=headers)


class UnauthorizedException(APIException):
    """Missing, expired or badly signed bearer token."""
    status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"


class PaymentRequiredException(APIException):
    """Guardian feature behind the Premium paywall."""
    status = 402
    default_message = "Premium subscription required"
    default_code = "PREMIUM_REQUIRED"


class ForbiddenException(APIException):
    """Authenticated, but without the profile or role the route needs."""
    status = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundException(APIException):
    """Unknown resource, or one owned by someone else."""
    status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictException(APIException):
    """Duplicate check-in day, existing share or already answered invite."""
    status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class ValidationException(APIException):
    status = 422
    default_message = "Validation error"
    default_code = "VALIDATION_ERROR"
