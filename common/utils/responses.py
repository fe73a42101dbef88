"""
Standard API response helpers.

Provides consistent response formatting for success and error cases.

Example:
    from common.utils import success_response

    @router.get("/children")
    async def list_children(...):
        children = await child_service.list_children(guardian_id)
        return success_response({"children": children})
"""

from typing import Any, Optional, Dict


def success_response(
    data: Any = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a standard success response.

    Args:
        data: The response data (can be dict, list, or any serializable type)
        message: Optional success message

    Returns:
        Dictionary with success=True and optional data/message
    """
    response: Dict[str, Any] = {"success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    return response


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Create a standard error response.

    Args:
        message: Human-readable error message
        code: Machine-readable error code (e.g., "CHILD_NOT_FOUND")
        details: Additional error details

    Returns:
        Dictionary with success=False and error info
    """
    error: Dict[str, Any] = {"message": message}

    if code:
        error["code"] = code

    if details is not None:
        error["details"] = details

    return {"success": False, "error": error}
