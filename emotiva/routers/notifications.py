"""
Notification API endpoints.

Handles in-app notification retrieval and management.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from common.utils import success_response

from emotiva.dependencies import require_auth, get_notification_service
from emotiva.services.notifications import NotificationService


router = APIRouter(prefix="/notifications", tags=["Notifications"])


# =============================================================================
# Notification Endpoints
# =============================================================================

@router.get("")
async def get_notifications(
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    unread_only: bool = Query(default=False)
):
    """
    Get notifications for the current identity, newest first.

    Args:
        limit: Maximum number of notifications (1-100, default 20)
        offset: Number to skip for pagination
        unread_only: If true, only return unread notifications
    """
    result = await service.get_notifications(
        recipient_id=user["_id"],
        limit=limit,
        offset=offset,
        unread_only=unread_only
    )

    return success_response(result)


@router.get("/count")
async def get_unread_count(
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
):
    count = await service.get_unread_count(user["_id"])

    return success_response({"unread": count})


@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
):
    notification = await service.mark_as_read(notification_id, user["_id"])

    return success_response(notification)


@router.post("/read-all")
async def mark_all_as_read(
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
):
    count = await service.mark_all_as_read(user["_id"])

    return success_response({"marked": count})
