"""
Notification service for in-app notifications.

Handles creation, retrieval, and management of notifications addressed
to a guardian, school or psychologist.
"""

import logging
from datetime import datetime, timezone
from typing import List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import NotFoundException
from emotiva.database import NOTIFICATIONS
from emotiva.services.object_ids import parse_object_id, isoformat

logger = logging.getLogger(__name__)


def format_notification(notification: Dict[str, Any]) -> Dict[str, Any]:
    """Format notification document for API response."""
    return {
        "id": str(notification["_id"]),
        "message": notification.get("message"),
        "read": notification.get("read", False),
        "readAt": isoformat(notification.get("readAt")),
        "createdAt": isoformat(notification.get("createdAt")),
    }


class NotificationService:
    """
    Handles in-app notification management.

    Notifications are created for:
    - a psychologist receiving a new report share invite
    - a guardian whose share invite was accepted or declined
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize NotificationService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._collection = db[NOTIFICATIONS]

    async def create_notification(
        self,
        recipient_id: str,
        message: str
    ) -> Dict[str, Any]:
        """
        Create a new notification for a recipient.

        Args:
            recipient_id: Identity id of the recipient
            message: Notification text

        Returns:
            Created notification document
        """
        now = datetime.now(timezone.utc)

        notification_doc = {
            "recipientId": recipient_id,
            "message": message,
            "read": False,
            "readAt": None,
            "createdAt": now,
        }

        result = await self._collection.insert_one(notification_doc)
        notification_doc["_id"] = result.inserted_id

        logger.info(f"Created notification for {recipient_id}")
        return notification_doc

    async def get_recent(self, recipient_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Get the most recent notifications for a recipient, newest first.
        """
        cursor = self._collection.find({"recipientId": recipient_id})
        cursor = cursor.sort("createdAt", -1).limit(limit)

        notifications = await cursor.to_list(length=limit)
        return [format_notification(n) for n in notifications]

    async def get_notifications(
        self,
        recipient_id: str,
        limit: int = 20,
        offset: int = 0,
        unread_only: bool = False
    ) -> Dict[str, Any]:
        """
        Get notifications for a recipient with pagination.

        Args:
            recipient_id: Identity id
            limit: Maximum number of notifications to return
            offset: Number of notifications to skip
            unread_only: If True, only return unread notifications

        Returns:
            Dict with notifications list, total count, and hasMore flag
        """
        query: Dict[str, Any] = {"recipientId": recipient_id}
        if unread_only:
            query["read"] = False

        total = await self._collection.count_documents(query)

        cursor = self._collection.find(query).sort(
            "createdAt", -1
        ).skip(offset).limit(limit)

        notifications = await cursor.to_list(length=limit)

        return {
            "notifications": [format_notification(n) for n in notifications],
            "total": total,
            "hasMore": (offset + len(notifications)) < total
        }

    async def get_unread_count(self, recipient_id: str) -> int:
        """Get count of unread notifications for a recipient."""
        return await self._collection.count_documents({
            "recipientId": recipient_id,
            "read": False
        })

    async def mark_as_read(self, notification_id: str, recipient_id: str) -> Dict[str, Any]:
        """
        Mark a notification as read.

        Raises:
            NotFoundException: If notification not found or addressed to someone else
        """
        oid = parse_object_id(notification_id)
        notification = None
        if oid is not None:
            notification = await self._collection.find_one({
                "_id": oid,
                "recipientId": recipient_id
            })

        if not notification:
            raise NotFoundException(
                message="Notification not found",
                code="NOTIFICATION_NOT_FOUND"
            )

        if notification["read"]:
            return format_notification(notification)

        now = datetime.now(timezone.utc)
        await self._collection.update_one(
            {"_id": oid},
            {"$set": {"read": True, "readAt": now}}
        )

        notification["read"] = True
        notification["readAt"] = now

        logger.info(f"Notification {notification_id} marked as read for {recipient_id}")
        return format_notification(notification)

    async def mark_all_as_read(self, recipient_id: str) -> int:
        """
        Mark all unread notifications as read for a recipient.

        Returns:
            Number of notifications marked as read
        """
        now = datetime.now(timezone.utc)
        result = await self._collection.update_many(
            {"recipientId": recipient_id, "read": False},
            {"$set": {"read": True, "readAt": now}}
        )

        logger.info(f"Marked {result.modified_count} notifications as read for {recipient_id}")
        return result.modified_count
