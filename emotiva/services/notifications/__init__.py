"""Notification services."""

from emotiva.services.notifications.notification_service import NotificationService

__all__ = ["NotificationService"]
