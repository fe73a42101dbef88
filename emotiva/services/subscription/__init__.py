"""Subscription services."""

from emotiva.services.subscription.subscription_service import SubscriptionService

__all__ = ["SubscriptionService"]
