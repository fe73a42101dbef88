"""
Subscription service.

Keeps the subscriber table in sync with billing webhook events and answers
whether an account may use premium features.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from emotiva.database import SUBSCRIBERS
from emotiva.services.object_ids import isoformat

logger = logging.getLogger(__name__)


EVENT_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
EVENT_SUBSCRIPTION_DELETED = "customer.subscription.deleted"
EVENT_SUBSCRIPTION_UPDATED = "customer.subscription.updated"

HANDLED_EVENTS = [
    EVENT_PAYMENT_SUCCEEDED,
    EVENT_SUBSCRIPTION_DELETED,
    EVENT_SUBSCRIPTION_UPDATED,
]


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Subscribers are keyed by lower-cased email."""
    if not email:
        return None
    return email.strip().lower() or None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SubscriptionService:
    """
    Applies billing events to subscribers and checks premium access.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        period_days: int = 30,
        tier: str = "Premium"
    ):
        """
        Initialize SubscriptionService.

        Args:
            db: MongoDB database connection
            period_days: Access granted by each successful payment
            tier: Tier name stored for active subscribers
        """
        self._db = db
        self._subscribers_collection = db[SUBSCRIBERS]
        self._period_days = period_days
        self._tier = tier

    async def apply_webhook_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update the subscriber described by a webhook event.

        Unknown event types and unresolvable customers are logged and
        acknowledged so the sender does not retry them.

        Args:
            event: Decoded event payload with type and data.object

        Returns:
            dict with received, handled and (when handled) email
        """
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type not in HANDLED_EVENTS:
            logger.info(f"Unhandled webhook event type: {event_type}")
            return {"received": True, "handled": False}

        customer_id = obj.get("customer")

        if event_type == EVENT_PAYMENT_SUCCEEDED:
            if not obj.get("subscription") or not customer_id:
                logger.info("Payment event without subscription or customer, ignoring")
                return {"received": True, "handled": False}

            updates = {
                "subscribed": True,
                "subscriptionTier": self._tier,
                "subscriptionEnd": datetime.now(timezone.utc) + timedelta(days=self._period_days),
            }
        elif event_type == EVENT_SUBSCRIPTION_DELETED:
            updates = {
                "subscribed": False,
                "subscriptionTier": None,
                "subscriptionEnd": None,
            }
        else:
            is_active = obj.get("status") == "active"
            period_end = obj.get("current_period_end")
            updates = {
                "subscribed": is_active,
                "subscriptionTier": self._tier if is_active else None,
                "subscriptionEnd": (
                    datetime.fromtimestamp(period_end, tz=timezone.utc)
                    if period_end else None
                ),
            }

        email = await self._resolve_email(obj.get("customer_email"), customer_id)
        if not email:
            logger.warning(f"Could not resolve customer {customer_id} for {event_type}")
            return {"received": True, "handled": False}

        await self._upsert_subscriber(email, customer_id, updates)
        logger.info(f"Applied {event_type} to subscriber {email}")

        return {"received": True, "handled": True, "email": email}

    async def get_status(self, email: Optional[str]) -> Dict[str, Any]:
        """
        Get the subscription status for an email.

        Returns:
            dict with subscribed, subscriptionTier, subscriptionEnd and
            premium (whether access is currently granted)
        """
        subscriber = None
        email = normalize_email(email)
        if email:
            subscriber = await self._subscribers_collection.find_one({"email": email})

        if not subscriber:
            return {
                "subscribed": False,
                "subscriptionTier": None,
                "subscriptionEnd": None,
                "premium": False,
            }

        return {
            "subscribed": subscriber.get("subscribed", False),
            "subscriptionTier": subscriber.get("subscriptionTier"),
            "subscriptionEnd": isoformat(subscriber.get("subscriptionEnd")),
            "premium": self.is_active(subscriber),
        }

    async def can_access_premium(self, email: Optional[str]) -> bool:
        email = normalize_email(email)
        if not email:
            return False

        subscriber = await self._subscribers_collection.find_one({"email": email})
        return self.is_active(subscriber)

    @staticmethod
    def is_active(subscriber: Optional[Dict[str, Any]], now: Optional[datetime] = None) -> bool:
        """Subscribed and the paid period has not ended."""
        if not subscriber or not subscriber.get("subscribed"):
            return False

        end = _as_utc(subscriber.get("subscriptionEnd"))
        if end is None:
            return True

        return end > (now or datetime.now(timezone.utc))

    async def _resolve_email(
        self,
        customer_email: Optional[str],
        customer_id: Optional[str]
    ) -> Optional[str]:
        email = normalize_email(customer_email)
        if email:
            return email
        if not customer_id:
            return None

        subscriber = await self._subscribers_collection.find_one(
            {"stripeCustomerId": customer_id}
        )
        return subscriber["email"] if subscriber else None

    async def _upsert_subscriber(
        self,
        email: str,
        customer_id: Optional[str],
        updates: Dict[str, Any]
    ) -> None:
        fields = dict(updates)
        fields["updatedAt"] = datetime.now(timezone.utc)
        if customer_id:
            fields["stripeCustomerId"] = customer_id

        await self._subscribers_collection.update_one(
            {"email": email},
            {"$set": fields},
            upsert=True
        )
