"""
Subscription API endpoints.

Subscription status for the caller, and the billing provider webhook.
The webhook's signature is verified by the gateway in front of this
service.
"""

import logging
from typing import Annotated, Dict, Any

from fastapi import APIRouter, Body, Depends

from common.utils import success_response
from emotiva.dependencies import require_auth, get_subscription_service
from emotiva.services.subscription.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subscription"])


@router.get("/subscription")
async def get_subscription(
    user: Annotated[dict, Depends(require_auth)],
    subscription_service: Annotated[SubscriptionService, Depends(get_subscription_service)],
):
    status = await subscription_service.get_status(user.get("email"))
    return success_response(status)


@router.post("/webhooks/stripe")
async def stripe_webhook(
    event: Annotated[Dict[str, Any], Body()],
    subscription_service: Annotated[SubscriptionService, Depends(get_subscription_service)],
):
    """Apply a billing event. Always acknowledged once parsed."""
    logger.info(f"Webhook received: {event.get('type')}")

    result = await subscription_service.apply_webhook_event(event)
    return result
