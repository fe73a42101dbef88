"""Unit tests for billing webhook handling and premium access."""

import pytest
from datetime import datetime, timezone, timedelta

from emotiva.services.subscription.subscription_service import SubscriptionService


@pytest.fixture
def service(mock_db):
    return SubscriptionService(mock_db, period_days=30, tier="Premium")


def _event(event_type, **obj):
    return {"type": event_type, "data": {"object": obj}}


def _set_fields(mock_collection):
    filter_, update = mock_collection.update_one.call_args[0]
    return filter_, update["$set"]


class TestWebhookEvents:
    @pytest.mark.asyncio
    async def test_payment_succeeded_grants_thirty_days(self, service, mock_collection):
        before = datetime.now(timezone.utc)

        result = await service.apply_webhook_event(_event(
            "invoice.payment_succeeded",
            subscription="sub_1", customer="cus_1", customer_email="Mom@Example.com"
        ))

        assert result == {"received": True, "handled": True, "email": "mom@example.com"}
        filter_, fields = _set_fields(mock_collection)
        assert filter_ == {"email": "mom@example.com"}
        assert fields["subscribed"] is True
        assert fields["subscriptionTier"] == "Premium"
        assert fields["stripeCustomerId"] == "cus_1"
        assert fields["subscriptionEnd"] - before >= timedelta(days=30)
        assert mock_collection.update_one.call_args.kwargs["upsert"] is True

    @pytest.mark.asyncio
    async def test_subscription_deleted_clears_access(self, service, mock_collection):
        await service.apply_webhook_event(_event(
            "customer.subscription.deleted", customer="cus_1", customer_email="mom@example.com"
        ))

        _, fields = _set_fields(mock_collection)
        assert fields["subscribed"] is False
        assert fields["subscriptionTier"] is None
        assert fields["subscriptionEnd"] is None

    @pytest.mark.asyncio
    async def test_subscription_updated_uses_period_end(self, service, mock_collection):
        mock_collection.find_one.return_value = {"email": "mom@example.com", "stripeCustomerId": "cus_1"}

        await service.apply_webhook_event(_event(
            "customer.subscription.updated",
            customer="cus_1", status="active", current_period_end=1767225600
        ))

        mock_collection.find_one.assert_awaited_once_with({"stripeCustomerId": "cus_1"})
        _, fields = _set_fields(mock_collection)
        assert fields["subscribed"] is True
        assert fields["subscriptionEnd"] == datetime(2026, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_inactive_update_drops_tier(self, service, mock_collection):
        await service.apply_webhook_event(_event(
            "customer.subscription.updated",
            customer="cus_1", customer_email="mom@example.com", status="past_due"
        ))

        _, fields = _set_fields(mock_collection)
        assert fields["subscribed"] is False
        assert fields["subscriptionTier"] is None
        assert fields["subscriptionEnd"] is None

    @pytest.mark.asyncio
    async def test_unresolved_customer_is_acknowledged(self, service, mock_collection):
        mock_collection.find_one.return_value = None

        result = await service.apply_webhook_event(_event(
            "customer.subscription.deleted", customer="cus_unknown"
        ))

        assert result == {"received": True, "handled": False}
        mock_collection.update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_unhandled_event_type(self, service, mock_collection):
        result = await service.apply_webhook_event(_event("charge.refunded", customer="cus_1"))

        assert result == {"received": True, "handled": False}
        mock_collection.update_one.assert_not_called()


class TestPremiumAccess:
    def test_active_without_end(self):
        assert SubscriptionService.is_active({"subscribed": True, "subscriptionEnd": None}) is True

    def test_expired_period(self):
        past = datetime.now(timezone.utc) - timedelta(days=1)

        assert SubscriptionService.is_active({"subscribed": True, "subscriptionEnd": past}) is False

    def test_naive_end_read_as_utc(self):
        future = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=3)

        assert SubscriptionService.is_active({"subscribed": True, "subscriptionEnd": future}) is True

    def test_unsubscribed(self):
        assert SubscriptionService.is_active({"subscribed": False}) is False
        assert SubscriptionService.is_active(None) is False

    @pytest.mark.asyncio
    async def test_status_for_unknown_email(self, service, mock_collection):
        mock_collection.find_one.return_value = None

        status = await service.get_status("nobody@example.com")

        assert status["premium"] is False
        assert status["subscribed"] is False

    @pytest.mark.asyncio
    async def test_can_access_premium_needs_email(self, service, mock_collection):
        assert await service.can_access_premium(None) is False
        mock_collection.find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_mixed_case_email_matches_stored_subscriber(self, service, mock_collection):
        await service.apply_webhook_event(_event(
            "invoice.payment_succeeded",
            customer="cus_1",
            subscription="sub_1",
            customer_email="Ana.Parent@Example.com",
        ))
        filter_, fields = _set_fields(mock_collection)
        assert filter_ == {"email": "ana.parent@example.com"}

        mock_collection.find_one.return_value = {"email": "ana.parent@example.com", **fields}

        assert await service.can_access_premium("Ana.Parent@Example.com") is True
        mock_collection.find_one.assert_awaited_with({"email": "ana.parent@example.com"})

        status = await service.get_status(" Ana.Parent@Example.com ")
        assert status["premium"] is True
        mock_collection.find_one.assert_awaited_with({"email": "ana.parent@example.com"})
