"""
Emotiva application settings.

Extends the base settings with Emotiva-specific configuration.
"""

import pytz

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Emotiva-specific settings."""

    # ==========================================================================
    # Calendar
    # ==========================================================================
    # Check-in days, weekly buckets and "today" are evaluated in this zone
    TIMEZONE: str = "America/Sao_Paulo"

    # ==========================================================================
    # Alerts and Dashboard
    # ==========================================================================
    # Inclusive calendar-day window for the latest check-in that can alert
    ALERT_LOOKBACK_DAYS: int = 3
    DASHBOARD_NOTIFICATION_LIMIT: int = 10
    STREAM_KEEPALIVE_SECONDS: int = 15

    # ==========================================================================
    # Subscriptions
    # ==========================================================================
    PAYWALL_ENABLED: bool = True
    SUBSCRIPTION_PERIOD_DAYS: int = 30
    SUBSCRIPTION_TIER: str = "Premium"

    def get_timezone(self):
        """Get the configured pytz timezone."""
        return pytz.timezone(self.TIMEZONE)


# Global settings instance
settings = Settings()
