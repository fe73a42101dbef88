"""
Check-in alert evaluation.

Turns a child's most recent check-in into a list of concerns for the
guardian dashboard.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Dict, Any, Optional

from pymongo.errors import PyMongoError

from emotiva.services.checkin.checkin_service import CheckInService
from emotiva.services.checkin.checkin_validator import MOOD_SAD
from emotiva.services.checkin.dates import local_today

logger = logging.getLogger(__name__)


ISSUE_SAD = "is feeling sad"
ISSUE_SLEEP = "did not sleep well"
ISSUE_ADVERSE_EVENT = "something bad happened"


@dataclass
class Alert:
    """Concerns derived from one child's latest check-in. Never persisted."""
    child: Dict[str, Any]
    checkin: Dict[str, Any]
    issues: List[str]

    @property
    def message(self) -> str:
        return f"{self.child.get('name', '')} {', '.join(self.issues)}."


def checkin_mood(checkin: Dict[str, Any]) -> Optional[str]:
    """Mood of a check-in, falling back to the legacy emotion field."""
    return checkin.get("mood") or checkin.get("emotion")


def evaluate_checkin(checkin: Dict[str, Any]) -> List[str]:
    """
    Derive issues from a single check-in.

    Checks are independent and always reported in this order:
    sad mood, bad sleep, adverse event. Null flags never count.
    """
    issues = []

    if checkin_mood(checkin) == MOOD_SAD:
        issues.append(ISSUE_SAD)

    if checkin.get("sleptWell") is False:
        issues.append(ISSUE_SLEEP)

    if checkin.get("adverseEvent") is True:
        issues.append(ISSUE_ADVERSE_EVENT)

    return issues


class AlertEvaluator:
    """
    Evaluates the latest check-in of each child within the lookback window.

    Stateless: every call queries the store again.
    """

    def __init__(
        self,
        checkin_service: CheckInService,
        timezone,
        lookback_days: int = 3
    ):
        """
        Initialize AlertEvaluator.

        Args:
            checkin_service: For fetching the latest check-in
            timezone: pytz zone that defines "today"
            lookback_days: Calendar days before today still considered recent
        """
        self._checkin_service = checkin_service
        self._timezone = timezone
        self._lookback_days = lookback_days

    def window_start(self, today: Optional[date] = None) -> date:
        """First calendar day (inclusive) of the lookback window."""
        today = today or local_today(self._timezone)
        return today - timedelta(days=self._lookback_days)

    async def evaluate_child(
        self,
        child: Dict[str, Any],
        today: Optional[date] = None
    ) -> Optional[Alert]:
        """
        Evaluate one child.

        Args:
            child: Formatted child dict (id, name, ...)
            today: Override for the current calendar day

        Returns:
            Alert when the latest recent check-in has issues, else None
        """
        checkin = await self._checkin_service.get_latest_since(
            child["id"],
            self.window_start(today)
        )
        if not checkin:
            return None

        issues = evaluate_checkin(checkin)
        if not issues:
            return None

        return Alert(child=child, checkin=checkin, issues=issues)

    async def evaluate_children(
        self,
        children: List[Dict[str, Any]],
        today: Optional[date] = None
    ) -> List[Alert]:
        """
        Evaluate children sequentially, preserving their order.

        A failed query skips that child instead of failing the list.
        """
        alerts = []

        for child in children:
            try:
                alert = await self.evaluate_child(child, today)
            except PyMongoError as e:
                logger.warning(f"Alert check failed for child {child.get('id')}: {e}")
                continue

            if alert:
                alerts.append(alert)

        return alerts
