"""
Check-in pipeline functions.

Stateless orchestration for check-in submission, history, alerts and the
weekly report. Every entry point first checks that the guardian owns the
child.
"""

import logging
from datetime import date
from typing import Optional, Dict, Any, List

from emotiva.services.checkin.checkin_service import CheckInService
from emotiva.services.checkin.alert_evaluator import Alert, AlertEvaluator, checkin_mood
from emotiva.services.checkin.weekly_aggregator import WeeklyAggregator
from emotiva.services.checkin.dates import local_today, format_time, format_day, checkin_day
from emotiva.services.children.child_service import ChildService
from emotiva.services.object_ids import isoformat

logger = logging.getLogger(__name__)


def format_checkin(checkin: Dict[str, Any], tz=None) -> Dict[str, Any]:
    """Format check-in document for API response."""
    formatted = {
        "id": str(checkin["_id"]),
        "childId": str(checkin["childId"]),
        "date": checkin.get("date"),
        "mood": checkin_mood(checkin),
        "sleptWell": checkin.get("sleptWell"),
        "adverseEvent": checkin.get("adverseEvent"),
        "note": checkin.get("note") or checkin.get("observations"),
        "createdAt": isoformat(checkin.get("createdAt")),
    }
    if tz is not None:
        formatted["time"] = format_time(checkin.get("createdAt"), tz)
        if formatted["date"] is None:
            day = checkin_day(checkin, tz)
            formatted["date"] = format_day(day) if day else None
    return formatted


def format_alert(alert: Alert) -> Dict[str, Any]:
    """Format an alert for API response."""
    return {
        "childId": alert.child["id"],
        "childName": alert.child.get("name"),
        "date": alert.checkin.get("date"),
        "issues": alert.issues,
        "message": alert.message,
    }


async def submit_checkin_pipeline(
    child_service: ChildService,
    checkin_service: CheckInService,
    guardian_id: str,
    child_id: str,
    data: Dict[str, Any],
    tz
) -> Dict[str, Any]:
    """
    Orchestrates the check-in submission flow.

    Args:
        child_service: For the ownership check
        checkin_service: For validation and persistence
        guardian_id: Current guardian's identity id
        child_id: Child the check-in is about
        data: Answers from the request
        tz: App timezone, defines "today" for the future-date check

    Returns:
        Formatted check-in
    """
    await child_service.get_child(child_id, guardian_id)

    checkin = await checkin_service.submit_checkin(child_id, data, today=local_today(tz))
    return format_checkin(checkin, tz)


async def get_checkin_history_pipeline(
    child_service: ChildService,
    checkin_service: CheckInService,
    guardian_id: str,
    child_id: str,
    limit: int = 30,
    offset: int = 0,
    tz=None
) -> Dict[str, Any]:
    """
    Get a child's paginated check-in history, newest day first.

    Returns:
        dict with checkins, total and hasMore
    """
    await child_service.get_child(child_id, guardian_id)

    checkins = await checkin_service.get_history(child_id, limit, offset)
    total = await checkin_service.get_total_count(child_id)

    return {
        "checkins": [format_checkin(c, tz) for c in checkins],
        "total": total,
        "hasMore": (offset + len(checkins)) < total,
    }


async def get_child_alert_pipeline(
    child_service: ChildService,
    alert_evaluator: AlertEvaluator,
    guardian_id: str,
    child_id: str
) -> Optional[Dict[str, Any]]:
    """Alert for a single owned child, or None."""
    child = await child_service.get_child(child_id, guardian_id)

    alert = await alert_evaluator.evaluate_child(child)
    return format_alert(alert) if alert else None


async def get_alerts_pipeline(
    child_service: ChildService,
    alert_evaluator: AlertEvaluator,
    guardian_id: str,
    today: Optional[date] = None
) -> List[Dict[str, Any]]:
    """Alerts across all of a guardian's children, in creation order."""
    children = await child_service.list_children(guardian_id)

    alerts = await alert_evaluator.evaluate_children(children, today)
    return [format_alert(a) for a in alerts]


async def get_weekly_report_pipeline(
    child_service: ChildService,
    weekly_aggregator: WeeklyAggregator,
    guardian_id: str,
    child_id: str,
    reference: Optional[date] = None
) -> Dict[str, Any]:
    """Weekly report for an owned child."""
    child = await child_service.get_child(child_id, guardian_id)

    return await weekly_aggregator.build_report(child, reference)
