"""
Weekly check-in report.

Buckets a child's check-ins into the seven days of a Monday-aligned week,
counts moods and derives simple threshold insights.
"""

import logging
from datetime import date, timedelta
from typing import List, Dict, Any, Optional, Tuple

from emotiva.services.checkin.checkin_service import CheckInService
from emotiva.services.checkin.checkin_validator import MOODS, MOOD_HAPPY, MOOD_NEUTRAL, MOOD_SAD
from emotiva.services.checkin.alert_evaluator import checkin_mood
from emotiva.services.checkin.dates import local_today, checkin_day, format_day, format_time

logger = logging.getLogger(__name__)


MOOD_EMOJIS = {
    MOOD_HAPPY: "😀",
    MOOD_NEUTRAL: "😐",
    MOOD_SAD: "😢",
}
DEFAULT_MOOD_EMOJI = MOOD_EMOJIS[MOOD_NEUTRAL]
EMPTY_EMOJI = "⚪"

WEEKDAY_LABELS = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

SADNESS_THRESHOLD = 2
POSITIVE_THRESHOLD = 3


def week_bounds(reference: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing reference."""
    monday = reference - timedelta(days=reference.weekday())
    return monday, monday + timedelta(days=6)


def week_days(reference: date) -> List[date]:
    monday, _ = week_bounds(reference)
    return [monday + timedelta(days=offset) for offset in range(7)]


def mood_emoji(mood: Optional[str]) -> str:
    """Emoji for a mood; unknown moods render as neutral."""
    return MOOD_EMOJIS.get(mood, DEFAULT_MOOD_EMOJI)


def build_buckets(
    days: List[date],
    checkins: List[Dict[str, Any]],
    tz
) -> List[Dict[str, Any]]:
    """
    Build one bucket per day, populated from the matching check-in.

    Days without a check-in get an empty placeholder.
    """
    by_day: Dict[date, Dict[str, Any]] = {}
    for checkin in checkins:
        day = checkin_day(checkin, tz)
        # At most one check-in per day; keep the first one seen
        if day is not None and day not in by_day:
            by_day[day] = checkin

    buckets = []
    for day in days:
        bucket: Dict[str, Any] = {
            "date": format_day(day),
            "weekday": WEEKDAY_LABELS[day.weekday()],
        }
        checkin = by_day.get(day)

        if checkin is None:
            bucket.update({"hasCheckin": False, "emoji": EMPTY_EMOJI})
        else:
            mood = checkin_mood(checkin)
            bucket.update({
                "hasCheckin": True,
                "mood": mood,
                "emoji": mood_emoji(mood),
                "time": format_time(checkin.get("createdAt"), tz),
                "sleptWell": checkin.get("sleptWell"),
                "adverseEvent": checkin.get("adverseEvent"),
                "note": checkin.get("note") or checkin.get("observations"),
            })

        buckets.append(bucket)

    return buckets


def count_moods(buckets: List[Dict[str, Any]]) -> Dict[str, int]:
    """Count populated buckets per mood category."""
    counts = {mood: 0 for mood in MOODS}
    for bucket in buckets:
        if bucket["hasCheckin"] and bucket.get("mood") in counts:
            counts[bucket["mood"]] += 1
    return counts


def derive_insights(counts: Dict[str, int], child_name: str = "Your child") -> List[Dict[str, str]]:
    """Threshold insights for a week of mood counts."""
    insights = []

    if counts.get(MOOD_SAD, 0) >= SADNESS_THRESHOLD:
        insights.append({
            "type": "warning",
            "title": "Continued sadness",
            "description": f"{child_name} reported sadness on {counts[MOOD_SAD]} days this week",
            "suggestion": "Consider talking about what might be bothering them",
        })

    if counts.get(MOOD_HAPPY, 0) >= POSITIVE_THRESHOLD:
        insights.append({
            "type": "positive",
            "title": "Positive week",
            "description": f"{child_name} felt happy on {counts[MOOD_HAPPY]} days this week",
            "suggestion": "Notice which activities contribute to their well-being",
        })

    return insights


def format_range_label(start: date, end: date) -> str:
    return f"{start.strftime('%B')} {start.day} to {end.strftime('%B')} {end.day}"


class WeeklyAggregator:
    """
    Builds the weekly report for a child.
    Recomputed on every request; nothing is stored.
    """

    def __init__(self, checkin_service: CheckInService, timezone):
        """
        Initialize WeeklyAggregator.

        Args:
            checkin_service: For fetching the week's check-ins
            timezone: pytz zone for calendar days and times
        """
        self._checkin_service = checkin_service
        self._timezone = timezone

    async def build_report(
        self,
        child: Dict[str, Any],
        reference: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Build the report for the week containing reference (default: today).

        Args:
            child: Formatted child dict (id, name, ...)
            reference: Any day inside the wanted week

        Returns:
            dict with keys:
                - weekStart / weekEnd: YYYY-MM-DD
                - buckets: 7 day buckets, Monday first
                - counts: happy/neutral/sad over populated buckets
                - insights: threshold insights
        """
        reference = reference or local_today(self._timezone)
        days = week_days(reference)

        checkins = await self._checkin_service.get_for_range(child["id"], days[0], days[-1])
        logger.debug(f"Weekly report for child {child['id']}: {len(checkins)} check-ins")

        buckets = build_buckets(days, checkins, self._timezone)
        counts = count_moods(buckets)

        return {
            "childId": child["id"],
            "childName": child.get("name"),
            "weekStart": format_day(days[0]),
            "weekEnd": format_day(days[-1]),
            "rangeLabel": format_range_label(days[0], days[-1]),
            "buckets": buckets,
            "counts": counts,
            "insights": derive_insights(counts, child.get("name") or "Your child"),
        }
