"""Check-in services."""

from emotiva.services.checkin.checkin_validator import CheckInValidator
from emotiva.services.checkin.checkin_service import CheckInService
from emotiva.services.checkin.alert_evaluator import Alert, AlertEvaluator, evaluate_checkin
from emotiva.services.checkin.weekly_aggregator import WeeklyAggregator

__all__ = [
    "CheckInValidator",
    "CheckInService",
    "Alert",
    "AlertEvaluator",
    "evaluate_checkin",
    "WeeklyAggregator",
]
