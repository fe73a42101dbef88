"""
Check-in API endpoints.

Daily check-ins, alerts and the weekly report for a guardian's children.
"""

import logging
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import success_response
from common.utils.exceptions import ValidationException
from emotiva.config import Settings
from emotiva.dependencies import (
    require_auth,
    require_guardian,
    require_premium,
    get_settings,
    get_child_service,
    get_checkin_service,
    get_alert_evaluator,
    get_weekly_aggregator,
)
from emotiva.pipelines import checkin as checkin_pipeline
from emotiva.schemas.checkin import CheckInRequest
from emotiva.services.checkin.checkin_service import CheckInService
from emotiva.services.checkin.alert_evaluator import AlertEvaluator
from emotiva.services.checkin.weekly_aggregator import WeeklyAggregator
from emotiva.services.checkin.dates import parse_day
from emotiva.services.children.child_service import ChildService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Check-ins"])


def parse_reference_day(value: Optional[str]) -> Optional[date]:
    """Parse the optional ?date= query parameter."""
    if not value:
        return None

    day = parse_day(value)
    if day is None:
        raise ValidationException(message="Field 'date' must be in YYYY-MM-DD format")
    return day


@router.post("/children/{child_id}/checkins", status_code=201)
async def submit_checkin(
    child_id: str,
    body: CheckInRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
    app_settings: Annotated[Settings, Depends(get_settings)],
):
    """
    Submit the check-in for a child's chosen day.

    One check-in per child per day; a second one returns 409.
    """
    checkin = await checkin_pipeline.submit_checkin_pipeline(
        child_service=child_service,
        checkin_service=checkin_service,
        guardian_id=user["_id"],
        child_id=child_id,
        data=body.model_dump(),
        tz=app_settings.get_timezone()
    )

    return success_response(checkin)


@router.get("/children/{child_id}/checkins")
async def get_checkin_history(
    child_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    limit: int = Query(default=30, ge=1, le=90),
    offset: int = Query(default=0, ge=0),
):
    """Get a child's check-in history, newest day first."""
    result = await checkin_pipeline.get_checkin_history_pipeline(
        child_service=child_service,
        checkin_service=checkin_service,
        guardian_id=user["_id"],
        child_id=child_id,
        limit=limit,
        offset=offset,
        tz=app_settings.get_timezone()
    )

    return success_response(result)


@router.get("/children/{child_id}/alerts")
async def get_child_alert(
    child_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    alert_evaluator: Annotated[AlertEvaluator, Depends(get_alert_evaluator)],
):
    """Alert for one child; null when the latest recent check-in is fine."""
    alert = await checkin_pipeline.get_child_alert_pipeline(
        child_service=child_service,
        alert_evaluator=alert_evaluator,
        guardian_id=user["_id"],
        child_id=child_id
    )

    return success_response({"alert": alert})


@router.get("/alerts")
async def get_alerts(
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    alert_evaluator: Annotated[AlertEvaluator, Depends(get_alert_evaluator)],
):
    """Alerts across all of the guardian's children."""
    alerts = await checkin_pipeline.get_alerts_pipeline(
        child_service=child_service,
        alert_evaluator=alert_evaluator,
        guardian_id=user["_id"]
    )

    return success_response({"alerts": alerts})


@router.get("/children/{child_id}/reports/weekly")
async def get_weekly_report(
    child_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_premium)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    weekly_aggregator: Annotated[WeeklyAggregator, Depends(get_weekly_aggregator)],
    date: Optional[str] = Query(default=None, description="Any day of the wanted week"),
):
    """Weekly mood report (Premium)."""
    report = await checkin_pipeline.get_weekly_report_pipeline(
        child_service=child_service,
        weekly_aggregator=weekly_aggregator,
        guardian_id=user["_id"],
        child_id=child_id,
        reference=parse_reference_day(date)
    )

    return success_response(report)
