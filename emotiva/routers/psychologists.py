"""
Psychologist API endpoints.

Registration, share invites and the reports shared with a psychologist.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import success_response
from emotiva.context import ROLE_PSYCHOLOGIST
from emotiva.dependencies import (
    require_auth,
    require_role,
    get_child_service,
    get_share_service,
    get_weekly_aggregator,
)
from emotiva.pipelines import sharing as sharing_pipeline
from emotiva.routers.checkin import parse_reference_day
from emotiva.schemas.sharing import PsychologistRegisterRequest, InviteResponseRequest
from emotiva.services.children.child_service import ChildService
from emotiva.services.sharing.share_service import ShareService
from emotiva.services.checkin.weekly_aggregator import WeeklyAggregator


router = APIRouter(prefix="/psychologists", tags=["Psychologists"])

require_psychologist = require_role(ROLE_PSYCHOLOGIST)


@router.post("", status_code=201)
async def register_psychologist(
    body: PsychologistRegisterRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_psychologist)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Register as a psychologist and receive the public share code."""
    psychologist = await share_service.register_psychologist(
        user_id=user["_id"],
        name=body.name,
        specialty=body.specialty,
        license_number=body.licenseNumber
    )

    return success_response(psychologist)


@router.get("/me")
async def get_me(
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_psychologist)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    psychologist = await share_service.get_psychologist(user["_id"])
    return success_response(psychologist)


@router.get("/invites")
async def list_invites(
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_psychologist)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Pending invites with child and guardian details."""
    invites = await share_service.list_pending_invites(user["_id"])
    return success_response({"invites": invites})


@router.post("/invites/{share_id}/respond")
async def respond_to_invite(
    share_id: str,
    body: InviteResponseRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_psychologist)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Accept or decline a pending invite."""
    share = await share_service.respond_to_invite(share_id, user["_id"], body.status)
    return success_response(share)


@router.get("/reports")
async def list_shared_reports(
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_psychologist)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Children whose reports were shared and accepted."""
    reports = await share_service.list_accepted_reports(user["_id"])
    return success_response({"reports": reports})


@router.get("/reports/{share_id}/weekly")
async def get_shared_weekly_report(
    share_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_psychologist)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
    weekly_aggregator: Annotated[WeeklyAggregator, Depends(get_weekly_aggregator)],
    date: Optional[str] = Query(default=None, description="Any day of the wanted week"),
):
    """Weekly report of a child, through an accepted share only."""
    report = await sharing_pipeline.get_shared_weekly_report_pipeline(
        child_service=child_service,
        share_service=share_service,
        weekly_aggregator=weekly_aggregator,
        psychologist_id=user["_id"],
        share_id=share_id,
        reference=parse_reference_day(date)
    )

    return success_response(report)
