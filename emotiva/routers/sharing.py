"""
Report sharing API endpoints (guardian side).
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from emotiva.dependencies import (
    require_auth,
    require_guardian,
    require_premium,
    get_child_service,
    get_share_service,
)
from emotiva.pipelines import sharing as sharing_pipeline
from emotiva.schemas.sharing import ShareRequest
from emotiva.services.children.child_service import ChildService
from emotiva.services.sharing.share_service import ShareService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sharing"])


@router.post("/children/{child_id}/shares", status_code=201)
async def share_child_reports(
    child_id: str,
    body: ShareRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_premium)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """
    Invite a psychologist, by public code, to follow the child's reports.

    Returns 404 for an unknown code and 409 if a pending or accepted
    share already exists.
    """
    share = await sharing_pipeline.share_child_pipeline(
        child_service=child_service,
        share_service=share_service,
        guardian_id=user["_id"],
        child_id=child_id,
        psychologist_code=body.psychologistCode
    )

    return success_response(share, message="Invitation sent")


@router.get("/children/{child_id}/shares")
async def list_child_shares(
    child_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """List pending and accepted shares of a child."""
    shares = await sharing_pipeline.list_child_shares_pipeline(
        child_service=child_service,
        share_service=share_service,
        guardian_id=user["_id"],
        child_id=child_id
    )

    return success_response({"shares": shares})


@router.post("/shares/{share_id}/revoke")
async def revoke_share(
    share_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    share = await share_service.revoke_share(share_id, user["_id"])
    return success_response(share, message="Access revoked")
