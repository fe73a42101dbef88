"""
Report sharing pipeline functions.

Guardian-side calls verify ownership of the child; psychologist-side
calls only reach a child through an accepted share.
"""

import logging
from datetime import date
from typing import Optional, Dict, Any, List

from common.utils.exceptions import NotFoundException
from emotiva.services.children.child_service import ChildService
from emotiva.services.sharing.share_service import ShareService
from emotiva.services.checkin.weekly_aggregator import WeeklyAggregator

logger = logging.getLogger(__name__)


async def share_child_pipeline(
    child_service: ChildService,
    share_service: ShareService,
    guardian_id: str,
    child_id: str,
    psychologist_code: str
) -> Dict[str, Any]:
    child = await child_service.get_child(child_id, guardian_id)

    return await share_service.share_with_psychologist(child, guardian_id, psychologist_code)


async def list_child_shares_pipeline(
    child_service: ChildService,
    share_service: ShareService,
    guardian_id: str,
    child_id: str
) -> List[Dict[str, Any]]:
    await child_service.get_child(child_id, guardian_id)

    return await share_service.list_active_shares(child_id)


async def get_shared_weekly_report_pipeline(
    child_service: ChildService,
    share_service: ShareService,
    weekly_aggregator: WeeklyAggregator,
    psychologist_id: str,
    share_id: str,
    reference: Optional[date] = None
) -> Dict[str, Any]:
    """
    Weekly report of a child shared with the psychologist.

    Raises:
        NotFoundException: No accepted share, or the child no longer exists
    """
    share = await share_service.get_accepted_share(share_id, psychologist_id)

    child = await child_service.find_child(share["childId"])
    if not child:
        logger.warning(f"Accepted share {share_id} points to missing child {share['childId']}")
        raise NotFoundException(
            message="Child not found",
            code="CHILD_NOT_FOUND"
        )

    return await weekly_aggregator.build_report(child, reference)
