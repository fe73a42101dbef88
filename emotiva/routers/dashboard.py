"""
FastAPI router for the dashboard.

Returns the role-specific dashboard in one call, and as a live
server-sent event stream for guardians.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils import success_response, error_response
from common.utils.exceptions import UnauthorizedException
from emotiva.config import Settings
from emotiva.context import AppContext, ROLE_GUARDIAN
from emotiva.dependencies import (
    get_app_context,
    get_settings,
    get_db,
    get_profile_service,
    get_child_service,
    get_notification_service,
    get_alert_evaluator,
    get_school_service,
    get_share_service,
)
from emotiva.database import CHILDREN
from emotiva.pipelines.dashboard import (
    IdentityResolutionError,
    load_dashboard_pipeline,
    dashboard_stream_pipeline,
    format_event,
    watch_guardian_children,
)
from emotiva.services.checkin.alert_evaluator import AlertEvaluator
from emotiva.services.children.child_service import ChildService
from emotiva.services.notifications.notification_service import NotificationService
from emotiva.services.profile.profile_service import ProfileService
from emotiva.services.school.school_service import SchoolService
from emotiva.services.sharing.share_service import ShareService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


class DashboardLoader:
    """Runs the dashboard pipeline for one request context."""

    def __init__(
        self,
        profile_service: Annotated[ProfileService, Depends(get_profile_service)],
        child_service: Annotated[ChildService, Depends(get_child_service)],
        notification_service: Annotated[NotificationService, Depends(get_notification_service)],
        alert_evaluator: Annotated[AlertEvaluator, Depends(get_alert_evaluator)],
        school_service: Annotated[SchoolService, Depends(get_school_service)],
        share_service: Annotated[ShareService, Depends(get_share_service)],
        app_settings: Annotated[Settings, Depends(get_settings)],
    ):
        self.profile_service = profile_service
        self.child_service = child_service
        self.notification_service = notification_service
        self.alert_evaluator = alert_evaluator
        self.school_service = school_service
        self.share_service = share_service
        self.app_settings = app_settings

    def for_context(self, ctx: AppContext):
        async def load():
            return await load_dashboard_pipeline(
                ctx,
                profile_service=self.profile_service,
                child_service=self.child_service,
                notification_service=self.notification_service,
                alert_evaluator=self.alert_evaluator,
                school_service=self.school_service,
                share_service=self.share_service,
                notification_limit=self.app_settings.DASHBOARD_NOTIFICATION_LIMIT,
            )

        return load


@router.get("/dashboard")
async def get_dashboard(
    ctx: Annotated[AppContext, Depends(get_app_context)],
    loader: Annotated[DashboardLoader, Depends()],
):
    """
    Get the dashboard for the current identity.

    Query:
        childId: Child to select (guardians); falls back to the first child
    """
    try:
        state = await loader.for_context(ctx)()
    except IdentityResolutionError as e:
        raise UnauthorizedException(message=str(e), code="AUTH_REQUIRED")

    return success_response(state.to_dict())


@router.get("/dashboard/stream")
async def stream_dashboard(
    ctx: Annotated[AppContext, Depends(get_app_context)],
    loader: Annotated[DashboardLoader, Depends()],
    db: Annotated[AsyncIOMotorDatabase, Depends(get_db)],
):
    """
    Stream the dashboard as server-sent events.

    Guardians receive a fresh dashboard whenever one of their children
    is added, edited or removed.
    """
    load = loader.for_context(ctx)
    children_collection = db[CHILDREN]

    def open_changes():
        # Role is known only after the first load
        if ctx.role != ROLE_GUARDIAN:
            return None
        return watch_guardian_children(children_collection, ctx.user_id)

    async def generate():
        try:
            async for event in dashboard_stream_pipeline(
                load,
                open_changes=open_changes,
                keepalive_seconds=loader.app_settings.STREAM_KEEPALIVE_SECONDS,
            ):
                yield event
        except IdentityResolutionError as e:
            yield format_event("error", error_response(str(e), code="AUTH_REQUIRED"))

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "X-Accel-Buffering": "no",
        },
    )
