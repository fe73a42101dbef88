"""
Dashboard pipeline.

Loads everything the role-specific dashboard shows in one pass. Each stage
after the profile degrades to an empty widget on failure and records its
name in the result's errors, so one failing query never blanks the page.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Callable, Awaitable, AsyncIterator

from pymongo.errors import PyMongoError

from emotiva.context import AppContext, ROLE_GUARDIAN, ROLE_SCHOOL, ROLE_PSYCHOLOGIST
from emotiva.pipelines.checkin import format_alert
from emotiva.services.checkin.alert_evaluator import AlertEvaluator
from emotiva.services.children.child_service import ChildService
from emotiva.services.notifications.notification_service import NotificationService
from emotiva.services.profile.profile_service import ProfileService, format_profile
from emotiva.services.school.school_service import SchoolService
from emotiva.services.sharing.share_service import ShareService

logger = logging.getLogger(__name__)


STATUS_READY = "ready"
STATUS_ERROR = "error"

STAGE_PROFILE = "profile"
STAGE_CHILDREN = "children"
STAGE_NOTIFICATIONS = "notifications"
STAGE_ALERTS = "alerts"
STAGE_SCHOOL = "school"
STAGE_PSYCHOLOGIST = "psychologist"


class IdentityResolutionError(Exception):
    """No authenticated identity for the request."""


class ProfileLoadError(Exception):
    """The identity has no readable profile."""


@dataclass
class DashboardState:
    status: str
    role: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    children: List[Dict[str, Any]] = field(default_factory=list)
    selected_child: Optional[Dict[str, Any]] = None
    notifications: List[Dict[str, Any]] = field(default_factory=list)
    alerts: List[Dict[str, Any]] = field(default_factory=list)
    school: Optional[Dict[str, Any]] = None
    psychologist: Optional[Dict[str, Any]] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "role": self.role,
            "profile": self.profile,
            "children": self.children,
            "selectedChild": self.selected_child,
            "notifications": self.notifications,
            "alerts": self.alerts,
            "school": self.school,
            "psychologist": self.psychologist,
            "errors": self.errors,
        }


async def _load_profile(profile_service: ProfileService, user_id: str) -> Dict[str, Any]:
    try:
        profile = await profile_service.get_profile(user_id)
    except PyMongoError as e:
        raise ProfileLoadError(f"Profile query failed: {e}") from e

    if not profile:
        raise ProfileLoadError(f"No profile for {user_id}")

    return format_profile(profile)


async def load_dashboard_pipeline(
    ctx: Optional[AppContext],
    profile_service: ProfileService,
    child_service: ChildService,
    notification_service: NotificationService,
    alert_evaluator: AlertEvaluator,
    school_service: SchoolService,
    share_service: ShareService,
    notification_limit: int = 10
) -> DashboardState:
    """
    Orchestrates the dashboard load for the identity in ctx.

    Args:
        ctx: Request context; its selected child is updated in place
        notification_limit: How many recent notifications to include

    Returns:
        DashboardState, with status "error" when the profile is unavailable

    Raises:
        IdentityResolutionError: ctx carries no identity
    """
    if ctx is None or not ctx.user_id:
        raise IdentityResolutionError("Authentication required")

    try:
        ctx.profile = await _load_profile(profile_service, ctx.user_id)
    except ProfileLoadError as e:
        logger.error(f"Dashboard profile stage failed for {ctx.user_id}: {e}")
        return DashboardState(status=STATUS_ERROR, errors=[STAGE_PROFILE])

    state = DashboardState(status=STATUS_READY, role=ctx.role, profile=ctx.profile)

    if ctx.role == ROLE_GUARDIAN:
        try:
            children = await child_service.list_children(ctx.user_id)
        except PyMongoError as e:
            logger.warning(f"Dashboard children stage failed for {ctx.user_id}: {e}")
            children = []
            state.errors.append(STAGE_CHILDREN)

        state.selected_child = ctx.select_child(children)
        state.children = children

    try:
        state.notifications = await notification_service.get_recent(
            ctx.user_id, limit=notification_limit
        )
    except PyMongoError as e:
        logger.warning(f"Dashboard notifications stage failed for {ctx.user_id}: {e}")
        state.errors.append(STAGE_NOTIFICATIONS)

    if ctx.role == ROLE_GUARDIAN:
        try:
            alerts = await alert_evaluator.evaluate_children(state.children)
            state.alerts = [format_alert(a) for a in alerts]
        except Exception as e:
            logger.warning(f"Dashboard alerts stage failed for {ctx.user_id}: {e}")
            state.errors.append(STAGE_ALERTS)

    elif ctx.role == ROLE_SCHOOL:
        try:
            state.school = await school_service.get_summary(ctx.user_id)
        except PyMongoError as e:
            logger.warning(f"Dashboard school stage failed for {ctx.user_id}: {e}")
            state.school = {"classCount": 0, "studentCount": 0}
            state.errors.append(STAGE_SCHOOL)

    elif ctx.role == ROLE_PSYCHOLOGIST:
        try:
            state.psychologist = {
                "pendingInvites": await share_service.list_pending_invites(ctx.user_id),
                "sharedReports": await share_service.list_accepted_reports(ctx.user_id),
            }
        except PyMongoError as e:
            logger.warning(f"Dashboard psychologist stage failed for {ctx.user_id}: {e}")
            state.psychologist = {"pendingInvites": [], "sharedReports": []}
            state.errors.append(STAGE_PSYCHOLOGIST)

    logger.debug(f"Dashboard loaded for {ctx.user_id} ({ctx.role}), degraded: {state.errors}")
    return state


# =============================================================================
# Live updates
# =============================================================================

def format_event(event: str, data: Dict[str, Any]) -> str:
    """Encode one server-sent event."""
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


def watch_guardian_children(children_collection, guardian_id: str):
    """
    Open a change stream on a guardian's children.

    Deletes carry no document body, so every delete is passed through and
    simply causes one extra reload.
    """
    pipeline = [
        {"$match": {
            "$or": [
                {"fullDocument.guardianId": guardian_id},
                {"operationType": "delete"},
            ]
        }}
    ]
    return children_collection.watch(pipeline=pipeline, full_document="updateLookup")


async def dashboard_stream_pipeline(
    load: Callable[[], Awaitable[DashboardState]],
    open_changes: Optional[Callable[[], Any]] = None,
    keepalive_seconds: float = 15
) -> AsyncIterator[str]:
    """
    Stream the dashboard as server-sent events.

    Emits the initial load. After a successful load, subscribes to changes
    (when open_changes returns a stream) and emits a full reload for each
    one, with keepalive comments while idle. The change stream is closed when
    the client goes away; a reload already running is allowed to finish.

    Args:
        load: Runs the full dashboard load
        open_changes: Opens the change stream to follow, or returns None
            when there is nothing to follow
        keepalive_seconds: Idle interval between keepalive comments
    """
    state = await load()
    yield format_event("dashboard", state.to_dict())

    if state.status != STATUS_READY or open_changes is None:
        return

    change_stream = open_changes()
    if change_stream is None:
        return

    changes = change_stream.__aiter__()
    pending_next = None

    try:
        while True:
            if pending_next is None:
                pending_next = asyncio.ensure_future(changes.__anext__())

            done, _ = await asyncio.wait({pending_next}, timeout=keepalive_seconds)

            if not done:
                yield ": keepalive\n\n"
                continue

            try:
                change = pending_next.result()
            except StopAsyncIteration:
                break
            except PyMongoError as e:
                logger.warning(f"Dashboard change stream stopped: {e}")
                break
            finally:
                pending_next = None

            logger.debug(f"Dashboard change: {change.get('operationType')}")
            state = await asyncio.shield(load())
            yield format_event("dashboard", state.to_dict())
    finally:
        if pending_next is not None and not pending_next.done():
            pending_next.cancel()
        await change_stream.close()
        logger.debug("Dashboard change stream closed")
