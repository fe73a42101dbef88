"""
FastAPI dependencies for the Emotiva application.

Provides dependency injection for all services.
"""

from typing import Annotated, Optional, Dict, Any

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth.jwt_auth import JWTAuth
from common.utils.exceptions import ForbiddenException, PaymentRequiredException
from emotiva.config import Settings, settings as default_settings
from emotiva.context import AppContext, ROLE_GUARDIAN
from emotiva.middleware.auth import AuthMiddleware

# Check-in services
from emotiva.services.checkin.checkin_service import CheckInService
from emotiva.services.checkin.alert_evaluator import AlertEvaluator
from emotiva.services.checkin.weekly_aggregator import WeeklyAggregator

# Account services
from emotiva.services.profile.profile_service import ProfileService
from emotiva.services.children.child_service import ChildService
from emotiva.services.notifications.notification_service import NotificationService

# Sharing, schools and billing
from emotiva.services.sharing.share_service import ShareService
from emotiva.services.school.school_service import SchoolService
from emotiva.services.subscription.subscription_service import SubscriptionService


# =============================================================================
# Global service instances (initialized at startup)
# =============================================================================

_db: Optional[AsyncIOMotorDatabase] = None
_settings: Settings = default_settings

# Auth
_auth_middleware: Optional[AuthMiddleware] = None

# Check-in
_checkin_service: Optional[CheckInService] = None
_alert_evaluator: Optional[AlertEvaluator] = None
_weekly_aggregator: Optional[WeeklyAggregator] = None

# Accounts
_profile_service: Optional[ProfileService] = None
_child_service: Optional[ChildService] = None
_notification_service: Optional[NotificationService] = None

# Sharing, schools and billing
_share_service: Optional[ShareService] = None
_school_service: Optional[SchoolService] = None
_subscription_service: Optional[SubscriptionService] = None


# =============================================================================
# Initialization
# =============================================================================

def init_auth_services(app_settings: Settings) -> None:
    """Initialize token verification."""
    global _auth_middleware

    auth_provider = JWTAuth(
        secret=app_settings.JWT_SECRET,
        algorithm=app_settings.JWT_ALGORITHM,
        audience=app_settings.JWT_AUDIENCE,
    )
    _auth_middleware = AuthMiddleware(auth_provider)


def init_checkin_services(db: AsyncIOMotorDatabase, app_settings: Settings) -> None:
    """Initialize check-in storage, alerts and weekly reports."""
    global _checkin_service, _alert_evaluator, _weekly_aggregator

    tz = app_settings.get_timezone()

    _checkin_service = CheckInService(db, tz)
    _alert_evaluator = AlertEvaluator(
        _checkin_service,
        tz,
        lookback_days=app_settings.ALERT_LOOKBACK_DAYS
    )
    _weekly_aggregator = WeeklyAggregator(_checkin_service, tz)


def init_account_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize profiles, children and notifications."""
    global _profile_service, _child_service, _notification_service

    _profile_service = ProfileService(db)
    _child_service = ChildService(db, _checkin_service)
    _notification_service = NotificationService(db)


def init_sharing_services(db: AsyncIOMotorDatabase) -> None:
    global _share_service

    _share_service = ShareService(
        db,
        child_service=_child_service,
        profile_service=_profile_service,
        notification_service=_notification_service
    )


def init_school_services(db: AsyncIOMotorDatabase) -> None:
    global _school_service

    _school_service = SchoolService(db)


def init_subscription_services(db: AsyncIOMotorDatabase, app_settings: Settings) -> None:
    global _subscription_service

    _subscription_service = SubscriptionService(
        db,
        period_days=app_settings.SUBSCRIPTION_PERIOD_DAYS,
        tier=app_settings.SUBSCRIPTION_TIER
    )


def init_all_services(
    db: AsyncIOMotorDatabase,
    app_settings: Optional[Settings] = None
) -> None:
    """
    Initialize all services at application startup.

    Args:
        db: Main MongoDB database connection
        app_settings: Settings override (defaults to the global settings)
    """
    global _db, _settings

    _db = db
    _settings = app_settings or default_settings

    init_auth_services(_settings)
    init_checkin_services(db, _settings)
    init_account_services(db)
    init_sharing_services(db)
    init_school_services(db)
    init_subscription_services(db, _settings)


# =============================================================================
# Getters
# =============================================================================

def get_db() -> AsyncIOMotorDatabase:
    """Get main database connection."""
    if _db is None:
        raise RuntimeError("Database not initialized.")
    return _db


def get_settings() -> Settings:
    return _settings


def get_auth_middleware() -> AuthMiddleware:
    """Get auth middleware instance."""
    if _auth_middleware is None:
        raise RuntimeError("Auth services not initialized.")
    return _auth_middleware


def get_checkin_service() -> CheckInService:
    """Get check-in service instance."""
    if _checkin_service is None:
        raise RuntimeError("Check-in services not initialized.")
    return _checkin_service


def get_alert_evaluator() -> AlertEvaluator:
    """Get alert evaluator instance."""
    if _alert_evaluator is None:
        raise RuntimeError("Check-in services not initialized.")
    return _alert_evaluator


def get_weekly_aggregator() -> WeeklyAggregator:
    """Get weekly aggregator instance."""
    if _weekly_aggregator is None:
        raise RuntimeError("Check-in services not initialized.")
    return _weekly_aggregator


def get_profile_service() -> ProfileService:
    """Get profile service instance."""
    if _profile_service is None:
        raise RuntimeError("Account services not initialized.")
    return _profile_service


def get_child_service() -> ChildService:
    """Get child service instance."""
    if _child_service is None:
        raise RuntimeError("Account services not initialized.")
    return _child_service


def get_notification_service() -> NotificationService:
    """Get notification service instance."""
    if _notification_service is None:
        raise RuntimeError("Account services not initialized.")
    return _notification_service


def get_share_service() -> ShareService:
    """Get share service instance."""
    if _share_service is None:
        raise RuntimeError("Sharing services not initialized.")
    return _share_service


def get_school_service() -> SchoolService:
    """Get school service instance."""
    if _school_service is None:
        raise RuntimeError("School services not initialized.")
    return _school_service


def get_subscription_service() -> SubscriptionService:
    """Get subscription service instance."""
    if _subscription_service is None:
        raise RuntimeError("Subscription services not initialized.")
    return _subscription_service


# =============================================================================
# Request dependencies
# =============================================================================

async def require_auth(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)]
) -> dict:
    """Dependency that requires authentication."""
    return await auth_middleware.require_auth(request)


async def require_profile(
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)]
) -> Dict[str, Any]:
    """Dependency that requires a completed profile."""
    profile = await profile_service.get_profile(user["_id"])
    if not profile:
        raise ForbiddenException(
            message="Complete your profile first",
            code="PROFILE_REQUIRED"
        )
    return profile


def require_role(role: str):
    """
    Build a dependency that only lets one profile role through.

    Usage:
        @router.get("/schools/classes")
        async def list_classes(profile: Annotated[dict, Depends(require_role(ROLE_SCHOOL))]):
            ...
    """
    async def dependency(
        profile: Annotated[Dict[str, Any], Depends(require_profile)]
    ) -> Dict[str, Any]:
        if profile.get("role") != role:
            raise ForbiddenException(
                message=f"This action requires the {role} role",
                code="ROLE_REQUIRED",
                details={"role": role}
            )
        return profile

    return dependency


require_guardian = require_role(ROLE_GUARDIAN)


async def require_premium(
    user: Annotated[dict, Depends(require_auth)],
    profile: Annotated[Dict[str, Any], Depends(require_guardian)],
    subscription_service: Annotated[SubscriptionService, Depends(get_subscription_service)],
    app_settings: Annotated[Settings, Depends(get_settings)]
) -> Dict[str, Any]:
    """Dependency for guardian features behind the paywall."""
    if not app_settings.PAYWALL_ENABLED:
        return profile

    email = user.get("email") or profile.get("email")
    if not await subscription_service.can_access_premium(email):
        raise PaymentRequiredException(
            message="This feature requires a Premium subscription"
        )
    return profile


async def get_app_context(
    user: Annotated[dict, Depends(require_auth)],
    childId: Optional[str] = None
) -> AppContext:
    """Build the per-request context; the child selection comes from the query."""
    return AppContext(
        user_id=user["_id"],
        email=user.get("email"),
        selected_child_id=childId
    )
