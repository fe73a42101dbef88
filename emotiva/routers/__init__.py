"""
Emotiva API Routers.

All routers are imported here for easy access.
"""

from emotiva.routers.dashboard import router as dashboard_router
from emotiva.routers.profile import router as profile_router
from emotiva.routers.children import router as children_router
from emotiva.routers.checkin import router as checkin_router
from emotiva.routers.sharing import router as sharing_router
from emotiva.routers.psychologists import router as psychologists_router
from emotiva.routers.schools import router as schools_router
from emotiva.routers.notifications import router as notifications_router
from emotiva.routers.subscription import router as subscription_router

__all__ = [
    "dashboard_router",
    "profile_router",
    "children_router",
    "checkin_router",
    "sharing_router",
    "psychologists_router",
    "schools_router",
    "notifications_router",
    "subscription_router",
]
