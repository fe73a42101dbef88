"""
Report sharing services.
"""

from emotiva.services.sharing.share_service import (
    ShareService,
    STATUS_PENDING,
    STATUS_ACCEPTED,
    STATUS_DECLINED,
    STATUS_REVOKED,
)

__all__ = [
    "ShareService",
    "STATUS_PENDING",
    "STATUS_ACCEPTED",
    "STATUS_DECLINED",
    "STATUS_REVOKED",
]
