"""
Profile service.

Profiles are keyed by the identity id issued by the identity provider and
carry the role that decides which dashboard a user gets.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import ValidationException
from emotiva.context import ROLES
from emotiva.database import PROFILES
from emotiva.services.object_ids import isoformat

logger = logging.getLogger(__name__)


def format_profile(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Format profile document for API response."""
    return {
        "id": str(profile["_id"]),
        "name": profile.get("name"),
        "email": profile.get("email"),
        "role": profile.get("role"),
        "createdAt": isoformat(profile.get("createdAt")),
    }


class ProfileService:
    """
    Reads and saves user profiles.
    """

    MAX_NAME_LENGTH = 100

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db
        self._profiles_collection = db[PROFILES]

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a user's profile.

        Args:
            user_id: Identity id

        Returns:
            Profile document or None
        """
        return await self._profiles_collection.find_one({"_id": user_id})

    async def get_names(self, user_ids: list) -> Dict[str, str]:
        """Map identity ids to profile names (missing names are left out)."""
        if not user_ids:
            return {}

        cursor = self._profiles_collection.find(
            {"_id": {"$in": list(set(user_ids))}},
            {"name": 1}
        )
        profiles = await cursor.to_list(length=None)
        return {p["_id"]: p["name"] for p in profiles if p.get("name")}

    async def save_profile(
        self,
        user_id: str,
        email: Optional[str],
        name: str,
        role: str
    ) -> Dict[str, Any]:
        """
        Create or update the caller's profile.

        Raises:
            ValidationException: Missing name or unknown role
        """
        if not name or not name.strip():
            raise ValidationException(message="Name is required")
        if len(name.strip()) > self.MAX_NAME_LENGTH:
            raise ValidationException(message=f"Name cannot exceed {self.MAX_NAME_LENGTH} characters")
        if role not in ROLES:
            raise ValidationException(message=f"Role must be one of: {', '.join(ROLES)}")

        now = datetime.now(timezone.utc)
        profile = await self._profiles_collection.find_one_and_update(
            {"_id": user_id},
            {
                "$set": {"name": name.strip(), "email": email, "role": role},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
            return_document=True
        )

        logger.info(f"Saved profile {user_id} with role {role}")
        return format_profile(profile)
