"""
Report sharing service.

Guardians invite a psychologist (found by public code) to follow a child's
reports. Psychologists accept or decline; guardians may revoke.
"""

import logging
import secrets
import string
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from common.utils.exceptions import (
    ValidationException,
    NotFoundException,
    ConflictException,
)
from emotiva.database import SHARED_REPORTS, PSYCHOLOGISTS
from emotiva.services.children.child_service import ChildService
from emotiva.services.profile.profile_service import ProfileService
from emotiva.services.notifications.notification_service import NotificationService
from emotiva.services.object_ids import parse_object_id, isoformat

logger = logging.getLogger(__name__)


STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_DECLINED = "declined"
STATUS_REVOKED = "revoked"

ACTIVE_STATUSES = [STATUS_PENDING, STATUS_ACCEPTED]
RESPONSE_STATUSES = [STATUS_ACCEPTED, STATUS_DECLINED]

DEFAULT_GUARDIAN_NAME = "Guardian"


def format_psychologist(psychologist: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(psychologist["_id"]),
        "userId": psychologist["userId"],
        "name": psychologist.get("name"),
        "code": psychologist["code"],
        "specialty": psychologist.get("specialty"),
        "licenseNumber": psychologist.get("licenseNumber"),
    }


def format_share(share: Dict[str, Any]) -> Dict[str, Any]:
    """Format shared report document for API response."""
    return {
        "id": str(share["_id"]),
        "childId": str(share["childId"]),
        "guardianId": share["guardianId"],
        "psychologistId": share["psychologistId"],
        "status": share["status"],
        "createdAt": isoformat(share.get("createdAt")),
        "updatedAt": isoformat(share.get("updatedAt")),
    }


class ShareService:
    """
    Manages psychologists and the reports shared with them.
    """

    CODE_PREFIX = "PSI-"
    CODE_LENGTH = 6
    CODE_ALPHABET = string.ascii_uppercase + string.digits
    MAX_CODE_ATTEMPTS = 5

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        child_service: ChildService,
        profile_service: ProfileService,
        notification_service: NotificationService
    ):
        self._db = db
        self._shares_collection = db[SHARED_REPORTS]
        self._psychologists_collection = db[PSYCHOLOGISTS]
        self._child_service = child_service
        self._profile_service = profile_service
        self._notification_service = notification_service

    # ─────────────────────────────────────────────────────────────────
    # Psychologists
    # ─────────────────────────────────────────────────────────────────

    @classmethod
    def generate_code(cls) -> str:
        suffix = "".join(secrets.choice(cls.CODE_ALPHABET) for _ in range(cls.CODE_LENGTH))
        return f"{cls.CODE_PREFIX}{suffix}"

    async def register_psychologist(
        self,
        user_id: str,
        name: str,
        specialty: str,
        license_number: str
    ) -> Dict[str, Any]:
        """
        Create the psychologist record with a fresh public share code.

        Raises:
            ValidationException: Missing required fields
            ConflictException: Already registered
        """
        if not name or not name.strip():
            raise ValidationException(message="Name is required")
        if not specialty or not specialty.strip():
            raise ValidationException(message="Specialty is required")
        if not license_number or not license_number.strip():
            raise ValidationException(message="License number is required")

        if await self._psychologists_collection.find_one({"userId": user_id}):
            raise ConflictException(
                message="Psychologist already registered",
                code="PSYCHOLOGIST_EXISTS"
            )

        doc = {
            "userId": user_id,
            "name": name.strip(),
            "specialty": specialty.strip(),
            "licenseNumber": license_number.strip(),
            "createdAt": datetime.now(timezone.utc),
        }

        for _ in range(self.MAX_CODE_ATTEMPTS):
            doc["code"] = self.generate_code()
            doc.pop("_id", None)
            try:
                result = await self._psychologists_collection.insert_one(doc)
            except DuplicateKeyError:
                # Either the code collided or a concurrent registration won
                if await self._psychologists_collection.find_one({"userId": user_id}):
                    raise ConflictException(
                        message="Psychologist already registered",
                        code="PSYCHOLOGIST_EXISTS"
                    )
                continue
            doc["_id"] = result.inserted_id
            logger.info(f"Registered psychologist {user_id} with code {doc['code']}")
            return format_psychologist(doc)

        raise ConflictException(
            message="Could not allocate a psychologist code",
            code="CODE_ALLOCATION_FAILED"
        )

    async def get_psychologist(self, user_id: str) -> Dict[str, Any]:
        psychologist = await self._psychologists_collection.find_one({"userId": user_id})
        if not psychologist:
            raise NotFoundException(
                message="Psychologist not found",
                code="PSYCHOLOGIST_NOT_FOUND"
            )
        return format_psychologist(psychologist)

    # ─────────────────────────────────────────────────────────────────
    # Guardian side
    # ─────────────────────────────────────────────────────────────────

    async def share_with_psychologist(
        self,
        child: Dict[str, Any],
        guardian_id: str,
        psychologist_code: str
    ) -> Dict[str, Any]:
        """
        Invite a psychologist to follow a child's reports.

        Args:
            child: Formatted child owned by the guardian
            guardian_id: Inviting guardian
            psychologist_code: Public code, case-insensitive

        Returns:
            Created share with the psychologist's name

        Raises:
            ValidationException: Empty code
            NotFoundException: Unknown code
            ConflictException: A pending or accepted share already exists
        """
        code = (psychologist_code or "").strip().upper()
        if not code:
            raise ValidationException(message="Psychologist code is required")

        psychologist = await self._psychologists_collection.find_one({"code": code})
        if not psychologist:
            raise NotFoundException(
                message="Psychologist not found. Check the code and try again.",
                code="PSYCHOLOGIST_NOT_FOUND"
            )

        existing = await self._shares_collection.find_one({
            "childId": parse_object_id(child["id"]),
            "psychologistId": psychologist["userId"],
            "status": {"$in": ACTIVE_STATUSES}
        })
        if existing:
            raise ConflictException(
                message=f"There is already a {existing['status']} share with this psychologist",
                code="SHARE_EXISTS",
                details={"status": existing["status"]}
            )

        now = datetime.now(timezone.utc)
        share_doc = {
            "childId": parse_object_id(child["id"]),
            "guardianId": guardian_id,
            "psychologistId": psychologist["userId"],
            "status": STATUS_PENDING,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self._shares_collection.insert_one(share_doc)
        share_doc["_id"] = result.inserted_id

        try:
            await self._notification_service.create_notification(
                recipient_id=psychologist["userId"],
                message=(
                    f"New invitation to follow {child['name']}. "
                    "Open your notifications to accept or decline."
                )
            )
        except PyMongoError as e:
            logger.warning(f"Failed to notify psychologist {psychologist['userId']}: {e}")

        logger.info(f"Child {child['id']} shared with psychologist {psychologist['userId']}")
        share = format_share(share_doc)
        share["psychologist"] = {"name": psychologist.get("name"), "code": psychologist["code"]}
        return share

    async def list_active_shares(self, child_id: str) -> List[Dict[str, Any]]:
        """
        List pending and accepted shares of a child, newest first,
        with the psychologist's public details.
        """
        cursor = self._shares_collection.find({
            "childId": parse_object_id(child_id),
            "status": {"$in": ACTIVE_STATUSES}
        })
        cursor = cursor.sort("createdAt", -1)
        shares = await cursor.to_list(length=None)

        user_ids = list({share["psychologistId"] for share in shares})
        psychologists: Dict[str, Dict[str, Any]] = {}
        if user_ids:
            psych_cursor = self._psychologists_collection.find({"userId": {"$in": user_ids}})
            for psychologist in await psych_cursor.to_list(length=None):
                psychologists[psychologist["userId"]] = psychologist

        formatted = []
        for share in shares:
            item = format_share(share)
            psychologist = psychologists.get(share["psychologistId"])
            item["psychologist"] = {
                "name": psychologist.get("name"),
                "code": psychologist.get("code"),
                "specialty": psychologist.get("specialty"),
            } if psychologist else None
            formatted.append(item)

        return formatted

    async def revoke_share(self, share_id: str, guardian_id: str) -> Dict[str, Any]:
        """
        Revoke an active share owned by the guardian.
        """
        share = await self._find_share({
            "_id": parse_object_id(share_id),
            "guardianId": guardian_id,
            "status": {"$in": ACTIVE_STATUSES}
        })

        return await self._set_status(share, STATUS_REVOKED)

    # ─────────────────────────────────────────────────────────────────
    # Psychologist side
    # ─────────────────────────────────────────────────────────────────

    async def list_pending_invites(self, psychologist_id: str) -> List[Dict[str, Any]]:
        """
        Pending invites for a psychologist, newest first, with the child's
        name and age and the guardian's name.
        """
        return await self._list_for_psychologist(psychologist_id, STATUS_PENDING)

    async def list_accepted_reports(self, psychologist_id: str) -> List[Dict[str, Any]]:
        """Accepted shares for a psychologist, newest first."""
        return await self._list_for_psychologist(psychologist_id, STATUS_ACCEPTED)

    async def respond_to_invite(
        self,
        share_id: str,
        psychologist_id: str,
        status: str
    ) -> Dict[str, Any]:
        """
        Accept or decline a pending invite and tell the guardian.

        Raises:
            ValidationException: status is not accepted/declined
            NotFoundException: No pending invite with that id for this psychologist
        """
        if status not in RESPONSE_STATUSES:
            raise ValidationException(
                message=f"Status must be one of: {', '.join(RESPONSE_STATUSES)}"
            )

        share = await self._find_share({
            "_id": parse_object_id(share_id),
            "psychologistId": psychologist_id,
            "status": STATUS_PENDING
        })
        updated = await self._set_status(share, status)

        child = await self._child_service.find_child(str(share["childId"]))
        child_name = child["name"] if child else "your child"
        verb = "accepted" if status == STATUS_ACCEPTED else "declined"
        try:
            await self._notification_service.create_notification(
                recipient_id=share["guardianId"],
                message=f"Your invitation to share {child_name}'s reports was {verb}."
            )
        except PyMongoError as e:
            logger.warning(f"Failed to notify guardian {share['guardianId']}: {e}")

        return updated

    async def get_accepted_share(self, share_id: str, psychologist_id: str) -> Dict[str, Any]:
        """
        Get an accepted share for the psychologist.

        Raises:
            NotFoundException: Unknown, not accepted, or shared with someone else
        """
        share = await self._find_share({
            "_id": parse_object_id(share_id),
            "psychologistId": psychologist_id,
            "status": STATUS_ACCEPTED
        })
        return format_share(share)

    async def count_for_psychologist(self, psychologist_id: str, status: str) -> int:
        return await self._shares_collection.count_documents({
            "psychologistId": psychologist_id,
            "status": status
        })

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _find_share(self, query: Dict[str, Any]) -> Dict[str, Any]:
        share = None
        if query.get("_id") is not None:
            share = await self._shares_collection.find_one(query)

        if not share:
            raise NotFoundException(
                message="Shared report not found",
                code="SHARE_NOT_FOUND"
            )
        return share

    async def _set_status(self, share: Dict[str, Any], status: str) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        await self._shares_collection.update_one(
            {"_id": share["_id"]},
            {"$set": {"status": status, "updatedAt": now}}
        )

        share["status"] = status
        share["updatedAt"] = now
        logger.info(f"Shared report {share['_id']} set to {status}")
        return format_share(share)

    async def _list_for_psychologist(
        self,
        psychologist_id: str,
        status: str
    ) -> List[Dict[str, Any]]:
        cursor = self._shares_collection.find({
            "psychologistId": psychologist_id,
            "status": status
        })
        cursor = cursor.sort("createdAt", -1)
        shares = await cursor.to_list(length=None)

        guardian_names = await self._profile_service.get_names(
            [share["guardianId"] for share in shares]
        )

        formatted = []
        for share in shares:
            item = format_share(share)
            child = await self._child_service.find_child(str(share["childId"]))
            item["child"] = {"name": child["name"], "age": child["age"]} if child else None
            item["guardianName"] = guardian_names.get(share["guardianId"], DEFAULT_GUARDIAN_NAME)
            formatted.append(item)

        return formatted
