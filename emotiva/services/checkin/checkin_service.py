"""
Check-in CRUD service.

Handles check-in storage and retrieval operations.
"""

import logging
from datetime import datetime, timezone, date
from typing import Optional, List, Dict, Any

import pytz
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import ValidationException, ConflictException
from emotiva.database import CHECKINS
from emotiva.services.checkin.checkin_validator import CheckInValidator
from emotiva.services.checkin.dates import (
    parse_day,
    format_day,
    parse_timestamp,
    checkin_day,
    day_window_filter,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class CheckInService:
    """
    Handles check-in storage and retrieval.
    Pure CRUD - alerting and weekly aggregation live in their own services.
    """

    MAX_LIMIT = 90

    def __init__(self, db: AsyncIOMotorDatabase, timezone=pytz.utc):
        """
        Initialize CheckInService.

        Args:
            db: MongoDB database connection
            timezone: pytz zone that places undated rows on a calendar day
        """
        self._db = db
        self._checkins_collection = db[CHECKINS]
        self._timezone = timezone

    async def submit_checkin(
        self,
        child_id: str,
        data: Dict[str, Any],
        today: date
    ) -> Dict[str, Any]:
        """
        Create the check-in for a child's chosen day.

        Args:
            child_id: Child ObjectId string
            data: dict with mood, sleptWell, adverseEvent, date, note
                and optional legacy intensity
            today: Current calendar day in the app timezone

        Returns:
            Saved check-in document

        Raises:
            ValidationException: Missing or malformed answers
            ConflictException: A check-in already exists for that day
        """
        is_valid, error = CheckInValidator.validate(data, today)
        if not is_valid:
            raise ValidationException(message=error, code="VALIDATION_ERROR")

        now = datetime.now(timezone.utc)
        chosen_day = format_day(parse_day(data["date"]))
        note = (data.get("note") or "").strip() or None

        checkin_doc = {
            "childId": ObjectId(child_id),
            "date": chosen_day,
            "mood": data["mood"],
            "sleptWell": data["sleptWell"],
            "adverseEvent": data["adverseEvent"],
            "note": note,
            # Legacy mirror fields read by older clients
            "intensity": data.get("intensity"),
            "observations": note,
            "createdAt": now,
        }

        try:
            result = await self._checkins_collection.insert_one(checkin_doc)
        except DuplicateKeyError:
            raise ConflictException(
                message=f"A check-in already exists for {chosen_day}",
                code="CHECKIN_EXISTS"
            )

        checkin_doc["_id"] = result.inserted_id
        logger.info(f"Check-in submitted for child {child_id} on {chosen_day}")
        return checkin_doc

    async def get_latest_since(
        self,
        child_id: str,
        since: date
    ) -> Optional[Dict[str, Any]]:
        """
        Get the most recent check-in dated on or after a day.

        Args:
            child_id: Child ObjectId string
            since: First calendar day of the window (inclusive)

        Returns:
            Check-in dict or None
        """
        query = {"childId": ObjectId(child_id)}
        query.update(day_window_filter(since, None, self._timezone))

        cursor = self._checkins_collection.find(query)
        cursor = cursor.sort([("date", -1), ("createdAt", -1)])

        # Undated rows sort after dated ones, so rank by resolved day here
        checkins = await cursor.to_list(length=None)
        if not checkins:
            return None

        return max(checkins, key=self._recency_key)

    def _recency_key(self, checkin: Dict[str, Any]):
        created_at = parse_timestamp(checkin.get("createdAt")) or EPOCH
        return checkin_day(checkin, self._timezone) or date.min, created_at

    async def get_for_range(
        self,
        child_id: str,
        start: date,
        end: date
    ) -> List[Dict[str, Any]]:
        """
        Get all check-ins for a child between two days (inclusive).

        Returns:
            List of check-in dicts sorted by date ascending
        """
        query = {"childId": ObjectId(child_id)}
        query.update(day_window_filter(start, end, self._timezone))

        cursor = self._checkins_collection.find(query)
        cursor = cursor.sort([("date", 1), ("createdAt", 1)])

        return await cursor.to_list(length=None)

    async def get_history(
        self,
        child_id: str,
        limit: int = 30,
        offset: int = 0
    ) -> List[Dict[str, Any]]:
        """
        Get paginated check-in history.

        Args:
            child_id: Child ObjectId string
            limit: Max records to return (capped at 90)
            offset: Number of records to skip

        Returns:
            List of check-in dicts sorted by date descending
        """
        limit = min(limit, self.MAX_LIMIT)

        cursor = self._checkins_collection.find({"childId": ObjectId(child_id)})
        cursor = cursor.sort("date", -1)
        cursor = cursor.skip(offset)
        cursor = cursor.limit(limit)

        return await cursor.to_list(length=limit)

    async def get_total_count(self, child_id: str) -> int:
        """Get total number of check-ins for a child."""
        return await self._checkins_collection.count_documents(
            {"childId": ObjectId(child_id)}
        )

    async def delete_for_child(self, child_id: str) -> int:
        """
        Delete every check-in of a child.

        Returns:
            Number of deleted check-ins
        """
        result = await self._checkins_collection.delete_many(
            {"childId": ObjectId(child_id)}
        )
        logger.info(f"Deleted {result.deleted_count} check-ins for child {child_id}")
        return result.deleted_count
