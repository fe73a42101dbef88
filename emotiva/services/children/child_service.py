"""
Child management service.

Guardians register, edit and remove their children. Removing a child
removes its check-ins first.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import ValidationException, NotFoundException
from emotiva.database import CHILDREN
from emotiva.services.checkin.checkin_service import CheckInService
from emotiva.services.object_ids import parse_object_id, isoformat

logger = logging.getLogger(__name__)


def format_child(child: Dict[str, Any]) -> Dict[str, Any]:
    """Format child document for API response."""
    return {
        "id": str(child["_id"]),
        "name": child["name"],
        "age": child["age"],
        "guardianId": child["guardianId"],
        "createdAt": isoformat(child.get("createdAt")),
    }


class ChildService:
    """
    CRUD for children owned by a guardian.
    """

    MIN_AGE = 1
    MAX_AGE = 18
    MAX_NAME_LENGTH = 100

    def __init__(self, db: AsyncIOMotorDatabase, checkin_service: CheckInService):
        """
        Initialize ChildService.

        Args:
            db: MongoDB database connection
            checkin_service: For removing a child's check-ins on delete
        """
        self._db = db
        self._children_collection = db[CHILDREN]
        self._checkin_service = checkin_service

    @classmethod
    def validate(cls, name: Optional[str], age: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate child fields.

        Returns:
            tuple of (is_valid, error_message)
        """
        if not name or not name.strip():
            return False, "Name is required"

        if len(name.strip()) > cls.MAX_NAME_LENGTH:
            return False, f"Name cannot exceed {cls.MAX_NAME_LENGTH} characters"

        if not isinstance(age, int) or isinstance(age, bool):
            return False, "Age must be a number"

        if age < cls.MIN_AGE or age > cls.MAX_AGE:
            return False, f"Age must be between {cls.MIN_AGE} and {cls.MAX_AGE}"

        return True, None

    async def create_children(
        self,
        guardian_id: str,
        children: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Register one or more children in a single write.

        Every entry is validated before anything is inserted.

        Args:
            guardian_id: Owning guardian identity
            children: list of dicts with name and age

        Returns:
            Formatted children in the order given
        """
        if not children:
            raise ValidationException(message="At least one child is required")

        for index, child in enumerate(children):
            is_valid, error = self.validate(child.get("name"), child.get("age"))
            if not is_valid:
                raise ValidationException(
                    message=error,
                    details={"index": index}
                )

        now = datetime.now(timezone.utc)
        docs = [
            {
                "name": child["name"].strip(),
                "age": child["age"],
                "guardianId": guardian_id,
                "createdAt": now,
            }
            for child in children
        ]

        result = await self._children_collection.insert_many(docs)
        for doc, inserted_id in zip(docs, result.inserted_ids):
            doc["_id"] = inserted_id

        logger.info(f"Registered {len(docs)} children for guardian {guardian_id}")
        return [format_child(doc) for doc in docs]

    async def list_children(self, guardian_id: str) -> List[Dict[str, Any]]:
        """
        List a guardian's children in creation order.
        """
        cursor = self._children_collection.find({"guardianId": guardian_id})
        cursor = cursor.sort("createdAt", 1)

        children = await cursor.to_list(length=None)
        return [format_child(child) for child in children]

    async def find_child(self, child_id: str) -> Optional[Dict[str, Any]]:
        """Get a child regardless of owner (for shared report access)."""
        oid = parse_object_id(child_id)
        if oid is None:
            return None

        child = await self._children_collection.find_one({"_id": oid})
        return format_child(child) if child else None

    async def get_child(self, child_id: str, guardian_id: str) -> Dict[str, Any]:
        """
        Get a child owned by the guardian.

        Raises:
            NotFoundException: Unknown child or owned by someone else
        """
        oid = parse_object_id(child_id)
        child = None
        if oid is not None:
            child = await self._children_collection.find_one({
                "_id": oid,
                "guardianId": guardian_id
            })

        if not child:
            raise NotFoundException(
                message="Child not found",
                code="CHILD_NOT_FOUND"
            )

        return format_child(child)

    async def update_child(
        self,
        child_id: str,
        guardian_id: str,
        name: str,
        age: int
    ) -> Dict[str, Any]:
        """
        Update a child's name and age.
        """
        is_valid, error = self.validate(name, age)
        if not is_valid:
            raise ValidationException(message=error)

        child = await self.get_child(child_id, guardian_id)

        await self._children_collection.update_one(
            {"_id": parse_object_id(child_id)},
            {"$set": {"name": name.strip(), "age": age}}
        )

        logger.info(f"Updated child {child_id}")
        child.update({"name": name.strip(), "age": age})
        return child

    async def delete_child(self, child_id: str, guardian_id: str) -> None:
        """
        Delete a child and all of its check-ins.
        """
        await self.get_child(child_id, guardian_id)

        await self._checkin_service.delete_for_child(child_id)
        await self._children_collection.delete_one({"_id": parse_object_id(child_id)})

        logger.info(f"Deleted child {child_id} for guardian {guardian_id}")

