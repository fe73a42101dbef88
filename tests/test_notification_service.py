"""Unit tests for notifications and profiles."""

import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from bson import ObjectId

from common.utils.exceptions import NotFoundException, ValidationException
from emotiva.services.notifications.notification_service import NotificationService
from emotiva.services.profile.profile_service import ProfileService

from conftest import make_cursor


RECIPIENT = "auth0|psy-1"


def _notification(read=False):
    return {
        "_id": ObjectId(),
        "recipientId": RECIPIENT,
        "message": "New invitation",
        "read": read,
        "readAt": None,
        "createdAt": datetime(2026, 1, 8, tzinfo=timezone.utc),
    }


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_create_is_unread(self, mock_db, mock_collection):
        mock_collection.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        service = NotificationService(mock_db)

        doc = await service.create_notification(RECIPIENT, "New invitation")

        assert doc["read"] is False
        assert doc["recipientId"] == RECIPIENT

    @pytest.mark.asyncio
    async def test_recent_is_newest_first_and_limited(self, mock_db, mock_collection):
        cursor = make_cursor([_notification()])
        mock_collection.find.return_value = cursor
        service = NotificationService(mock_db)

        result = await service.get_recent(RECIPIENT, limit=10)

        mock_collection.find.assert_called_once_with({"recipientId": RECIPIENT})
        cursor.sort.assert_called_once_with("createdAt", -1)
        cursor.limit.assert_called_once_with(10)
        assert result[0]["message"] == "New invitation"

    @pytest.mark.asyncio
    async def test_pagination_has_more(self, mock_db, mock_collection):
        mock_collection.count_documents.return_value = 3
        mock_collection.find.return_value = make_cursor([_notification(), _notification()])
        service = NotificationService(mock_db)

        result = await service.get_notifications(RECIPIENT, limit=2, offset=0, unread_only=True)

        assert result["total"] == 3
        assert result["hasMore"] is True
        assert mock_collection.count_documents.call_args[0][0] == {"recipientId": RECIPIENT, "read": False}

    @pytest.mark.asyncio
    async def test_mark_read_of_someone_elses_notification(self, mock_db, mock_collection):
        mock_collection.find_one.return_value = None
        service = NotificationService(mock_db)

        with pytest.raises(NotFoundException):
            await service.mark_as_read(str(ObjectId()), RECIPIENT)

    @pytest.mark.asyncio
    async def test_mark_read_is_idempotent(self, mock_db, mock_collection):
        mock_collection.find_one.return_value = _notification(read=True)
        service = NotificationService(mock_db)

        result = await service.mark_as_read(str(ObjectId()), RECIPIENT)

        assert result["read"] is True
        mock_collection.update_one.assert_not_called()


class TestProfileService:
    @pytest.mark.asyncio
    async def test_unknown_role_rejected(self, mock_db, mock_collection):
        service = ProfileService(mock_db)

        with pytest.raises(ValidationException):
            await service.save_profile(RECIPIENT, "p@example.com", "Dr. Lima", "principal")

        mock_collection.find_one_and_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_upserts_by_identity(self, mock_db, mock_collection):
        mock_collection.find_one_and_update.return_value = {
            "_id": RECIPIENT, "name": "Dr. Lima", "email": "p@example.com", "role": "psychologist",
        }
        service = ProfileService(mock_db)

        profile = await service.save_profile(RECIPIENT, "p@example.com", " Dr. Lima ", "psychologist")

        filter_, update = mock_collection.find_one_and_update.call_args[0]
        assert filter_ == {"_id": RECIPIENT}
        assert update["$set"]["name"] == "Dr. Lima"
        assert mock_collection.find_one_and_update.call_args.kwargs["upsert"] is True
        assert profile["role"] == "psychologist"

    @pytest.mark.asyncio
    async def test_names_skip_missing(self, mock_db, mock_collection):
        mock_collection.find.return_value = make_cursor([
            {"_id": "a", "name": "Maria"},
            {"_id": "b"},
        ])
        service = ProfileService(mock_db)

        assert await service.get_names(["a", "b", "a"]) == {"a": "Maria"}
