"""Unit tests for report sharing with psychologists."""

import pytest
import re
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from common.utils.exceptions import ValidationException, NotFoundException, ConflictException
from emotiva.database import SHARED_REPORTS, PSYCHOLOGISTS
from emotiva.services.sharing.share_service import (
    ShareService,
    STATUS_PENDING,
    STATUS_ACCEPTED,
    STATUS_DECLINED,
    STATUS_REVOKED,
)

from conftest import make_cursor


PSYCHOLOGIST_USER = "auth0|psy-1"


@pytest.fixture
def child_service():
    service = MagicMock()
    service.find_child = AsyncMock(return_value={"id": str(ObjectId()), "name": "Ana", "age": 7})
    return service


@pytest.fixture
def profile_service():
    service = MagicMock()
    service.get_names = AsyncMock(return_value={})
    return service


@pytest.fixture
def notification_service():
    service = MagicMock()
    service.create_notification = AsyncMock()
    return service


@pytest.fixture
def service(multi_db, child_service, profile_service, notification_service):
    return ShareService(
        multi_db,
        child_service=child_service,
        profile_service=profile_service,
        notification_service=notification_service,
    )


@pytest.fixture
def psychologist():
    return {
        "_id": ObjectId(),
        "userId": PSYCHOLOGIST_USER,
        "name": "Dr. Lima",
        "code": "PSI-AB12CD",
        "specialty": "Child psychology",
        "licenseNumber": "CRP-0001",
    }


def _share_doc(child_id, guardian_id, status=STATUS_PENDING):
    now = datetime(2026, 1, 5, tzinfo=timezone.utc)
    return {
        "_id": ObjectId(),
        "childId": ObjectId(child_id),
        "guardianId": guardian_id,
        "psychologistId": PSYCHOLOGIST_USER,
        "status": status,
        "createdAt": now,
        "updatedAt": now,
    }


# ─────────────────────────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────────────────────────


class TestRegisterPsychologist:
    def test_generated_code_format(self):
        assert re.fullmatch(r"PSI-[A-Z0-9]{6}", ShareService.generate_code())

    @pytest.mark.asyncio
    async def test_registration_stores_code(self, service, collections):
        psychologists = collections[PSYCHOLOGISTS]
        psychologists.find_one.return_value = None
        psychologists.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        result = await service.register_psychologist(
            PSYCHOLOGIST_USER, " Dr. Lima ", "Child psychology", "CRP-0001"
        )

        assert result["name"] == "Dr. Lima"
        assert re.fullmatch(r"PSI-[A-Z0-9]{6}", result["code"])

    @pytest.mark.asyncio
    async def test_code_collision_retries(self, service, collections):
        psychologists = collections[PSYCHOLOGISTS]
        psychologists.find_one.return_value = None
        psychologists.insert_one.side_effect = [
            DuplicateKeyError("code"),
            MagicMock(inserted_id=ObjectId()),
        ]

        await service.register_psychologist(PSYCHOLOGIST_USER, "Dr. Lima", "Child", "CRP-1")

        assert psychologists.insert_one.await_count == 2

    @pytest.mark.asyncio
    async def test_already_registered_conflicts(self, service, collections, psychologist):
        collections[PSYCHOLOGISTS].find_one.return_value = psychologist

        with pytest.raises(ConflictException):
            await service.register_psychologist(PSYCHOLOGIST_USER, "Dr. Lima", "Child", "CRP-1")

    @pytest.mark.asyncio
    async def test_license_required(self, service):
        with pytest.raises(ValidationException):
            await service.register_psychologist(PSYCHOLOGIST_USER, "Dr. Lima", "Child", " ")


# ─────────────────────────────────────────────────────────────────
# Guardian side
# ─────────────────────────────────────────────────────────────────


class TestShareWithPsychologist:
    @pytest.mark.asyncio
    async def test_code_is_normalized(self, service, collections, sample_child, sample_user_id, psychologist):
        collections[PSYCHOLOGISTS].find_one.return_value = psychologist
        collections[SHARED_REPORTS].find_one.return_value = None
        collections[SHARED_REPORTS].insert_one.return_value = MagicMock(inserted_id=ObjectId())

        await service.share_with_psychologist(sample_child, sample_user_id, "  psi-ab12cd ")

        collections[PSYCHOLOGISTS].find_one.assert_awaited_once_with({"code": "PSI-AB12CD"})

    @pytest.mark.asyncio
    async def test_unknown_code_not_found(self, service, collections, sample_child, sample_user_id):
        collections[PSYCHOLOGISTS].find_one.return_value = None

        with pytest.raises(NotFoundException) as exc_info:
            await service.share_with_psychologist(sample_child, sample_user_id, "PSI-ZZZZZZ")

        assert exc_info.value.code == "PSYCHOLOGIST_NOT_FOUND"

    @pytest.mark.parametrize("status", [STATUS_PENDING, STATUS_ACCEPTED])
    @pytest.mark.asyncio
    async def test_active_share_conflicts_with_status(
        self, service, collections, sample_child, sample_user_id, psychologist, status
    ):
        collections[PSYCHOLOGISTS].find_one.return_value = psychologist
        collections[SHARED_REPORTS].find_one.return_value = _share_doc(
            sample_child["id"], sample_user_id, status
        )

        with pytest.raises(ConflictException) as exc_info:
            await service.share_with_psychologist(sample_child, sample_user_id, "PSI-AB12CD")

        assert exc_info.value.details == {"status": status}
        assert status in exc_info.value.message
        collections[SHARED_REPORTS].insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_new_share_is_pending_and_notifies(
        self, service, collections, notification_service, sample_child, sample_user_id, psychologist
    ):
        collections[PSYCHOLOGISTS].find_one.return_value = psychologist
        collections[SHARED_REPORTS].find_one.return_value = None
        collections[SHARED_REPORTS].insert_one.return_value = MagicMock(inserted_id=ObjectId())

        share = await service.share_with_psychologist(sample_child, sample_user_id, "PSI-AB12CD")

        assert share["status"] == STATUS_PENDING
        assert share["psychologistId"] == PSYCHOLOGIST_USER
        kwargs = notification_service.create_notification.call_args.kwargs
        assert kwargs["recipient_id"] == PSYCHOLOGIST_USER
        assert "Ana" in kwargs["message"]

    @pytest.mark.asyncio
    async def test_notification_failure_is_not_fatal(
        self, service, collections, notification_service, sample_child, sample_user_id, psychologist
    ):
        collections[PSYCHOLOGISTS].find_one.return_value = psychologist
        collections[SHARED_REPORTS].find_one.return_value = None
        collections[SHARED_REPORTS].insert_one.return_value = MagicMock(inserted_id=ObjectId())
        notification_service.create_notification.side_effect = PyMongoError("down")

        share = await service.share_with_psychologist(sample_child, sample_user_id, "PSI-AB12CD")

        assert share["status"] == STATUS_PENDING


class TestRevokeShare:
    @pytest.mark.asyncio
    async def test_revoke_sets_status(self, service, collections, sample_child, sample_user_id):
        doc = _share_doc(sample_child["id"], sample_user_id, STATUS_ACCEPTED)
        collections[SHARED_REPORTS].find_one.return_value = doc

        share = await service.revoke_share(str(doc["_id"]), sample_user_id)

        assert share["status"] == STATUS_REVOKED
        update = collections[SHARED_REPORTS].update_one.call_args[0][1]
        assert update["$set"]["status"] == STATUS_REVOKED

    @pytest.mark.asyncio
    async def test_revoke_unknown_share(self, service, collections, sample_user_id):
        collections[SHARED_REPORTS].find_one.return_value = None

        with pytest.raises(NotFoundException):
            await service.revoke_share(str(ObjectId()), sample_user_id)


# ─────────────────────────────────────────────────────────────────
# Psychologist side
# ─────────────────────────────────────────────────────────────────


class TestPsychologistSide:
    @pytest.mark.asyncio
    async def test_pending_invites_are_enriched(
        self, service, collections, profile_service, sample_child, sample_user_id
    ):
        named = _share_doc(sample_child["id"], sample_user_id)
        unnamed = _share_doc(sample_child["id"], "auth0|guardian-2")
        collections[SHARED_REPORTS].find.return_value = make_cursor([named, unnamed])
        profile_service.get_names.return_value = {sample_user_id: "Maria"}

        invites = await service.list_pending_invites(PSYCHOLOGIST_USER)

        assert [i["guardianName"] for i in invites] == ["Maria", "Guardian"]
        assert invites[0]["child"] == {"name": "Ana", "age": 7}
        query = collections[SHARED_REPORTS].find.call_args[0][0]
        assert query == {"psychologistId": PSYCHOLOGIST_USER, "status": STATUS_PENDING}

    @pytest.mark.parametrize("status", [STATUS_ACCEPTED, STATUS_DECLINED])
    @pytest.mark.asyncio
    async def test_respond_updates_and_notifies_guardian(
        self, service, collections, notification_service, sample_child, sample_user_id, status
    ):
        doc = _share_doc(sample_child["id"], sample_user_id)
        collections[SHARED_REPORTS].find_one.return_value = doc

        share = await service.respond_to_invite(str(doc["_id"]), PSYCHOLOGIST_USER, status)

        assert share["status"] == status
        kwargs = notification_service.create_notification.call_args.kwargs
        assert kwargs["recipient_id"] == sample_user_id
        assert status in kwargs["message"]

    @pytest.mark.asyncio
    async def test_respond_rejects_other_statuses(self, service):
        with pytest.raises(ValidationException):
            await service.respond_to_invite(str(ObjectId()), PSYCHOLOGIST_USER, STATUS_REVOKED)

    @pytest.mark.asyncio
    async def test_report_access_requires_accepted_share(self, service, collections):
        collections[SHARED_REPORTS].find_one.return_value = None
        share_id = str(ObjectId())

        with pytest.raises(NotFoundException):
            await service.get_accepted_share(share_id, PSYCHOLOGIST_USER)

        query = collections[SHARED_REPORTS].find_one.call_args[0][0]
        assert query["status"] == STATUS_ACCEPTED
        assert query["psychologistId"] == PSYCHOLOGIST_USER
