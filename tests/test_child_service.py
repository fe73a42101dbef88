"""Unit tests for child management."""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from common.utils.exceptions import ValidationException, NotFoundException
from emotiva.context import AppContext
from emotiva.services.children.child_service import ChildService

from conftest import make_cursor


@pytest.fixture
def checkin_service():
    service = MagicMock()
    service.delete_for_child = AsyncMock(return_value=0)
    return service


@pytest.fixture
def service(mock_db, checkin_service):
    return ChildService(mock_db, checkin_service)


def _child_doc(guardian_id, name="Ana", age=7):
    return {
        "_id": ObjectId(),
        "name": name,
        "age": age,
        "guardianId": guardian_id,
        "createdAt": datetime(2026, 1, 5, tzinfo=timezone.utc),
    }


# ─────────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────────


class TestValidate:
    @pytest.mark.parametrize("age", [1, 18])
    def test_age_bounds_accepted(self, age):
        assert ChildService.validate("Ana", age) == (True, None)

    @pytest.mark.parametrize("age", [0, 19, "7", True, None])
    def test_bad_ages_rejected(self, age):
        assert ChildService.validate("Ana", age)[0] is False

    def test_blank_name_rejected(self):
        assert ChildService.validate("   ", 7) == (False, "Name is required")


# ─────────────────────────────────────────────────────────────────
# CRUD
# ─────────────────────────────────────────────────────────────────


class TestCreateChildren:
    @pytest.mark.asyncio
    async def test_batch_is_validated_before_any_write(self, service, mock_collection, sample_user_id):
        with pytest.raises(ValidationException) as exc_info:
            await service.create_children(sample_user_id, [
                {"name": "Ana", "age": 7},
                {"name": "Bia", "age": 30},
            ])

        assert exc_info.value.details == {"index": 1}
        mock_collection.insert_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_names_are_trimmed(self, service, mock_collection, sample_user_id):
        ids = [ObjectId(), ObjectId()]
        mock_collection.insert_many.return_value = MagicMock(inserted_ids=ids)

        children = await service.create_children(sample_user_id, [
            {"name": " Ana ", "age": 7},
            {"name": "Bia", "age": 4},
        ])

        assert [c["name"] for c in children] == ["Ana", "Bia"]
        assert [c["id"] for c in children] == [str(i) for i in ids]
        assert all(c["guardianId"] == sample_user_id for c in children)


class TestGetChild:
    @pytest.mark.asyncio
    async def test_foreign_child_not_found(self, service, mock_collection, sample_user_id):
        mock_collection.find_one.return_value = None

        with pytest.raises(NotFoundException):
            await service.get_child(str(ObjectId()), sample_user_id)

    @pytest.mark.asyncio
    async def test_malformed_id_not_found_without_query(self, service, mock_collection, sample_user_id):
        with pytest.raises(NotFoundException):
            await service.get_child("not-an-id", sample_user_id)

        mock_collection.find_one.assert_not_called()


class TestDeleteChild:
    @pytest.mark.asyncio
    async def test_checkins_removed_before_child(self, service, mock_collection, checkin_service, sample_user_id):
        doc = _child_doc(sample_user_id)
        mock_collection.find_one.return_value = doc
        order = []
        checkin_service.delete_for_child.side_effect = lambda child_id: order.append("checkins")
        mock_collection.delete_one.side_effect = lambda query: order.append("child")

        await service.delete_child(str(doc["_id"]), sample_user_id)

        assert order == ["checkins", "child"]
        checkin_service.delete_for_child.assert_awaited_once_with(str(doc["_id"]))


class TestListAndSelect:
    @pytest.mark.asyncio
    async def test_listed_in_creation_order(self, service, mock_collection, sample_user_id):
        cursor = make_cursor([_child_doc(sample_user_id, "Ana"), _child_doc(sample_user_id, "Bia")])
        mock_collection.find.return_value = cursor

        children = await service.list_children(sample_user_id)

        cursor.sort.assert_called_once_with("createdAt", 1)
        assert [c["name"] for c in children] == ["Ana", "Bia"]

    def test_requested_child_kept_when_owned(self, sample_user_id):
        children = [{"id": "a", "name": "Ana"}, {"id": "b", "name": "Bia"}]
        ctx = AppContext(user_id=sample_user_id, selected_child_id="b")

        assert ctx.select_child(children)["name"] == "Bia"

    def test_unowned_selection_falls_back_to_first(self, sample_user_id):
        children = [{"id": "a", "name": "Ana"}, {"id": "b", "name": "Bia"}]
        ctx = AppContext(user_id=sample_user_id, selected_child_id="zzz")

        assert ctx.select_child(children)["name"] == "Ana"
        assert ctx.selected_child_id == "a"

    def test_no_children_clears_selection(self, sample_user_id):
        ctx = AppContext(user_id=sample_user_id, selected_child_id="a")

        assert ctx.select_child([]) is None
        assert ctx.selected_child_id is None
