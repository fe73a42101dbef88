"""Shared test fixtures for Emotiva backend tests."""

import pytest
import pytz
from collections import defaultdict
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId


TZ = pytz.timezone("America/Sao_Paulo")


def make_cursor(docs):
    """Cursor double: chainable sort/skip/limit and async to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


def _new_collection():
    collection = AsyncMock()
    # Motor's find() and watch() return synchronously (not coroutines),
    # so use MagicMock for them. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock(return_value=make_cursor([]))
    collection.watch = MagicMock()
    return collection


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def sample_user_id():
    return "auth0|guardian-1"


@pytest.fixture
def mock_collection():
    return _new_collection()


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def collections():
    """One collection double per collection name."""
    return defaultdict(_new_collection)


@pytest.fixture
def multi_db(collections):
    db = MagicMock()
    db.__getitem__ = MagicMock(side_effect=lambda name: collections[name])
    return db


@pytest.fixture
def sample_child(sample_user_id):
    return {
        "id": str(ObjectId()),
        "name": "Ana",
        "age": 7,
        "guardianId": sample_user_id,
        "createdAt": "2026-01-05T12:00:00+00:00",
    }


def make_checkin(child_id, day, mood="happy", slept_well=True, adverse_event=False,
                 note=None, created_at=None):
    return {
        "_id": ObjectId(),
        "childId": ObjectId(child_id),
        "date": day,
        "mood": mood,
        "sleptWell": slept_well,
        "adverseEvent": adverse_event,
        "note": note,
        "createdAt": created_at or datetime(2026, 1, 5, 14, 30, tzinfo=timezone.utc),
    }
