"""Unit tests for check-in alert evaluation."""

import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from pymongo.errors import PyMongoError

from emotiva.services.checkin.alert_evaluator import (
    Alert,
    AlertEvaluator,
    evaluate_checkin,
    ISSUE_SAD,
    ISSUE_SLEEP,
    ISSUE_ADVERSE_EVENT,
)
from emotiva.services.checkin.checkin_service import CheckInService

from conftest import make_checkin, make_cursor


TODAY = date(2026, 1, 8)


# ─────────────────────────────────────────────────────────────────
# evaluate_checkin
# ─────────────────────────────────────────────────────────────────


class TestEvaluateCheckin:
    def test_all_three_issues_in_fixed_order(self, sample_child):
        checkin = make_checkin(
            sample_child["id"], "2026-01-08",
            mood="sad", slept_well=False, adverse_event=True
        )

        assert evaluate_checkin(checkin) == [ISSUE_SAD, ISSUE_SLEEP, ISSUE_ADVERSE_EVENT]

    def test_no_issues_for_happy_rested_day(self, sample_child):
        checkin = make_checkin(sample_child["id"], "2026-01-08")

        assert evaluate_checkin(checkin) == []

    def test_null_flags_do_not_count(self, sample_child):
        checkin = make_checkin(sample_child["id"], "2026-01-08", mood="neutral")
        checkin["sleptWell"] = None
        checkin["adverseEvent"] = None

        assert evaluate_checkin(checkin) == []

    def test_legacy_emotion_field_is_read(self):
        checkin = {"emotion": "sad", "sleptWell": True, "adverseEvent": False}

        assert evaluate_checkin(checkin) == [ISSUE_SAD]

    def test_only_adverse_event(self, sample_child):
        checkin = make_checkin(sample_child["id"], "2026-01-08", adverse_event=True)

        assert evaluate_checkin(checkin) == [ISSUE_ADVERSE_EVENT]


class TestAlertMessage:
    def test_message_joins_issues_with_child_name(self, sample_child):
        alert = Alert(child=sample_child, checkin={}, issues=[ISSUE_SAD, ISSUE_SLEEP])

        assert alert.message == "Ana is feeling sad, did not sleep well."


# ─────────────────────────────────────────────────────────────────
# AlertEvaluator
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def checkin_service():
    service = MagicMock()
    service.get_latest_since = AsyncMock(return_value=None)
    return service


class TestAlertEvaluator:
    def test_window_is_three_calendar_days_inclusive(self, checkin_service, tz):
        evaluator = AlertEvaluator(checkin_service, tz)

        assert evaluator.window_start(TODAY) == date(2026, 1, 5)

    def test_window_follows_configured_lookback(self, checkin_service, tz):
        evaluator = AlertEvaluator(checkin_service, tz, lookback_days=1)

        assert evaluator.window_start(TODAY) == date(2026, 1, 7)

    @pytest.mark.asyncio
    async def test_no_checkin_in_window_means_no_alert(self, checkin_service, tz, sample_child):
        evaluator = AlertEvaluator(checkin_service, tz)

        assert await evaluator.evaluate_child(sample_child, TODAY) is None
        checkin_service.get_latest_since.assert_awaited_once_with(
            sample_child["id"], date(2026, 1, 5)
        )

    @pytest.mark.asyncio
    async def test_latest_checkin_with_issues_alerts(self, checkin_service, tz, sample_child):
        checkin = make_checkin(sample_child["id"], "2026-01-07", mood="sad", slept_well=False)
        checkin_service.get_latest_since.return_value = checkin
        evaluator = AlertEvaluator(checkin_service, tz)

        alert = await evaluator.evaluate_child(sample_child, TODAY)

        assert alert.child is sample_child
        assert alert.checkin is checkin
        assert alert.issues == [ISSUE_SAD, ISSUE_SLEEP]

    @pytest.mark.asyncio
    async def test_fine_latest_checkin_means_no_alert(self, checkin_service, tz, sample_child):
        checkin_service.get_latest_since.return_value = make_checkin(sample_child["id"], "2026-01-07")
        evaluator = AlertEvaluator(checkin_service, tz)

        assert await evaluator.evaluate_child(sample_child, TODAY) is None

    @pytest.mark.asyncio
    async def test_children_keep_order_and_failures_are_skipped(self, checkin_service, tz):
        first = {"id": str(ObjectId()), "name": "Ana"}
        broken = {"id": str(ObjectId()), "name": "Bia"}
        last = {"id": str(ObjectId()), "name": "Caio"}

        async def latest(child_id, since):
            if child_id == broken["id"]:
                raise PyMongoError("connection reset")
            return make_checkin(child_id, "2026-01-08", mood="sad")

        checkin_service.get_latest_since.side_effect = latest
        evaluator = AlertEvaluator(checkin_service, tz)

        alerts = await evaluator.evaluate_children([first, broken, last], TODAY)

        assert [a.child["name"] for a in alerts] == ["Ana", "Caio"]


class TestLatestCheckinQuery:
    @pytest.mark.asyncio
    async def test_queries_window_sorted_by_day_then_creation(self, mock_db, mock_collection, sample_child):
        cursor = make_cursor([])
        mock_collection.find.return_value = cursor
        service = CheckInService(mock_db)

        result = await service.get_latest_since(sample_child["id"], date(2026, 1, 5))

        assert result is None
        query = mock_collection.find.call_args[0][0]
        assert query["childId"] == ObjectId(sample_child["id"])
        by_date, by_created = query["$or"]
        assert by_date == {"date": {"$gte": "2026-01-05"}}
        assert "$lt" not in by_created["createdAt"]
        cursor.sort.assert_called_once_with([("date", -1), ("createdAt", -1)])

    @pytest.mark.asyncio
    async def test_undated_row_from_a_later_day_wins(self, mock_db, mock_collection, sample_child, tz):
        dated = make_checkin(sample_child["id"], "2026-01-06", mood="happy")
        legacy = make_checkin(
            sample_child["id"], None, mood="sad",
            created_at=datetime(2026, 1, 7, 15, 0, tzinfo=timezone.utc),
        )
        del legacy["date"]
        mock_collection.find.return_value = make_cursor([dated, legacy])
        service = CheckInService(mock_db, tz)

        result = await service.get_latest_since(sample_child["id"], date(2026, 1, 5))

        assert result is legacy
