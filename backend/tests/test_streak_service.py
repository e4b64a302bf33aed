# tests for streak service: consecutive-day streak calculation and caching
# unit tests for app/services/streak_service.py

import pytest
from datetime import date, datetime, timedelta, timezone
from bson import ObjectId

from tests.conftest import USER_ID
from app.services.streak_service import (
    calculate_streaks,
    calculate_user_streaks,
    update_user_streak,
    utc_date,
)

TODAY = date(2025, 6, 15)


def _at(d: date, hour: int = 12) -> datetime:
    return datetime(d.year, d.month, d.day, hour, tzinfo=timezone.utc)


def _days_ago(*offsets: int) -> list[datetime]:
    return [_at(TODAY - timedelta(days=n)) for n in offsets]


class TestCalculateStreaks:
    """pure streak algorithm"""

    def test_no_entries(self):
        assert calculate_streaks([], today=TODAY) == (0, 0)

    def test_single_entry_today(self):
        assert calculate_streaks(_days_ago(0), today=TODAY) == (1, 1)

    def test_single_entry_yesterday_keeps_streak_alive(self):
        assert calculate_streaks(_days_ago(1), today=TODAY) == (1, 1)

    def test_entry_two_days_ago_breaks_current(self):
        assert calculate_streaks(_days_ago(2), today=TODAY) == (0, 1)

    def test_consecutive_days_from_today(self):
        assert calculate_streaks(_days_ago(0, 1, 2, 3), today=TODAY) == (4, 4)

    def test_consecutive_days_ending_yesterday(self):
        assert calculate_streaks(_days_ago(1, 2, 3), today=TODAY) == (3, 3)

    def test_multiple_entries_same_day_count_once(self):
        timestamps = [_at(TODAY, 8), _at(TODAY, 13), _at(TODAY, 22)] + _days_ago(1)
        assert calculate_streaks(timestamps, today=TODAY) == (2, 2)

    def test_longest_streak_in_the_past(self):
        timestamps = _days_ago(0, 1) + _days_ago(10, 11, 12, 13, 14)
        assert calculate_streaks(timestamps, today=TODAY) == (2, 5)

    def test_gap_breaks_current(self):
        timestamps = _days_ago(0, 1, 3, 4, 5)
        assert calculate_streaks(timestamps, today=TODAY) == (2, 3)

    def test_order_does_not_matter(self):
        timestamps = _days_ago(3, 0, 2, 1)
        assert calculate_streaks(timestamps, today=TODAY) == (4, 4)

    def test_future_entries_do_not_count_toward_current(self):
        assert calculate_streaks(_days_ago(-1), today=TODAY) == (0, 1)

    def test_dates_are_utc(self):
        # 23:30 at utc-5 on the 14th is already the 15th in utc
        local = datetime(2025, 6, 14, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert utc_date(local) == date(2025, 6, 15)
        assert calculate_streaks([local], today=TODAY) == (1, 1)

    def test_accepts_iso_strings_and_naive_datetimes(self):
        timestamps = ["2025-06-15T09:00:00Z", datetime(2025, 6, 14, 9, 0)]
        assert calculate_streaks(timestamps, today=TODAY) == (2, 2)


class TestUserStreaks:
    """streaks loaded from and cached on the user document"""

    async def test_calculate_user_streaks(self, mock_db):
        # conftest entries: today and yesterday
        assert await calculate_user_streaks(mock_db, USER_ID) == (2, 2)

    async def test_update_stores_counters(self, mock_db):
        result = await update_user_streak(mock_db, USER_ID)
        assert result == (2, 2)

        user = await mock_db.users.find_one({"_id": ObjectId(USER_ID)})
        assert user["current_streak"] == 2
        assert user["longest_streak"] == 2
        assert user["last_streak_update_date"] == datetime.now(timezone.utc).date().isoformat()

    async def test_update_skipped_when_already_done_today(self, mock_db):
        await update_user_streak(mock_db, USER_ID)
        mock_db.journal_entries._data = []

        assert await update_user_streak(mock_db, USER_ID) is None
        user = await mock_db.users.find_one({"_id": ObjectId(USER_ID)})
        assert user["current_streak"] == 2

    async def test_forced_update_recalculates(self, mock_db):
        await update_user_streak(mock_db, USER_ID)
        mock_db.journal_entries._data = []

        assert await update_user_streak(mock_db, USER_ID, force=True) == (0, 0)
        user = await mock_db.users.find_one({"_id": ObjectId(USER_ID)})
        assert user["current_streak"] == 0

    async def test_update_unknown_user(self, mock_db):
        assert await update_user_streak(mock_db, str(ObjectId())) is None
