# streak service: consecutive-day journaling streaks
# current streak counts back from today (or yesterday), longest is the best run ever

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from app.services import journal_store, user_service
from app.services.db import Database

logger = logging.getLogger(__name__)


def utc_date(ts) -> date:
    """calendar date of a timestamp in utc. naive datetimes are treated as utc."""
    if isinstance(ts, str):
        ts = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date()


def calculate_streaks(timestamps: Iterable, today: Optional[date] = None) -> tuple[int, int]:
    """return (current_streak, longest_streak) for a set of entry timestamps.

    several entries on one day count once. the current streak may start
    yesterday so it does not reset before the user has written today.
    """
    dates = sorted({utc_date(ts) for ts in timestamps}, reverse=True)
    if not dates:
        return 0, 0

    today = today or datetime.now(timezone.utc).date()
    yesterday = today - timedelta(days=1)

    current = 0
    expected = today
    for d in dates:
        if d == expected or (current == 0 and d == yesterday):
            current += 1
            expected = d - timedelta(days=1)
        else:
            break

    longest = 0
    run = 1
    for newer, older in zip(dates, dates[1:]):
        if (newer - older).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    longest = max(longest, run, current)

    return current, longest


async def calculate_user_streaks(db: Database, user_id: str) -> tuple[int, int]:
    entries = await journal_store.get_entries_for_user(db, user_id)
    current, longest = calculate_streaks(e["timestamp"] for e in entries)
    logger.info(f"Calculated streaks for user {user_id}: current={current}, longest={longest}")
    return current, longest


async def update_user_streak(db: Database, user_id: str, force: bool = False) -> Optional[tuple[int, int]]:
    """recalculate and cache streaks on the user document.

    skipped when already done today unless force is set (entry added or removed).
    returns the new counters, or none when skipped.
    """
    user = await user_service.get_user_by_id(db, user_id)
    if user is None:
        logger.warning(f"Cannot update streak, user {user_id} not found")
        return None

    today = datetime.now(timezone.utc).date().isoformat()
    if not force and user.get("last_streak_update_date") == today:
        logger.info(f"Streak already calculated today for user {user_id}, skipping recalculation")
        return None

    current, longest = await calculate_user_streaks(db, user_id)
    await user_service.set_streaks(db, user_id, current, longest)
    logger.info(f"Updated streak for user {user_id}: current={current}, longest={longest}")
    return current, longest
