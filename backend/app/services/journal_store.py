# journal store: persistence of analysed journal entries
# every query is scoped to a single user_id

import logging
from datetime import datetime
from typing import Optional

from app.services.db import Database
from app.services.resilience import DATABASE, call_with_retry

logger = logging.getLogger(__name__)


async def save_entry(db: Database, entry: dict) -> dict:
    logger.info(f"Saving journal entry for user {entry['user_id']}")
    await call_with_retry(DATABASE, db.journal_entries.insert_one, entry)
    logger.info(f"Journal entry {entry['entry_id']} saved for user {entry['user_id']}")
    return entry


async def get_entries_for_user(
    db: Database,
    user_id: str,
    limit: Optional[int] = None,
    skip: int = 0,
) -> list[dict]:
    """all entries for a user, newest first"""

    async def _fetch():
        cursor = db.journal_entries.find({"user_id": user_id}).sort("timestamp", -1)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    entries = await call_with_retry(DATABASE, _fetch)
    logger.info(f"Retrieved {len(entries)} journal entries for user {user_id}")
    return entries


async def get_entries_in_range(db: Database, user_id: str, start: datetime, end: datetime) -> list[dict]:
    """entries with start <= timestamp < end, oldest first"""

    async def _fetch():
        cursor = db.journal_entries.find({
            "user_id": user_id,
            "timestamp": {"$gte": start, "$lt": end},
        }).sort("timestamp", 1)
        return await cursor.to_list(length=None)

    return await call_with_retry(DATABASE, _fetch)


async def get_entry(db: Database, user_id: str, entry_id: str) -> Optional[dict]:
    entry = await call_with_retry(
        DATABASE, db.journal_entries.find_one, {"entry_id": entry_id, "user_id": user_id}
    )
    if entry is None:
        logger.warning(f"Journal entry {entry_id} not found for user {user_id}")
    return entry


async def update_entry(db: Database, user_id: str, entry_id: str, fields: dict) -> Optional[dict]:
    """apply fields to an existing entry, returns the updated entry or none if missing"""
    result = await call_with_retry(
        DATABASE,
        db.journal_entries.update_one,
        {"entry_id": entry_id, "user_id": user_id},
        {"$set": fields},
    )
    if result.matched_count == 0:
        return None
    logger.info(f"Journal entry {entry_id} updated for user {user_id}")
    return await get_entry(db, user_id, entry_id)


async def delete_entry(db: Database, user_id: str, entry_id: str) -> bool:
    result = await call_with_retry(
        DATABASE, db.journal_entries.delete_one, {"entry_id": entry_id, "user_id": user_id}
    )
    deleted = result.deleted_count > 0
    if deleted:
        logger.info(f"Journal entry {entry_id} deleted for user {user_id}")
    else:
        logger.warning(f"Journal entry {entry_id} not found for deletion for user {user_id}")
    return deleted
