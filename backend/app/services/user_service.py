# user service: user documents keyed by identity provider
# users are created on first google sign-in, never with a password

import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from app.services.db import Database
from app.services.resilience import DATABASE, call_with_retry

logger = logging.getLogger(__name__)


def _doc_to_user(doc: Optional[dict]) -> Optional[dict]:
    """convert _id to a string id, like get_current_user returns"""
    if doc is None:
        return None
    user = dict(doc)
    user["id"] = str(user.pop("_id"))
    return user


async def get_user_by_provider_id(db: Database, provider_id: str, provider: str = "google") -> Optional[dict]:
    doc = await call_with_retry(
        DATABASE, db.users.find_one, {"provider": provider, "provider_id": provider_id}
    )
    return _doc_to_user(doc)


async def get_user_by_id(db: Database, user_id: str) -> Optional[dict]:
    try:
        oid = ObjectId(user_id)
    except (InvalidId, TypeError):
        return None
    doc = await call_with_retry(DATABASE, db.users.find_one, {"_id": oid})
    return _doc_to_user(doc)


async def create_or_update_user(db: Database, user: dict) -> dict:
    """insert a new user or overwrite the stored fields of an existing one.
    last_login_at is stamped on every call."""
    now = datetime.now(timezone.utc)
    fields = {k: v for k, v in user.items() if k not in ("id", "_id")}
    fields["last_login_at"] = now

    if user.get("id"):
        await call_with_retry(
            DATABASE, db.users.update_one, {"_id": ObjectId(user["id"])}, {"$set": fields}
        )
        logger.info(f"User updated: {user['id']}")
        return {**fields, "id": user["id"]}

    fields.setdefault("created_at", now)
    result = await call_with_retry(DATABASE, db.users.insert_one, fields)
    user_id = str(result.inserted_id)
    logger.info(f"User created: {user_id} ({fields.get('provider')})")
    fields.pop("_id", None)
    return {**fields, "id": user_id}


async def is_username_available(db: Database, username: str, current_user_id: Optional[str] = None) -> bool:
    """usernames are unique case-insensitively. a name held by the caller counts as available."""
    existing = await call_with_retry(DATABASE, db.users.find_one, {"username": username.lower()})
    if existing is None:
        return True
    return current_user_id is not None and str(existing["_id"]) == current_user_id


async def set_streaks(db: Database, user_id: str, current: int, longest: int) -> None:
    """persist the cached streak counters on the user document"""
    await call_with_retry(
        DATABASE,
        db.users.update_one,
        {"_id": ObjectId(user_id)},
        {"$set": {
            "current_streak": current,
            "longest_streak": longest,
            "last_streak_update_date": datetime.now(timezone.utc).date().isoformat(),
        }},
    )
