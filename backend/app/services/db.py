# async mongodb client for the backend api
# uses motor for non-blocking operations

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.config import settings

logger = logging.getLogger(__name__)


class Database:
    """async mongodb connection manager"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self):
        """establish connection to mongodb and make sure lookup indexes exist"""
        if self.client is not None:
            return

        logger.info(f"Connecting to MongoDB database: {settings.MONGODB_DATABASE}")
        # tz_aware so entry timestamps come back as utc datetimes
        self.client = AsyncIOMotorClient(settings.MONGODB_URI, tz_aware=True)
        self.db = self.client[settings.MONGODB_DATABASE]

        # verify connection
        await self.client.admin.command("ping")

        await self.users.create_index([("provider", 1), ("provider_id", 1)], unique=True)
        await self.journal_entries.create_index([("user_id", 1), ("timestamp", -1)])
        await self.journal_entries.create_index("entry_id", unique=True)
        await self.chat_sessions.create_index([("user_id", 1), ("last_message_at", -1)])
        logger.info("MongoDB connection established")

    async def close(self):
        """close mongodb connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    # collection accessors

    @property
    def users(self):
        return self.db["users"]

    @property
    def journal_entries(self):
        return self.db["journal_entries"]

    @property
    def chat_sessions(self):
        return self.db["chat_sessions"]


# singleton instance
db = Database()


async def get_db() -> Database:
    """dependency injection for database access"""
    return db
