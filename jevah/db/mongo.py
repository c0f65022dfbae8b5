from contextlib import asynccontextmanager
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from jevah.config import settings

logger = logging.getLogger(__name__)

# Client MongoDB asynchrone
client = AsyncIOMotorClient(settings.MONGO_URL)
db = client[settings.MONGO_DB]

# Collections
USERS = "users"
MEDIA = "media"
MEDIA_INTERACTIONS = "media_interactions"
MEDIA_USER_ACTIONS = "media_user_actions"
BOOKMARKS = "bookmarks"
DEVOTIONALS = "devotionals"
DEVOTIONAL_LIKES = "devotional_likes"
GAMES = "games"
GAME_SESSIONS = "game_sessions"
GAME_ACHIEVEMENTS = "game_achievements"
MERCHANDISE = "merchandise"
MERCH_PURCHASES = "merch_purchases"
DATING_PROFILES = "dating_profiles"
MATCHES = "matches"
DATING_MESSAGES = "dating_messages"
CONVERSATIONS = "conversations"
MESSAGES = "messages"
NOTIFICATIONS = "notifications"
BLACKLISTED_TOKENS = "blacklisted_tokens"
CHAT_SESSIONS = "chat_sessions"
LOCATIONS = "state_cities"


def get_database():
    """FastAPI dependency returning the application database."""
    return db


@asynccontextmanager
async def transaction(database):
    """
    Run a block inside a multi-document transaction.

    Yields the session to pass as ``session=`` to every driver call in the
    block. When transactions are disabled (standalone server, tests) the block
    runs without a session and ``None`` is yielded.
    """
    if not settings.MONGO_TRANSACTIONS:
        yield None
        return

    async with await database.client.start_session() as session:
        async with session.start_transaction():
            yield session


async def ensure_indexes(database) -> None:
    await database[USERS].create_index("email", unique=True)
    await database[USERS].create_index("role")
    await database[MEDIA].create_index([("contentType", ASCENDING), ("createdAt", DESCENDING)])
    await database[MEDIA].create_index("uploadedBy")
    await database[MEDIA_INTERACTIONS].create_index(
        [("user", ASCENDING), ("media", ASCENDING), ("interactionType", ASCENDING)]
    )
    await database[MEDIA_USER_ACTIONS].create_index(
        [("user", ASCENDING), ("media", ASCENDING), ("actionType", ASCENDING)], unique=True
    )
    await database[BOOKMARKS].create_index([("user", ASCENDING), ("media", ASCENDING)], unique=True)
    await database[DEVOTIONAL_LIKES].create_index(
        [("user", ASCENDING), ("devotional", ASCENDING)], unique=True
    )
    await database[GAME_SESSIONS].create_index([("userId", ASCENDING), ("gameId", ASCENDING)])
    await database[GAME_ACHIEVEMENTS].create_index(
        [("userId", ASCENDING), ("gameId", ASCENDING), ("achievementType", ASCENDING)], unique=True
    )
    await database[DATING_PROFILES].create_index("userId", unique=True)
    await database[MATCHES].create_index([("user1", ASCENDING), ("user2", ASCENDING)])
    await database[MESSAGES].create_index([("conversation", ASCENDING), ("createdAt", DESCENDING)])
    await database[NOTIFICATIONS].create_index([("user", ASCENDING), ("isRead", ASCENDING)])
    await database[CHAT_SESSIONS].create_index("userId", unique=True)
    await database[LOCATIONS].create_index([("state", ASCENDING), ("city", ASCENDING)])
    await database[BLACKLISTED_TOKENS].create_index("token", unique=True)
    await database[BLACKLISTED_TOKENS].create_index("expiresAt", expireAfterSeconds=0)
    logger.info("MongoDB indexes ensured")
