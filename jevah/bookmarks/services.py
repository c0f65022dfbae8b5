import logging
from datetime import datetime
from typing import Any, Dict

from pymongo.errors import DuplicateKeyError

from jevah.db.mongo import BOOKMARKS, MEDIA
from jevah.errors import ConflictError, NotFoundError
from jevah.utils.mongodb_utils import paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)


class BookmarkService:
    def __init__(self, db):
        self.db = db

    async def add(self, user_id, media_id) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        media_oid = parse_object_id(media_id, "media")
        if not await self.db[MEDIA].find_one({"_id": media_oid}, {"_id": 1}):
            raise NotFoundError("Media not found")
        if await self.db[BOOKMARKS].find_one({"user": user_oid, "media": media_oid}):
            raise ConflictError("Media already bookmarked")

        bookmark = {"user": user_oid, "media": media_oid, "createdAt": datetime.utcnow()}
        try:
            result = await self.db[BOOKMARKS].insert_one(bookmark)
        except DuplicateKeyError:
            raise ConflictError("Media already bookmarked")
        bookmark["_id"] = result.inserted_id
        logger.info(f"Bookmark added: user={user_oid} media={media_oid}")
        return serialize_document(bookmark)

    async def remove(self, user_id, media_id) -> None:
        result = await self.db[BOOKMARKS].delete_one({
            "user": parse_object_id(user_id, "user"),
            "media": parse_object_id(media_id, "media"),
        })
        if result.deleted_count == 0:
            raise NotFoundError("Bookmark not found")

    async def is_bookmarked(self, user_id, media_id) -> bool:
        found = await self.db[BOOKMARKS].find_one({
            "user": parse_object_id(user_id, "user"),
            "media": parse_object_id(media_id, "media"),
        })
        return found is not None

    async def list(self, user_id, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query = {"user": parse_object_id(user_id, "user")}
        total = await self.db[BOOKMARKS].count_documents(query)
        cursor = self.db[BOOKMARKS].find(query).sort("createdAt", -1).skip(skip_for(page, limit)).limit(limit)
        bookmarks = await cursor.to_list(length=limit)

        media_ids = [b["media"] for b in bookmarks]
        media = {m["_id"]: m async for m in self.db[MEDIA].find({"_id": {"$in": media_ids}})}
        items = [
            {"_id": b["_id"], "bookmarkedAt": b["createdAt"], "media": media[b["media"]]}
            for b in bookmarks if b["media"] in media
        ]
        return {"bookmarks": serialize_document(items), "pagination": paginate(page, limit, total)}
