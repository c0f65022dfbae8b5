import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from jevah.db.mongo import MEDIA, USERS
from jevah.errors import BadRequestError, ConflictError, NotFoundError
from jevah.library.schemas import LibraryUpdate
from jevah.utils.mongodb_utils import paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)


class LibraryService:
    """Personal library embedded in the user document."""

    def __init__(self, db):
        self.db = db

    async def _items(self, user_oid) -> List[Dict[str, Any]]:
        user = await self.db[USERS].find_one({"_id": user_oid}, {"library": 1})
        if not user:
            raise NotFoundError("User not found")
        return user.get("library", [])

    async def _replace(self, user_oid, items: List[Dict[str, Any]]) -> None:
        await self.db[USERS].update_one({"_id": user_oid}, {"$set": {"library": items, "updatedAt": datetime.utcnow()}})

    async def save(self, user_id, media_id, notes: Optional[str] = None, is_favorite: bool = False) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        media = await self.db[MEDIA].find_one({"_id": parse_object_id(media_id, "media")})
        if not media:
            raise NotFoundError("Media not found")

        now = datetime.utcnow()
        item = {
            "mediaId": media["_id"],
            "mediaType": media.get("contentType"),
            "title": media.get("title"),
            "thumbnailUrl": media.get("thumbnailUrl"),
            "addedAt": now,
            "lastAccessed": now,
            "playCount": 0,
            "progress": 0,
            "isFavorite": is_favorite,
            "notes": notes,
        }
        result = await self.db[USERS].update_one(
            {"_id": user_oid, "library.mediaId": {"$ne": media["_id"]}},
            {"$push": {"library": item}},
        )
        if result.matched_count == 0:
            if not await self.db[USERS].find_one({"_id": user_oid}, {"_id": 1}):
                raise NotFoundError("User not found")
            raise ConflictError("Media is already in your library")
        logger.info(f"Library item saved: user={user_oid} media={media['_id']}")
        return serialize_document(item)

    async def remove(self, user_id, media_id) -> None:
        user_oid = parse_object_id(user_id, "user")
        media_oid = parse_object_id(media_id, "media")
        result = await self.db[USERS].update_one(
            {"_id": user_oid, "library.mediaId": media_oid},
            {"$pull": {"library": {"mediaId": media_oid}}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Media is not in your library")

    async def list(
        self,
        user_id,
        page: int = 1,
        limit: int = 20,
        content_type: Optional[str] = None,
        favorites_only: bool = False,
    ) -> Dict[str, Any]:
        items = await self._items(parse_object_id(user_id, "user"))
        if content_type:
            items = [i for i in items if i.get("mediaType") == content_type]
        if favorites_only:
            items = [i for i in items if i.get("isFavorite")]
        items = sorted(items, key=lambda i: i.get("addedAt") or datetime.min, reverse=True)
        start = skip_for(page, limit)
        return {"items": serialize_document(items[start:start + limit]), "pagination": paginate(page, limit, len(items))}

    async def update(self, user_id, media_id, data: LibraryUpdate) -> Dict[str, Any]:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise BadRequestError("No fields to update")
        return await self._modify(user_id, media_id, lambda item: item.update(updates))

    async def toggle_favorite(self, user_id, media_id) -> Dict[str, Any]:
        return await self._modify(user_id, media_id, lambda item: item.update(isFavorite=not item.get("isFavorite")))

    async def increment_play_count(self, user_id, media_id) -> Dict[str, Any]:
        return await self._modify(user_id, media_id, lambda item: item.update(playCount=item.get("playCount", 0) + 1))

    async def _modify(self, user_id, media_id, change) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        media_oid = parse_object_id(media_id, "media")
        items = await self._items(user_oid)
        for item in items:
            if item.get("mediaId") == media_oid:
                change(item)
                item["lastAccessed"] = datetime.utcnow()
                await self._replace(user_oid, items)
                return serialize_document(item)
        raise NotFoundError("Media is not in your library")

    async def stats(self, user_id) -> Dict[str, Any]:
        items = await self._items(parse_object_id(user_id, "user"))
        by_type: Dict[str, int] = {}
        for item in items:
            key = item.get("mediaType") or "unknown"
            by_type[key] = by_type.get(key, 0) + 1
        recent = sorted(items, key=lambda i: i.get("lastAccessed") or datetime.min, reverse=True)[:5]
        return {
            "totalItems": len(items),
            "favorites": sum(1 for i in items if i.get("isFavorite")),
            "totalPlays": sum(i.get("playCount", 0) for i in items),
            "byType": by_type,
            "recentlyAccessed": serialize_document(recent),
        }

    async def search(self, user_id, q: str) -> List[Dict[str, Any]]:
        pattern = re.compile(re.escape((q or "").strip()), re.IGNORECASE)
        items = await self._items(parse_object_id(user_id, "user"))
        matches = [i for i in items if pattern.search(i.get("title") or "") or pattern.search(i.get("notes") or "")]
        return serialize_document(matches)

    async def by_category(self, user_id) -> Dict[str, List[Dict[str, Any]]]:
        items = await self._items(parse_object_id(user_id, "user"))
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for item in items:
            grouped.setdefault(item.get("mediaType") or "unknown", []).append(item)
        return serialize_document(grouped)

    async def clear(self, user_id) -> int:
        user_oid = parse_object_id(user_id, "user")
        items = await self._items(user_oid)
        await self._replace(user_oid, [])
        logger.info(f"Library cleared: user={user_oid} items={len(items)}")
        return len(items)
