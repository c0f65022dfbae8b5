import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from jevah.auth.permissions import is_admin
from jevah.db.mongo import DEVOTIONALS, DEVOTIONAL_LIKES, transaction
from jevah.devotionals.schemas import DevotionalCreate, DevotionalUpdate
from jevah.errors import BadRequestError, NotFoundError, PermissionDeniedError
from jevah.utils.mongodb_utils import attach_users, paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)


def parse_sort(sort: str) -> List[tuple]:
    """'-createdAt' -> [('createdAt', -1)]; 'title' -> [('title', 1)]."""
    fields = []
    for part in (sort or "-createdAt").split(","):
        part = part.strip()
        if not part:
            continue
        fields.append((part[1:], -1) if part.startswith("-") else (part, 1))
    return fields or [("createdAt", -1)]


class DevotionalService:
    def __init__(self, db):
        self.db = db

    async def create(self, user_id, data: DevotionalCreate) -> Dict[str, Any]:
        now = datetime.utcnow()
        doc = {
            **data.model_dump(),
            "submittedBy": parse_object_id(user_id, "user"),
            "likeCount": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self.db[DEVOTIONALS].insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Devotional created: id={doc['_id']} by user={user_id}")
        return serialize_document(doc)

    async def list(
        self,
        search: Optional[str] = None,
        tags: Optional[List[str]] = None,
        submitted_by: Optional[str] = None,
        current_user_id=None,
        sort: str = "-createdAt",
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"scriptureReference": pattern}]
        if tags:
            query["tags"] = {"$in": tags}
        if submitted_by == "me":
            if not current_user_id:
                raise BadRequestError("Authentication required to filter by 'me'")
            query["submittedBy"] = parse_object_id(current_user_id, "user")
        elif submitted_by:
            query["submittedBy"] = parse_object_id(submitted_by, "user")

        total = await self.db[DEVOTIONALS].count_documents(query)
        cursor = self.db[DEVOTIONALS].find(query).sort(parse_sort(sort)).skip(skip_for(page, limit)).limit(limit)
        devotionals = await cursor.to_list(length=limit)
        await attach_users(self.db, devotionals, "submittedBy")
        return {"devotionals": serialize_document(devotionals), "pagination": paginate(page, limit, total)}

    async def get(self, devotional_id) -> Dict[str, Any]:
        devotional = await self.db[DEVOTIONALS].find_one({"_id": parse_object_id(devotional_id, "devotional")})
        if not devotional:
            raise NotFoundError("Devotional not found")
        await attach_users(self.db, [devotional], "submittedBy")
        return serialize_document(devotional)

    async def update(self, devotional_id, user: Dict[str, Any], data: DevotionalUpdate) -> Dict[str, Any]:
        devotional = await self.db[DEVOTIONALS].find_one({"_id": parse_object_id(devotional_id, "devotional")})
        if not devotional:
            raise NotFoundError("Devotional not found")
        if devotional.get("submittedBy") != user["_id"] and not is_admin(user):
            raise PermissionDeniedError("Unauthorized to edit this devotional")

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise BadRequestError("No fields to update")
        updates["updatedAt"] = datetime.utcnow()
        updated = await self.db[DEVOTIONALS].find_one_and_update(
            {"_id": devotional["_id"]}, {"$set": updates}, return_document=ReturnDocument.AFTER
        )
        return serialize_document(updated)

    async def delete(self, devotional_id, user: Dict[str, Any]) -> None:
        devotional = await self.db[DEVOTIONALS].find_one({"_id": parse_object_id(devotional_id, "devotional")})
        if not devotional:
            raise NotFoundError("Devotional not found")
        if devotional.get("submittedBy") != user["_id"] and not is_admin(user):
            raise PermissionDeniedError("Unauthorized to delete this devotional")
        await self.db[DEVOTIONALS].delete_one({"_id": devotional["_id"]})
        await self.db[DEVOTIONAL_LIKES].delete_many({"devotional": devotional["_id"]})

    async def toggle_like(self, user_id, devotional_id) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        devotional_oid = parse_object_id(devotional_id, "devotional")
        if not await self.db[DEVOTIONALS].find_one({"_id": devotional_oid}, {"_id": 1}):
            raise NotFoundError("Devotional not found")

        async with transaction(self.db) as session:
            existing = await self.db[DEVOTIONAL_LIKES].find_one(
                {"user": user_oid, "devotional": devotional_oid}, session=session
            )
            if existing:
                await self.db[DEVOTIONAL_LIKES].delete_one({"_id": existing["_id"]}, session=session)
                delta = -1
            else:
                await self.db[DEVOTIONAL_LIKES].insert_one(
                    {"user": user_oid, "devotional": devotional_oid, "createdAt": datetime.utcnow()}, session=session
                )
                delta = 1
            updated = await self.db[DEVOTIONALS].find_one_and_update(
                {"_id": devotional_oid},
                {"$inc": {"likeCount": delta}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        return {"liked": delta > 0, "likeCount": max(updated.get("likeCount", 0), 0)}

    async def has_liked(self, user_id, devotional_id) -> bool:
        found = await self.db[DEVOTIONAL_LIKES].find_one({
            "user": parse_object_id(user_id, "user"),
            "devotional": parse_object_id(devotional_id, "devotional"),
        })
        return found is not None
