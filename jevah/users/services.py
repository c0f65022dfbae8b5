import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from jevah.db.mongo import USERS
from jevah.errors import BadRequestError, NotFoundError
from jevah.users.models import UserProfile, UserRole
from jevah.users.schemas import UserProfileUpdate
from jevah.utils.mongodb_utils import paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)


def to_profile(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a user document as a public profile."""
    return UserProfile(**serialize_document(doc)).model_dump(by_alias=True, mode="json")


class UserService:
    def __init__(self, db):
        self.db = db

    async def get_user(self, user_id) -> Dict[str, Any]:
        user = await self.db[USERS].find_one({"_id": parse_object_id(user_id, "user")})
        if not user:
            raise NotFoundError("User not found")
        return to_profile(user)

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if role:
            query["role"] = role
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"firstName": pattern}, {"lastName": pattern}, {"email": pattern}]

        total = await self.db[USERS].count_documents(query)
        cursor = self.db[USERS].find(query).sort("createdAt", -1).skip(skip_for(page, limit)).limit(limit)
        users = [to_profile(doc) async for doc in cursor]
        return {"users": users, "pagination": paginate(page, limit, total)}

    async def update_profile(self, user_id, data: UserProfileUpdate) -> Dict[str, Any]:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise BadRequestError("No fields to update")
        if "emailNotifications" in updates:
            prefs = updates.pop("emailNotifications") or {}
            for key, value in prefs.items():
                updates[f"emailNotifications.{key}"] = bool(value)
        updates["updatedAt"] = datetime.utcnow()

        user = await self.db[USERS].find_one_and_update(
            {"_id": parse_object_id(user_id, "user")},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise NotFoundError("User not found")
        logger.info(f"Profile updated: id={user_id} fields={sorted(updates)}")
        return to_profile(user)

    async def update_role(self, user_id, role: str) -> Dict[str, Any]:
        if role not in {r.value for r in UserRole}:
            raise BadRequestError(f"Invalid role: {role}")
        user = await self.db[USERS].find_one_and_update(
            {"_id": parse_object_id(user_id, "user")},
            {"$set": {"role": role, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise NotFoundError("User not found")
        return to_profile(user)

    async def delete_user(self, user_id) -> None:
        result = await self.db[USERS].delete_one({"_id": parse_object_id(user_id, "user")})
        if result.deleted_count == 0:
            raise NotFoundError("User not found")
        logger.info(f"User deleted: id={user_id}")

    async def search_profiles(self, q: str, limit: int = 20) -> List[Dict[str, Any]]:
        q = (q or "").strip()
        if not q:
            return []
        pattern = {"$regex": re.escape(q), "$options": "i"}
        cursor = self.db[USERS].find(
            {"$or": [{"firstName": pattern}, {"lastName": pattern}, {"artistProfile.artistName": pattern}]}
        ).limit(limit)
        return [to_profile(doc) async for doc in cursor]

    async def get_public_profiles(self, ids: List[str]) -> List[Dict[str, Any]]:
        object_ids = [parse_object_id(i, "user") for i in ids]
        cursor = self.db[USERS].find({"_id": {"$in": object_ids}})
        return [to_profile(doc) async for doc in cursor]

    async def get_user_stats(self) -> Dict[str, Any]:
        by_role = await self.db[USERS].aggregate([
            {"$group": {"_id": "$role", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ]).to_list(length=None)
        return {
            "totalUsers": await self.db[USERS].count_documents({}),
            "verifiedUsers": await self.db[USERS].count_documents({"isEmailVerified": True}),
            "kids": await self.db[USERS].count_documents({"isKid": True}),
            "verifiedArtists": await self.db[USERS].count_documents({"isVerifiedArtist": True}),
            "byRole": {row["_id"]: row["count"] for row in by_role if row["_id"]},
        }
