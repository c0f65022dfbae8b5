import logging
from datetime import datetime
from typing import Any, Dict, Optional

from pymongo import ReturnDocument

from jevah.dating.models import GENDER_AUDIENCE, MatchStatus
from jevah.dating.schemas import DatingFilters, DatingMessageCreate, DatingProfileUpsert
from jevah.db.mongo import DATING_MESSAGES, DATING_PROFILES, MATCHES, USERS
from jevah.errors import BadRequestError, ConflictError, NotFoundError, PermissionDeniedError
from jevah.notifications.services import NotificationService
from jevah.utils.mongodb_utils import (
    attach_users,
    convert_pydantic_for_mongodb,
    paginate,
    parse_object_id,
    serialize_document,
    skip_for,
)

logger = logging.getLogger(__name__)


class DatingService:
    def __init__(self, db):
        self.db = db

    async def upsert_profile(self, user_id, data: DatingProfileUpsert) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        now = datetime.utcnow()
        profile = await self.db[DATING_PROFILES].find_one_and_update(
            {"userId": user_oid},
            {
                "$set": {**convert_pydantic_for_mongodb(data.model_dump()), "lastActive": now, "updatedAt": now},
                "$setOnInsert": {"userId": user_oid, "isActive": True, "createdAt": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.info(f"Dating profile saved: user={user_oid}")
        return serialize_document(profile)

    async def _profile(self, user_oid) -> Dict[str, Any]:
        profile = await self.db[DATING_PROFILES].find_one({"userId": user_oid})
        if not profile:
            raise NotFoundError("Dating profile not found")
        return profile

    async def get_profile(self, user_id) -> Dict[str, Any]:
        profile = await self._profile(parse_object_id(user_id, "user"))
        await attach_users(self.db, [profile], "userId", target="user")
        return serialize_document(profile)

    async def potential_matches(
        self, user_id, filters: Optional[DatingFilters] = None, page: int = 1, limit: int = 20
    ) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        user = await self.db[USERS].find_one({"_id": user_oid}, {"gender": 1})
        if not user:
            raise NotFoundError("User not found")
        await self._profile(user_oid)

        query: Dict[str, Any] = {"userId": {"$ne": user_oid}, "isActive": True}
        audience = GENDER_AUDIENCE.get(user.get("gender"))
        if audience:
            query["lookingFor"] = {"$in": audience}
        filters = filters or DatingFilters()
        if filters.maxAge is not None:
            query["ageRange.min"] = {"$lte": filters.maxAge}
        if filters.minAge is not None:
            query["ageRange.max"] = {"$gte": filters.minAge}
        if filters.faithLevel:
            query["faithLevel"] = filters.faithLevel.value
        if filters.denomination:
            query["denomination"] = filters.denomination
        if filters.interests:
            query["interests"] = {"$in": filters.interests}

        total = await self.db[DATING_PROFILES].count_documents(query)
        cursor = self.db[DATING_PROFILES].find(query).sort("lastActive", -1).skip(skip_for(page, limit)).limit(limit)
        profiles = await cursor.to_list(length=limit)
        await attach_users(self.db, profiles, "userId", target="user")
        return {"profiles": serialize_document(profiles), "pagination": paginate(page, limit, total)}

    async def like_profile(self, user_id, liked_user_id) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        liked_oid = parse_object_id(liked_user_id, "user")
        if user_oid == liked_oid:
            raise BadRequestError("You cannot like your own profile")
        target = await self.db[DATING_PROFILES].find_one({"userId": liked_oid, "isActive": True}, {"_id": 1})
        if not target:
            raise NotFoundError("Dating profile not found")

        existing = await self.db[MATCHES].find_one({
            "$or": [
                {"user1": user_oid, "user2": liked_oid},
                {"user1": liked_oid, "user2": user_oid},
            ]
        })
        if existing:
            raise ConflictError("Match already exists")

        match = {
            "user1": user_oid,
            "user2": liked_oid,
            "status": MatchStatus.PENDING.value,
            "matchedAt": datetime.utcnow(),
            "isActive": True,
        }
        result = await self.db[MATCHES].insert_one(match)
        match["_id"] = result.inserted_id
        logger.info(f"Match created: id={match['_id']} from={user_oid} to={liked_oid}")
        await NotificationService(self.db).notify(
            liked_oid, "Someone likes you", "You have a new match request", "dating", match["_id"]
        )
        return serialize_document(match)

    async def respond_to_match(self, user_id, match_id, response: str) -> Dict[str, Any]:
        if response not in (MatchStatus.ACCEPTED.value, MatchStatus.REJECTED.value):
            raise BadRequestError("Response must be 'accepted' or 'rejected'")
        updates: Dict[str, Any] = {"status": response}
        if response == MatchStatus.ACCEPTED.value:
            updates["lastMessageAt"] = datetime.utcnow()

        match = await self.db[MATCHES].find_one_and_update(
            {
                "_id": parse_object_id(match_id, "match"),
                "user2": parse_object_id(user_id, "user"),
                "status": MatchStatus.PENDING.value,
            },
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not match:
            raise NotFoundError("Match not found or already responded")

        if response == MatchStatus.ACCEPTED.value:
            await NotificationService(self.db).notify(
                match["user1"], "It's a match!", "Your match request was accepted", "dating", match["_id"]
            )
        return serialize_document(match)

    async def get_matches(self, user_id, status: Optional[str] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        query: Dict[str, Any] = {"$or": [{"user1": user_oid}, {"user2": user_oid}], "isActive": True}
        if status:
            query["status"] = status

        total = await self.db[MATCHES].count_documents(query)
        cursor = self.db[MATCHES].find(query).sort("matchedAt", -1).skip(skip_for(page, limit)).limit(limit)
        matches = await cursor.to_list(length=limit)
        for match in matches:
            match["otherUser"] = match["user2"] if match["user1"] == user_oid else match["user1"]
        await attach_users(self.db, matches, "otherUser")
        return {"matches": serialize_document(matches), "pagination": paginate(page, limit, total)}

    async def _participant_match(self, user_oid, match_id, denied: str) -> Dict[str, Any]:
        match = await self.db[MATCHES].find_one({"_id": parse_object_id(match_id, "match")})
        if not match:
            raise NotFoundError("Match not found")
        if user_oid not in (match["user1"], match["user2"]):
            raise PermissionDeniedError(denied)
        return match

    async def send_message(self, sender_id, match_id, data: DatingMessageCreate) -> Dict[str, Any]:
        sender_oid = parse_object_id(sender_id, "user")
        match = await self._participant_match(sender_oid, match_id, "Unauthorized to send message in this match")
        if match.get("status") != MatchStatus.ACCEPTED.value:
            raise BadRequestError("Messages can only be sent in accepted matches")

        receiver_oid = match["user2"] if match["user1"] == sender_oid else match["user1"]
        now = datetime.utcnow()
        message = {
            "matchId": match["_id"],
            "sender": sender_oid,
            "receiver": receiver_oid,
            "content": data.content,
            "messageType": data.messageType.value,
            "attachments": data.attachments,
            "isRead": False,
            "createdAt": now,
        }
        result = await self.db[DATING_MESSAGES].insert_one(message)
        message["_id"] = result.inserted_id
        await self.db[MATCHES].update_one({"_id": match["_id"]}, {"$set": {"lastMessageAt": now}})
        return serialize_document(message)

    async def get_messages(self, user_id, match_id, page: int = 1, limit: int = 50) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        match = await self._participant_match(user_oid, match_id, "Unauthorized to access this match")
        query = {"matchId": match["_id"]}
        total = await self.db[DATING_MESSAGES].count_documents(query)
        cursor = self.db[DATING_MESSAGES].find(query).sort("createdAt", -1).skip(skip_for(page, limit)).limit(limit)
        messages = await cursor.to_list(length=limit)
        messages.reverse()
        return {"messages": serialize_document(messages), "pagination": paginate(page, limit, total)}

    async def mark_read(self, user_id, match_id) -> int:
        user_oid = parse_object_id(user_id, "user")
        match = await self._participant_match(user_oid, match_id, "Unauthorized to access this match")
        result = await self.db[DATING_MESSAGES].update_many(
            {"matchId": match["_id"], "receiver": user_oid, "isRead": False},
            {"$set": {"isRead": True, "readAt": datetime.utcnow()}},
        )
        return result.modified_count

    async def unread_count(self, user_id) -> int:
        return await self.db[DATING_MESSAGES].count_documents(
            {"receiver": parse_object_id(user_id, "user"), "isRead": False}
        )

    async def deactivate_profile(self, user_id) -> None:
        result = await self.db[DATING_PROFILES].update_one(
            {"userId": parse_object_id(user_id, "user")},
            {"$set": {"isActive": False, "updatedAt": datetime.utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Dating profile not found")
        logger.info(f"Dating profile deactivated: user={user_id}")
