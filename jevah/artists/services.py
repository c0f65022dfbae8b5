import logging
from datetime import datetime
from typing import Any, Dict, List

from pymongo import ReturnDocument

from jevah.artists.schemas import ArtistProfileUpdate
from jevah.audit.services import AuditService
from jevah.db.mongo import USERS, transaction
from jevah.errors import BadRequestError, ConflictError, NotFoundError
from jevah.notifications.services import NotificationService
from jevah.users.services import to_profile
from jevah.utils import email as mailer
from jevah.utils.mongodb_utils import paginate, parse_object_id, skip_for

logger = logging.getLogger(__name__)


def display_name(user: Dict[str, Any]) -> str:
    artist_name = (user.get("artistProfile") or {}).get("artistName")
    if artist_name:
        return artist_name
    name = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()
    return name or user.get("email", "A Jevah user")


class ArtistService:
    def __init__(self, db):
        self.db = db

    async def _get_artist(self, artist_id) -> Dict[str, Any]:
        artist = await self.db[USERS].find_one({"_id": parse_object_id(artist_id, "artist")})
        if not artist:
            raise NotFoundError("Artist not found")
        return artist

    async def follow(self, follower_id, artist_id) -> Dict[str, Any]:
        follower_oid = parse_object_id(follower_id, "user")
        artist_oid = parse_object_id(artist_id, "artist")
        if follower_oid == artist_oid:
            raise BadRequestError("You cannot follow yourself")

        artist = await self._get_artist(artist_oid)
        if artist.get("role") != "artist" or not (
            artist.get("isVerifiedArtist") or (artist.get("artistProfile") or {}).get("isVerifiedArtist")
        ):
            raise BadRequestError("Target user is not a verified artist")

        follower = await self.db[USERS].find_one({"_id": follower_oid})
        if not follower:
            raise NotFoundError("User not found")
        if artist_oid in follower.get("following", []):
            raise ConflictError("You are already following this artist")

        async with transaction(self.db) as session:
            await self.db[USERS].update_one(
                {"_id": follower_oid},
                {"$addToSet": {"following": artist_oid}, "$inc": {"artistProfile.followingCount": 1}},
                session=session,
            )
            updated = await self.db[USERS].find_one_and_update(
                {"_id": artist_oid},
                {"$addToSet": {"followers": follower_oid}, "$inc": {"artistProfile.followerCount": 1}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
            await AuditService(self.db).log_activity(follower_oid, "follow", "artist", artist_oid, session=session)

        follower_name = display_name(follower)
        logger.info(f"User {follower_oid} followed artist {artist_oid}")
        await NotificationService(self.db).notify(
            artist_oid, "New follower", f"{follower_name} started following you", "social", follower_oid
        )
        if (artist.get("emailNotifications") or {}).get("newFollowers"):
            await mailer.send_new_follower_email(artist["email"], display_name(artist), follower_name)

        return {
            "following": True,
            "followerCount": (updated.get("artistProfile") or {}).get("followerCount", 0),
        }

    async def unfollow(self, follower_id, artist_id) -> Dict[str, Any]:
        follower_oid = parse_object_id(follower_id, "user")
        artist_oid = parse_object_id(artist_id, "artist")
        await self._get_artist(artist_oid)

        follower = await self.db[USERS].find_one({"_id": follower_oid})
        if not follower or artist_oid not in follower.get("following", []):
            raise BadRequestError("You are not following this artist")

        async with transaction(self.db) as session:
            await self.db[USERS].update_one(
                {"_id": follower_oid},
                {"$pull": {"following": artist_oid}, "$inc": {"artistProfile.followingCount": -1}},
                session=session,
            )
            updated = await self.db[USERS].find_one_and_update(
                {"_id": artist_oid},
                {"$pull": {"followers": follower_oid}, "$inc": {"artistProfile.followerCount": -1}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
            await AuditService(self.db).log_activity(follower_oid, "unfollow", "artist", artist_oid, session=session)

        logger.info(f"User {follower_oid} unfollowed artist {artist_oid}")
        return {
            "following": False,
            "followerCount": (updated.get("artistProfile") or {}).get("followerCount", 0),
        }

    async def is_following(self, follower_id, artist_id) -> bool:
        found = await self.db[USERS].find_one(
            {"_id": parse_object_id(follower_id, "user"), "following": parse_object_id(artist_id, "artist")},
            {"_id": 1},
        )
        return found is not None

    async def _page_of_users(self, ids: List, page: int, limit: int) -> Dict[str, Any]:
        total = len(ids)
        window = ids[skip_for(page, limit): skip_for(page, limit) + limit]
        docs = {}
        if window:
            async for doc in self.db[USERS].find({"_id": {"$in": window}}):
                docs[doc["_id"]] = doc
        users = [to_profile(docs[i]) for i in window if i in docs]
        return {"users": users, "pagination": paginate(page, limit, total)}

    async def get_followers(self, artist_id, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        artist = await self._get_artist(artist_id)
        return await self._page_of_users(artist.get("followers", []), page, limit)

    async def get_following(self, user_id, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        user = await self.db[USERS].find_one({"_id": parse_object_id(user_id, "user")})
        if not user:
            raise NotFoundError("User not found")
        return await self._page_of_users(user.get("following", []), page, limit)

    async def update_artist_profile(self, user: Dict[str, Any], data: ArtistProfileUpdate) -> Dict[str, Any]:
        if user.get("role") != "artist":
            raise BadRequestError("Only artists can update an artist profile")
        updates = {f"artistProfile.{k}": v for k, v in data.model_dump(exclude_unset=True).items()}
        if not updates:
            raise BadRequestError("No fields to update")
        updates["updatedAt"] = datetime.utcnow()
        updated = await self.db[USERS].find_one_and_update(
            {"_id": user["_id"]}, {"$set": updates}, return_document=ReturnDocument.AFTER
        )
        return to_profile(updated)

    async def submit_verification(self, user: Dict[str, Any], documents: List[str]) -> Dict[str, Any]:
        if user.get("role") != "artist":
            raise BadRequestError("Only artists can request verification")
        if not documents:
            raise BadRequestError("At least one verification document is required")
        updated = await self.db[USERS].find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"artistProfile.verificationDocuments": documents, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return to_profile(updated)

    async def verify_artist(self, artist_id) -> Dict[str, Any]:
        artist = await self._get_artist(artist_id)
        if artist.get("role") != "artist":
            raise BadRequestError("User is not an artist")
        updated = await self.db[USERS].find_one_and_update(
            {"_id": artist["_id"]},
            {"$set": {"isVerifiedArtist": True, "artistProfile.isVerifiedArtist": True, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        logger.info(f"Artist verified: id={artist['_id']}")
        await NotificationService(self.db).notify(
            artist["_id"], "Artist verified", "Your artist account has been verified", "system"
        )
        return to_profile(updated)
