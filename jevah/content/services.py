import logging
from typing import Any, Dict, Optional

from pymongo import ReturnDocument

from jevah.artists.services import ArtistService
from jevah.bookmarks.services import BookmarkService
from jevah.content.schemas import MEDIA_BACKED_TYPES, InteractiveContentType
from jevah.db.mongo import DEVOTIONALS, MEDIA, MEDIA_INTERACTIONS, MEDIA_USER_ACTIONS, MERCHANDISE, USERS, transaction
from jevah.devotionals.services import DevotionalService
from jevah.errors import BadRequestError, NotFoundError
from jevah.interactions.services import InteractionService
from jevah.utils.mongodb_utils import parse_object_id, serialize_document

logger = logging.getLogger(__name__)


class ContentInteractionService:
    """
    One like endpoint over every kind of content.

    Media-backed types (media, ebook, podcast) toggle a media like,
    devotionals toggle a devotional like, artists toggle a follow and
    merchandise toggles a favorite stored on the user.
    """

    def __init__(self, db):
        self.db = db

    async def toggle_like(self, user_id, content_id, content_type: str) -> Dict[str, Any]:
        if content_type in MEDIA_BACKED_TYPES:
            result = await InteractionService(self.db).toggle_like(user_id, content_id)
            return {"contentType": content_type, "liked": result["liked"], "likeCount": result["likeCount"]}
        if content_type == InteractiveContentType.DEVOTIONAL.value:
            result = await DevotionalService(self.db).toggle_like(user_id, content_id)
            return {"contentType": content_type, "liked": result["liked"], "likeCount": result["likeCount"]}
        if content_type == InteractiveContentType.ARTIST.value:
            return await self._toggle_follow(user_id, content_id)
        if content_type == InteractiveContentType.MERCH.value:
            return await self._toggle_merch_favorite(user_id, content_id)
        raise BadRequestError(f"Unsupported content type: {content_type}")

    async def _toggle_follow(self, user_id, artist_id) -> Dict[str, Any]:
        artists = ArtistService(self.db)
        if await artists.is_following(user_id, artist_id):
            result = await artists.unfollow(user_id, artist_id)
        else:
            result = await artists.follow(user_id, artist_id)
        return {"contentType": "artist", "liked": result["following"], "likeCount": result["followerCount"]}

    async def _toggle_merch_favorite(self, user_id, merchandise_id) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        item_oid = parse_object_id(merchandise_id, "merchandise")
        if not await self.db[MERCHANDISE].find_one({"_id": item_oid}, {"_id": 1}):
            raise NotFoundError("Merchandise not found")

        async with transaction(self.db) as session:
            favorited = await self.db[USERS].find_one(
                {"_id": user_oid, "favoriteMerchandise": item_oid}, {"_id": 1}, session=session
            )
            if favorited:
                await self.db[USERS].update_one(
                    {"_id": user_oid}, {"$pull": {"favoriteMerchandise": item_oid}}, session=session
                )
                delta = -1
            else:
                await self.db[USERS].update_one(
                    {"_id": user_oid}, {"$addToSet": {"favoriteMerchandise": item_oid}}, session=session
                )
                delta = 1
            updated = await self.db[MERCHANDISE].find_one_and_update(
                {"_id": item_oid},
                {"$inc": {"favoriteCount": delta}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        logger.info(f"Merch favorite toggled: user={user_oid} item={item_oid} favorited={delta > 0}")
        return {"contentType": "merch", "liked": delta > 0, "likeCount": max(updated.get("favoriteCount", 0), 0)}

    async def get_content_metadata(self, content_id, content_type: str, user_id: Optional[Any] = None) -> Dict[str, Any]:
        if content_type in MEDIA_BACKED_TYPES:
            return await self._media_metadata(content_id, content_type, user_id)
        if content_type == InteractiveContentType.DEVOTIONAL.value:
            return await self._devotional_metadata(content_id, user_id)
        if content_type == InteractiveContentType.ARTIST.value:
            return await self._artist_metadata(content_id, user_id)
        if content_type == InteractiveContentType.MERCH.value:
            return await self._merch_metadata(content_id, user_id)
        raise BadRequestError(f"Unsupported content type: {content_type}")

    async def _media_metadata(self, content_id, content_type, user_id) -> Dict[str, Any]:
        media = await self.db[MEDIA].find_one({"_id": parse_object_id(content_id, "content")})
        if not media:
            raise NotFoundError("Content not found")
        stats = {
            "likes": media.get("likeCount", 0),
            "comments": media.get("commentCount", 0),
            "shares": media.get("shareCount", 0),
            "views": media.get("viewCount", 0),
            "downloads": media.get("downloadCount", 0),
        }
        user_state = None
        if user_id:
            user_oid = parse_object_id(user_id, "user")
            interactions = await self.db[MEDIA_INTERACTIONS].find(
                {"user": user_oid, "media": media["_id"], "isRemoved": {"$ne": True}}
            ).to_list(length=None)
            kinds = {i["interactionType"] for i in interactions}
            favorite = await self.db[MEDIA_USER_ACTIONS].find_one(
                {"user": user_oid, "media": media["_id"], "actionType": "favorite"}
            )
            user_state = {
                "hasLiked": "like" in kinds,
                "hasCommented": "comment" in kinds,
                "hasShared": "share" in kinds,
                "hasFavorited": favorite is not None,
                "hasBookmarked": await BookmarkService(self.db).is_bookmarked(user_oid, media["_id"]),
            }
        return serialize_document({
            "id": media["_id"],
            "contentType": content_type,
            "title": media.get("title"),
            "stats": stats,
            "userInteraction": user_state,
        })

    async def _devotional_metadata(self, content_id, user_id) -> Dict[str, Any]:
        devotional = await self.db[DEVOTIONALS].find_one({"_id": parse_object_id(content_id, "content")})
        if not devotional:
            raise NotFoundError("Content not found")
        user_state = None
        if user_id:
            user_state = {"hasLiked": await DevotionalService(self.db).has_liked(user_id, devotional["_id"])}
        return serialize_document({
            "id": devotional["_id"],
            "contentType": "devotional",
            "title": devotional.get("title"),
            "stats": {"likes": devotional.get("likeCount", 0)},
            "userInteraction": user_state,
        })

    async def _artist_metadata(self, content_id, user_id) -> Dict[str, Any]:
        artist = await self.db[USERS].find_one({"_id": parse_object_id(content_id, "content"), "role": "artist"})
        if not artist:
            raise NotFoundError("Content not found")
        profile = artist.get("artistProfile") or {}
        user_state = None
        if user_id:
            user_state = {"hasLiked": await ArtistService(self.db).is_following(user_id, artist["_id"])}
        return serialize_document({
            "id": artist["_id"],
            "contentType": "artist",
            "title": profile.get("artistName"),
            "stats": {"likes": profile.get("followerCount", 0)},
            "userInteraction": user_state,
        })

    async def _merch_metadata(self, content_id, user_id) -> Dict[str, Any]:
        item = await self.db[MERCHANDISE].find_one({"_id": parse_object_id(content_id, "content")})
        if not item:
            raise NotFoundError("Content not found")
        user_state = None
        if user_id:
            favorited = await self.db[USERS].find_one(
                {"_id": parse_object_id(user_id, "user"), "favoriteMerchandise": item["_id"]}, {"_id": 1}
            )
            user_state = {"hasLiked": favorited is not None}
        return serialize_document({
            "id": item["_id"],
            "contentType": "merch",
            "title": item.get("title"),
            "stats": {
                "likes": item.get("favoriteCount", 0),
                "views": item.get("viewCount", 0),
                "purchases": item.get("purchaseCount", 0),
                "rating": item.get("rating", 0),
            },
            "userInteraction": user_state,
        })
