import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from jevah.audit.services import AuditService
from jevah.auth.permissions import is_admin
from jevah.config import settings
from jevah.db.mongo import MEDIA, MEDIA_INTERACTIONS, MEDIA_USER_ACTIONS, USERS, transaction
from jevah.errors import BadRequestError, ConflictError, NotFoundError, PermissionDeniedError
from jevah.media import models
from jevah.media.schemas import LiveStreamSchedule, LiveStreamStart, MediaUploadForm
from jevah.notifications.services import NotificationService
from jevah.utils import email as mailer
from jevah.utils.code import generate_stream_key
from jevah.utils.mongodb_utils import attach_users, paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "newest": [("createdAt", -1)],
    "oldest": [("createdAt", 1)],
    "popular": [("viewCount", -1), ("likeCount", -1)],
    "title": [("title", 1)],
}


def _counters() -> Dict[str, int]:
    return {
        "viewCount": 0,
        "listenCount": 0,
        "readCount": 0,
        "downloadCount": 0,
        "favoriteCount": 0,
        "shareCount": 0,
        "likeCount": 0,
        "commentCount": 0,
    }


def _is_verified_artist(user: Dict[str, Any]) -> bool:
    return bool(user.get("isVerifiedArtist") or (user.get("artistProfile") or {}).get("isVerifiedArtist"))


class MediaService:
    def __init__(self, db, storage=None):
        self.db = db
        self.storage = storage

    # ─────────────────────────────────────────────
    # Lecture
    # ─────────────────────────────────────────────

    async def _get(self, media_id, session=None) -> Dict[str, Any]:
        media = await self.db[MEDIA].find_one({"_id": parse_object_id(media_id, "media")}, session=session)
        if not media:
            raise NotFoundError("Media not found")
        return media

    async def get_media(self, media_id) -> Dict[str, Any]:
        media = await self._get(media_id)
        await attach_users(self.db, [media], "uploadedBy")
        return serialize_document(media)

    async def list_media(
        self,
        search: Optional[str] = None,
        content_type: Optional[str] = None,
        category: Optional[str] = None,
        topics: Optional[List[str]] = None,
        uploaded_by: Optional[str] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"description": pattern}]
        if content_type:
            query["contentType"] = content_type
        if category:
            query["category"] = category
        if topics:
            query["topics"] = {"$in": topics}
        if uploaded_by:
            query["uploadedBy"] = parse_object_id(uploaded_by, "user")

        total = await self.db[MEDIA].count_documents(query)
        cursor = (
            self.db[MEDIA].find(query)
            .sort(SORT_FIELDS.get(sort, SORT_FIELDS["newest"]))
            .skip(skip_for(page, limit))
            .limit(limit)
        )
        media = await cursor.to_list(length=limit)
        await attach_users(self.db, media, "uploadedBy")
        return {"media": serialize_document(media), "pagination": paginate(page, limit, total)}

    # ─────────────────────────────────────────────
    # Upload / suppression
    # ─────────────────────────────────────────────

    def _validate_upload(
        self,
        form: MediaUploadForm,
        file: Optional[bytes],
        file_mime: Optional[str],
        thumbnail: Optional[bytes],
        thumbnail_mime: Optional[str],
    ) -> None:
        content_type = form.contentType.value
        if content_type not in models.UPLOADABLE_CONTENT_TYPES:
            raise BadRequestError(f"Invalid content type: {content_type}")
        if content_type == models.ContentType.LIVE.value:
            return

        if not file:
            raise BadRequestError("A media file is required")
        allowed = models.ALLOWED_MIME_TYPES.get(content_type, set())
        if (file_mime or "").lower() not in allowed:
            raise BadRequestError(f"Invalid file type for {content_type}: {file_mime}")

        if not thumbnail:
            raise BadRequestError("A thumbnail image is required")
        if (thumbnail_mime or "").lower() not in models.THUMBNAIL_MIME_TYPES:
            raise BadRequestError(f"Invalid thumbnail type: {thumbnail_mime}")
        if len(thumbnail) > models.MAX_THUMBNAIL_BYTES:
            raise BadRequestError("Thumbnail must be smaller than 5MB")

    async def upload_media(
        self,
        user: Dict[str, Any],
        form: MediaUploadForm,
        file: Optional[bytes] = None,
        file_mime: Optional[str] = None,
        thumbnail: Optional[bytes] = None,
        thumbnail_mime: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._validate_upload(form, file, file_mime, thumbnail, thumbnail_mime)
        if form.isDownloadable and not _is_verified_artist(user):
            raise PermissionDeniedError("Only verified artists can make content downloadable")

        content_type = form.contentType.value
        now = datetime.utcnow()
        doc: Dict[str, Any] = {
            "title": form.title.strip(),
            "description": form.description,
            "contentType": content_type,
            "category": form.category,
            "topics": form.topics,
            "duration": form.duration,
            "uploadedBy": user["_id"],
            "isLive": False,
            "isDownloadable": form.isDownloadable,
            "viewThreshold": form.viewThreshold or models.DEFAULT_VIEW_THRESHOLD,
            "createdAt": now,
            "updatedAt": now,
            **_counters(),
        }

        uploaded: List[str] = []
        try:
            if file:
                stored = await self.storage.upload(file, f"media/{content_type}", file_mime)
                uploaded.append(stored["objectKey"])
                doc.update(fileUrl=stored["url"], fileObjectKey=stored["objectKey"], fileMimeType=file_mime)
            if thumbnail:
                thumb = await self.storage.upload(thumbnail, "media/thumbnails", thumbnail_mime)
                uploaded.append(thumb["objectKey"])
                doc.update(thumbnailUrl=thumb["url"], thumbnailObjectKey=thumb["objectKey"])

            result = await self.db[MEDIA].insert_one(doc)
        except Exception:
            await self._cleanup(uploaded)
            raise

        doc["_id"] = result.inserted_id
        share_url = f"{settings.FRONTEND_URL}/media/{doc['_id']}"
        extra = {"shareUrl": share_url}
        if form.isDownloadable:
            extra["downloadUrl"] = f"{settings.API_URL}/api/media/{doc['_id']}/download"
        await self.db[MEDIA].update_one({"_id": doc["_id"]}, {"$set": extra})
        doc.update(extra)

        await AuditService(self.db).log_activity(user["_id"], "media_upload", "media", doc["_id"], {"contentType": content_type})
        logger.info(f"Media uploaded: id={doc['_id']} type={content_type} by user={user['_id']}")
        return serialize_document(doc)

    async def _cleanup(self, object_keys: List[str]) -> None:
        for key in object_keys:
            try:
                await self.storage.delete(key)
            except Exception as e:
                logger.error(f"Failed to clean up object {key}: {e}")

    async def delete_media(self, media_id, user: Dict[str, Any]) -> None:
        media = await self._get(media_id)
        if media.get("uploadedBy") != user["_id"] and not is_admin(user):
            raise PermissionDeniedError("You can only delete your own media")

        await self.db[MEDIA].delete_one({"_id": media["_id"]})
        await self.db[MEDIA_INTERACTIONS].delete_many({"media": media["_id"]})
        await self.db[MEDIA_USER_ACTIONS].delete_many({"media": media["_id"]})
        if self.storage is not None:
            await self._cleanup([k for k in (media.get("fileObjectKey"), media.get("thumbnailObjectKey")) if k])
        logger.info(f"Media deleted: id={media['_id']} by user={user['_id']}")

    # ─────────────────────────────────────────────
    # Interactions (view / listen / read / download)
    # ─────────────────────────────────────────────

    async def record_interaction(
        self, user_id, media_id, interaction_type: str, duration: Optional[float] = None
    ) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        media = await self._get(media_id)
        allowed = models.ALLOWED_INTERACTIONS.get(media.get("contentType"), set())
        if interaction_type not in allowed:
            raise BadRequestError(
                f"Invalid interaction type '{interaction_type}' for {media.get('contentType')} content"
            )

        existing = await self.db[MEDIA_INTERACTIONS].find_one(
            {"user": user_oid, "media": media["_id"], "interactionType": interaction_type}
        )
        if existing:
            raise ConflictError(f"User has already {models.INTERACTION_PAST_TENSE[interaction_type]} this media")

        counter = models.INTERACTION_COUNTERS[interaction_type]
        now = datetime.utcnow()
        async with transaction(self.db) as session:
            await self.db[MEDIA_INTERACTIONS].insert_one(
                {
                    "user": user_oid,
                    "media": media["_id"],
                    "interactionType": interaction_type,
                    "count": 1,
                    "interactions": [{"timestamp": now, "duration": duration or 0}],
                    "lastInteraction": now,
                    "isRemoved": False,
                    "createdAt": now,
                    "updatedAt": now,
                },
                session=session,
            )
            updated = await self.db[MEDIA].find_one_and_update(
                {"_id": media["_id"]},
                {"$inc": {counter: 1}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        if interaction_type == "view":
            await self.add_viewed_media(user_oid, media["_id"])
        logger.info(f"Interaction recorded: user={user_oid} media={media['_id']} type={interaction_type}")
        return {"interactionType": interaction_type, counter: updated.get(counter, 0)}

    async def download_media(self, user_id, media_id) -> Dict[str, Any]:
        media = await self._get(media_id)
        if not media.get("isDownloadable"):
            raise PermissionDeniedError("This media is not available for download")
        user_oid = parse_object_id(user_id, "user")

        already = await self.db[MEDIA_INTERACTIONS].find_one(
            {"user": user_oid, "media": media["_id"], "interactionType": "download"}
        )
        if not already:
            await self.db[MEDIA_INTERACTIONS].insert_one({
                "user": user_oid,
                "media": media["_id"],
                "interactionType": "download",
                "count": 1,
                "isRemoved": False,
                "createdAt": datetime.utcnow(),
            })
            await self.db[MEDIA].update_one({"_id": media["_id"]}, {"$inc": {"downloadCount": 1}})

        await self.db[USERS].update_one(
            {"_id": user_oid, "offlineDownloads.mediaId": {"$ne": media["_id"]}},
            {"$push": {"offlineDownloads": {"mediaId": media["_id"], "downloadDate": datetime.utcnow()}}},
        )
        url = media.get("fileUrl")
        if self.storage is not None and media.get("fileObjectKey"):
            url = await self.storage.presigned_url(media["fileObjectKey"])
        return {"downloadUrl": url, "fileMimeType": media.get("fileMimeType")}

    async def get_interaction_counts(self, media_id) -> Dict[str, Any]:
        media = await self._get(media_id)
        keys = list(_counters().keys())
        return {key: media.get(key, 0) for key in keys}

    # ─────────────────────────────────────────────
    # Favoris / partages
    # ─────────────────────────────────────────────

    async def toggle_user_action(self, user: Dict[str, Any], media_id, action_type: str) -> Dict[str, Any]:
        media = await self._get(media_id)
        if media.get("uploadedBy") == user["_id"]:
            raise BadRequestError("You cannot favorite or share your own content")

        counter = models.ACTION_COUNTERS[action_type]
        query = {"user": user["_id"], "media": media["_id"], "actionType": action_type}
        async with transaction(self.db) as session:
            existing = await self.db[MEDIA_USER_ACTIONS].find_one(query, session=session)
            if existing:
                await self.db[MEDIA_USER_ACTIONS].delete_one({"_id": existing["_id"]}, session=session)
                delta = -1
            else:
                await self.db[MEDIA_USER_ACTIONS].insert_one({**query, "createdAt": datetime.utcnow()}, session=session)
                delta = 1
            updated = await self.db[MEDIA].find_one_and_update(
                {"_id": media["_id"]},
                {"$inc": {counter: delta}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        active = delta > 0
        if active and action_type == "favorite":
            await self._notify_owner_of_favorite(media, user)
        return {"actionType": action_type, "active": active, counter: max(updated.get(counter, 0), 0)}

    async def _notify_owner_of_favorite(self, media: Dict[str, Any], user: Dict[str, Any]) -> None:
        owner = await self.db[USERS].find_one({"_id": media.get("uploadedBy")})
        if not owner:
            return
        name = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip() or "Someone"
        await NotificationService(self.db).notify(
            owner["_id"], "Your content was liked", f"{name} added \"{media['title']}\" to favorites", "media", media["_id"]
        )
        if (owner.get("emailNotifications") or {}).get("mediaLikes"):
            await mailer.send_media_liked_email(owner["email"], media["title"], name)

    async def get_user_action_status(self, user_id, media_id) -> Dict[str, bool]:
        user_oid = parse_object_id(user_id, "user")
        media_oid = parse_object_id(media_id, "media")
        actions = await self.db[MEDIA_USER_ACTIONS].find({"user": user_oid, "media": media_oid}).to_list(length=None)
        types = {a["actionType"] for a in actions}
        return {"isFavorited": "favorite" in types, "isShared": "share" in types}

    # ─────────────────────────────────────────────
    # Historique de visionnage
    # ─────────────────────────────────────────────

    async def add_viewed_media(self, user_id, media_id) -> None:
        user_oid = parse_object_id(user_id, "user")
        media_oid = parse_object_id(media_id, "media")
        await self.db[USERS].update_one({"_id": user_oid}, {"$pull": {"viewedMedia": {"media": media_oid}}})
        await self.db[USERS].update_one(
            {"_id": user_oid},
            {"$push": {"viewedMedia": {
                "$each": [{"media": media_oid, "viewedAt": datetime.utcnow()}],
                "$position": 0,
                "$slice": models.MAX_VIEWED_MEDIA,
            }}},
        )

    async def get_viewed_media(self, user_id) -> List[Dict[str, Any]]:
        user = await self.db[USERS].find_one({"_id": parse_object_id(user_id, "user")}, {"viewedMedia": 1})
        entries = (user or {}).get("viewedMedia", [])
        ids = [e["media"] for e in entries]
        found = {m["_id"]: m async for m in self.db[MEDIA].find({"_id": {"$in": ids}})}
        result = []
        for entry in entries:
            media = found.get(entry["media"])
            if media:
                result.append({**media, "viewedAt": entry["viewedAt"]})
        return serialize_document(result)

    # ─────────────────────────────────────────────
    # Live
    # ─────────────────────────────────────────────

    def _live_document(self, user: Dict[str, Any], data: LiveStreamStart, status: str) -> Dict[str, Any]:
        stream_key = generate_stream_key()
        now = datetime.utcnow()
        return {
            "title": data.title.strip(),
            "description": data.description,
            "contentType": models.ContentType.LIVE.value,
            "category": data.category,
            "topics": data.topics,
            "thumbnailUrl": data.thumbnailUrl,
            "uploadedBy": user["_id"],
            "isLive": status == models.LiveStreamStatus.LIVE.value,
            "liveStreamStatus": status,
            "streamKey": stream_key,
            "rtmpUrl": f"{settings.RTMP_BASE_URL}/{stream_key}",
            "playbackUrl": f"{settings.PLAYBACK_BASE_URL}/{stream_key}/index.m3u8",
            "concurrentViewers": 0,
            "isDownloadable": False,
            "viewThreshold": models.DEFAULT_VIEW_THRESHOLD,
            "createdAt": now,
            "updatedAt": now,
            **_counters(),
        }

    async def start_live_stream(self, user: Dict[str, Any], data: LiveStreamStart) -> Dict[str, Any]:
        active = await self.db[MEDIA].find_one({"uploadedBy": user["_id"], "liveStreamStatus": "live"})
        if active:
            raise ConflictError("You already have an active live stream")
        doc = self._live_document(user, data, models.LiveStreamStatus.LIVE.value)
        doc["actualStart"] = datetime.utcnow()
        result = await self.db[MEDIA].insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Live stream started: id={doc['_id']} by user={user['_id']}")
        return serialize_document(doc)

    async def schedule_live_stream(self, user: Dict[str, Any], data: LiveStreamSchedule) -> Dict[str, Any]:
        if data.scheduledStart.replace(tzinfo=None) <= datetime.utcnow():
            raise BadRequestError("Scheduled start must be in the future")
        doc = self._live_document(user, data, models.LiveStreamStatus.SCHEDULED.value)
        doc["scheduledStart"] = data.scheduledStart.replace(tzinfo=None)
        result = await self.db[MEDIA].insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_document(doc)

    async def go_live(self, media_id, user: Dict[str, Any]) -> Dict[str, Any]:
        media = await self._get(media_id)
        if media.get("uploadedBy") != user["_id"]:
            raise PermissionDeniedError("You can only start your own live stream")
        if media.get("liveStreamStatus") != models.LiveStreamStatus.SCHEDULED.value:
            raise BadRequestError("Live stream is not scheduled")
        updated = await self.db[MEDIA].find_one_and_update(
            {"_id": media["_id"]},
            {"$set": {"liveStreamStatus": "live", "isLive": True, "actualStart": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_document(updated)

    async def end_live_stream(self, media_id, user: Dict[str, Any]) -> Dict[str, Any]:
        media = await self._get(media_id)
        if media.get("uploadedBy") != user["_id"] and not is_admin(user):
            raise PermissionDeniedError("You can only end your own live stream")
        if media.get("liveStreamStatus") != models.LiveStreamStatus.LIVE.value:
            raise BadRequestError("Live stream is not active")
        updated = await self.db[MEDIA].find_one_and_update(
            {"_id": media["_id"]},
            {"$set": {"liveStreamStatus": "ended", "isLive": False, "actualEnd": datetime.utcnow(), "concurrentViewers": 0}},
            return_document=ReturnDocument.AFTER,
        )
        logger.info(f"Live stream ended: id={media['_id']}")
        return serialize_document(updated)

    async def update_viewer_count(self, media_id, count: int) -> Dict[str, Any]:
        updated = await self.db[MEDIA].find_one_and_update(
            {"_id": parse_object_id(media_id, "media"), "liveStreamStatus": "live"},
            {"$set": {"concurrentViewers": count}, "$max": {"peakViewers": count}},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Live stream not found")
        return {"concurrentViewers": updated["concurrentViewers"], "peakViewers": updated.get("peakViewers", count)}

    async def list_live_streams(self, status: str = "live", limit: int = 20) -> List[Dict[str, Any]]:
        cursor = (
            self.db[MEDIA].find({"contentType": "live", "liveStreamStatus": status})
            .sort([("concurrentViewers", -1), ("createdAt", -1)])
            .limit(limit)
        )
        streams = await cursor.to_list(length=limit)
        for stream in streams:
            stream.pop("streamKey", None)
        await attach_users(self.db, streams, "uploadedBy")
        return serialize_document(streams)

    # ─────────────────────────────────────────────
    # Analytics
    # ─────────────────────────────────────────────

    async def get_media_count_by_content_type(self) -> Dict[str, int]:
        rows = await self.db[MEDIA].aggregate([
            {"$group": {"_id": "$contentType", "count": {"$sum": 1}}},
        ]).to_list(length=None)
        return {row["_id"]: row["count"] for row in rows if row["_id"]}

    async def get_recent_media(self, limit: int = 10) -> List[Dict[str, Any]]:
        cursor = self.db[MEDIA].find({"contentType": {"$ne": "live"}}).sort("createdAt", -1).limit(limit)
        media = await cursor.to_list(length=limit)
        await attach_users(self.db, media, "uploadedBy")
        return serialize_document(media)
