import logging
from datetime import datetime
from typing import Any, Dict, Optional

from pymongo import ReturnDocument

from jevah.db.mongo import NOTIFICATIONS
from jevah.errors import NotFoundError
from jevah.realtime.manager import manager
from jevah.utils.mongodb_utils import paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db):
        self.db = db

    async def notify(
        self,
        user_id,
        title: str,
        message: str,
        type: str = "system",
        related_id: Optional[Any] = None,
        session=None,
    ) -> Dict[str, Any]:
        now = datetime.utcnow()
        doc = {
            "user": parse_object_id(user_id, "user"),
            "title": title,
            "message": message,
            "type": type,
            "relatedId": str(related_id) if related_id else None,
            "isRead": False,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self.db[NOTIFICATIONS].insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        logger.info(f"Notification created: user={user_id} type={type}")
        await manager.emit_to_user(str(user_id), "notification", doc)
        return serialize_document(doc)

    async def list_notifications(self, user_id, page: int = 1, limit: int = 20, unread_only: bool = False) -> Dict[str, Any]:
        query: Dict[str, Any] = {"user": parse_object_id(user_id, "user")}
        if unread_only:
            query["isRead"] = False
        total = await self.db[NOTIFICATIONS].count_documents(query)
        cursor = (
            self.db[NOTIFICATIONS].find(query)
            .sort("createdAt", -1)
            .skip(skip_for(page, limit))
            .limit(limit)
        )
        notifications = await cursor.to_list(length=limit)
        return {
            "notifications": serialize_document(notifications),
            "pagination": paginate(page, limit, total),
        }

    async def unread_count(self, user_id) -> int:
        return await self.db[NOTIFICATIONS].count_documents(
            {"user": parse_object_id(user_id, "user"), "isRead": False}
        )

    async def mark_read(self, notification_id, user_id) -> Dict[str, Any]:
        updated = await self.db[NOTIFICATIONS].find_one_and_update(
            {"_id": parse_object_id(notification_id, "notification"), "user": parse_object_id(user_id, "user")},
            {"$set": {"isRead": True, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Notification not found")
        return serialize_document(updated)

    async def mark_all_read(self, user_id) -> int:
        result = await self.db[NOTIFICATIONS].update_many(
            {"user": parse_object_id(user_id, "user"), "isRead": False},
            {"$set": {"isRead": True, "updatedAt": datetime.utcnow()}},
        )
        return result.modified_count

    async def delete(self, notification_id, user_id) -> None:
        result = await self.db[NOTIFICATIONS].delete_one(
            {"_id": parse_object_id(notification_id, "notification"), "user": parse_object_id(user_id, "user")}
        )
        if result.deleted_count == 0:
            raise NotFoundError("Notification not found")
