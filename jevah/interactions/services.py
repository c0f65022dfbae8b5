import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pymongo import ReturnDocument

from jevah.config import settings
from jevah.db.mongo import CONVERSATIONS, MEDIA, MEDIA_INTERACTIONS, MESSAGES, USERS, transaction
from jevah.errors import BadRequestError, NotFoundError, PermissionDeniedError
from jevah.interactions.schemas import MessageCreate
from jevah.utils.mongodb_utils import attach_users, paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


def share_urls(url: str, title: str) -> Dict[str, str]:
    text = quote(title or "Check this out on Jevah")
    link = quote(url, safe="")
    return {
        "link": url,
        "facebook": f"https://www.facebook.com/sharer/sharer.php?u={link}",
        "twitter": f"https://twitter.com/intent/tweet?url={link}&text={text}",
        "whatsapp": f"https://wa.me/?text={text}%20{link}",
        "telegram": f"https://t.me/share/url?url={link}&text={text}",
    }


class InteractionService:
    """Likes, comments, comment reactions and shares on media."""

    def __init__(self, db):
        self.db = db

    async def _get_media(self, media_id, session=None) -> Dict[str, Any]:
        media = await self.db[MEDIA].find_one({"_id": parse_object_id(media_id, "media")}, session=session)
        if not media:
            raise NotFoundError("Media not found")
        return media

    async def toggle_like(self, user_id, media_id) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        media = await self._get_media(media_id)
        now = datetime.utcnow()

        async with transaction(self.db) as session:
            existing = await self.db[MEDIA_INTERACTIONS].find_one(
                {"user": user_oid, "media": media["_id"], "interactionType": "like"}, session=session
            )
            if existing and not existing.get("isRemoved"):
                await self.db[MEDIA_INTERACTIONS].update_one(
                    {"_id": existing["_id"]}, {"$set": {"isRemoved": True, "updatedAt": now}}, session=session
                )
                delta = -1
            elif existing:
                await self.db[MEDIA_INTERACTIONS].update_one(
                    {"_id": existing["_id"]},
                    {"$set": {"isRemoved": False, "lastInteraction": now, "updatedAt": now}},
                    session=session,
                )
                delta = 1
            else:
                await self.db[MEDIA_INTERACTIONS].insert_one(
                    {
                        "user": user_oid,
                        "media": media["_id"],
                        "interactionType": "like",
                        "isRemoved": False,
                        "lastInteraction": now,
                        "createdAt": now,
                        "updatedAt": now,
                    },
                    session=session,
                )
                delta = 1

            updated = await self.db[MEDIA].find_one_and_update(
                {"_id": media["_id"]},
                {"$inc": {"likeCount": delta}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        liked = delta > 0
        logger.info(f"Like toggled: user={user_oid} media={media['_id']} liked={liked}")
        return {"liked": liked, "likeCount": max(updated.get("likeCount", 0), 0)}

    async def has_liked(self, user_id, media_id) -> bool:
        found = await self.db[MEDIA_INTERACTIONS].find_one({
            "user": parse_object_id(user_id, "user"),
            "media": parse_object_id(media_id, "media"),
            "interactionType": "like",
            "isRemoved": False,
        })
        return found is not None

    async def add_comment(self, user_id, media_id, content: str, parent_comment_id: Optional[str] = None) -> Dict[str, Any]:
        content = (content or "").strip()
        if not content:
            raise BadRequestError("Comment content is required")
        if len(content) > MAX_COMMENT_LENGTH:
            raise BadRequestError("Comment must be at most 1000 characters")

        user_oid = parse_object_id(user_id, "user")
        media = await self._get_media(media_id)
        parent = None
        if parent_comment_id:
            parent = await self.db[MEDIA_INTERACTIONS].find_one({
                "_id": parse_object_id(parent_comment_id, "comment"),
                "interactionType": "comment",
                "media": media["_id"],
                "isRemoved": False,
            })
            if not parent:
                raise NotFoundError("Parent comment not found")

        now = datetime.utcnow()
        comment = {
            "user": user_oid,
            "media": media["_id"],
            "interactionType": "comment",
            "content": content,
            "parentCommentId": parent["_id"] if parent else None,
            "reactions": {},
            "isRemoved": False,
            "createdAt": now,
            "updatedAt": now,
        }
        async with transaction(self.db) as session:
            result = await self.db[MEDIA_INTERACTIONS].insert_one(comment, session=session)
            await self.db[MEDIA].update_one({"_id": media["_id"]}, {"$inc": {"commentCount": 1}}, session=session)

        comment["_id"] = result.inserted_id
        await attach_users(self.db, [comment], "user")
        logger.info(f"Comment added: id={comment['_id']} media={media['_id']}")
        return serialize_document(comment)

    async def remove_comment(self, comment_id, user_id) -> None:
        comment = await self.db[MEDIA_INTERACTIONS].find_one({
            "_id": parse_object_id(comment_id, "comment"),
            "interactionType": "comment",
            "isRemoved": False,
        })
        if not comment:
            raise NotFoundError("Comment not found")
        if comment["user"] != parse_object_id(user_id, "user"):
            raise PermissionDeniedError("You can only delete your own comments")

        async with transaction(self.db) as session:
            await self.db[MEDIA_INTERACTIONS].update_one(
                {"_id": comment["_id"]},
                {"$set": {"isRemoved": True, "updatedAt": datetime.utcnow()}},
                session=session,
            )
            await self.db[MEDIA].update_one({"_id": comment["media"]}, {"$inc": {"commentCount": -1}}, session=session)
        logger.info(f"Comment removed: id={comment['_id']}")

    async def get_comments(self, media_id, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query = {
            "media": parse_object_id(media_id, "media"),
            "interactionType": "comment",
            "isRemoved": False,
        }
        total = await self.db[MEDIA_INTERACTIONS].count_documents(query)
        cursor = (
            self.db[MEDIA_INTERACTIONS].find(query)
            .sort("createdAt", -1)
            .skip(skip_for(page, limit))
            .limit(limit)
        )
        comments = await cursor.to_list(length=limit)
        await attach_users(self.db, comments, "user")
        for comment in comments:
            comment["reactionCounts"] = {k: len(v) for k, v in (comment.get("reactions") or {}).items()}
            comment.pop("reactions", None)
        return {"comments": serialize_document(comments), "pagination": paginate(page, limit, total)}

    async def toggle_comment_reaction(self, user_id, comment_id, reaction_type: str) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        comment = await self.db[MEDIA_INTERACTIONS].find_one({
            "_id": parse_object_id(comment_id, "comment"),
            "interactionType": "comment",
            "isRemoved": False,
        })
        if not comment:
            raise NotFoundError("Comment not found")

        field = f"reactions.{reaction_type}"
        reacted = user_oid in (comment.get("reactions") or {}).get(reaction_type, [])
        operation = {"$pull": {field: user_oid}} if reacted else {"$addToSet": {field: user_oid}}
        updated = await self.db[MEDIA_INTERACTIONS].find_one_and_update(
            {"_id": comment["_id"]}, operation, return_document=ReturnDocument.AFTER
        )
        count = len((updated.get("reactions") or {}).get(reaction_type, []))
        return {"reactionType": reaction_type, "reacted": not reacted, "count": count}

    async def share_media(self, user_id, media_id, platform: Optional[str] = None, message: Optional[str] = None) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        media = await self._get_media(media_id)
        now = datetime.utcnow()

        async with transaction(self.db) as session:
            await self.db[MEDIA_INTERACTIONS].update_one(
                {"user": user_oid, "media": media["_id"], "interactionType": "share"},
                {
                    "$set": {"lastInteraction": now, "platform": platform, "content": message, "updatedAt": now, "isRemoved": False},
                    "$inc": {"count": 1},
                    "$setOnInsert": {"createdAt": now},
                },
                upsert=True,
                session=session,
            )
            updated = await self.db[MEDIA].find_one_and_update(
                {"_id": media["_id"]},
                {"$inc": {"shareCount": 1}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        url = media.get("shareUrl") or f"{settings.FRONTEND_URL}/media/{media['_id']}"
        return {"shareCount": updated.get("shareCount", 0), "shareUrls": share_urls(url, media.get("title"))}


class MessagingService:
    """Direct messages between users."""

    def __init__(self, db):
        self.db = db

    async def send_message(self, sender_id, data: MessageCreate) -> Dict[str, Any]:
        sender = parse_object_id(sender_id, "user")
        recipient = parse_object_id(data.recipientId, "recipient")
        content = data.content.strip()
        if not content and not data.mediaUrl:
            raise BadRequestError("Message content is required")
        if sender == recipient:
            raise BadRequestError("You cannot message yourself")
        if not await self.db[USERS].find_one({"_id": recipient}, {"_id": 1}):
            raise NotFoundError("Recipient not found")

        now = datetime.utcnow()
        async with transaction(self.db) as session:
            conversation = await self.db[CONVERSATIONS].find_one(
                {"participants": {"$all": [sender, recipient]}, "isGroupChat": False}, session=session
            )
            if not conversation:
                conversation = {
                    "participants": [sender, recipient],
                    "isGroupChat": False,
                    "isActive": True,
                    "unreadCount": {},
                    "createdAt": now,
                }
                result = await self.db[CONVERSATIONS].insert_one(conversation, session=session)
                conversation["_id"] = result.inserted_id

            message = {
                "conversation": conversation["_id"],
                "sender": sender,
                "recipient": recipient,
                "content": content,
                "messageType": data.messageType.value,
                "mediaUrl": data.mediaUrl,
                "replyTo": parse_object_id(data.replyTo, "message") if data.replyTo else None,
                "isRead": False,
                "isDeleted": False,
                "createdAt": now,
                "updatedAt": now,
            }
            result = await self.db[MESSAGES].insert_one(message, session=session)
            message["_id"] = result.inserted_id

            await self.db[CONVERSATIONS].update_one(
                {"_id": conversation["_id"]},
                {
                    "$set": {"lastMessage": message["_id"], "lastMessageAt": now, "updatedAt": now},
                    "$inc": {f"unreadCount.{recipient}": 1},
                },
                session=session,
            )

        logger.info(f"Message sent: id={message['_id']} conversation={conversation['_id']}")
        return serialize_document(message)

    async def _get_conversation(self, conversation_id, user_oid) -> Dict[str, Any]:
        conversation = await self.db[CONVERSATIONS].find_one({
            "_id": parse_object_id(conversation_id, "conversation"),
            "participants": user_oid,
        })
        if not conversation:
            raise NotFoundError("Conversation not found or access denied")
        return conversation

    async def get_conversation_messages(self, conversation_id, user_id, page: int = 1, limit: int = 50) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        conversation = await self._get_conversation(conversation_id, user_oid)
        query = {"conversation": conversation["_id"], "isDeleted": False}
        total = await self.db[MESSAGES].count_documents(query)
        cursor = self.db[MESSAGES].find(query).sort("createdAt", -1).skip(skip_for(page, limit)).limit(limit)
        messages = await cursor.to_list(length=limit)
        messages.reverse()

        now = datetime.utcnow()
        await self.db[MESSAGES].update_many(
            {"conversation": conversation["_id"], "recipient": user_oid, "isRead": False},
            {"$set": {"isRead": True, "readAt": now}},
        )
        await self.db[CONVERSATIONS].update_one(
            {"_id": conversation["_id"]}, {"$set": {f"unreadCount.{user_oid}": 0}}
        )
        await attach_users(self.db, messages, "sender")
        return {"messages": serialize_document(messages), "pagination": paginate(page, limit, total)}

    async def get_conversations(self, user_id) -> List[Dict[str, Any]]:
        user_oid = parse_object_id(user_id, "user")
        cursor = self.db[CONVERSATIONS].find({"participants": user_oid, "isActive": True}).sort("lastMessageAt", -1)
        conversations = await cursor.to_list(length=None)

        message_ids = [c["lastMessage"] for c in conversations if c.get("lastMessage")]
        last_messages = {m["_id"]: m async for m in self.db[MESSAGES].find({"_id": {"$in": message_ids}})}
        other_ids = {p for c in conversations for p in c["participants"] if p != user_oid}
        users = {
            u["_id"]: u
            async for u in self.db[USERS].find({"_id": {"$in": list(other_ids)}}, {"firstName": 1, "lastName": 1, "avatar": 1})
        }

        result = []
        for conversation in conversations:
            others = [users.get(p, p) for p in conversation["participants"] if p != user_oid]
            result.append({
                "_id": conversation["_id"],
                "participants": others,
                "lastMessage": last_messages.get(conversation.get("lastMessage")),
                "lastMessageAt": conversation.get("lastMessageAt"),
                "unreadCount": (conversation.get("unreadCount") or {}).get(str(user_oid), 0),
            })
        return serialize_document(result)

    async def delete_message(self, message_id, user_id) -> None:
        message = await self.db[MESSAGES].find_one({"_id": parse_object_id(message_id, "message"), "isDeleted": False})
        if not message:
            raise NotFoundError("Message not found")
        if message["sender"] != parse_object_id(user_id, "user"):
            raise PermissionDeniedError("You can only delete your own messages")
        await self.db[MESSAGES].update_one(
            {"_id": message["_id"]},
            {"$set": {"isDeleted": True, "deletedAt": datetime.utcnow(), "content": ""}},
        )
