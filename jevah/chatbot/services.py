import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from jevah.chatbot import analysis
from jevah.chatbot.gemini import GeminiClient, GeminiError
from jevah.db.mongo import CHAT_SESSIONS
from jevah.errors import BadRequestError
from jevah.utils.mongodb_utils import parse_object_id, serialize_document

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000
MAX_STORED_MESSAGES = 200


class ChatbotService:
    def __init__(self, db, client: Optional[GeminiClient] = None):
        self.db = db
        self.client = client or GeminiClient()

    async def _session(self, user_oid) -> Optional[Dict[str, Any]]:
        return await self.db[CHAT_SESSIONS].find_one({"userId": user_oid})

    async def _generate(self, user: Dict[str, Any], message_type: str, history: List[Dict[str, Any]], message: str) -> str:
        if not self.client.enabled:
            return analysis.FALLBACK_RESPONSES[message_type]
        try:
            return await self.client.generate(analysis.build_prompt(user, message_type, history, message))
        except GeminiError as e:
            logger.error(f"AI chatbot error for user={user['_id']}: {e}")
            return analysis.FALLBACK_RESPONSES[message_type]

    async def send_message(self, user: Dict[str, Any], message: str) -> Dict[str, Any]:
        message = (message or "").strip()
        if not message:
            raise BadRequestError("Message is required")
        if len(message) > MAX_MESSAGE_LENGTH:
            raise BadRequestError(f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters")

        user_oid = user["_id"]
        message_type = analysis.classify_message(message)
        session = await self._session(user_oid)
        history = (session or {}).get("messages", [])

        now = datetime.utcnow()
        user_turn = {"role": "user", "content": message, "timestamp": now, "messageType": message_type}
        text = await self._generate(user, message_type, history + [user_turn], message)
        result = analysis.parse_response(text)
        assistant_turn = {
            "role": "assistant",
            "content": text,
            "timestamp": datetime.utcnow(),
            "messageType": message_type,
        }

        await self.db[CHAT_SESSIONS].update_one(
            {"userId": user_oid},
            {
                "$push": {"messages": {"$each": [user_turn, assistant_turn], "$slice": -MAX_STORED_MESSAGES}},
                "$addToSet": {"context.previousTopics": message_type},
                "$set": {"updatedAt": assistant_turn["timestamp"]},
                "$setOnInsert": {"createdAt": now, "context.sessionStartTime": now},
            },
            upsert=True,
        )
        logger.info(f"Chatbot reply: user={user_oid} type={message_type}")
        return {**result, "messageType": message_type, "timestamp": assistant_turn["timestamp"]}

    async def get_history(self, user_id) -> List[Dict[str, Any]]:
        session = await self._session(parse_object_id(user_id, "user"))
        return serialize_document((session or {}).get("messages", []))

    async def clear_history(self, user_id) -> None:
        await self.db[CHAT_SESSIONS].delete_one({"userId": parse_object_id(user_id, "user")})

    async def get_session_stats(self, user_id) -> Optional[Dict[str, Any]]:
        session = await self._session(parse_object_id(user_id, "user"))
        if not session:
            return None
        context = session.get("context") or {}
        started = context.get("sessionStartTime") or session.get("createdAt")
        return {
            "messageCount": len(session.get("messages", [])),
            "sessionDuration": int((datetime.utcnow() - started).total_seconds() * 1000) if started else 0,
            "topics": context.get("previousTopics", []),
            "lastActivity": session.get("updatedAt"),
        }
