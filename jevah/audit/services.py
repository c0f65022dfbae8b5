import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from jevah.db.mongo import USERS
from jevah.utils.mongodb_utils import parse_object_id, serialize_document

logger = logging.getLogger(__name__)

MAX_ACTIVITIES = 500


class AuditService:
    """User activity trail, kept on the user document."""

    def __init__(self, db):
        self.db = db

    async def log_activity(
        self,
        user_id,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        session=None,
    ) -> None:
        activity = {
            "action": action,
            "resourceType": resource_type,
            "resourceId": str(resource_id) if resource_id else None,
            "metadata": metadata or {},
            "timestamp": datetime.utcnow(),
        }
        await self.db[USERS].update_one(
            {"_id": parse_object_id(user_id, "user")},
            {"$push": {"userActivities": {"$each": [activity], "$slice": -MAX_ACTIVITIES}}},
            session=session,
        )
        logger.debug(f"Activity logged: user={user_id} action={action} resource={resource_type}")

    async def get_activity_history(self, user_id, limit: int = 50, action: Optional[str] = None) -> List[Dict[str, Any]]:
        user = await self.db[USERS].find_one(
            {"_id": parse_object_id(user_id, "user")}, {"userActivities": 1}
        )
        activities = (user or {}).get("userActivities", [])
        if action:
            activities = [a for a in activities if a.get("action") == action]
        activities = sorted(activities, key=lambda a: a["timestamp"], reverse=True)[:limit]
        return serialize_document(activities)
