import logging
import re
from typing import Dict, List

from jevah.db.mongo import LOCATIONS
from jevah.errors import BadRequestError

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 10


class LocationService:
    def __init__(self, db):
        self.db = db

    async def suggest(self, q: str) -> List[Dict[str, str]]:
        """States or cities whose name starts with ``q``, case-insensitive."""
        q = (q or "").strip()
        if not q:
            raise BadRequestError("Missing query parameter `q`.")
        pattern = {"$regex": "^" + re.escape(q), "$options": "i"}
        cursor = self.db[LOCATIONS].find(
            {"$or": [{"state": pattern}, {"city": pattern}]}, {"_id": 0, "state": 1, "city": 1}
        ).limit(SUGGESTION_LIMIT)
        return await cursor.to_list(length=SUGGESTION_LIMIT)
