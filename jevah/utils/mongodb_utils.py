# jevah/utils/mongodb_utils.py
from datetime import datetime
from math import ceil
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import HttpUrl

from jevah.errors import BadRequestError


def parse_object_id(value: Any, label: str = "") -> ObjectId:
    """
    Convertit une chaîne en ObjectId.

    Raises BadRequestError("Invalid <label> ID") when the value is not a valid id.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        name = f"{label} " if label else ""
        raise BadRequestError(f"Invalid {name}ID")


def is_object_id(value: Any) -> bool:
    return isinstance(value, ObjectId) or (isinstance(value, str) and ObjectId.is_valid(value))


def serialize_document(value: Any) -> Any:
    """
    Convertit un résultat MongoDB pour la réponse JSON.

    Every ObjectId (top level, nested dicts, lists) becomes a string.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    return value


def serialize_documents(docs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [serialize_document(doc) for doc in docs]


def convert_pydantic_for_mongodb(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convertit les types Pydantic (HttpUrl, enums) pour MongoDB."""
    converted = {}
    for key, value in data.items():
        if isinstance(value, HttpUrl):
            converted[key] = str(value)
        elif isinstance(value, datetime):
            converted[key] = value
        elif hasattr(value, "value") and not isinstance(value, (dict, list)):
            # Enum
            converted[key] = value.value
        elif isinstance(value, list):
            converted[key] = [
                convert_pydantic_for_mongodb(item) if isinstance(item, dict)
                else str(item) if isinstance(item, HttpUrl)
                else item
                for item in value
            ]
        elif isinstance(value, dict):
            converted[key] = convert_pydantic_for_mongodb(value)
        else:
            converted[key] = value
    return converted


def paginate(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": ceil(total / limit) if limit else 0,
    }


def skip_for(page: int, limit: int) -> int:
    return max(page - 1, 0) * limit


def public_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Strip secrets from a user document before returning it."""
    if not user:
        return None
    hidden = {
        "password", "verificationCode", "verificationCodeExpires",
        "resetPasswordToken", "resetPasswordExpires", "userActivities",
        "library", "offlineDownloads", "viewedMedia",
    }
    return serialize_document({k: v for k, v in user.items() if k not in hidden})


AUTHOR_PROJECTION = {"firstName": 1, "lastName": 1, "avatar": 1, "email": 1, "role": 1, "artistProfile.artistName": 1}


async def attach_users(database, docs: List[Dict[str, Any]], field: str, target: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Replace ``doc[field]`` user ids by a small user summary, one query for all docs.

    The summary is stored under ``target`` (defaults to ``field``).
    """
    ids = {doc.get(field) for doc in docs if isinstance(doc.get(field), ObjectId)}
    users = {}
    if ids:
        cursor = database["users"].find({"_id": {"$in": list(ids)}}, AUTHOR_PROJECTION)
        async for user in cursor:
            users[user["_id"]] = user
    for doc in docs:
        doc[target or field] = users.get(doc.get(field), doc.get(field))
    return docs
