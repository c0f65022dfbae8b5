from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    MEDIA = "media"
    DEVOTIONAL = "devotional"
    SYSTEM = "system"
    SOCIAL = "social"
    MERCHANDISE = "merchandise"
    GAME = "game"
    DATING = "dating"


class NotificationCreate(BaseModel):
    userId: str
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    type: NotificationType = NotificationType.SYSTEM
    relatedId: Optional[str] = None
