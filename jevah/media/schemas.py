from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from jevah.media.models import ContentType, InteractionType, UserActionType


class MediaUploadForm(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    contentType: ContentType
    category: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    duration: Optional[float] = Field(None, ge=0)
    isDownloadable: bool = False
    viewThreshold: Optional[int] = Field(None, ge=1)

    @field_validator("topics", mode="before")
    @classmethod
    def split_topics(cls, v):
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v or []


class InteractionRequest(BaseModel):
    interactionType: InteractionType
    duration: Optional[float] = Field(None, ge=0)


class UserActionRequest(BaseModel):
    actionType: UserActionType


class LiveStreamStart(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    thumbnailUrl: Optional[str] = None


class LiveStreamSchedule(LiveStreamStart):
    scheduledStart: datetime


class ViewerCountUpdate(BaseModel):
    concurrentViewers: int = Field(..., ge=0)
