from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=1000)
    parentCommentId: Optional[str] = None


class ReactionRequest(BaseModel):
    reactionType: str = Field(..., pattern=r"^[A-Za-z][A-Za-z0-9_]{0,19}$")


class ShareRequest(BaseModel):
    platform: Optional[str] = None
    message: Optional[str] = Field(None, max_length=500)


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"


class MessageCreate(BaseModel):
    recipientId: str
    content: str = Field(..., max_length=5000)
    messageType: MessageType = MessageType.TEXT
    mediaUrl: Optional[str] = None
    replyTo: Optional[str] = None
