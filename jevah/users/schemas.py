from typing import List, Optional

from pydantic import BaseModel, Field


class UserProfileUpdate(BaseModel):
    firstName: Optional[str] = Field(None, max_length=100)
    lastName: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    interests: Optional[List[str]] = None
    emailNotifications: Optional[dict] = None


class RoleUpdate(BaseModel):
    role: str
