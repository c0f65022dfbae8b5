from datetime import datetime
from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRole(str, Enum):
    LEARNER = "learner"
    PARENT = "parent"
    EDUCATOR = "educator"
    MODERATOR = "moderator"
    ADMIN = "admin"
    CONTENT_CREATOR = "content_creator"
    VENDOR = "vendor"
    CHURCH_ADMIN = "church_admin"
    ARTIST = "artist"


CREATOR_ROLES = {UserRole.CONTENT_CREATOR.value, UserRole.ARTIST.value}


# ────────────────────────────────
# PROFIL ARTISTE
# ────────────────────────────────

class ArtistProfile(BaseModel):
    artistName: Optional[str] = None
    genre: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    recordLabel: Optional[str] = None
    yearsActive: Optional[int] = None
    followerCount: int = 0
    followingCount: int = 0
    isVerifiedArtist: bool = False
    verificationDocuments: List[str] = Field(default_factory=list)


# ────────────────────────────────
# PROFIL UTILISATEUR PUBLIC
# ────────────────────────────────

class UserProfile(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    email: Optional[EmailStr] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole = UserRole.LEARNER
    section: Optional[str] = "adults"
    isKid: bool = False
    age: Optional[int] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    isEmailVerified: bool = False
    isProfileComplete: bool = False
    isVerifiedArtist: bool = False
    artistProfile: Optional[ArtistProfile] = None
    following: List[str] = Field(default_factory=list)
    followers: List[str] = Field(default_factory=list)
    subscriptionTier: Optional[str] = "free"
    lastLoginAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        use_enum_values=True,
        json_encoders={
            datetime: lambda v: v.isoformat() if v else None,
            ObjectId: str,
        },
    )
