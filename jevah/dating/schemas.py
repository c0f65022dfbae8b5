from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jevah.dating.models import DatingMessageType, FaithLevel, LookingFor, MAX_PHOTOS, MatchStatus


class AgeRange(BaseModel):
    min: int = Field(18, ge=18, le=100)
    max: int = Field(100, ge=18, le=100)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min > self.max:
            raise ValueError("Minimum age cannot exceed maximum age")
        return self


class Location(BaseModel):
    city: str
    state: str
    country: str
    coordinates: Optional[List[float]] = None


class Preferences(BaseModel):
    maxDistance: int = Field(50, ge=1, le=500)
    ageRange: AgeRange = AgeRange()
    faithLevel: Optional[FaithLevel] = None


class DatingProfileUpsert(BaseModel):
    lookingFor: LookingFor
    ageRange: AgeRange
    location: Location
    bio: Optional[str] = Field(None, max_length=500)
    interests: List[str] = []
    photos: List[str] = []
    mainPhoto: str
    height: Optional[int] = Field(None, ge=100, le=250)
    education: Optional[str] = None
    occupation: Optional[str] = None
    faithLevel: FaithLevel
    denomination: Optional[str] = None
    preferences: Preferences = Preferences()

    @field_validator("photos")
    @classmethod
    def limit_photos(cls, v):
        if len(v) > MAX_PHOTOS:
            raise ValueError(f"Maximum {MAX_PHOTOS} photos allowed")
        return v


class DatingFilters(BaseModel):
    minAge: Optional[int] = Field(None, ge=18, le=100)
    maxAge: Optional[int] = Field(None, ge=18, le=100)
    faithLevel: Optional[FaithLevel] = None
    denomination: Optional[str] = None
    interests: Optional[List[str]] = None


class MatchResponse(BaseModel):
    response: MatchStatus

    @field_validator("response")
    @classmethod
    def accepted_or_rejected(cls, v):
        if v not in (MatchStatus.ACCEPTED, MatchStatus.REJECTED):
            raise ValueError("Response must be 'accepted' or 'rejected'")
        return v


class DatingMessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    messageType: DatingMessageType = DatingMessageType.TEXT
    attachments: List[str] = []
