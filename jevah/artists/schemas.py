from typing import List, Optional

from pydantic import BaseModel, Field


class ArtistProfileUpdate(BaseModel):
    artistName: Optional[str] = Field(None, min_length=2)
    genre: Optional[List[str]] = None
    bio: Optional[str] = Field(None, max_length=2000)
    recordLabel: Optional[str] = None
    yearsActive: Optional[int] = Field(None, ge=0)


class ArtistVerificationRequest(BaseModel):
    verificationDocuments: List[str] = Field(default_factory=list)
