from typing import Optional

from pydantic import BaseModel, Field


class LibrarySave(BaseModel):
    mediaId: str
    notes: Optional[str] = Field(None, max_length=1000)
    isFavorite: bool = False


class LibraryUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)
    isFavorite: Optional[bool] = None
    playCount: Optional[int] = Field(None, ge=0)
    progress: Optional[float] = Field(None, ge=0, le=100)
