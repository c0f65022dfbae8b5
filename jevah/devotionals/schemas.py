from typing import List, Optional

from pydantic import BaseModel, Field


class DevotionalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    scriptureReference: Optional[str] = Field(None, max_length=200)
    author: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)


class DevotionalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    scriptureReference: Optional[str] = Field(None, max_length=200)
    author: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
