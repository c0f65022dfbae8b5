from typing import Optional

from pydantic import BaseModel, Field

from jevah.games.models import AgeGroup, Difficulty, GameType


class GameCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    gameType: GameType
    difficulty: Difficulty = Difficulty.EASY
    ageGroup: AgeGroup = AgeGroup.YOUNG
    category: Optional[str] = None
    imageUrl: Optional[str] = None
    maxScore: int = Field(100, gt=0)
    timeLimit: Optional[int] = Field(None, gt=0, description="Seconds")
    isActive: bool = True
    isPremium: bool = False


class GameFilters(BaseModel):
    gameType: Optional[GameType] = None
    difficulty: Optional[Difficulty] = None
    ageGroup: Optional[AgeGroup] = None
    category: Optional[str] = None
    isActive: Optional[bool] = True
    isPremium: Optional[bool] = None


class SessionComplete(BaseModel):
    score: int
    timeSpent: int
    completed: bool = True
