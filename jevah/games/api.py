from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from jevah.auth.dependencies import get_current_user
from jevah.auth.permissions import require_role
from jevah.db.mongo import get_database
from jevah.games.models import AgeGroup, Difficulty, GameType
from jevah.games.schemas import GameCreate, GameFilters, SessionComplete
from jevah.games.services import GameService
from jevah.utils.rate_limit import games_limit

router = APIRouter(prefix="/api/games", tags=["games"])


@router.get("")
async def list_games(
    gameType: Optional[GameType] = None,
    difficulty: Optional[Difficulty] = None,
    ageGroup: Optional[AgeGroup] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db=Depends(get_database),
):
    filters = GameFilters(gameType=gameType, difficulty=difficulty, ageGroup=ageGroup, category=category)
    return {"success": True, **await GameService(db).list_games(filters, page, limit)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_game(data: GameCreate, current_user: dict = Depends(require_role("admin")), db=Depends(get_database)):
    return {"success": True, "game": await GameService(db).create_game(data, current_user["_id"])}


@router.get("/me/stats")
async def my_stats(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "stats": await GameService(db).get_user_stats(current_user["_id"])}


@router.get("/me/sessions")
async def my_sessions(
    gameId: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, "sessions": await GameService(db).get_sessions(current_user["_id"], gameId, limit)}


@router.get("/me/achievements")
async def my_achievements(
    gameId: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, **await GameService(db).get_achievements(current_user["_id"], gameId)}


@router.get("/{game_id}")
async def get_game(game_id: str, db=Depends(get_database)):
    return {"success": True, "game": await GameService(db).get_game(game_id)}


@router.post("/{game_id}/start", status_code=status.HTTP_201_CREATED)
@games_limit
async def start_game(
    request: Request, game_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)
):
    return {"success": True, "session": await GameService(db).start_session(current_user, game_id)}


@router.post("/{game_id}/complete")
@games_limit
async def complete_game(
    request: Request,
    game_id: str,
    data: SessionComplete,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await GameService(db).complete_session(current_user, game_id, data.score, data.timeSpent, data.completed)
    return {"success": True, **result}


@router.get("/{game_id}/leaderboard")
async def leaderboard(game_id: str, limit: int = Query(10, ge=1, le=100), db=Depends(get_database)):
    return {"success": True, "leaderboard": await GameService(db).get_leaderboard(game_id, limit)}
