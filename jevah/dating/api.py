from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from jevah.auth.dependencies import get_current_user
from jevah.dating.models import FaithLevel, MatchStatus
from jevah.dating.schemas import DatingFilters, DatingMessageCreate, DatingProfileUpsert, MatchResponse
from jevah.dating.services import DatingService
from jevah.db.mongo import get_database
from jevah.realtime.manager import manager
from jevah.utils.rate_limit import dating_limit

router = APIRouter(prefix="/api/dating", tags=["dating"])


@router.put("/profile")
async def save_profile(data: DatingProfileUpsert, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "profile": await DatingService(db).upsert_profile(current_user["_id"], data)}


@router.get("/profile")
async def my_profile(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "profile": await DatingService(db).get_profile(current_user["_id"])}


@router.delete("/profile")
async def deactivate_profile(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await DatingService(db).deactivate_profile(current_user["_id"])
    return {"success": True, "message": "Dating profile deactivated"}


@router.get("/profile/{user_id}")
async def get_profile(user_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "profile": await DatingService(db).get_profile(user_id)}


@router.get("/potential-matches")
async def potential_matches(
    minAge: Optional[int] = Query(None, ge=18, le=100),
    maxAge: Optional[int] = Query(None, ge=18, le=100),
    faithLevel: Optional[FaithLevel] = None,
    denomination: Optional[str] = None,
    interests: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    filters = DatingFilters(
        minAge=minAge,
        maxAge=maxAge,
        faithLevel=faithLevel,
        denomination=denomination,
        interests=[i for i in interests.split(",") if i] if interests else None,
    )
    return {"success": True, **await DatingService(db).potential_matches(current_user["_id"], filters, page, limit)}


@router.post("/like/{user_id}", status_code=status.HTTP_201_CREATED)
@dating_limit
async def like_profile(
    request: Request, user_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)
):
    return {"success": True, "match": await DatingService(db).like_profile(current_user["_id"], user_id)}


@router.get("/matches")
async def get_matches(
    status: Optional[MatchStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await DatingService(db).get_matches(
        current_user["_id"], status.value if status else None, page, limit
    )
    return {"success": True, **result}


@router.post("/matches/{match_id}/respond")
@dating_limit
async def respond_to_match(
    request: Request,
    match_id: str,
    data: MatchResponse,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    match = await DatingService(db).respond_to_match(current_user["_id"], match_id, data.response.value)
    return {"success": True, "match": match}


@router.post("/matches/{match_id}/messages", status_code=status.HTTP_201_CREATED)
@dating_limit
async def send_message(
    request: Request,
    match_id: str,
    data: DatingMessageCreate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    message = await DatingService(db).send_message(current_user["_id"], match_id, data)
    await manager.emit_to_user(message["receiver"], "new-dating-message", message)
    return {"success": True, "message": message}


@router.get("/matches/{match_id}/messages")
async def get_messages(
    match_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, **await DatingService(db).get_messages(current_user["_id"], match_id, page, limit)}


@router.post("/matches/{match_id}/read")
async def mark_read(match_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "updated": await DatingService(db).mark_read(current_user["_id"], match_id)}


@router.get("/unread-count")
async def unread_count(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "count": await DatingService(db).unread_count(current_user["_id"])}
