from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from jevah.auth.dependencies import get_current_user, get_current_user_optional
from jevah.db.mongo import get_database
from jevah.devotionals.schemas import DevotionalCreate, DevotionalUpdate
from jevah.devotionals.services import DevotionalService

router = APIRouter(prefix="/api/devotionals", tags=["devotionals"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_devotional(data: DevotionalCreate, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "devotional": await DevotionalService(db).create(current_user["_id"], data)}


@router.get("")
async def list_devotionals(
    search: Optional[str] = None,
    tags: Optional[str] = None,
    submittedBy: Optional[str] = None,
    sort: str = "-createdAt",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Optional[dict] = Depends(get_current_user_optional),
    db=Depends(get_database),
):
    tag_list = [t for t in tags.split(",") if t] if tags else None
    result = await DevotionalService(db).list(
        search, tag_list, submittedBy, current_user["_id"] if current_user else None, sort, page, limit
    )
    return {"success": True, **result}


@router.get("/{devotional_id}")
async def get_devotional(devotional_id: str, db=Depends(get_database)):
    return {"success": True, "devotional": await DevotionalService(db).get(devotional_id)}


@router.put("/{devotional_id}")
async def update_devotional(
    devotional_id: str,
    data: DevotionalUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, "devotional": await DevotionalService(db).update(devotional_id, current_user, data)}


@router.delete("/{devotional_id}")
async def delete_devotional(devotional_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await DevotionalService(db).delete(devotional_id, current_user)
    return {"success": True, "message": "Devotional deleted"}


@router.post("/{devotional_id}/like")
async def like_devotional(devotional_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, **await DevotionalService(db).toggle_like(current_user["_id"], devotional_id)}


@router.get("/{devotional_id}/like-status")
async def like_status(devotional_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "liked": await DevotionalService(db).has_liked(current_user["_id"], devotional_id)}
