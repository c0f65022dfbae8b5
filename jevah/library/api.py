from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from jevah.auth.dependencies import get_current_user
from jevah.db.mongo import get_database
from jevah.library.schemas import LibrarySave, LibraryUpdate
from jevah.library.services import LibraryService

router = APIRouter(prefix="/api/library", tags=["library"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def save_to_library(data: LibrarySave, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    item = await LibraryService(db).save(current_user["_id"], data.mediaId, data.notes, data.isFavorite)
    return {"success": True, "message": "Saved to library", "item": item}


@router.get("")
async def get_library(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    contentType: Optional[str] = None,
    favorites: bool = False,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await LibraryService(db).list(current_user["_id"], page, limit, contentType, favorites)
    return {"success": True, **result}


@router.get("/stats")
async def library_stats(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "stats": await LibraryService(db).stats(current_user["_id"])}


@router.get("/search")
async def search_library(q: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "items": await LibraryService(db).search(current_user["_id"], q)}


@router.get("/categories")
async def library_by_category(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "categories": await LibraryService(db).by_category(current_user["_id"])}


@router.delete("")
async def clear_library(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    removed = await LibraryService(db).clear(current_user["_id"])
    return {"success": True, "removed": removed}


@router.patch("/{media_id}")
async def update_item(
    media_id: str,
    data: LibraryUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, "item": await LibraryService(db).update(current_user["_id"], media_id, data)}


@router.post("/{media_id}/favorite")
async def toggle_favorite(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "item": await LibraryService(db).toggle_favorite(current_user["_id"], media_id)}


@router.post("/{media_id}/play")
async def play(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "item": await LibraryService(db).increment_play_count(current_user["_id"], media_id)}


@router.delete("/{media_id}")
async def remove_from_library(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await LibraryService(db).remove(current_user["_id"], media_id)
    return {"success": True, "message": "Removed from library"}
