from fastapi import APIRouter, Depends, Query, status

from jevah.auth.dependencies import get_current_user
from jevah.bookmarks.services import BookmarkService
from jevah.db.mongo import get_database

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


@router.post("/{media_id}", status_code=status.HTTP_201_CREATED)
async def add_bookmark(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    bookmark = await BookmarkService(db).add(current_user["_id"], media_id)
    return {"success": True, "message": "Media bookmarked", "bookmark": bookmark}


@router.delete("/{media_id}")
async def remove_bookmark(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await BookmarkService(db).remove(current_user["_id"], media_id)
    return {"success": True, "message": "Bookmark removed"}


@router.get("")
async def list_bookmarks(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, **await BookmarkService(db).list(current_user["_id"], page, limit)}


@router.get("/{media_id}/status")
async def bookmark_status(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "isBookmarked": await BookmarkService(db).is_bookmarked(current_user["_id"], media_id)}
