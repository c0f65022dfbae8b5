from typing import Optional

from fastapi import APIRouter, Depends

from jevah.auth.dependencies import get_current_user, get_current_user_optional
from jevah.content.schemas import MEDIA_BACKED_TYPES
from jevah.content.services import ContentInteractionService
from jevah.db.mongo import get_database
from jevah.realtime.manager import manager, media_room

router = APIRouter(prefix="/api/content", tags=["content"])


@router.post("/{content_type}/{content_id}/like")
async def toggle_like(
    content_type: str,
    content_id: str,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await ContentInteractionService(db).toggle_like(current_user["_id"], content_id, content_type)
    if content_type in MEDIA_BACKED_TYPES:
        await manager.emit(
            media_room(content_id),
            "like-updated",
            {"mediaId": content_id, "likeCount": result["likeCount"], "userId": current_user["_id"], "liked": result["liked"]},
        )
    return {"success": True, **result}


@router.get("/{content_type}/{content_id}/metadata")
async def content_metadata(
    content_type: str,
    content_id: str,
    current_user: Optional[dict] = Depends(get_current_user_optional),
    db=Depends(get_database),
):
    metadata = await ContentInteractionService(db).get_content_metadata(
        content_id, content_type, current_user["_id"] if current_user else None
    )
    return {"success": True, "metadata": metadata}
