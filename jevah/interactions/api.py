from fastapi import APIRouter, Depends, Query, status

from jevah.auth.dependencies import get_current_user
from jevah.db.mongo import get_database
from jevah.interactions.schemas import CommentCreate, MessageCreate, ReactionRequest, ShareRequest
from jevah.interactions.services import InteractionService, MessagingService
from jevah.realtime.manager import manager, media_room

router = APIRouter(prefix="/api/interactions", tags=["interactions"])


# ─────────────────────────────────────────────
# Likes / commentaires / partages
# ─────────────────────────────────────────────
@router.post("/media/{media_id}/like")
async def toggle_like(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    result = await InteractionService(db).toggle_like(current_user["_id"], media_id)
    await manager.emit(media_room(media_id), "like-updated", {"mediaId": media_id, **result})
    return {"success": True, **result}


@router.post("/media/{media_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
    media_id: str,
    data: CommentCreate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    comment = await InteractionService(db).add_comment(current_user["_id"], media_id, data.content, data.parentCommentId)
    await manager.emit(media_room(media_id), "new-comment", {"mediaId": media_id, "comment": comment})
    return {"success": True, "comment": comment}


@router.get("/media/{media_id}/comments")
async def get_comments(
    media_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db=Depends(get_database),
):
    return {"success": True, **await InteractionService(db).get_comments(media_id, page, limit)}


@router.delete("/comments/{comment_id}")
async def remove_comment(comment_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await InteractionService(db).remove_comment(comment_id, current_user["_id"])
    return {"success": True, "message": "Comment removed"}


@router.post("/comments/{comment_id}/reaction")
async def comment_reaction(
    comment_id: str,
    data: ReactionRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await InteractionService(db).toggle_comment_reaction(current_user["_id"], comment_id, data.reactionType)
    return {"success": True, **result}


@router.post("/media/{media_id}/share")
async def share_media(
    media_id: str,
    data: ShareRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await InteractionService(db).share_media(current_user["_id"], media_id, data.platform, data.message)
    return {"success": True, **result}


# ─────────────────────────────────────────────
# Messagerie
# ─────────────────────────────────────────────
@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def send_message(data: MessageCreate, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    message = await MessagingService(db).send_message(current_user["_id"], data)
    await manager.emit_to_user(data.recipientId, "new-message", message)
    return {"success": True, "message": message}


@router.get("/conversations")
async def conversations(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "conversations": await MessagingService(db).get_conversations(current_user["_id"])}


@router.get("/conversations/{conversation_id}/messages")
async def conversation_messages(
    conversation_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await MessagingService(db).get_conversation_messages(conversation_id, current_user["_id"], page, limit)
    return {"success": True, **result}


@router.delete("/messages/{message_id}")
async def delete_message(message_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await MessagingService(db).delete_message(message_id, current_user["_id"])
    return {"success": True, "message": "Message deleted"}
