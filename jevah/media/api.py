import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from pydantic import ValidationError

from jevah.auth.dependencies import get_current_user
from jevah.db.mongo import get_database
from jevah.media.models import ContentType
from jevah.media.schemas import (
    InteractionRequest,
    LiveStreamSchedule,
    LiveStreamStart,
    MediaUploadForm,
    UserActionRequest,
    ViewerCountUpdate,
)
from jevah.media.services import MediaService
from jevah.realtime.manager import manager, media_room, stream_room
from jevah.utils.rate_limit import upload_limit
from jevah.utils.storage import get_storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/media", tags=["media"])


# ===============================
# UPLOAD
# ===============================
@router.post("/upload", status_code=status.HTTP_201_CREATED)
@upload_limit
async def upload_media(
    request: Request,
    title: str = Form(...),
    contentType: ContentType = Form(...),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    topics: Optional[str] = Form(None),
    duration: Optional[float] = Form(None),
    isDownloadable: bool = Form(False),
    viewThreshold: Optional[int] = Form(None),
    file: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
    storage=Depends(get_storage),
):
    """
    Upload a media item with its thumbnail.
    - **file**: the media file (not required for live content)
    - **thumbnail**: JPEG, PNG or WebP image under 5MB
    """
    try:
        form = MediaUploadForm(
            title=title,
            contentType=contentType,
            description=description,
            category=category,
            topics=topics or [],
            duration=duration,
            isDownloadable=isDownloadable,
            viewThreshold=viewThreshold,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors())

    file_bytes = await file.read() if file and file.filename else None
    thumb_bytes = await thumbnail.read() if thumbnail and thumbnail.filename else None

    media = await MediaService(db, storage).upload_media(
        current_user,
        form,
        file_bytes,
        file.content_type if file_bytes else None,
        thumb_bytes,
        thumbnail.content_type if thumb_bytes else None,
    )
    return {"success": True, "message": "Media uploaded successfully", "media": media}


# ===============================
# LISTING
# ===============================
@router.get("")
async def list_media(
    search: Optional[str] = None,
    contentType: Optional[str] = None,
    category: Optional[str] = None,
    topics: Optional[str] = None,
    uploadedBy: Optional[str] = None,
    sort: str = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db=Depends(get_database),
):
    topic_list = [t for t in topics.split(",") if t] if topics else None
    result = await MediaService(db).list_media(search, contentType, category, topic_list, uploadedBy, sort, page, limit)
    return {"success": True, **result}


@router.get("/analytics/content-types")
async def content_type_counts(db=Depends(get_database)):
    return {"success": True, "counts": await MediaService(db).get_media_count_by_content_type()}


@router.get("/recent")
async def recent_media(limit: int = Query(10, ge=1, le=50), db=Depends(get_database)):
    return {"success": True, "media": await MediaService(db).get_recent_media(limit)}


@router.get("/viewed")
async def viewed_media(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "media": await MediaService(db).get_viewed_media(current_user["_id"])}


# ===============================
# LIVE
# ===============================
@router.get("/live")
async def live_streams(
    status_filter: str = Query("live", alias="status"),
    limit: int = Query(20, ge=1, le=100),
    db=Depends(get_database),
):
    return {"success": True, "streams": await MediaService(db).list_live_streams(status_filter, limit)}


@router.post("/live/start", status_code=status.HTTP_201_CREATED)
async def start_live(data: LiveStreamStart, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    stream = await MediaService(db).start_live_stream(current_user, data)
    return {"success": True, "stream": stream}


@router.post("/live/schedule", status_code=status.HTTP_201_CREATED)
async def schedule_live(data: LiveStreamSchedule, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    stream = await MediaService(db).schedule_live_stream(current_user, data)
    return {"success": True, "stream": stream}


@router.post("/live/{media_id}/go-live")
async def go_live(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    stream = await MediaService(db).go_live(media_id, current_user)
    await manager.emit(stream_room(media_id), "stream-started", {"streamId": media_id})
    return {"success": True, "stream": stream}


@router.post("/live/{media_id}/end")
async def end_live(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    stream = await MediaService(db).end_live_stream(media_id, current_user)
    await manager.emit(stream_room(media_id), "stream-ended", {"streamId": media_id})
    return {"success": True, "stream": stream}


@router.patch("/live/{media_id}/viewers")
async def update_viewers(
    media_id: str,
    data: ViewerCountUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await MediaService(db).update_viewer_count(media_id, data.concurrentViewers)
    await manager.emit(stream_room(media_id), "viewer-count", {"streamId": media_id, **result})
    return {"success": True, **result}


# ===============================
# ITEM
# ===============================
@router.get("/{media_id}")
async def get_media(media_id: str, db=Depends(get_database)):
    return {"success": True, "media": await MediaService(db).get_media(media_id)}


@router.delete("/{media_id}")
async def delete_media(
    media_id: str,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
    storage=Depends(get_storage),
):
    await MediaService(db, storage).delete_media(media_id, current_user)
    return {"success": True, "message": "Media deleted successfully"}


@router.post("/{media_id}/interact")
async def record_interaction(
    media_id: str,
    data: InteractionRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await MediaService(db).record_interaction(
        current_user["_id"], media_id, data.interactionType.value, data.duration
    )
    await manager.emit(media_room(media_id), "interaction-updated", {"mediaId": media_id, **result})
    return {"success": True, **result}


@router.get("/{media_id}/interactions")
async def interaction_counts(media_id: str, db=Depends(get_database)):
    return {"success": True, "counts": await MediaService(db).get_interaction_counts(media_id)}


@router.post("/{media_id}/action")
async def user_action(
    media_id: str,
    data: UserActionRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await MediaService(db).toggle_user_action(current_user, media_id, data.actionType.value)
    return {"success": True, **result}


@router.get("/{media_id}/action-status")
async def action_status(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, **await MediaService(db).get_user_action_status(current_user["_id"], media_id)}


@router.post("/{media_id}/download")
async def download_media(
    media_id: str,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
    storage=Depends(get_storage),
):
    return {"success": True, **await MediaService(db, storage).download_media(current_user["_id"], media_id)}


@router.post("/{media_id}/track-view")
async def track_view(media_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await MediaService(db).add_viewed_media(current_user["_id"], media_id)
    return {"success": True, "message": "View tracked"}
