from typing import Optional

from fastapi import APIRouter, Depends, Query

from jevah.db.mongo import get_database
from jevah.media.models import ContentType
from jevah.trending.services import TrendingService

router = APIRouter(prefix="/api/trending", tags=["trending"])


@router.get("/creators")
async def trending_creators(
    metric: str = "views",
    limit: int = Query(20, ge=1, le=100),
    db=Depends(get_database),
):
    return {"success": True, "creators": await TrendingService(db).trending_creators(metric, limit)}


@router.get("/most-viewed")
async def most_viewed(limit: int = Query(20, ge=1, le=100), db=Depends(get_database)):
    return {"success": True, "creators": await TrendingService(db).trending_creators("views", limit)}


@router.get("/most-read-ebooks")
async def most_read_ebooks(limit: int = Query(20, ge=1, le=100), db=Depends(get_database)):
    return {"success": True, "creators": await TrendingService(db).trending_creators("ebook_reads", limit)}


@router.get("/most-listened-audio")
async def most_listened_audio(limit: int = Query(20, ge=1, le=100), db=Depends(get_database)):
    return {"success": True, "creators": await TrendingService(db).trending_creators("audio_listens", limit)}


@router.get("/most-heard-sermons")
async def most_heard_sermons(limit: int = Query(20, ge=1, le=100), db=Depends(get_database)):
    return {"success": True, "creators": await TrendingService(db).trending_creators("sermon_views", limit)}


@router.get("/most-checked-out-live")
async def most_checked_out_live(limit: int = Query(20, ge=1, le=100), db=Depends(get_database)):
    return {"success": True, "creators": await TrendingService(db).trending_creators("live_views", limit)}


@router.get("/live-timing")
async def live_stream_timing(db=Depends(get_database)):
    return {"success": True, "timing": await TrendingService(db).live_stream_timing()}


@router.get("/media")
async def trending_media(
    contentType: Optional[ContentType] = None,
    limit: int = Query(20, ge=1, le=100),
    days: int = Query(7, ge=1, le=90),
    db=Depends(get_database),
):
    media = await TrendingService(db).trending_media(contentType.value if contentType else None, limit, days)
    return {"success": True, "media": media}
