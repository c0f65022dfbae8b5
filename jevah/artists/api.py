from fastapi import APIRouter, Depends, Query, Request

from jevah.artists.schemas import ArtistProfileUpdate, ArtistVerificationRequest
from jevah.artists.services import ArtistService
from jevah.auth.dependencies import get_current_user
from jevah.auth.permissions import require_role
from jevah.db.mongo import get_database
from jevah.realtime.manager import manager
from jevah.utils.rate_limit import follow_limit

router = APIRouter(prefix="/api/artist", tags=["artists"])


@router.post("/{artist_id}/follow")
@follow_limit
async def follow_artist(
    request: Request, artist_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)
):
    result = await ArtistService(db).follow(current_user["_id"], artist_id)
    await manager.emit_to_user(artist_id, "follower-updated", {"artistId": artist_id, **result})
    return {"success": True, "message": "Artist followed", **result}


@router.delete("/{artist_id}/follow")
@follow_limit
async def unfollow_artist(
    request: Request, artist_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)
):
    result = await ArtistService(db).unfollow(current_user["_id"], artist_id)
    await manager.emit_to_user(artist_id, "follower-updated", {"artistId": artist_id, **result})
    return {"success": True, "message": "Artist unfollowed", **result}


@router.get("/{artist_id}/follow-status")
async def follow_status(artist_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "following": await ArtistService(db).is_following(current_user["_id"], artist_id)}


@router.get("/{artist_id}/followers")
async def followers(
    artist_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db=Depends(get_database),
):
    return {"success": True, **await ArtistService(db).get_followers(artist_id, page, limit)}


@router.get("/following/me")
async def my_following(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, **await ArtistService(db).get_following(current_user["_id"], page, limit)}


@router.patch("/profile")
async def update_profile(
    data: ArtistProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, "user": await ArtistService(db).update_artist_profile(current_user, data)}


@router.post("/verification")
async def request_verification(
    data: ArtistVerificationRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    user = await ArtistService(db).submit_verification(current_user, data.verificationDocuments)
    return {"success": True, "message": "Verification request submitted", "user": user}


@router.post("/{artist_id}/verify")
async def verify_artist(artist_id: str, admin: dict = Depends(require_role("admin")), db=Depends(get_database)):
    return {"success": True, "user": await ArtistService(db).verify_artist(artist_id)}
