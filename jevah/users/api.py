from typing import Optional

from fastapi import APIRouter, Depends, Query

from jevah.auth.dependencies import get_current_user
from jevah.auth.permissions import require_role
from jevah.db.mongo import get_database
from jevah.users.schemas import RoleUpdate, UserProfileUpdate
from jevah.users.services import UserService

router = APIRouter(tags=["users"])


@router.get("/api/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[str] = None,
    search: Optional[str] = None,
    admin: dict = Depends(require_role("admin", "moderator")),
    db=Depends(get_database),
):
    return {"success": True, **await UserService(db).list_users(page, limit, role, search)}


@router.get("/api/users/stats")
async def user_stats(admin: dict = Depends(require_role("admin")), db=Depends(get_database)):
    return {"success": True, "stats": await UserService(db).get_user_stats()}


@router.get("/api/users/me")
async def my_profile(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "user": await UserService(db).get_user(current_user["_id"])}


@router.patch("/api/users/me")
async def update_my_profile(
    data: UserProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, "user": await UserService(db).update_profile(current_user["_id"], data)}


@router.get("/api/users/{user_id}")
async def get_user(user_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "user": await UserService(db).get_user(user_id)}


@router.patch("/api/users/{user_id}/role")
async def update_role(
    user_id: str,
    data: RoleUpdate,
    admin: dict = Depends(require_role("admin")),
    db=Depends(get_database),
):
    return {"success": True, "user": await UserService(db).update_role(user_id, data.role)}


@router.delete("/api/users/{user_id}")
async def delete_user(user_id: str, admin: dict = Depends(require_role("admin")), db=Depends(get_database)):
    await UserService(db).delete_user(user_id)
    return {"success": True, "message": "User deleted"}


@router.get("/api/user-profiles/search")
async def search_profiles(q: str, limit: int = Query(20, ge=1, le=50), db=Depends(get_database)):
    return {"success": True, "users": await UserService(db).search_profiles(q, limit)}


@router.get("/api/user-profiles")
async def public_profiles(ids: str = Query(..., description="Comma separated user ids"), db=Depends(get_database)):
    id_list = [i for i in ids.split(",") if i]
    return {"success": True, "users": await UserService(db).get_public_profiles(id_list)}
