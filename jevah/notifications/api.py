from fastapi import APIRouter, Depends, Query, status

from jevah.auth.dependencies import get_current_user
from jevah.auth.permissions import require_role
from jevah.db.mongo import get_database
from jevah.notifications.schemas import NotificationCreate
from jevah.notifications.services import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unreadOnly: bool = False,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    result = await NotificationService(db).list_notifications(current_user["_id"], page, limit, unreadOnly)
    return {"success": True, **result}


@router.get("/unread-count")
async def unread_count(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    count = await NotificationService(db).unread_count(current_user["_id"])
    return {"success": True, "count": count}


@router.patch("/{notification_id}/read")
async def mark_read(notification_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    notification = await NotificationService(db).mark_read(notification_id, current_user["_id"])
    return {"success": True, "notification": notification}


@router.patch("/read-all")
async def mark_all_read(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    updated = await NotificationService(db).mark_all_read(current_user["_id"])
    return {"success": True, "updated": updated}


@router.delete("/{notification_id}")
async def delete_notification(notification_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await NotificationService(db).delete(notification_id, current_user["_id"])
    return {"success": True, "message": "Notification deleted"}


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_notification(
    payload: NotificationCreate,
    admin: dict = Depends(require_role("admin")),
    db=Depends(get_database),
):
    """Admin broadcast to one user."""
    notification = await NotificationService(db).notify(
        payload.userId, payload.title, payload.message, payload.type.value, payload.relatedId
    )
    return {"success": True, "notification": notification}
