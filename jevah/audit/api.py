from typing import Optional

from fastapi import APIRouter, Depends, Query

from jevah.audit.services import AuditService
from jevah.auth.dependencies import get_current_user
from jevah.db.mongo import get_database

router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.get("/me")
async def my_activity(
    limit: int = Query(50, ge=1, le=500),
    action: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    activities = await AuditService(db).get_activity_history(current_user["_id"], limit, action)
    return {"success": True, "activities": activities}
