from fastapi import APIRouter, Depends, Query

from jevah.auth.dependencies import get_current_user
from jevah.dashboard.services import DashboardService
from jevah.db.mongo import get_database

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
async def user_dashboard(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "dashboard": await DashboardService(db).get_user_dashboard(current_user["_id"])}


@router.get("/timeline")
async def activity_timeline(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, **await DashboardService(db).get_activity_timeline(current_user["_id"], page, limit)}


@router.get("/performance")
async def performance_metrics(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "metrics": await DashboardService(db).get_performance_metrics(current_user["_id"])}
