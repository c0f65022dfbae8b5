from fastapi import APIRouter, Depends, Query

from jevah.db.mongo import get_database
from jevah.locations.services import LocationService

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("")
async def location_suggestions(q: str = Query(""), db=Depends(get_database)):
    return {"success": True, "locations": await LocationService(db).suggest(q)}
