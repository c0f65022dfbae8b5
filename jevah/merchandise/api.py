from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from jevah.auth.dependencies import get_current_user
from jevah.db.mongo import get_database
from jevah.merchandise.models import MerchCategory, MerchSort
from jevah.merchandise.schemas import (
    MerchandiseCreate,
    MerchandiseFilters,
    MerchandiseUpdate,
    PurchaseRequest,
    ReviewCreate,
)
from jevah.merchandise.services import MerchandiseService

router = APIRouter(prefix="/api/merchandise", tags=["merchandise"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_merchandise(
    data: MerchandiseCreate, current_user: dict = Depends(get_current_user), db=Depends(get_database)
):
    return {"success": True, "merchandise": await MerchandiseService(db).create(current_user["_id"], data)}


@router.get("")
async def search_merchandise(
    search: Optional[str] = None,
    category: Optional[MerchCategory] = None,
    minPrice: Optional[float] = Query(None, ge=0),
    maxPrice: Optional[float] = Query(None, ge=0),
    rating: Optional[float] = Query(None, ge=0, le=5),
    tags: Optional[str] = None,
    seller: Optional[str] = None,
    sortBy: MerchSort = MerchSort.CREATED_AT,
    sortOrder: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    filters = MerchandiseFilters(
        search=search,
        category=category,
        minPrice=minPrice,
        maxPrice=maxPrice,
        rating=rating,
        tags=[t for t in tags.split(",") if t] if tags else None,
        seller=seller,
    )
    result = await MerchandiseService(db).search(
        filters, page, limit, sortBy.value, 1 if sortOrder == "asc" else -1
    )
    return {"success": True, **result}


@router.get("/trending")
async def trending_merchandise(
    limit: int = Query(20, ge=1, le=100), current_user: dict = Depends(get_current_user), db=Depends(get_database)
):
    return {"success": True, "merchandise": await MerchandiseService(db).trending(limit)}


@router.get("/purchases/me")
async def my_purchases(
    limit: int = Query(20, ge=1, le=100), current_user: dict = Depends(get_current_user), db=Depends(get_database)
):
    return {"success": True, "purchases": await MerchandiseService(db).get_purchases(current_user["_id"], limit)}


@router.get("/seller/{seller_id}")
async def seller_merchandise(
    seller_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, **await MerchandiseService(db).seller_items(seller_id, page, limit)}


@router.get("/{merchandise_id}")
async def get_merchandise(merchandise_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "merchandise": await MerchandiseService(db).get(merchandise_id)}


@router.put("/{merchandise_id}")
async def update_merchandise(
    merchandise_id: str,
    data: MerchandiseUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {
        "success": True,
        "merchandise": await MerchandiseService(db).update(merchandise_id, current_user["_id"], data),
    }


@router.delete("/{merchandise_id}")
async def delete_merchandise(merchandise_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await MerchandiseService(db).delete(merchandise_id, current_user["_id"])
    return {"success": True, "message": "Merchandise deleted successfully"}


@router.post("/{merchandise_id}/review", status_code=status.HTTP_201_CREATED)
async def add_review(
    merchandise_id: str,
    data: ReviewCreate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {
        "success": True,
        "merchandise": await MerchandiseService(db).add_review(merchandise_id, current_user["_id"], data),
    }


@router.post("/{merchandise_id}/purchase", status_code=status.HTTP_201_CREATED)
async def purchase_merchandise(
    merchandise_id: str,
    data: PurchaseRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    return {"success": True, **await MerchandiseService(db).purchase(current_user, merchandise_id, data.quantity)}
