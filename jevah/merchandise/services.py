import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from jevah.artists.services import display_name
from jevah.audit.services import AuditService
from jevah.db.mongo import MERCH_PURCHASES, MERCHANDISE, USERS, transaction
from jevah.errors import BadRequestError, ConflictError, NotFoundError
from jevah.merchandise import models
from jevah.merchandise.schemas import MerchandiseCreate, MerchandiseFilters, MerchandiseUpdate, ReviewCreate
from jevah.notifications.services import NotificationService
from jevah.utils import email as mailer
from jevah.utils.mongodb_utils import (
    attach_users,
    convert_pydantic_for_mongodb,
    paginate,
    parse_object_id,
    serialize_document,
    skip_for,
)

logger = logging.getLogger(__name__)


def trending_pipeline(limit: int) -> List[Dict[str, Any]]:
    def weighted(field, weight):
        return {"$multiply": [{"$ifNull": [f"${field}", 0]}, weight]}

    return [
        {"$match": {"isAvailable": True, "stockQuantity": {"$gt": 0}}},
        {"$addFields": {
            "trendingScore": {"$add": [
                weighted("viewCount", models.VIEW_WEIGHT),
                weighted("purchaseCount", models.PURCHASE_WEIGHT),
                weighted("rating", models.RATING_WEIGHT),
                weighted("totalRatings", models.RATINGS_COUNT_WEIGHT),
            ]},
        }},
        {"$sort": {"trendingScore": -1}},
        {"$limit": limit},
    ]


class MerchandiseService:
    def __init__(self, db):
        self.db = db

    async def _get(self, merchandise_id, session=None) -> Dict[str, Any]:
        item = await self.db[MERCHANDISE].find_one(
            {"_id": parse_object_id(merchandise_id, "merchandise")}, session=session
        )
        if not item:
            raise NotFoundError("Merchandise not found")
        return item

    async def create(self, seller_id, data: MerchandiseCreate) -> Dict[str, Any]:
        now = datetime.utcnow()
        doc = {
            **convert_pydantic_for_mongodb(data.model_dump()),
            "seller": parse_object_id(seller_id, "user"),
            "isAvailable": data.stockQuantity > 0,
            "viewCount": 0,
            "purchaseCount": 0,
            "rating": 0,
            "totalRatings": 0,
            "reviews": [],
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self.db[MERCHANDISE].insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Merchandise created: id={doc['_id']} seller={seller_id}")
        return serialize_document(doc)

    async def get(self, merchandise_id) -> Dict[str, Any]:
        item = await self.db[MERCHANDISE].find_one_and_update(
            {"_id": parse_object_id(merchandise_id, "merchandise")},
            {"$inc": {"viewCount": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if not item:
            raise NotFoundError("Merchandise not found")
        await attach_users(self.db, [item], "seller")
        await attach_users(self.db, item.get("reviews", []), "userId", target="user")
        return serialize_document(item)

    async def search(
        self,
        filters: Optional[MerchandiseFilters] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = models.MerchSort.CREATED_AT.value,
        sort_order: int = -1,
    ) -> Dict[str, Any]:
        filters = filters or MerchandiseFilters()
        query: Dict[str, Any] = {"isAvailable": True}
        if filters.inStockOnly:
            query["stockQuantity"] = {"$gt": 0}
        if filters.category:
            query["category"] = filters.category.value
        if filters.rating is not None:
            query["rating"] = {"$gte": filters.rating}
        if filters.tags:
            query["tags"] = {"$in": filters.tags}
        if filters.seller:
            query["seller"] = parse_object_id(filters.seller, "seller")
        price: Dict[str, float] = {}
        if filters.minPrice is not None:
            price["$gte"] = filters.minPrice
        if filters.maxPrice is not None:
            price["$lte"] = filters.maxPrice
        if price:
            query["price"] = price
        if filters.search:
            pattern = {"$regex": re.escape(filters.search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"description": pattern}, {"tags": pattern}]

        sort_field = models.SORT_FIELDS.get(sort_by)
        if not sort_field:
            raise BadRequestError(f"Invalid sort field: {sort_by}")

        total = await self.db[MERCHANDISE].count_documents(query)
        cursor = (
            self.db[MERCHANDISE].find(query, {"reviews": 0})
            .sort(sort_field, sort_order)
            .skip(skip_for(page, limit))
            .limit(limit)
        )
        items = await cursor.to_list(length=limit)
        await attach_users(self.db, items, "seller")
        return {"merchandise": serialize_document(items), "pagination": paginate(page, limit, total)}

    async def trending(self, limit: int = 20) -> List[Dict[str, Any]]:
        items = await self.db[MERCHANDISE].aggregate(trending_pipeline(limit)).to_list(length=None)
        for item in items:
            item.pop("reviews", None)
        await attach_users(self.db, items, "seller")
        return serialize_document(items)

    async def update(self, merchandise_id, seller_id, data: MerchandiseUpdate) -> Dict[str, Any]:
        updates = convert_pydantic_for_mongodb(data.model_dump(exclude_unset=True))
        if not updates:
            raise BadRequestError("No fields to update")
        if "stockQuantity" in updates:
            updates["isAvailable"] = updates["stockQuantity"] > 0
        updates["updatedAt"] = datetime.utcnow()

        updated = await self.db[MERCHANDISE].find_one_and_update(
            {"_id": parse_object_id(merchandise_id, "merchandise"), "seller": parse_object_id(seller_id, "user")},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Merchandise not found or unauthorized")
        logger.info(f"Merchandise updated: id={merchandise_id}")
        return serialize_document(updated)

    async def delete(self, merchandise_id, seller_id) -> None:
        result = await self.db[MERCHANDISE].delete_one(
            {"_id": parse_object_id(merchandise_id, "merchandise"), "seller": parse_object_id(seller_id, "user")}
        )
        if result.deleted_count == 0:
            raise NotFoundError("Merchandise not found or unauthorized")
        logger.info(f"Merchandise deleted: id={merchandise_id}")

    async def add_review(self, merchandise_id, user_id, data: ReviewCreate) -> Dict[str, Any]:
        item = await self._get(merchandise_id)
        user_oid = parse_object_id(user_id, "user")
        if any(review.get("userId") == user_oid for review in item.get("reviews", [])):
            raise ConflictError("User already reviewed this merchandise")

        total = item.get("totalRatings", 0)
        rating = round((item.get("rating", 0) * total + data.rating) / (total + 1), 2)
        review = {"userId": user_oid, "rating": data.rating, "comment": data.comment, "createdAt": datetime.utcnow()}
        updated = await self.db[MERCHANDISE].find_one_and_update(
            {"_id": item["_id"]},
            {
                "$push": {"reviews": review},
                "$set": {"rating": rating, "totalRatings": total + 1, "updatedAt": datetime.utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return serialize_document(updated)

    async def seller_items(self, seller_id, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query = {"seller": parse_object_id(seller_id, "seller")}
        total = await self.db[MERCHANDISE].count_documents(query)
        cursor = self.db[MERCHANDISE].find(query).sort("createdAt", -1).skip(skip_for(page, limit)).limit(limit)
        items = await cursor.to_list(length=limit)
        return {"merchandise": serialize_document(items), "pagination": paginate(page, limit, total)}

    async def purchase(self, buyer: Dict[str, Any], merchandise_id, quantity: int = 1) -> Dict[str, Any]:
        if quantity <= 0:
            raise BadRequestError("Quantity must be greater than 0")
        item_oid = parse_object_id(merchandise_id, "merchandise")

        async with transaction(self.db) as session:
            item = await self._get(item_oid, session=session)
            if not item.get("isAvailable"):
                raise BadRequestError("Merchandise item is not available")
            if item.get("stockQuantity", 0) < quantity:
                raise BadRequestError("Insufficient stock")

            updated = await self.db[MERCHANDISE].find_one_and_update(
                {"_id": item_oid, "stockQuantity": {"$gte": quantity}},
                {"$inc": {"stockQuantity": -quantity, "purchaseCount": quantity}, "$set": {"updatedAt": datetime.utcnow()}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
            if not updated:
                raise BadRequestError("Insufficient stock")
            if updated["stockQuantity"] <= 0:
                await self.db[MERCHANDISE].update_one(
                    {"_id": item_oid}, {"$set": {"isAvailable": False}}, session=session
                )
                updated["isAvailable"] = False

            now = datetime.utcnow()
            purchase = {
                "userId": buyer["_id"],
                "merchandiseId": item_oid,
                "sellerId": item["seller"],
                "quantity": quantity,
                "unitPrice": item["price"],
                "amount": round(item["price"] * quantity, 2),
                "currency": item.get("currency", "USD"),
                "status": models.PurchaseStatus.PAID.value,
                "createdAt": now,
                "updatedAt": now,
            }
            result = await self.db[MERCH_PURCHASES].insert_one(purchase, session=session)
            purchase["_id"] = result.inserted_id
            await AuditService(self.db).log_activity(
                buyer["_id"], "merch_purchase", "merchandise", item_oid, {"quantity": quantity}, session=session
            )

        logger.info(f"Merchandise purchased: item={item_oid} buyer={buyer['_id']} quantity={quantity}")
        await self._notify_seller(item, buyer, quantity)
        return {"purchase": serialize_document(purchase), "merchandise": serialize_document(updated)}

    async def _notify_seller(self, item: Dict[str, Any], buyer: Dict[str, Any], quantity: int) -> None:
        buyer_name = display_name(buyer)
        await NotificationService(self.db).notify(
            item["seller"],
            "New purchase",
            f"{buyer_name} bought {quantity} x {item['title']}",
            "merchandise",
            item["_id"],
        )
        seller = await self.db[USERS].find_one({"_id": item["seller"]}, {"email": 1})
        if seller and seller.get("email"):
            await mailer.send_merch_purchase_email(seller["email"], item["title"], quantity, buyer_name)

    async def get_purchases(self, user_id, limit: int = 20) -> List[Dict[str, Any]]:
        cursor = self.db[MERCH_PURCHASES].find({"userId": parse_object_id(user_id, "user")}).sort("createdAt", -1).limit(limit)
        return serialize_document(await cursor.to_list(length=limit))
