from enum import Enum


class MerchCategory(str, Enum):
    CLOTHING = "clothing"
    ACCESSORIES = "accessories"
    BOOKS = "books"
    MUSIC = "music"
    HOME = "home"
    GIFTS = "gifts"
    ELECTRONICS = "electronics"
    OTHER = "other"


class PurchaseStatus(str, Enum):
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class MerchSort(str, Enum):
    PRICE = "price"
    RATING = "rating"
    POPULARITY = "popularity"
    CREATED_AT = "createdAt"


SORT_FIELDS = {
    MerchSort.PRICE.value: "price",
    MerchSort.RATING.value: "rating",
    MerchSort.POPULARITY.value: "purchaseCount",
    MerchSort.CREATED_AT.value: "createdAt",
}

# Trending score weights
VIEW_WEIGHT = 0.3
PURCHASE_WEIGHT = 0.4
RATING_WEIGHT = 0.2
RATINGS_COUNT_WEIGHT = 0.1
