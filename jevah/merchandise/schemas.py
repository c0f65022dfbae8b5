from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from jevah.merchandise.models import MerchCategory


class Dimensions(BaseModel):
    length: float = Field(0, ge=0)
    width: float = Field(0, ge=0)
    height: float = Field(0, ge=0)


class ShippingInfo(BaseModel):
    weight: float = Field(0, ge=0)
    dimensions: Dimensions = Dimensions()
    shippingCost: float = Field(0, ge=0)
    estimatedDelivery: int = Field(7, ge=0, description="Days")


class MerchandiseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    currency: str = "USD"
    stockQuantity: int = Field(0, ge=0)
    category: MerchCategory
    tags: List[str] = []
    images: List[str]
    thumbnailUrl: str
    specifications: Dict[str, Any] = {}
    shippingInfo: ShippingInfo = ShippingInfo()

    @field_validator("images")
    @classmethod
    def images_not_empty(cls, v):
        if not v:
            raise ValueError("At least one product image is required")
        return v


class MerchandiseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stockQuantity: Optional[int] = Field(None, ge=0)
    category: Optional[MerchCategory] = None
    tags: Optional[List[str]] = None
    images: Optional[List[str]] = None
    thumbnailUrl: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    shippingInfo: Optional[ShippingInfo] = None


class MerchandiseFilters(BaseModel):
    category: Optional[MerchCategory] = None
    minPrice: Optional[float] = Field(None, ge=0)
    maxPrice: Optional[float] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    tags: Optional[List[str]] = None
    seller: Optional[str] = None
    search: Optional[str] = None
    inStockOnly: bool = True


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class PurchaseRequest(BaseModel):
    quantity: int = 1
