"""
Catalog product schemas for API request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from storefront.database.models.product import ProductCategory, TargetAudience
from storefront.schemas.common import CamelModel, Money, UtcDatetime

MAX_PRODUCT_IMAGES = 4


def _clean_list(values: Optional[list[str]]) -> Optional[list[str]]:
    if values is None:
        return None
    return [str(value).strip() for value in values if value and str(value).strip()]


class ProductCreate(CamelModel):
    """
    Product creation request.

    ``slug`` is generated from the title when omitted. A single ``image``
    is accepted in place of ``images``; the first image becomes the main
    image either way.
    """

    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=220)
    description: str = Field(..., min_length=1)
    category: ProductCategory
    target_audience: TargetAudience = TargetAudience.UNISEX
    price: Money = Field(..., ge=0)
    discount_price: Optional[Money] = Field(None, ge=0)
    stock: int = Field(1, ge=0)
    image: Optional[str] = Field(None, max_length=1024)
    images: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    brand: Optional[str] = Field(None, max_length=120)
    is_featured: bool = False
    is_active: bool = True

    @field_validator("images", "colors", "sizes", "tags", mode="after")
    @classmethod
    def strip_blank_entries(cls, v: list[str]) -> list[str]:
        return _clean_list(v)

    @model_validator(mode="after")
    def validate_images_and_discount(self) -> "ProductCreate":
        if not self.images and self.image:
            self.images = [self.image]
        if not self.images:
            raise ValueError("At least 1 image is required")
        if len(self.images) > MAX_PRODUCT_IMAGES:
            raise ValueError(f"At most {MAX_PRODUCT_IMAGES} images are allowed")
        if self.discount_price is not None and self.discount_price >= self.price:
            raise ValueError("Discount price must be lower than price")
        return self


class ProductUpdate(CamelModel):
    """Partial product update; only fields that are sent are changed."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=220)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[ProductCategory] = None
    target_audience: Optional[TargetAudience] = None
    price: Optional[Money] = Field(None, ge=0)
    discount_price: Optional[Money] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[list[str]] = None
    colors: Optional[list[str]] = None
    sizes: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    brand: Optional[str] = Field(None, max_length=120)
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("images", "colors", "sizes", "tags", mode="after")
    @classmethod
    def strip_blank_entries(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_list(v)

    @field_validator("images", mode="after")
    @classmethod
    def validate_image_count(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is not None and not 1 <= len(v) <= MAX_PRODUCT_IMAGES:
            raise ValueError(f"Products need between 1 and {MAX_PRODUCT_IMAGES} images")
        return v


class ProductRead(CamelModel):
    id: UUID
    title: str
    slug: str
    description: str
    category: ProductCategory
    target_audience: TargetAudience
    image: str
    images: list[str]
    price: Money
    discount_price: Optional[Money] = None
    final_price: Money
    discount_percentage: int
    colors: list[str]
    sizes: list[str]
    tags: list[str]
    brand: Optional[str] = None
    rating: float
    review_count: int
    stock: int
    is_featured: bool
    is_active: bool
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None


class ProductName(CamelModel):
    id: UUID
    title: str


class ProductEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: ProductRead


class ProductListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: list[ProductRead]


class ProductNamesEnvelope(CamelModel):
    success: bool = True
    data: list[ProductName]
