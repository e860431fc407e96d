"""
Catalog product model.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum as SQLEnum,
    Float,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database.base import BaseModel, JSONDocument


class ProductCategory(str, Enum):
    FASHION_APPAREL = "fashion-apparel"
    TOPWEAR = "topwear"
    BOTTOMWEAR = "bottomwear"
    FOOTWEAR = "footwear"
    ACCESSORIES = "accessories"
    TOYS_HOBBIES = "toys-hobbies"


class TargetAudience(str, Enum):
    MEN = "men"
    WOMEN = "women"
    KIDS = "kids"
    UNISEX = "unisex"


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Product(BaseModel):
    """
    Product listed in the storefront catalog.

    ``rating`` and ``review_count`` are denormalised aggregates maintained
    when reviews are written. ``image`` always mirrors the first entry of
    ``images``.
    """

    __tablename__ = "products"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[ProductCategory] = mapped_column(
        SQLEnum(
            ProductCategory,
            name="product_category",
            native_enum=False,
            length=32,
            values_callable=_enum_values,
        ),
        nullable=False,
        index=True,
    )

    target_audience: Mapped[TargetAudience] = mapped_column(
        SQLEnum(
            TargetAudience,
            name="target_audience",
            native_enum=False,
            length=16,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=TargetAudience.UNISEX,
        index=True,
    )

    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    images: Mapped[List[str]] = mapped_column(JSONDocument, nullable=False, default=list)

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    colors: Mapped[List[str]] = mapped_column(JSONDocument, nullable=False, default=list)
    sizes: Mapped[List[str]] = mapped_column(JSONDocument, nullable=False, default=list)
    tags: Mapped[List[str]] = mapped_column(JSONDocument, nullable=False, default=list)
    brand: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint(
            "discount_price IS NULL OR (discount_price >= 0 AND discount_price < price)",
            name="ck_products_discount_below_price",
        ),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_products_rating_range"),
    )

    @property
    def final_price(self) -> Decimal:
        if self.discount_price is not None:
            return self.discount_price
        return self.price

    @property
    def discount_percentage(self) -> int:
        if self.discount_price is None or not self.price:
            return 0
        return round((self.price - self.discount_price) / self.price * 100)
