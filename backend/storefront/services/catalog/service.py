"""
Catalog service for product management.

Products are created and edited from the admin console and browsed by
shoppers. At most ``max_featured_products`` products may be featured at a
time; the cap is checked whenever a product becomes featured.
"""

import re
import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings, get_settings
from storefront.core.logging import get_logger
from storefront.database.models.product import (
    Product,
    ProductCategory,
    TargetAudience,
)
from storefront.schemas.products import ProductCreate, ProductUpdate

logger = get_logger(__name__)

PRODUCT_NAMES_LIMIT = 10
ALL_FILTER = "all"


class CatalogServiceError(Exception):
    """Base exception for catalog service errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class ProductNotFoundError(CatalogServiceError):
    """Raised when a product does not exist."""

    pass


class ProductValidationError(CatalogServiceError):
    """Raised when product data breaks a catalog rule."""

    pass


class ProductConflictError(CatalogServiceError):
    """Raised when a product slug is already taken."""

    pass


def slugify(title: str) -> str:
    """``"Linen Shirt (Blue)"`` -> ``"linen-shirt-blue"``."""
    slug = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    slug = re.sub(r"[\s-]+", "-", slug.strip())
    return slug.strip("-")


class ProductService:
    """
    Business logic for catalog products.

    Args:
        session: Async database session
        settings: Application settings carrying the featured cap
    """

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    async def create_product(self, data: ProductCreate) -> Product:
        """
        Create a product.

        Raises:
            ProductValidationError: If the featured cap is reached or no slug can be built
            ProductConflictError: If the slug is already used
        """
        slug = slugify(data.slug or data.title)
        if not slug:
            raise ProductValidationError("Slug cannot be empty", title=data.title)

        if data.is_featured:
            await self._ensure_featured_capacity()
        await self._ensure_slug_available(slug)

        product = Product(
            title=data.title,
            slug=slug,
            description=data.description,
            category=data.category,
            target_audience=data.target_audience,
            image=data.images[0],
            images=list(data.images),
            price=data.price,
            discount_price=data.discount_price,
            colors=list(data.colors),
            sizes=list(data.sizes),
            tags=list(data.tags),
            brand=data.brand,
            stock=data.stock,
            is_featured=data.is_featured,
            is_active=data.is_active,
        )
        self.session.add(product)
        await self._commit(slug=slug)
        logger.info(
            "Product created",
            product_id=str(product.id),
            slug=slug,
            is_featured=product.is_featured,
        )
        return product

    async def list_products(
        self,
        category: Optional[str] = None,
        audience: Optional[str] = None,
        featured: bool = False,
        search: Optional[str] = None,
    ) -> Sequence[Product]:
        """
        Active products, newest first.

        ``category`` and ``audience`` accept ``"all"`` for no filter.
        ``search`` matches title, description and tags case-insensitively.
        """
        stmt = select(Product).where(Product.is_active.is_(True))

        if category and category != ALL_FILTER:
            stmt = stmt.where(Product.category == self._parse_enum(ProductCategory, category))
        if audience and audience != ALL_FILTER:
            stmt = stmt.where(
                Product.target_audience == self._parse_enum(TargetAudience, audience)
            )
        if featured:
            stmt = stmt.where(Product.is_featured.is_(True))
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Product.title).like(pattern),
                    func.lower(Product.description).like(pattern),
                    func.lower(cast(Product.tags, String)).like(pattern),
                )
            )

        stmt = stmt.order_by(Product.created_at.desc())
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_names(self) -> Sequence[Product]:
        stmt = select(Product).order_by(Product.created_at.desc()).limit(PRODUCT_NAMES_LIMIT)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_product(self, product_id: uuid.UUID) -> Product:
        product = await self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError("Product not found", product_id=str(product_id))
        return product

    async def update_product(self, product_id: uuid.UUID, data: ProductUpdate) -> Product:
        """
        Apply a partial update.

        Raises:
            ProductNotFoundError: If the product does not exist
            ProductValidationError: If the result breaks a catalog rule
            ProductConflictError: If the new slug is already used
        """
        product = await self.get_product(product_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("is_featured") and not product.is_featured:
            await self._ensure_featured_capacity()

        if "slug" in changes:
            changes["slug"] = slugify(changes["slug"])
            if not changes["slug"]:
                raise ProductValidationError("Slug cannot be empty")
            if changes["slug"] != product.slug:
                await self._ensure_slug_available(changes["slug"])

        price = changes.get("price", product.price)
        discount_price = changes.get("discount_price", product.discount_price)
        if discount_price is not None and discount_price >= price:
            raise ProductValidationError(
                "Discount price must be lower than price",
                product_id=str(product_id),
            )

        for field, value in changes.items():
            setattr(product, field, value)
        if "images" in changes:
            product.image = product.images[0]

        await self._commit(product_id=str(product_id))
        logger.info("Product updated", product_id=str(product_id), fields=sorted(changes))
        return product

    async def delete_product(self, product_id: uuid.UUID) -> None:
        product = await self.get_product(product_id)
        await self.session.delete(product)
        await self._commit(product_id=str(product_id))
        logger.info("Product deleted", product_id=str(product_id))

    async def _ensure_featured_capacity(self) -> None:
        limit = self.settings.max_featured_products
        featured = await self.session.scalar(
            select(func.count(Product.id)).where(Product.is_featured.is_(True))
        )
        if featured >= limit:
            raise ProductValidationError(
                f"Maximum {limit} featured products allowed",
                featured=featured,
            )

    async def _ensure_slug_available(self, slug: str) -> None:
        existing = await self.session.scalar(select(Product.id).where(Product.slug == slug))
        if existing is not None:
            raise ProductConflictError("Duplicate slug", slug=slug)

    async def _commit(self, **context: Any) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("Product write rejected", error=str(e.orig), **context)
            if "slug" in str(e.orig):
                raise ProductConflictError("Duplicate slug", **context) from e
            raise ProductValidationError("Product violates a catalog constraint", **context) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Product write failed", error=str(e), **context)
            raise CatalogServiceError("Failed to save product", **context) from e

    @staticmethod
    def _parse_enum(enum_cls, value: str):
        try:
            return enum_cls(value)
        except ValueError as e:
            raise ProductValidationError(
                f"Invalid {enum_cls.__name__} filter: {value}",
                value=value,
            ) from e
