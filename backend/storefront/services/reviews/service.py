"""
Product review service.

Writing a review also refreshes the product's denormalised ``rating``
(mean of all its reviews, one decimal) and ``review_count`` in the same
transaction.
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.core.security import Identity
from storefront.database.models.product import Product
from storefront.database.models.review import Review
from storefront.schemas.reviews import MAX_REVIEW_PAGE_SIZE, ReviewCreate

logger = get_logger(__name__)

DEFAULT_REVIEW_PAGE_SIZE = 50
FALLBACK_REVIEW_EMAIL = "no-email@provided.com"
FALLBACK_AVATAR = "/placeholder.svg"


class ReviewServiceError(Exception):
    """Base exception for review service errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class ReviewProductNotFoundError(ReviewServiceError):
    """Raised when the reviewed product does not exist."""

    pass


def round_rating(value: float) -> float:
    """Round half up to one decimal, so 4.25 becomes 4.3."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class ReviewService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_review(self, author: Identity, data: ReviewCreate) -> Review:
        """
        Store a review and refresh the product rating aggregates.

        Raises:
            ReviewProductNotFoundError: If the product does not exist
            ReviewServiceError: If the review cannot be stored
        """
        product = await self.session.get(Product, data.product_id)
        if product is None:
            raise ReviewProductNotFoundError(
                "Product not found",
                product_id=str(data.product_id),
            )

        review = Review(
            product_id=product.id,
            product_name=product.title,
            user_id=author.id,
            user_name=author.name or "Anonymous",
            user_email=author.email or FALLBACK_REVIEW_EMAIL,
            user_avatar=data.user_avatar or FALLBACK_AVATAR,
            rating=data.rating,
            comment=data.comment,
        )

        try:
            self.session.add(review)
            await self.session.flush()

            count, average = (
                await self.session.execute(
                    select(func.count(Review.id), func.avg(Review.rating)).where(
                        Review.product_id == product.id
                    )
                )
            ).one()
            product.review_count = count
            product.rating = round_rating(average or 0)

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Review creation failed",
                product_id=str(data.product_id),
                user_id=author.id,
                error=str(e),
            )
            raise ReviewServiceError(
                "Failed to create review",
                product_id=str(data.product_id),
            ) from e

        logger.info(
            "Review created",
            review_id=str(review.id),
            product_id=str(product.id),
            rating=review.rating,
            product_rating=product.rating,
            review_count=product.review_count,
        )
        return review

    async def list_reviews(
        self,
        product_id: Optional[uuid.UUID] = None,
        limit: int = DEFAULT_REVIEW_PAGE_SIZE,
        skip: int = 0,
    ) -> Sequence[Review]:
        """Reviews newest first, optionally for one product. ``limit`` is capped at 100."""
        stmt = select(Review)
        if product_id is not None:
            stmt = stmt.where(Review.product_id == product_id)
        stmt = (
            stmt.order_by(Review.created_at.desc())
            .offset(max(skip, 0))
            .limit(min(max(limit, 1), MAX_REVIEW_PAGE_SIZE))
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
