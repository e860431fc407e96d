"""
Storefront statistics schemas.
"""

from storefront.schemas.common import CamelModel
from storefront.schemas.reviews import ReviewRead


class StorefrontStatistics(CamelModel):
    happy_customers: int
    average_rating: float
    products_sold: int
    satisfaction_rate: int
    recent_reviews: list[ReviewRead]


class StatisticsEnvelope(CamelModel):
    success: bool = True
    data: StorefrontStatistics
