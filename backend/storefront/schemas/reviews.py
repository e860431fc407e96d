"""
Product review schemas.
"""

from typing import Optional
from uuid import UUID

from pydantic import Field

from storefront.schemas.common import CamelModel, UtcDatetime

MAX_REVIEW_PAGE_SIZE = 100


class ReviewCreate(CamelModel):
    """Review submitted by a signed-in customer."""

    product_id: UUID
    rating: int = Field(..., ge=1, le=5, description="Star rating from 1 to 5")
    comment: str = Field(..., min_length=1, max_length=5000)
    user_avatar: Optional[str] = Field(None, max_length=1024)


class ReviewRead(CamelModel):
    id: UUID
    product_id: UUID
    product_name: str
    user_id: str
    user_name: str
    user_avatar: Optional[str] = None
    rating: int
    comment: str
    is_verified: bool
    created_at: UtcDatetime


class ReviewEnvelope(CamelModel):
    success: bool = True
    data: ReviewRead


class ReviewListEnvelope(CamelModel):
    success: bool = True
    data: list[ReviewRead]
