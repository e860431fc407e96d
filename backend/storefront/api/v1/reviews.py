"""
Product review endpoints.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from storefront.api.deps import CurrentIdentity, DatabaseSession
from storefront.core.rate_limit import REVIEW_CREATE_LIMIT, limiter
from storefront.schemas.reviews import (
    MAX_REVIEW_PAGE_SIZE,
    ReviewCreate,
    ReviewEnvelope,
    ReviewListEnvelope,
    ReviewRead,
)
from storefront.services.reviews.service import (
    DEFAULT_REVIEW_PAGE_SIZE,
    ReviewProductNotFoundError,
    ReviewService,
    ReviewServiceError,
)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.get("", response_model=ReviewListEnvelope, summary="List reviews")
async def list_reviews(
    db: DatabaseSession,
    product_id: Optional[uuid.UUID] = Query(None, alias="productId"),
    limit: int = Query(DEFAULT_REVIEW_PAGE_SIZE, ge=1, le=MAX_REVIEW_PAGE_SIZE),
    skip: int = Query(0, ge=0),
) -> ReviewListEnvelope:
    reviews = await ReviewService(db).list_reviews(product_id=product_id, limit=limit, skip=skip)
    return ReviewListEnvelope(data=[ReviewRead.model_validate(r) for r in reviews])


@router.post(
    "",
    response_model=ReviewEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Review a product",
)
@limiter.limit(REVIEW_CREATE_LIMIT)
async def create_review(
    request: Request,
    payload: ReviewCreate,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> ReviewEnvelope:
    """
    Raises:
        HTTPException: 404 if the product does not exist, 500 if the review
            cannot be stored
    """
    try:
        review = await ReviewService(db).create_review(identity, payload)
    except ReviewProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ReviewServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e
    return ReviewEnvelope(data=ReviewRead.model_validate(review))
