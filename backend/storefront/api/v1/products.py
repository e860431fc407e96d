"""
Catalog product endpoints.

Browsing is public; creating, editing and deleting products is limited to
administrators.
"""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.api.deps import AppSettings, CurrentAdmin, DatabaseSession
from storefront.core.logging import get_logger
from storefront.schemas.common import MessageResponse
from storefront.schemas.products import (
    ProductCreate,
    ProductEnvelope,
    ProductListEnvelope,
    ProductName,
    ProductNamesEnvelope,
    ProductRead,
    ProductUpdate,
)
from storefront.services.catalog.service import (
    CatalogServiceError,
    ProductConflictError,
    ProductNotFoundError,
    ProductService,
    ProductValidationError,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


def get_product_service(db: DatabaseSession, settings: AppSettings) -> ProductService:
    return ProductService(db, settings)


ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]


def parse_product_id(product_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(product_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid product ID",
        ) from e


def catalog_http_error(e: CatalogServiceError) -> HTTPException:
    if isinstance(e, ProductValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ProductNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ProductConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to process product",
    )


@router.get("", response_model=ProductListEnvelope, summary="Browse products")
async def list_products(
    service: ProductServiceDep,
    category: Optional[str] = Query(None),
    audience: Optional[str] = Query(None),
    featured: bool = Query(False),
    search: Optional[str] = Query(None, max_length=100),
) -> ProductListEnvelope:
    try:
        products = await service.list_products(
            category=category,
            audience=audience,
            featured=featured,
            search=search,
        )
    except CatalogServiceError as e:
        raise catalog_http_error(e) from e
    return ProductListEnvelope(
        count=len(products),
        data=[ProductRead.model_validate(p) for p in products],
    )


@router.post(
    "",
    response_model=ProductEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def create_product(
    payload: ProductCreate,
    admin: CurrentAdmin,
    service: ProductServiceDep,
) -> ProductEnvelope:
    try:
        product = await service.create_product(payload)
    except CatalogServiceError as e:
        raise catalog_http_error(e) from e
    return ProductEnvelope(
        message="Product created successfully",
        data=ProductRead.model_validate(product),
    )


@router.get("/names", response_model=ProductNamesEnvelope, summary="List product names")
async def list_product_names(service: ProductServiceDep) -> ProductNamesEnvelope:
    products = await service.list_names()
    return ProductNamesEnvelope(data=[ProductName.model_validate(p) for p in products])


@router.get("/{product_id}", response_model=ProductEnvelope, summary="Get a product")
async def get_product(product_id: str, service: ProductServiceDep) -> ProductEnvelope:
    try:
        product = await service.get_product(parse_product_id(product_id))
    except CatalogServiceError as e:
        raise catalog_http_error(e) from e
    return ProductEnvelope(data=ProductRead.model_validate(product))


@router.put("/{product_id}", response_model=ProductEnvelope, summary="Update a product")
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    admin: CurrentAdmin,
    service: ProductServiceDep,
) -> ProductEnvelope:
    """
    Partial update. Catalog edits never change orders already placed.
    """
    try:
        product = await service.update_product(parse_product_id(product_id), payload)
    except CatalogServiceError as e:
        raise catalog_http_error(e) from e
    return ProductEnvelope(
        message="Product updated successfully",
        data=ProductRead.model_validate(product),
    )


@router.delete("/{product_id}", response_model=MessageResponse, summary="Delete a product")
async def delete_product(
    product_id: str,
    admin: CurrentAdmin,
    service: ProductServiceDep,
) -> MessageResponse:
    try:
        await service.delete_product(parse_product_id(product_id))
    except CatalogServiceError as e:
        raise catalog_http_error(e) from e
    return MessageResponse(message="Product deleted successfully")
