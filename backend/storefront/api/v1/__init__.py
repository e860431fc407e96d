"""
API v1 routers.
"""

from fastapi import APIRouter

from storefront.api.v1.checkout import router as checkout_router
from storefront.api.v1.contact import router as contact_router
from storefront.api.v1.couriers import router as couriers_router
from storefront.api.v1.notifications import router as notifications_router
from storefront.api.v1.orders import router as orders_router
from storefront.api.v1.products import router as products_router
from storefront.api.v1.reviews import router as reviews_router
from storefront.api.v1.statistics import router as statistics_router

api_router = APIRouter()
api_router.include_router(orders_router)
api_router.include_router(notifications_router)
api_router.include_router(couriers_router)
api_router.include_router(products_router)
api_router.include_router(reviews_router)
api_router.include_router(contact_router)
api_router.include_router(statistics_router)
api_router.include_router(checkout_router)

__all__ = ["api_router"]
