"""
Courier registry endpoint used by the ship dialog.
"""

from fastapi import APIRouter

from storefront.api.deps import CurrentAdmin
from storefront.schemas.orders import CourierListEnvelope, CourierRead
from storefront.services.orders.couriers import COURIERS

router = APIRouter(prefix="/couriers", tags=["Orders"])


@router.get("", response_model=CourierListEnvelope, summary="List couriers")
async def list_couriers(admin: CurrentAdmin) -> CourierListEnvelope:
    return CourierListEnvelope(
        data=[
            CourierRead(code=c.code, name=c.name, tracking_base_url=c.tracking_base_url)
            for c in COURIERS.values()
        ]
    )
