"""
Checkout pricing endpoint.

Prices a client-held cart with the same delivery rule that order placement
applies.
"""

from fastapi import APIRouter

from storefront.api.deps import AppSettings
from storefront.schemas.checkout import QuoteEnvelope, QuoteRead, QuoteRequest
from storefront.services.checkout.cart import quote

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.post("/quote", response_model=QuoteEnvelope, summary="Price a cart")
async def quote_cart(payload: QuoteRequest, settings: AppSettings) -> QuoteEnvelope:
    priced = quote(((line.price, line.quantity) for line in payload.items), settings)
    return QuoteEnvelope(
        data=QuoteRead(
            subtotal=priced.subtotal,
            delivery_fee=priced.delivery_fee,
            total=priced.total,
            item_count=priced.item_count,
            free_delivery_threshold=priced.free_delivery_threshold,
            amount_to_free_delivery=priced.amount_to_free_delivery,
        )
    )
