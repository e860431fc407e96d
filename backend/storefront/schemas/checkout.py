"""
Checkout quote schemas.
"""

from pydantic import Field

from storefront.schemas.common import CamelModel, Money


class QuoteLine(CamelModel):
    price: Money = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class QuoteRequest(CamelModel):
    items: list[QuoteLine] = Field(..., min_length=1)


class QuoteRead(CamelModel):
    subtotal: Money
    delivery_fee: Money
    total: Money
    item_count: int
    free_delivery_threshold: Money
    amount_to_free_delivery: Money


class QuoteEnvelope(CamelModel):
    success: bool = True
    data: QuoteRead
