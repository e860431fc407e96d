"""
Order schemas for API request/response validation.

``OrderData`` is the order shape shared by rendering code (emails and the
hand-off summary); it accepts both persisted orders and order documents
posted by the admin console. ``OrderRead`` is the same shape for persisted
orders, where id and creation time are always present.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, Field

from storefront.schemas.common import CamelModel, Money, UtcDatetime
from storefront.services.orders.enums import OrderStatus, PaymentMethod

ESTIMATED_DELIVERY = "7-14 business days"


class UserSnapshot(CamelModel):
    """Purchaser as recorded at order time."""

    id: str
    name: str
    email: str


class ShippingAddress(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=40)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=1, max_length=120)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=120)


class OrderItemIn(CamelModel):
    """Line item submitted at checkout."""

    product_id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1, description="Units ordered, at least 1")
    price: Money = Field(..., ge=0, description="Unit price at order time")
    image: Optional[str] = Field(None, max_length=1024)
    color: Optional[str] = Field(None, max_length=64)
    size: Optional[str] = Field(None, max_length=32)


class OrderItemRead(CamelModel):
    product_id: str
    title: str
    quantity: int
    price: Money
    image: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class ShippingDetails(CamelModel):
    tracking_id: Optional[str] = None
    courier_company: Optional[str] = None
    courier_name: Optional[str] = None
    tracking_url: Optional[str] = None
    shipped_date: Optional[UtcDatetime] = None
    estimated_delivery: str = ESTIMATED_DELIVERY


class OrderCreate(CamelModel):
    """
    Order placement request built by the checkout flow.

    ``subtotal`` and ``total`` are optional; when sent they must match the
    amounts computed from the items and delivery fee. ``delivery_fee``
    defaults to the storefront delivery rule.
    """

    items: list[OrderItemIn] = Field(..., description="Line items, at least one")
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.COD
    special_instructions: str = Field("", max_length=2000)
    subtotal: Optional[Money] = Field(None, ge=0)
    delivery_fee: Optional[Money] = Field(None, ge=0)
    total: Optional[Money] = Field(None, ge=0)


class OrderData(CamelModel):
    id: Optional[UUID] = None
    order_number: str = Field(..., min_length=1)
    user: UserSnapshot
    items: list[OrderItemRead] = Field(default_factory=list)
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.COD
    special_instructions: str = ""
    subtotal: Money = Decimal("0")
    delivery_fee: Money = Decimal("0")
    total: Money = Decimal("0")
    status: OrderStatus = OrderStatus.PENDING
    shipping_details: Optional[ShippingDetails] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class OrderRead(OrderData):
    id: UUID
    created_at: UtcDatetime


class OrderStatusUpdate(CamelModel):
    # Status values are matched exactly, padding included
    model_config = ConfigDict(str_strip_whitespace=False)

    # Plain string so unknown values get the storefront's own error message
    status: str


class ShipOrderRequest(CamelModel):
    tracking_id: Optional[str] = None
    courier_company: Optional[str] = None
    courier_name: Optional[str] = None
    tracking_url: Optional[str] = None


class NotificationOutcome(CamelModel):
    """Result of the email attempt that followed a status change."""

    sent: bool
    status: OrderStatus
    recipient: str
    message_id: Optional[str] = None
    error: Optional[str] = None


class OrderCounts(CamelModel):
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    processing: int = 0
    shipped: int = 0
    delivered: int = 0
    cancelled: int = 0


class OrderEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    order: OrderRead
    notification: Optional[NotificationOutcome] = None


class OrderCreatedEnvelope(CamelModel):
    success: bool = True
    message: str = "Order placed successfully"
    order_id: UUID
    order_number: str
    order: OrderRead


class OrderListEnvelope(CamelModel):
    success: bool = True
    count: int
    orders: list[OrderRead]


class OrderCountsEnvelope(CamelModel):
    success: bool = True
    counts: OrderCounts


class OrderSummaryEnvelope(CamelModel):
    success: bool = True
    order_number: str
    summary: str


class CourierRead(CamelModel):
    code: str
    name: str
    tracking_base_url: str


class CourierListEnvelope(CamelModel):
    success: bool = True
    data: list[CourierRead]
