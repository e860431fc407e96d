"""
Manual notification schemas.
"""

from typing import Optional

from pydantic import ConfigDict, Field, model_validator

from storefront.schemas.common import CamelModel
from storefront.schemas.orders import NotificationOutcome, OrderData


class NotificationSendRequest(CamelModel):
    """
    Resend a status email for a stored order (``order_id``) or for an order
    document supplied by the admin console (``order_data``).
    """

    model_config = ConfigDict(str_strip_whitespace=False)

    order_id: Optional[str] = None
    order_data: Optional[OrderData] = None
    status: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_order(self) -> "NotificationSendRequest":
        if not self.order_id and self.order_data is None:
            raise ValueError("Either orderId or orderData is required")
        return self


class NotificationEnvelope(CamelModel):
    success: bool = True
    message: str
    notification: NotificationOutcome
