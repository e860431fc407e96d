"""Fixtures shared by the notification tests."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from storefront.schemas.orders import OrderData


@pytest.fixture
def order_data() -> OrderData:
    """
    Order document as the admin console posts it.

    Returns:
        Confirmed order with two items and no shipping details
    """
    return OrderData.model_validate(
        {
            "id": str(uuid4()),
            "orderNumber": "ORD-1760870400000-K3X9Q2M7A",
            "user": {"id": "user-1", "name": "Ayesha Khan", "email": "ayesha@example.com"},
            "items": [
                {
                    "productId": "p1",
                    "title": "Linen Kurta",
                    "quantity": 2,
                    "price": 4500,
                    "color": "White",
                    "size": "M",
                },
                {"productId": "p2", "title": "Silk Scarf", "quantity": 1, "price": 1800},
            ],
            "shippingAddress": {
                "fullName": "Ayesha Khan",
                "phone": "+92 300 1234567",
                "address": "House 12, Street 4, Gulberg III",
                "city": "Lahore",
                "state": "Punjab",
                "zipCode": "54000",
                "country": "Pakistan",
            },
            "paymentMethod": "cod",
            "subtotal": 10800,
            "deliveryFee": 200,
            "total": 11000,
            "status": "confirmed",
            "createdAt": datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
        }
    )
