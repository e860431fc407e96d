"""
Tests for the plain-text fulfillment hand-off summary.
"""

from datetime import datetime, timezone

import pytest

from storefront.schemas.orders import OrderData
from storefront.services.orders.summary import SEPARATOR, format_order_summary


@pytest.fixture
def order_data() -> OrderData:
    return OrderData.model_validate(
        {
            "orderNumber": "ORD-1760870400000-ABC123XYZ",
            "user": {"id": "user-1", "name": "Ayesha Khan", "email": "ayesha@example.com"},
            "items": [
                {
                    "productId": "p1",
                    "title": "Linen Kurta",
                    "quantity": 2,
                    "price": 1500,
                    "color": "White",
                    "size": "M",
                },
                {"productId": "p2", "title": "Silk Scarf", "quantity": 1, "price": 2500.5},
            ],
            "shippingAddress": {
                "fullName": "Ayesha Khan",
                "phone": "+92 300 1234567",
                "address": "House 12, Street 4",
                "city": "Lahore",
                "state": "Punjab",
                "zipCode": "54000",
                "country": "Pakistan",
            },
            "paymentMethod": "cod",
            "subtotal": 5500.5,
            "deliveryFee": 200,
            "total": 5700.5,
            "status": "confirmed",
            "createdAt": datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
        }
    )


class TestFormatOrderSummary:
    def test_sections_in_order(self, order_data: OrderData) -> None:
        summary = format_order_summary(order_data)

        headings = [
            "📋 ORDER INFO:",
            "👤 CUSTOMER INFO:",
            "📍 DELIVERY ADDRESS:",
            "📦 ITEMS TO DELIVER:",
            "💰 PAYMENT SUMMARY:",
            "📝 SPECIAL INSTRUCTIONS:",
        ]
        positions = [summary.index(heading) for heading in headings]
        assert positions == sorted(positions)
        assert summary.rstrip().endswith(SEPARATOR)

    def test_order_and_customer_fields(self, order_data: OrderData) -> None:
        summary = format_order_summary(order_data)

        assert "Order Number: ORD-1760870400000-ABC123XYZ" in summary
        assert "Order Date: October 19, 2026" in summary
        assert "Status: CONFIRMED" in summary
        assert "Payment: COD" in summary
        assert "Email: ayesha@example.com" in summary
        assert "Lahore, Punjab 54000" in summary

    def test_item_lines_with_variants_and_totals(self, order_data: OrderData) -> None:
        summary = format_order_summary(order_data)

        assert "1. Linen Kurta (Color: White, Size: M)" in summary
        assert "Qty: 2 | Price: ₹1,500" in summary
        assert "Total: ₹3,000" in summary
        assert "2. Silk Scarf\n" in summary
        assert "Price: ₹2,500.50" in summary

    def test_payment_summary(self, order_data: OrderData) -> None:
        summary = format_order_summary(order_data, currency_symbol="Rs ")

        assert "Subtotal: Rs 5,500.50" in summary
        assert "Delivery Fee: Rs 200" in summary
        assert "Total Amount: Rs 5,700.50" in summary

    def test_free_delivery_and_no_instructions(self, order_data: OrderData) -> None:
        free = order_data.model_copy(update={"delivery_fee": 0, "special_instructions": ""})

        summary = format_order_summary(free)

        assert "Delivery Fee: FREE" in summary
        assert "No special instructions" in summary

    def test_formatting_is_pure(self, order_data: OrderData) -> None:
        assert format_order_summary(order_data) == format_order_summary(order_data)
