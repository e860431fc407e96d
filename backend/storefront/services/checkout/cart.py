"""
Client-held cart model and delivery pricing.

The cart lives with the shopper; the server only prices it
(``quote``) and receives the order payload built by ``Cart.to_order_payload``.
Lines are keyed by product, color and size so the same product in two
sizes is two lines.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from storefront.core.config import Settings

CENT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_delivery_fee(subtotal: Decimal, settings: Settings) -> Decimal:
    """Flat fee below the free delivery threshold, free at or above it."""
    if subtotal >= settings.free_delivery_threshold:
        return Decimal("0.00")
    return quantize_money(settings.delivery_fee)


def variant_key(product_id: str, color: Optional[str] = None, size: Optional[str] = None) -> str:
    return f"{product_id}-{color or 'default'}-{size or 'default'}"


@dataclass
class CartLine:
    product_id: str
    title: str
    price: Decimal
    quantity: int
    stock: int
    image: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None

    @property
    def key(self) -> str:
        return variant_key(self.product_id, self.color, self.size)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class Quote:
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    item_count: int
    free_delivery_threshold: Decimal

    @property
    def amount_to_free_delivery(self) -> Decimal:
        return max(Decimal("0.00"), self.free_delivery_threshold - self.subtotal)


def quote(lines: Iterable[tuple[Decimal, int]], settings: Settings) -> Quote:
    """
    Price a set of (unit price, quantity) lines.

    Args:
        lines: Unit price and quantity per line
        settings: Settings carrying the delivery rule

    Returns:
        Subtotal, delivery fee and total
    """
    subtotal = Decimal("0")
    item_count = 0
    for price, quantity in lines:
        subtotal += Decimal(price) * quantity
        item_count += quantity
    subtotal = quantize_money(subtotal)
    delivery_fee = calculate_delivery_fee(subtotal, settings)
    return Quote(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        total=subtotal + delivery_fee,
        item_count=item_count,
        free_delivery_threshold=settings.free_delivery_threshold,
    )


@dataclass
class Cart:
    """
    Shopping cart keyed by product variant.

    Quantities are capped at the stock known when the line was added.
    """

    settings: Settings
    lines: dict[str, CartLine] = field(default_factory=dict)

    def add(
        self,
        product_id: str,
        title: str,
        price: Decimal,
        stock: int,
        quantity: int = 1,
        image: Optional[str] = None,
        color: Optional[str] = None,
        size: Optional[str] = None,
    ) -> CartLine:
        """Add units of a variant, merging with an existing line."""
        key = variant_key(product_id, color, size)
        line = self.lines.get(key)
        if line is None:
            line = CartLine(
                product_id=product_id,
                title=title,
                price=Decimal(price),
                quantity=0,
                stock=stock,
                image=image,
                color=color,
                size=size,
            )
            self.lines[key] = line
        line.quantity = min(line.quantity + quantity, stock)
        if line.quantity <= 0:
            del self.lines[key]
        return line

    def update_quantity(self, key: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        line = self.lines.get(key)
        if line is None:
            return
        if quantity <= 0:
            del self.lines[key]
            return
        line.quantity = min(quantity, line.stock)

    def remove(self, key: str) -> None:
        self.lines.pop(key, None)

    def clear(self) -> None:
        self.lines.clear()

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines.values())

    def quote(self) -> Quote:
        return quote(((line.price, line.quantity) for line in self.lines.values()), self.settings)

    def to_order_payload(
        self,
        shipping_address: dict[str, str],
        payment_method: str = "cod",
        special_instructions: str = "",
    ) -> dict[str, Any]:
        """
        Build the order creation request for the current cart.

        Keys are camelCase, matching the order API.
        """
        priced = self.quote()
        return {
            "items": [
                {
                    "productId": line.product_id,
                    "title": line.title,
                    "quantity": line.quantity,
                    "price": str(line.price),
                    "image": line.image,
                    "color": line.color,
                    "size": line.size,
                }
                for line in self.lines.values()
            ],
            "shippingAddress": shipping_address,
            "paymentMethod": payment_method,
            "specialInstructions": special_instructions,
            "subtotal": str(priced.subtotal),
            "deliveryFee": str(priced.delivery_fee),
            "total": str(priced.total),
        }
