"""Plain-text order summary handed to fulfillment and courier partners."""

from storefront.schemas.orders import OrderData
from storefront.services.formatting import format_date, format_money

SEPARATOR = "==================="


def format_order_summary(order: OrderData, currency_symbol: str = "₹") -> str:
    """
    Build the copyable hand-off block for one order.

    Sections: order info, customer info, delivery address, items with line
    totals, payment summary and special instructions. Pure formatting.

    Args:
        order: Order to summarise
        currency_symbol: Symbol prefixed to every amount

    Returns:
        Multi-line text block
    """

    def money(value) -> str:
        return format_money(value, currency_symbol)

    address = order.shipping_address
    payment = order.payment_method.value.upper()

    item_blocks = []
    for index, item in enumerate(order.items, start=1):
        variant = ", ".join(
            f"{label}: {value}"
            for label, value in (("Color", item.color), ("Size", item.size))
            if value
        )
        title = f"{item.title} ({variant})" if variant else item.title
        item_blocks.append(
            f"{index}. {title}\n"
            f"     Qty: {item.quantity} | Price: {money(item.price)}\n"
            f"     Total: {money(item.line_total)}"
        )

    lines = [
        "🛍️ NEW ORDER DETAILS",
        SEPARATOR,
        "",
        "📋 ORDER INFO:",
        f"Order Number: {order.order_number}",
        f"Order Date: {format_date(order.created_at)}",
        f"Status: {order.status.value.upper()}",
        f"Payment: {payment}",
        "",
        "👤 CUSTOMER INFO:",
        f"Name: {address.full_name}",
        f"Email: {order.user.email}",
        f"Phone: {address.phone}",
        "",
        "📍 DELIVERY ADDRESS:",
        address.full_name,
        address.address,
        f"{address.city}, {address.state} {address.zip_code}",
        address.country,
        "",
        "📦 ITEMS TO DELIVER:",
        "\n\n".join(item_blocks) if item_blocks else "No items",
        "",
        "💰 PAYMENT SUMMARY:",
        f"Subtotal: {money(order.subtotal)}",
        f"Delivery Fee: {money(order.delivery_fee) if order.delivery_fee else 'FREE'}",
        f"Total Amount: {money(order.total)}",
        f"Payment Method: {payment}",
        "",
        "📝 SPECIAL INSTRUCTIONS:",
        order.special_instructions or "No special instructions",
        "",
        SEPARATOR,
    ]
    return "\n".join(lines)
