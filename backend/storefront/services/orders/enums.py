"""Order status and payment method enums with the transition table.

Statuses progress pending -> confirmed -> processing -> shipped -> delivered.
``cancelled`` is reachable from every non-terminal status. Only the edges in
``ORDER_STATUS_TRANSITIONS`` are legal; everything else, including repeating
the current status, is rejected.
"""

from enum import Enum
from typing import Dict, FrozenSet


class OrderStatus(str, Enum):
    """Order lifecycle status.

    Valid transitions:
    - PENDING -> CONFIRMED, CANCELLED
    - CONFIRMED -> PROCESSING, CANCELLED
    - PROCESSING -> SHIPPED (ship only), CANCELLED
    - SHIPPED -> DELIVERED, CANCELLED
    - DELIVERED -> (terminal state)
    - CANCELLED -> (terminal state)
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> "OrderStatus":
        """Convert a string to an OrderStatus.

        Matching is exact: status values are an external contract and
        ``"Confirmed"`` or ``" confirmed"`` are not accepted.

        Raises:
            ValueError: If value is not one of the six statuses
        """
        try:
            return cls(value)
        except ValueError:
            valid_values = ", ".join(s.value for s in cls)
            raise ValueError(
                f"Invalid status: {value}. Valid values are: {valid_values}"
            ) from None

    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def has_notification(self) -> bool:
        """Check if entering this status sends the customer an email."""
        return self in NOTIFIABLE_STATUSES

    @property
    def display_name(self) -> str:
        return self.value.title()


class PaymentMethod(str, Enum):
    """Payment method label recorded on an order.

    Only cash on delivery is settled by the storefront; card and bank
    transfer are recorded for manual follow-up.
    """

    COD = "cod"
    CARD = "card"
    BANK = "bank"

    @property
    def display_name(self) -> str:
        return {
            PaymentMethod.COD: "Cash on Delivery",
            PaymentMethod.CARD: "Card",
            PaymentMethod.BANK: "Bank Transfer",
        }[self]


TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

NOTIFIABLE_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    }
)

ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def validate_order_status_transition(
    current_status: OrderStatus, new_status: OrderStatus
) -> bool:
    """Check whether moving from current_status to new_status is an allowed edge."""
    return new_status in ORDER_STATUS_TRANSITIONS.get(current_status, frozenset())


def get_allowed_order_transitions(current_status: OrderStatus) -> FrozenSet[OrderStatus]:
    return ORDER_STATUS_TRANSITIONS.get(current_status, frozenset())
