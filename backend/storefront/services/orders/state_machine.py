"""Order state machine with transition validation.

The machine is pure: it decides whether an edge may be taken and leaves
persistence to the repository. Guards are attached to specific edges; the
only guarded edge is processing -> shipped, which requires the shipping
payload captured by the ship operation.
"""

from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

from storefront.core.logging import get_logger
from storefront.services.orders.enums import (
    OrderStatus,
    get_allowed_order_transitions,
    validate_order_status_transition,
)

logger = get_logger(__name__)

Guard = Callable[[Mapping[str, Any]], Optional[str]]

REQUIRED_SHIPPING_FIELDS = ("tracking_id", "courier_company", "courier_name")


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        message: str,
        current_state: OrderStatus,
        target_state: OrderStatus,
        **context: Any,
    ):
        super().__init__(message)
        self.current_state = current_state
        self.target_state = target_state
        self.context = context


class OrderStateMachine:
    """Validates order status transitions against the transition table."""

    def __init__(self) -> None:
        self._transition_guards: Dict[tuple[OrderStatus, OrderStatus], Guard] = {
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED): self._guard_shipping_details,
        }

    def validate_transition(
        self,
        current_status: OrderStatus,
        target_status: OrderStatus,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Validate that current_status may move to target_status.

        Args:
            current_status: Status the order is in now
            target_status: Requested status
            context: Payload accompanying the transition, checked by guards

        Raises:
            StateTransitionError: If the edge is not allowed or a guard rejects it
        """
        if current_status == target_status:
            raise StateTransitionError(
                f"Order is already {target_status.value}",
                current_state=current_status,
                target_state=target_status,
            )

        if not validate_order_status_transition(current_status, target_status):
            allowed = sorted(s.value for s in get_allowed_order_transitions(current_status))
            logger.info(
                "Rejected order status transition",
                current_status=current_status.value,
                target_status=target_status.value,
                allowed=allowed,
            )
            raise StateTransitionError(
                f"Invalid status transition from {current_status.value} to "
                f"{target_status.value}",
                current_state=current_status,
                target_state=target_status,
                allowed=allowed,
            )

        guard = self._transition_guards.get((current_status, target_status))
        if guard is not None:
            reason = guard(context or {})
            if reason:
                raise StateTransitionError(
                    reason,
                    current_state=current_status,
                    target_state=target_status,
                )

    def get_allowed_transitions(self, current_status: OrderStatus) -> FrozenSet[OrderStatus]:
        return get_allowed_order_transitions(current_status)

    def requires_payload(self, current_status: OrderStatus, target_status: OrderStatus) -> bool:
        """Check whether the edge has a guard that inspects a payload."""
        return (current_status, target_status) in self._transition_guards

    @staticmethod
    def _guard_shipping_details(context: Mapping[str, Any]) -> Optional[str]:
        shipping = context.get("shipping_details") or {}
        missing = [field for field in REQUIRED_SHIPPING_FIELDS if not shipping.get(field)]
        if missing:
            return "Tracking ID, courier company, and courier name are required"
        return None


_state_machine = OrderStateMachine()


def get_order_state_machine() -> OrderStateMachine:
    """Return the shared state machine; it holds no per-order state."""
    return _state_machine
