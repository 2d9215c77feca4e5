from enum import Enum
from storefront.domain.errors import InvalidTransitionError

class OrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    FAILED = "failed"

# created -> paid -> shipped -> delivered, with failed reachable from created or paid
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.PAID, OrderStatus.FAILED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.FAILED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

def can_transition(current: str, target: str) -> bool:
    return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]

def check_transition(order_id: str, current: str, target: str) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is in the table."""
    if not can_transition(current, target):
        raise InvalidTransitionError(order_id, OrderStatus(current).value, OrderStatus(target).value)
