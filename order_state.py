"""
Order Status Machine
====================
Legal status moves for an order.

State flow:
    PENDING -> ACCEPTED -> PREPARING -> READY -> DELIVERED
                                          |  -> OUT_FOR_DELIVERY -> PICKED_UP -> ON_THE_WAY -> DELIVERED
    any kitchen state -> CANCELLED

Vendors may skip forward through the kitchen states. Re-asserting the
current status is a no-op and always allowed.
"""

import logging
from enum import Enum
from typing import Set

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class StatusTransitionError(Exception):
    """Raised when an order cannot move from its current status to the requested one."""
    pass


VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.ACCEPTED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.ACCEPTED: {OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.PICKED_UP, OrderStatus.ON_THE_WAY, OrderStatus.DELIVERED},
    OrderStatus.PICKED_UP: {OrderStatus.ON_THE_WAY, OrderStatus.DELIVERED},
    OrderStatus.ON_THE_WAY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Statuses a vendor may set through PUT /api/orders/{id}/status
VENDOR_STATUSES: Set[OrderStatus] = {
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}

# Statuses the assigned delivery staff may set
DELIVERY_STATUSES: Set[OrderStatus] = {
    OrderStatus.PICKED_UP,
    OrderStatus.ON_THE_WAY,
    OrderStatus.DELIVERED,
}

TERMINAL_STATUSES: Set[OrderStatus] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def parse_status(value) -> OrderStatus:
    """
    Convert a raw status string to OrderStatus.

    Raises:
        ValueError: If the value is not a known status
    """
    return OrderStatus(value)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current == target:
        return True
    return target in VALID_TRANSITIONS.get(current, set())


def check_transition(current: OrderStatus, target: OrderStatus) -> None:
    """
    Validate a status move.

    Raises:
        StatusTransitionError: If ``target`` is not a legal successor of ``current``
    """
    if not can_transition(current, target):
        error_msg = f"Cannot change order status from {current.value} to {target.value}"
        logger.warning(error_msg)
        raise StatusTransitionError(error_msg)


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES
