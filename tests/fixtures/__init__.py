"""
Shared test fixtures for the eventclient library.

Usage:
    from tests.fixtures import (
        OrderPlaced,
        OrderCancelled,
        OrderState,
        order_fold,
        RecordingBackend,
        ScriptedFeed,
    )
"""

from tests.fixtures.backends import (
    InterleavingBackend,
    RecordingBackend,
    ScriptedFeed,
    make_entry,
)
from tests.fixtures.orders import (
    ORDER_ID,
    OrderCancelled,
    OrderPlaced,
    OrderState,
    cancel_order,
    order_cancelled,
    order_fold,
    order_placed,
    place_order,
)

__all__ = [
    # Orders
    "ORDER_ID",
    "OrderPlaced",
    "OrderCancelled",
    "OrderState",
    "order_placed",
    "order_cancelled",
    "order_fold",
    "place_order",
    "cancel_order",
    # Backends
    "RecordingBackend",
    "InterleavingBackend",
    "ScriptedFeed",
    "make_entry",
]
