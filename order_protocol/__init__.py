"""
order-protocol

Canonical order hashing and fill/status bookkeeping for a peer-to-peer
exchange protocol.
"""
from .core.types import Order, SignedOrder, OrderInfo, OrderStatus, FillRejection, FillResult
from .hashing.order_hasher import OrderHasher, compute_order_hash, compute_domain_separator_hash
from .tracker.status_tracker import OrderStatusTracker

__all__ = [
    "Order",
    "SignedOrder",
    "OrderInfo",
    "OrderStatus",
    "FillRejection",
    "FillResult",
    "OrderHasher",
    "compute_order_hash",
    "compute_domain_separator_hash",
    "OrderStatusTracker",
]
