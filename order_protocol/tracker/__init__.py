"""
Order fill and status bookkeeping keyed by order hash.
"""
from .status_tracker import OrderStatusTracker
from .redis_store import RedisOrderStatusStore

__all__ = ["OrderStatusTracker", "RedisOrderStatusStore"]
