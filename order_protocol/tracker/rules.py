"""
Fill and status rules shared by every tracker backend.

Status is derived on read from (order, filled amount, external flag, now);
only the filled amount and the flag are ever stored.
"""
from typing import Optional

from ..core.clock import Clock
from ..core.types import FillRejection, Order, OrderStatus, SIGNALLED_STATUSES

_REJECTION_BY_STATUS = {
    OrderStatus.FULLY_FILLED: FillRejection.ORDER_FULLY_FILLED,
    OrderStatus.EXPIRED: FillRejection.ORDER_EXPIRED,
    OrderStatus.CANCELLED: FillRejection.ORDER_CANCELLED,
    OrderStatus.INVALID: FillRejection.ORDER_INVALID,
}


def derive_status(order: Order, filled: int, flag: Optional[OrderStatus], now: int) -> OrderStatus:
    """
    Precedence: external flag, invalid amount, fully filled, expired, partial, unfilled.
    """
    if flag is not None:
        return flag
    if order.taker_asset_amount == 0:
        return OrderStatus.INVALID
    if filled >= order.taker_asset_amount:
        return OrderStatus.FULLY_FILLED
    if Clock.is_expired(order.expiration_time_seconds, now):
        return OrderStatus.EXPIRED
    if filled > 0:
        return OrderStatus.PARTIALLY_FILLED
    return OrderStatus.UNFILLED


def check_fill(
    order: Order,
    filled: int,
    flag: Optional[OrderStatus],
    amount: int,
    now: int,
) -> Optional[FillRejection]:
    """
    Returns the reason a fill of `amount` must be rejected, or None if it may be applied.
    """
    # bool is an int subclass but never a quantity
    if isinstance(amount, bool) or not isinstance(amount, int):
        return FillRejection.NON_INTEGER_AMOUNT
    if amount <= 0:
        return FillRejection.NON_POSITIVE_AMOUNT
    status = derive_status(order, filled, flag, now)
    rejection = _REJECTION_BY_STATUS.get(status)
    if rejection is not None:
        return rejection
    if filled + amount > order.taker_asset_amount:
        return FillRejection.OVERSHOOT
    return None


def parse_flag(value: Optional[str]) -> Optional[OrderStatus]:
    """Stored flag text back to a status; only externally signalled states are valid."""
    if not value:
        return None
    status = OrderStatus(value)
    if status not in SIGNALLED_STATUSES:
        raise ValueError(f"{status.value} cannot be stored as an order flag")
    return status
