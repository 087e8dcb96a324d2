"""
Exception types.

Hashing errors are precondition violations and are raised.
Tracker rejections are not exceptions, see FillResult.
"""
from typing import Optional


class MalformedOrderError(ValueError):
    """An order record is missing a field or holds an out-of-range value."""


class InvalidAddressError(ValueError):
    """A value is not a 20-byte hex address."""


class OrderbookChannelError(RuntimeError):
    """
    Protocol error raised while handling an orderbook channel message.
    request_id is set when the message could be attributed to a subscription.
    """
    def __init__(self, message: str, request_id: Optional[int] = None):
        super().__init__(message)
        self.request_id = request_id
