"""
Relayer orderbook channel: websocket subscription client and message parser.
"""
from .message_parser import parse_channel_message
from .orderbook_channel import OrderbookChannelHandler, Subscription, WebSocketOrderbookChannel

__all__ = [
    "parse_channel_message",
    "OrderbookChannelHandler",
    "Subscription",
    "WebSocketOrderbookChannel",
]
