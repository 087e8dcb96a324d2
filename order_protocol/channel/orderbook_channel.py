"""
Relayer orderbook channel client.

Subscribes to orderbook snapshots and updates for token pairs over a single
websocket and fans incoming messages out to the handler registered for each
subscription. Reconnection is left to the caller.
"""
import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

import websockets
from websockets.exceptions import ConnectionClosedError, WebSocketException

from ..core.errors import OrderbookChannelError
from ..core.logger import get_logger
from ..core.types import (
    OrderbookChannelSubscriptionOpts,
    OrderbookSnapshot,
    SignedOrder,
    SnapshotMessage,
    UpdateMessage,
)
from .message_parser import parse_channel_message

logger = get_logger("OrderbookChannel")


class OrderbookChannelHandler(ABC):
    """
    Receives the messages of one subscription.
    Callbacks run on the channel's reader task and must not block.
    """

    @abstractmethod
    def on_snapshot(self, channel: "WebSocketOrderbookChannel",
                    subscription_opts: OrderbookChannelSubscriptionOpts,
                    snapshot: OrderbookSnapshot):
        pass

    @abstractmethod
    def on_update(self, channel: "WebSocketOrderbookChannel",
                  subscription_opts: OrderbookChannelSubscriptionOpts,
                  order: SignedOrder):
        pass

    @abstractmethod
    def on_error(self, channel: "WebSocketOrderbookChannel",
                 subscription_opts: OrderbookChannelSubscriptionOpts,
                 error: Exception):
        pass

    @abstractmethod
    def on_close(self, channel: "WebSocketOrderbookChannel",
                 subscription_opts: OrderbookChannelSubscriptionOpts):
        pass


@dataclass
class Subscription:
    subscription_opts: OrderbookChannelSubscriptionOpts
    handler: OrderbookChannelHandler


class WebSocketOrderbookChannel:
    """
    Orderbook channel over one lazily opened websocket connection.
    The requestId of each subscription is its index in the subscription list.
    """
    def __init__(self, url: str):
        parsed = urlparse(url)
        if parsed.scheme not in ("ws", "wss") or not parsed.netloc:
            raise ValueError(f"Expected a ws:// or wss:// url, got {url!r}")
        self._api_endpoint_url = url
        self._connection: Optional[Any] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._connect_lock: Optional[asyncio.Lock] = None
        self._subscriptions: List[Subscription] = []

    @property
    def subscriptions(self) -> List[Subscription]:
        return list(self._subscriptions)

    async def subscribe(self, subscription_opts: OrderbookChannelSubscriptionOpts,
                        handler: OrderbookChannelHandler) -> Optional[int]:
        """
        Registers the handler and sends a subscribe request.
        Returns the request id, or None if the connection could not be opened.
        """
        if not isinstance(handler, OrderbookChannelHandler):
            raise TypeError("handler must implement OrderbookChannelHandler")
        self._subscriptions.append(Subscription(subscription_opts, handler))
        request_id = len(self._subscriptions) - 1
        subscribe_message = {
            "type": "subscribe",
            "channel": "orderbook",
            "requestId": request_id,
            "payload": subscription_opts.model_dump(by_alias=True),
        }

        if not await self._ensure_connected():
            return None

        await self._send_message(subscribe_message)
        logger.info("channel_subscribed",
                    request_id=request_id,
                    base_token=subscription_opts.base_token_address,
                    quote_token=subscription_opts.quote_token_address)
        return request_id

    async def close(self):
        """
        Closes the websocket. Handlers are notified through on_close.
        """
        if self._connection is not None:
            await self._connection.close()
        if self._reader_task is not None:
            await self._reader_task
            self._reader_task = None

    async def _ensure_connected(self) -> bool:
        # Created on first use so it binds to the running loop
        if self._connect_lock is None:
            self._connect_lock = asyncio.Lock()
        async with self._connect_lock:
            if self._connection is not None:
                return True
            try:
                self._connection = await websockets.connect(self._api_endpoint_url)
            except (OSError, WebSocketException) as e:
                logger.error("channel_connect_failed", url=self._api_endpoint_url, error=str(e))
                self._alert_all_handlers_to_error(e)
                return False
            logger.info("channel_connected", url=self._api_endpoint_url)
            self._reader_task = asyncio.create_task(self._read_loop())
            return True

    async def _send_message(self, message: Dict[str, Any]):
        if self._connection is not None:
            await self._connection.send(json.dumps(message))

    async def _read_loop(self):
        try:
            async for message in self._connection:
                self._handle_message(message)
        except ConnectionClosedError as e:
            logger.error("channel_connection_lost", error=str(e))
            self._alert_all_handlers_to_error(e)
        finally:
            self._connection = None
            logger.info("channel_closed", subscriptions=len(self._subscriptions))
            for subscription in self._subscriptions:
                subscription.handler.on_close(self, subscription.subscription_opts)

    def _alert_all_handlers_to_error(self, error: Exception):
        for subscription in self._subscriptions:
            subscription.handler.on_error(self, subscription.subscription_opts, error)

    def _handle_message(self, message: Union[str, bytes, None]):
        if isinstance(message, (bytes, bytearray)):
            try:
                message = message.decode("utf-8")
            except UnicodeDecodeError:
                message = None
        if not message:
            self._alert_all_handlers_to_error(OrderbookChannelError("Message does not contain utf8Data"))
            return

        try:
            parsed = parse_channel_message(message)
        except OrderbookChannelError as e:
            subscription = self._lookup(e.request_id)
            if subscription is None:
                self._alert_all_handlers_to_error(e)
            else:
                subscription.handler.on_error(self, subscription.subscription_opts, e)
            return

        subscription = self._lookup(parsed.request_id)
        if subscription is None:
            self._alert_all_handlers_to_error(
                OrderbookChannelError(f"Message has unknown requestId: {message}", request_id=parsed.request_id)
            )
            return

        handler = subscription.handler
        opts = subscription.subscription_opts
        try:
            if isinstance(parsed, SnapshotMessage):
                handler.on_snapshot(self, opts, parsed.payload)
            elif isinstance(parsed, UpdateMessage):
                handler.on_update(self, opts, parsed.payload)
        except Exception as e:
            # Handler failures go to every subscription; the reader keeps running
            logger.error("channel_handler_failed", request_id=parsed.request_id, error=str(e))
            self._alert_all_handlers_to_error(e)

    def _lookup(self, request_id: Optional[int]) -> Optional[Subscription]:
        if request_id is None or not 0 <= request_id < len(self._subscriptions):
            return None
        return self._subscriptions[request_id]
