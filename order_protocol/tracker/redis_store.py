from typing import Callable, Dict, Optional

import redis

from ..core.clock import Clock
from ..core.logger import get_logger
from ..core.types import FillRejection, FillResult, Order, OrderInfo, OrderStatus, TERMINAL_STATUSES
from ..hashing.encoder import parse_order
from ..hashing.order_hasher import OrderHasher, OrderLike
from .rules import check_fill, derive_status, parse_flag
from .status_tracker import normalize_order_hash

logger = get_logger("RedisOrderStatusStore")


class RedisOrderStatusStore:
    """
    Redis-backed order fill state, shared by every process settling against one exchange.

    Layout:
        op:orders:<hash>  order JSON (camelCase wire form)
        op:info:<hash>    hash {filled, flag}

    Fills run as WATCH/MULTI transactions on both keys, so a concurrent writer
    forces a retry instead of an overshoot.
    """
    PREFIX_ORDER = "op:orders"
    PREFIX_INFO = "op:info"

    def __init__(
        self,
        exchange_address: str,
        redis_url: str = "redis://localhost:6379/0",
        clock: Callable[[], int] = Clock.now_seconds,
        client: Optional[redis.Redis] = None,
    ):
        self.redis = client if client is not None else redis.from_url(redis_url, decode_responses=True)
        self.hasher = OrderHasher(exchange_address)
        self._clock = clock

    def _order_key(self, order_hash: str) -> str:
        return f"{self.PREFIX_ORDER}:{order_hash}"

    def _info_key(self, order_hash: str) -> str:
        return f"{self.PREFIX_INFO}:{order_hash}"

    def _now(self, now: Optional[int]) -> int:
        return self._clock() if now is None else now

    @staticmethod
    def _decode(state: dict) -> Dict[str, str]:
        # Clients built without decode_responses=True return bytes keys and values
        return {
            (k.decode("utf-8") if isinstance(k, bytes) else k): (v.decode("utf-8") if isinstance(v, bytes) else v)
            for k, v in state.items()
        }

    @staticmethod
    def _build_info(order_hash: str, order: Optional[Order], state: dict, now: int) -> OrderInfo:
        filled = int(state.get("filled") or 0)
        flag = parse_flag(state.get("flag"))
        if order is None:
            status = flag or OrderStatus.UNFILLED
        else:
            status = derive_status(order, filled, flag, now)
        return OrderInfo(order_status=status, order_hash=order_hash, order_taker_asset_filled_amount=filled)

    def add_order(self, order: OrderLike) -> str:
        order = parse_order(order)
        order_hash = self.hasher.hash_order_hex(order)
        # NX: the stored order for a hash never changes
        created = self.redis.set(self._order_key(order_hash), order.model_dump_json(by_alias=True), nx=True)
        if created:
            logger.info("order_added", order_hash=order_hash, taker_asset_amount=order.taker_asset_amount)
        return order_hash

    def get_order(self, order_hash: str) -> Optional[Order]:
        raw = self.redis.get(self._order_key(normalize_order_hash(order_hash)))
        return Order.model_validate_json(raw) if raw else None

    def get_order_info(self, order_hash: str, now: Optional[int] = None) -> OrderInfo:
        order_hash = normalize_order_hash(order_hash)
        order = self.get_order(order_hash)
        state = self._decode(self.redis.hgetall(self._info_key(order_hash)))
        return self._build_info(order_hash, order, state, self._now(now))

    def record_fill(self, order_hash: str, amount: int, now: Optional[int] = None) -> FillResult:
        order_hash = normalize_order_hash(order_hash)
        order_key = self._order_key(order_hash)
        info_key = self._info_key(order_hash)
        now = self._now(now)

        def _apply(pipe) -> FillResult:
            # Immediate mode after WATCH: these reads see the watched values
            raw = pipe.get(order_key)
            state = self._decode(pipe.hgetall(info_key))
            order = Order.model_validate_json(raw) if raw else None
            filled = int(state.get("filled") or 0)
            flag = parse_flag(state.get("flag"))

            if order is None:
                rejection = FillRejection.UNKNOWN_ORDER
            else:
                rejection = check_fill(order, filled, flag, amount, now)
            if rejection is not None:
                info = self._build_info(order_hash, order, state, now)
                return FillResult(accepted=False, order_info=info, requested_amount=amount, rejection=rejection)

            new_state = dict(state, filled=str(filled + amount))
            pipe.multi()
            pipe.hset(info_key, mapping=new_state)
            info = self._build_info(order_hash, order, new_state, now)
            return FillResult(accepted=True, order_info=info, requested_amount=amount)

        result = self.redis.transaction(_apply, order_key, info_key, value_from_callable=True)
        if result.accepted:
            logger.info("fill_recorded",
                        order_hash=order_hash,
                        amount=amount,
                        filled=result.order_info.order_taker_asset_filled_amount,
                        status=result.order_info.order_status.value)
        else:
            logger.warning("fill_rejected",
                           order_hash=order_hash,
                           amount=amount,
                           reason=result.rejection.value,
                           status=result.order_info.order_status.value)
        return result

    def cancel_order(self, order_hash: str, now: Optional[int] = None) -> OrderInfo:
        return self._signal(order_hash, OrderStatus.CANCELLED, now)

    def invalidate_order(self, order_hash: str, now: Optional[int] = None) -> OrderInfo:
        return self._signal(order_hash, OrderStatus.INVALID, now)

    def _signal(self, order_hash: str, status: OrderStatus, now: Optional[int]) -> OrderInfo:
        order_hash = normalize_order_hash(order_hash)
        order_key = self._order_key(order_hash)
        info_key = self._info_key(order_hash)
        now = self._now(now)

        def _apply(pipe) -> OrderInfo:
            raw = pipe.get(order_key)
            state = self._decode(pipe.hgetall(info_key))
            order = Order.model_validate_json(raw) if raw else None
            current = self._build_info(order_hash, order, state, now)
            if current.order_status in TERMINAL_STATUSES:
                return current
            new_state = dict(state, flag=status.value)
            pipe.multi()
            pipe.hset(info_key, mapping=new_state)
            return self._build_info(order_hash, order, new_state, now)

        info = self.redis.transaction(_apply, order_key, info_key, value_from_callable=True)
        logger.info("order_status_signalled",
                    order_hash=order_hash,
                    signal=status.value,
                    status=info.order_status.value)
        return info
