import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Optional

from ..core.clock import Clock
from ..core.journal import FillJournal
from ..core.logger import get_logger
from ..core.types import (
    FillRejection,
    FillResult,
    JournalEntry,
    Order,
    OrderInfo,
    OrderStatus,
    TERMINAL_STATUSES,
)
from ..hashing.encoder import parse_order
from ..hashing.order_hasher import OrderHasher, OrderLike, is_valid_order_hash
from .rules import check_fill, derive_status

logger = get_logger("OrderStatusTracker")


def normalize_order_hash(order_hash: str) -> str:
    if not is_valid_order_hash(order_hash):
        raise ValueError(f"not a 32-byte hex order hash: {order_hash!r}")
    return order_hash.lower()


@dataclass
class _OrderRecord:
    """
    Mutable fill state for one order hash, guarded by its own lock.
    """
    order_hash: str
    order: Optional[Order] = None
    filled: int = 0
    flag: Optional[OrderStatus] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class OrderStatusTracker:
    """
    In-memory authority for order fill state, keyed by order hash.

    Fills on the same order are serialized by a per-order lock; fills on
    different orders never contend.
    """
    def __init__(
        self,
        exchange_address: str,
        clock: Callable[[], int] = Clock.now_seconds,
        journal: Optional[FillJournal] = None,
    ):
        self.hasher = OrderHasher(exchange_address)
        self._clock = clock
        self._journal = journal
        self._records: Dict[str, _OrderRecord] = {}
        # Only guards record creation
        self._registry_lock = threading.Lock()

    def _record(self, order_hash: str) -> _OrderRecord:
        key = normalize_order_hash(order_hash)
        record = self._records.get(key)
        if record is None:
            with self._registry_lock:
                record = self._records.setdefault(key, _OrderRecord(order_hash=key))
        return record

    def _lookup(self, order_hash: str) -> Optional[_OrderRecord]:
        # Never creates a record
        return self._records.get(normalize_order_hash(order_hash))

    def _now(self, now: Optional[int]) -> int:
        return self._clock() if now is None else now

    def _info(self, record: _OrderRecord, now: int, filled: Optional[int] = None) -> OrderInfo:
        filled = record.filled if filled is None else filled
        if record.order is None:
            status = record.flag or OrderStatus.UNFILLED
        else:
            status = derive_status(record.order, filled, record.flag, now)
        return OrderInfo(
            order_status=status,
            order_hash=record.order_hash,
            order_taker_asset_filled_amount=filled,
        )

    def _journal_event(self, event_type: str, data: dict):
        if self._journal is not None:
            self._journal.record(event_type, data)

    def add_order(self, order: OrderLike) -> str:
        """
        Registers an order so fills can be bounded by its takerAssetAmount.
        Returns the order hash. Adding the same order twice is a no-op.
        """
        order = parse_order(order)
        order_hash = self.hasher.hash_order_hex(order)
        record = self._record(order_hash)
        with record.lock:
            if record.order is None:
                record.order = order
                self._journal_event("ORDER_ADDED", {
                    "order_hash": order_hash,
                    "order": order.model_dump(mode="json", by_alias=True),
                })
                logger.info("order_added",
                            order_hash=order_hash,
                            taker_asset_amount=order.taker_asset_amount)
        return order_hash

    def get_order(self, order_hash: str) -> Optional[Order]:
        record = self._lookup(order_hash)
        return record.order if record is not None else None

    def _existing_or_blank(self, order_hash: str) -> _OrderRecord:
        record = self._lookup(order_hash)
        if record is None:
            # Unregistered: answer from a throwaway record
            record = _OrderRecord(order_hash=normalize_order_hash(order_hash))
        return record

    def get_order_info(self, order_hash: str, now: Optional[int] = None) -> OrderInfo:
        record = self._existing_or_blank(order_hash)
        with record.lock:
            return self._info(record, self._now(now))

    def record_fill(self, order_hash: str, amount: int, now: Optional[int] = None) -> FillResult:
        """
        Applies a fill of `amount` taker asset units if every invariant still holds.
        Rejections are returned, never raised, and do not mutate state.
        """
        record = self._existing_or_blank(order_hash)
        now = self._now(now)
        with record.lock:
            if record.order is None:
                rejection = FillRejection.UNKNOWN_ORDER
            else:
                rejection = check_fill(record.order, record.filled, record.flag, amount, now)

            if rejection is not None:
                info = self._info(record, now)
                logger.warning("fill_rejected",
                               order_hash=record.order_hash,
                               amount=amount,
                               reason=rejection.value,
                               status=info.order_status.value,
                               filled=record.filled)
                return FillResult(accepted=False, order_info=info, requested_amount=amount, rejection=rejection)

            filled_total = record.filled + amount
            info = self._info(record, now, filled=filled_total)
            record.filled = filled_total
            self._journal_event("FILL", {
                "order_hash": record.order_hash,
                "amount": str(amount),
                "filled_total": str(filled_total),
            })

        logger.info("fill_recorded",
                    order_hash=info.order_hash,
                    amount=amount,
                    filled=info.order_taker_asset_filled_amount,
                    status=info.order_status.value)
        return FillResult(accepted=True, order_info=info, requested_amount=amount)

    def cancel_order(self, order_hash: str, now: Optional[int] = None) -> OrderInfo:
        return self._signal(order_hash, OrderStatus.CANCELLED, "CANCEL", now)

    def invalidate_order(self, order_hash: str, now: Optional[int] = None) -> OrderInfo:
        return self._signal(order_hash, OrderStatus.INVALID, "INVALIDATE", now)

    def _signal(self, order_hash: str, status: OrderStatus, event_type: str, now: Optional[int]) -> OrderInfo:
        record = self._record(order_hash)
        now = self._now(now)
        with record.lock:
            current = self._info(record, now)
            if current.order_status in TERMINAL_STATUSES:
                logger.info("signal_ignored_terminal",
                            order_hash=record.order_hash,
                            signal=status.value,
                            status=current.order_status.value)
                return current
            record.flag = status
            self._journal_event(event_type, {"order_hash": record.order_hash})
            info = self._info(record, now)

        logger.info("order_status_signalled", order_hash=info.order_hash, status=status.value)
        return info

    def restore(self, entries: Iterable[JournalEntry]) -> int:
        """
        Rebuilds state from journal entries without re-journaling them.
        Returns the number of entries applied.
        """
        applied = 0
        for entry in entries:
            data = entry.data
            record = self._record(data["order_hash"])
            with record.lock:
                if entry.event_type == "ORDER_ADDED":
                    record.order = parse_order(data["order"])
                elif entry.event_type == "FILL":
                    record.filled = int(data["filled_total"])
                elif entry.event_type == "CANCEL":
                    record.flag = OrderStatus.CANCELLED
                elif entry.event_type == "INVALIDATE":
                    record.flag = OrderStatus.INVALID
            applied += 1
        logger.info("tracker_restored", entries=applied, orders=len(self._records))
        return applied
