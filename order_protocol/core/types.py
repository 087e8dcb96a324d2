import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from .errors import InvalidAddressError

# Constants
UINT256_MAX = 2**256 - 1
ADDRESS_LENGTH = 20

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_HEX_RE = re.compile(r"^0x([0-9a-fA-F]{2})*$")


def normalize_address(value: Any) -> str:
    """
    Accepts a 0x-prefixed hex string or 20 raw bytes.
    Returns the lowercase 0x form.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_LENGTH:
            raise InvalidAddressError(f"expected {ADDRESS_LENGTH} bytes, got {len(value)}")
        return "0x" + bytes(value).hex()
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise InvalidAddressError(f"not a 20-byte hex address: {value!r}")
    return value.lower()


def _hex_to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and _HEX_RE.match(value):
        return bytes.fromhex(value[2:])
    raise ValueError(f"expected 0x-prefixed hex data, got {value!r}")


Address = Annotated[str, BeforeValidator(normalize_address)]
Uint256 = Annotated[
    int,
    Field(ge=0, le=UINT256_MAX),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]
HexBytes = Annotated[
    bytes,
    BeforeValidator(_hex_to_bytes),
    PlainSerializer(lambda v: "0x" + v.hex(), return_type=str),
]


class _WireModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class Order(_WireModel):
    """
    A proposed exchange of two assets, signed off-core by its maker.
    Immutable once constructed; its hash never changes.
    """
    model_config = ConfigDict(frozen=True)

    maker_address: Address
    taker_address: Address
    fee_recipient_address: Address
    sender_address: Address
    maker_asset_amount: Uint256
    taker_asset_amount: Uint256
    maker_fee: Uint256
    taker_fee: Uint256
    expiration_time_seconds: Uint256
    salt: Uint256  # nonce for uniqueness, not a secret
    maker_asset_data: HexBytes
    taker_asset_data: HexBytes


class SignedOrder(Order):
    """
    Order as published by a relayer: bound to an exchange, carrying the maker signature.
    """
    exchange_address: Address
    signature: HexBytes


# --- Status Tracking ---

class OrderStatus(str, Enum):
    UNFILLED = "UNFILLED"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FULLY_FILLED = "FULLY_FILLED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
    INVALID = "INVALID"

# No fill is accepted in any of these
TERMINAL_STATUSES = frozenset({
    OrderStatus.FULLY_FILLED,
    OrderStatus.EXPIRED,
    OrderStatus.CANCELLED,
    OrderStatus.INVALID,
})

# Set by external signals only, never derived from fills or time
SIGNALLED_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.INVALID})


class OrderInfo(_WireModel):
    order_status: OrderStatus
    order_hash: str
    order_taker_asset_filled_amount: Uint256 = 0


class FillRejection(str, Enum):
    NON_INTEGER_AMOUNT = "NON_INTEGER_AMOUNT"
    NON_POSITIVE_AMOUNT = "NON_POSITIVE_AMOUNT"
    UNKNOWN_ORDER = "UNKNOWN_ORDER"
    OVERSHOOT = "OVERSHOOT"
    ORDER_FULLY_FILLED = "ORDER_FULLY_FILLED"
    ORDER_EXPIRED = "ORDER_EXPIRED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_INVALID = "ORDER_INVALID"


@dataclass(frozen=True)
class FillResult:
    """
    Outcome of a fill attempt. Rejections leave state untouched.
    """
    accepted: bool
    order_info: OrderInfo
    requested_amount: int
    rejection: Optional[FillRejection] = None

    def summary(self) -> str:
        if self.accepted:
            return (
                f"ACCEPTED: {self.requested_amount} filled, "
                f"total {self.order_info.order_taker_asset_filled_amount} ({self.order_info.order_status.value})"
            )
        return f"REJECTED: {self.rejection.value} for amount {self.requested_amount}"


class JournalEntry(BaseModel):
    """
    Entry for the append-only tracker journal.
    """
    event_type: Literal["ORDER_ADDED", "FILL", "CANCEL", "INVALIDATE"]
    timestamp: int  # epoch microseconds
    data: Dict[str, Any]


# --- Orderbook Channel ---

class OrderbookChannelSubscriptionOpts(_WireModel):
    """
    Token pair to subscribe to on a relayer orderbook channel.
    """
    model_config = ConfigDict(frozen=True)

    base_token_address: Address
    quote_token_address: Address
    snapshot: bool = True
    limit: int = Field(default=100, gt=0)


class OrderbookSnapshot(BaseModel):
    bids: List[SignedOrder] = Field(default_factory=list)
    asks: List[SignedOrder] = Field(default_factory=list)


class OrderbookChannelMessageType(str, Enum):
    SNAPSHOT = "snapshot"
    UPDATE = "update"


class SnapshotMessage(_WireModel):
    type: Literal["snapshot"]
    channel: Literal["orderbook"] = "orderbook"
    request_id: int
    payload: OrderbookSnapshot


class UpdateMessage(_WireModel):
    type: Literal["update"]
    channel: Literal["orderbook"] = "orderbook"
    request_id: int
    payload: SignedOrder
