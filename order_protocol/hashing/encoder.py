"""
Canonical Order Encoder

Fixed-width fields are packed at their natural width in schema order.
Variable-length asset data is reduced to a 32-byte leaf hash first, so the
encoding of every order has the same length and no two adjacent payloads
can shift bytes between each other.
"""
from typing import Any, Mapping, Union

from eth_abi.packed import encode_packed
from eth_utils import keccak
from pydantic import ValidationError

from ..core.errors import MalformedOrderError
from ..core.types import Order

# (wire name, attribute, abi type) in schema declaration order
FIXED_FIELDS = (
    ("makerAddress", "maker_address", "address"),
    ("takerAddress", "taker_address", "address"),
    ("feeRecipientAddress", "fee_recipient_address", "address"),
    ("senderAddress", "sender_address", "address"),
    ("makerAssetAmount", "maker_asset_amount", "uint256"),
    ("takerAssetAmount", "taker_asset_amount", "uint256"),
    ("makerFee", "maker_fee", "uint256"),
    ("takerFee", "taker_fee", "uint256"),
    ("expirationTimeSeconds", "expiration_time_seconds", "uint256"),
    ("salt", "salt", "uint256"),
)
VARIABLE_FIELDS = (
    ("makerAssetData", "maker_asset_data", "bytes"),
    ("takerAssetData", "taker_asset_data", "bytes"),
)
ORDER_FIELDS = FIXED_FIELDS + VARIABLE_FIELDS

LEAF_HASH_SIZE = 32
FIXED_ENCODING_SIZE = 4 * 20 + 6 * 32
ENCODED_ORDER_SIZE = FIXED_ENCODING_SIZE + len(VARIABLE_FIELDS) * LEAF_HASH_SIZE


def order_type_string() -> str:
    """Type string naming every field, used to derive the order schema hash."""
    members = ",".join(f"{abi_type} {name}" for name, _, abi_type in ORDER_FIELDS)
    return f"Order({members})"


def leaf_hash(data: bytes) -> bytes:
    return keccak(data)


def encode_fixed_fields(order: Order) -> bytes:
    types = [abi_type for _, _, abi_type in FIXED_FIELDS]
    values = [getattr(order, attr) for _, attr, _ in FIXED_FIELDS]
    return encode_packed(types, values)


def encode_order(order: Order) -> bytes:
    """
    Packed fixed fields followed by the leaf hash of each asset data field.
    """
    leaves = b"".join(leaf_hash(getattr(order, attr)) for _, attr, _ in VARIABLE_FIELDS)
    return encode_fixed_fields(order) + leaves


def parse_order(data: Union[Order, Mapping[str, Any], str, bytes]) -> Order:
    """
    Validates a decoded record (dict or JSON text) into an Order.
    Raises MalformedOrderError for missing or out-of-range fields.
    """
    if isinstance(data, Order):
        return data
    try:
        if isinstance(data, (str, bytes)):
            return Order.model_validate_json(data)
        return Order.model_validate(data)
    except ValidationError as e:
        raise MalformedOrderError(f"Malformed order: {e}") from e
