"""
Order Hash Composer

order_hash = H(domain_separator || H(exchange) || order_schema || H(encoded_order))
domain_separator = H(H(domain_schema) || H(exchange))

H is Keccak-256. The exchange address is the verifying instance: the same
order hashed against two exchanges never yields the same digest.
"""
import hmac
import re
from typing import Any, Mapping, Union

from eth_utils import keccak, to_canonical_address

from ..core.types import Order, normalize_address
from .encoder import encode_order, parse_order
from .schema import domain_separator_schema_hash, order_schema_hash

_ORDER_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")

OrderLike = Union[Order, Mapping[str, Any]]


def to_hex(digest: bytes) -> str:
    return "0x" + digest.hex()


def is_valid_order_hash(value: Any) -> bool:
    return isinstance(value, str) and bool(_ORDER_HASH_RE.match(value))


def _instance_hash(exchange_address: Union[str, bytes]) -> bytes:
    return keccak(to_canonical_address(normalize_address(exchange_address)))


def _compose(domain_separator: bytes, instance_hash: bytes, order: Order) -> bytes:
    return keccak(
        domain_separator
        + instance_hash
        + order_schema_hash()
        + keccak(encode_order(order))
    )


def compute_domain_separator_hash(exchange_address: Union[str, bytes]) -> bytes:
    return keccak(domain_separator_schema_hash() + _instance_hash(exchange_address))


def compute_order_hash(order: OrderLike, exchange_address: Union[str, bytes]) -> bytes:
    """
    Computes the 32-byte order identifier for one exchange deployment.
    Malformed orders raise MalformedOrderError before any hashing happens.
    """
    order = parse_order(order)
    instance = _instance_hash(exchange_address)
    domain_separator = keccak(domain_separator_schema_hash() + instance)
    return _compose(domain_separator, instance, order)


class OrderHasher:
    """
    Order hashing bound to a single exchange address.
    The domain separator is computed once per instance.
    """
    def __init__(self, exchange_address: Union[str, bytes]):
        self.exchange_address = normalize_address(exchange_address)
        self._instance_hash = _instance_hash(self.exchange_address)
        self.domain_separator_hash = keccak(domain_separator_schema_hash() + self._instance_hash)

    def hash_order(self, order: OrderLike) -> bytes:
        return _compose(self.domain_separator_hash, self._instance_hash, parse_order(order))

    def hash_order_hex(self, order: OrderLike) -> str:
        return to_hex(self.hash_order(order))

    def verify(self, order: OrderLike, expected_hash: Union[str, bytes]) -> bool:
        """
        Exact comparison of the full 32-byte digest.
        A mismatch is a normal outcome (wrong exchange, altered order), not an error.
        """
        if isinstance(expected_hash, str):
            if not is_valid_order_hash(expected_hash):
                raise ValueError(f"not a 32-byte hex order hash: {expected_hash!r}")
            expected_hash = bytes.fromhex(expected_hash[2:])
        elif len(expected_hash) != 32:
            raise ValueError(f"expected 32 bytes, got {len(expected_hash)}")
        return hmac.compare_digest(self.hash_order(order), bytes(expected_hash))
